"""
噪声文件判定（非 AI，纯文件名匹配）。

lockfile、构建产物、压缩包、图片/字体等不值得送给模型。
只看路径，不看内容；大小写敏感。
"""

from __future__ import annotations

import re

NOISE_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(p)
    for p in (
        r"package-lock\.json$",
        r"pnpm-lock\.yaml$",
        r"yarn\.lock$",
        r"\.lock$",
        r"dist/",
        r"build/",
        r"vendor/",
        r"node_modules/",
        r"\.min\.(js|css)$",
        r"\.map$",
        r"\.snap$",
        r"\.generated\.",
        r"\.g\.(ts|dart|cs)$",
        r"\.pb\.(go|ts|js)$",
        r"\.svg$",
        r"\.ico$",
        r"\.woff2?$",
        r"\.ttf$",
        r"\.eot$",
        r"\.png$",
        r"\.jpe?g$",
        r"\.gif$",
        r"\.webp$",
        r"\.avif$",
    )
)


def is_noise_file(filename: str) -> bool:
    return any(pattern.search(filename) for pattern in NOISE_PATTERNS)
