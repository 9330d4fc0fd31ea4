"""
Diff 预算控制（非 AI，确定性）。

三步：
- select：过滤噪声文件，按原顺序取前 N 个
- truncate：单文件 patch 超出字节预算时，在行边界截断并追加标记
- prepare：总预算平均分给每个文件（不按文件大小分配），生成 `PreparedDiff`

注意：预算按 UTF-8 **字节**计算，不是字符数。
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from prscope.review.models import ChangedFile
from prscope.review.models import PreparedDiff
from prscope.review.noise import is_noise_file

logger = logging.getLogger(__name__)

TRUNCATION_MARKER = "\n... [TRUNCATED by PRScope - diff too large] ...\n"
MISSING_PATCH_PLACEHOLDER = "[context unavailable - binary or oversized diff]"


@dataclass(frozen=True)
class PreparedDiffs:
    """prepare 的结果：diffs + 实际占用字节数（用于日志/观测）。"""

    diffs: list[PreparedDiff]
    total_bytes: int


def select_files(files: Sequence[ChangedFile], max_file_count: int) -> list[ChangedFile]:
    """过滤噪声后取前 `max_file_count` 个，保持输入顺序。"""
    if max_file_count < 0:
        raise ValueError("max_file_count must be >= 0")
    meaningful = [f for f in files if not is_noise_file(f.filename)]
    return meaningful[:max_file_count]


def truncate_patch(patch: str, max_bytes: int) -> str:
    """
    把 patch 截到 `max_bytes` 字节以内（不含截断标记）。

    - 未超预算：原样返回
    - 已截断过且正文仍在预算内：原样返回（幂等）
    - 超预算：取合法 UTF-8 前缀，再退回到最后一个换行之前，避免输出半行 diff
    """
    if max_bytes < 0:
        raise ValueError("max_bytes must be >= 0")

    encoded = patch.encode("utf-8")
    if len(encoded) <= max_bytes:
        return patch
    if patch.endswith(TRUNCATION_MARKER):
        body = patch[: -len(TRUNCATION_MARKER)]
        if len(body.encode("utf-8")) <= max_bytes:
            return patch

    prefix = _utf8_prefix(encoded=encoded, max_bytes=max_bytes)
    last_newline = prefix.rfind("\n")
    # 换行在开头（或没有换行）时用原始前缀
    clean = prefix[:last_newline] if last_newline > 0 else prefix
    return clean + TRUNCATION_MARKER


def _utf8_prefix(encoded: bytes, max_bytes: int) -> str:
    """最长的、不切断多字节字符的前缀。调用方保证 len(encoded) > max_bytes。"""
    cut = max_bytes
    while cut > 0 and (encoded[cut] & 0xC0) == 0x80:
        cut -= 1
    return encoded[:cut].decode("utf-8")


def prepare_diffs(files: Sequence[ChangedFile], max_file_count: int, max_total_bytes: int) -> PreparedDiffs:
    """
    选文件 + 按平均预算截断。

    - 没选中任何文件：返回空列表和 0 字节（调用方当作“无需 review”，不是错误）
    - patch 缺失：使用固定占位文本，占位文本同样受单文件预算约束
    """
    if max_total_bytes < 0:
        raise ValueError("max_total_bytes must be >= 0")

    selected = select_files(files=files, max_file_count=max_file_count)
    per_file_budget = max_total_bytes // max(1, len(selected))

    diffs: list[PreparedDiff] = []
    total_bytes = 0
    for f in selected:
        source = f.patch if f.patch is not None else MISSING_PATCH_PLACEHOLDER
        patch = truncate_patch(patch=source, max_bytes=per_file_budget)
        total_bytes += len(patch.encode("utf-8"))
        diffs.append(PreparedDiff(file=f, patch=patch, truncated=patch != source))

    logger.info(
        f"Prepared diffs: {len(diffs)}/{len(files)} file(s), {total_bytes} bytes, budget {per_file_budget} bytes/file"
    )
    return PreparedDiffs(diffs=diffs, total_bytes=total_bytes)
