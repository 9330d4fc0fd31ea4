"""
Prompt 组装（确定性）。

- system：固定模板，只随 profile 注入不同的关注点；声明模型必须输出的 JSON schema
- user：文件数 + 按输入顺序拼接的 diff

同样的输入必须得到逐字节相同的 prompt（便于测试，也便于以后做缓存）。
"""

from __future__ import annotations

from collections.abc import Sequence

from prscope.llm.client import ChatMessage
from prscope.review.models import PreparedDiff
from prscope.review.models import ReviewProfile


def profile_instructions(profile: ReviewProfile) -> str:
    """每个 profile 的关注点；新增 profile 必须在这里加分支（有测试覆盖）。"""
    if profile == "balanced":
        return "Review for bugs, security issues, performance problems, and code quality. Be thorough but practical."
    if profile == "security":
        return (
            "Focus primarily on security vulnerabilities, injection risks, auth flaws, and data exposure. "
            "Be strict on security, lighter on style."
        )
    if profile == "performance":
        return (
            "Focus primarily on performance regressions, memory leaks, unnecessary allocations, "
            "and algorithmic inefficiency."
        )
    if profile == "strict":
        return (
            "Maximum scrutiny. Flag everything: bugs, security, performance, style, naming, "
            "documentation gaps. Miss nothing."
        )
    raise ValueError(f"Unknown review profile: {profile}")


def _system_prompt(profile: ReviewProfile) -> str:
    return "\n".join(
        [
            "You are a senior code reviewer. You review pull request diffs and produce structured findings.",
            "",
            f"Review focus: {profile_instructions(profile)}",
            "",
            "Respond ONLY with a valid JSON object matching this exact schema:",
            "",
            "{",
            '  "summary": "Brief overall assessment of the PR",',
            '  "overall_risk": "low | medium | high",',
            '  "findings": [',
            "    {",
            '      "file": "path/to/file",',
            '      "line": 42,',
            '      "severity": "low | medium | high",',
            '      "category": "bug | security | performance | maintainability | dx",',
            '      "title": "Short title",',
            '      "message": "Detailed explanation",',
            '      "suggestion": "How to fix it",',
            '      "confidence": 0.92',
            "    }",
            "  ],",
            '  "praise": ["Good things about this PR"]',
            "}",
            "",
            "Rules:",
            "- Output ONLY the JSON object, no markdown fences, no commentary.",
            "- Set confidence between 0 and 1. Only flag findings where confidence > 0.7.",
            "- If the diff looks clean, return an empty findings array.",
            "- Be specific about line numbers when possible.",
            "- Do not hallucinate files or line numbers that are not in the diff.",
        ]
    )


def _user_prompt(diffs: Sequence[PreparedDiff]) -> str:
    blocks = [f"--- {d.file.filename} ({d.file.status}) ---\n{d.patch}" for d in diffs]
    return "\n".join(
        [
            f"Review the following pull request diff ({len(diffs)} files):",
            "",
            "\n\n".join(blocks),
        ]
    )


def build_prompt(diffs: Sequence[PreparedDiff], profile: ReviewProfile) -> tuple[ChatMessage, ChatMessage]:
    """返回 (system, user) 两条消息。"""
    return (
        ChatMessage(role="system", content=_system_prompt(profile)),
        ChatMessage(role="user", content=_user_prompt(diffs)),
    )
