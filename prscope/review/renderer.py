from __future__ import annotations

"""
评论渲染（确定性输出，不依赖 LLM）。

注意：
- 只接收已经过 schema 校验的 `ReviewResult`
- 按严重程度排序只发生在这里（核心保持模型给出的顺序）
- 每条评论都带 `COMMENT_MARKER`，comment sink 靠它找到并更新旧评论
"""

import math

from prscope.review.models import Finding
from prscope.review.models import ReviewResult
from prscope.review.models import RiskLevel

COMMENT_MARKER = "<!-- prscope:review -->"
HASH_MARKER_PREFIX = "<!-- prscope:hash:"
FOOTER = "<sub>Generated by PRScope</sub>"

_RISK_LABELS: dict[RiskLevel, str] = {"low": "Low Risk", "medium": "Medium Risk", "high": "High Risk"}
_SEVERITY_ORDER = {"high": 0, "medium": 1, "low": 2}
_CATEGORY_LABELS = {
    "bug": "Bug",
    "security": "Security",
    "performance": "Performance",
    "maintainability": "Maintainability",
    "dx": "Developer Experience",
}


def hash_marker(review_hash: str) -> str:
    return f"{HASH_MARKER_PREFIX}{review_hash} -->"


def _header_lines(review_hash: str | None) -> list[str]:
    lines = [COMMENT_MARKER]
    if review_hash:
        lines.append(hash_marker(review_hash))
    lines.append("")
    return lines


def _location(finding: Finding) -> str:
    return f"{finding.file}:{finding.line}" if finding.line is not None else finding.file


def _percent(confidence: float) -> int:
    # 四舍五入（0.5 进位），不用 round() 的银行家舍入
    return math.floor(confidence * 100 + 0.5)


def _findings_table(findings: list[Finding]) -> list[str]:
    if not findings:
        return ["*No issues found - this PR looks good.*", ""]

    ordered = sorted(findings, key=lambda f: _SEVERITY_ORDER[f.severity])
    lines = [
        "| Severity | Category | Finding | Location |",
        "|----------|----------|---------|----------|",
    ]
    for f in ordered:
        lines.append(f"| {f.severity.capitalize()} | {_CATEGORY_LABELS[f.category]} | {f.title} | `{_location(f)}` |")
    lines.append("")
    return lines


def _finding_details(findings: list[Finding]) -> list[str]:
    if not findings:
        return []
    lines = ["<details>", "<summary>Detailed findings</summary>", ""]
    for f in findings:
        lines.append(f"#### {f.title}")
        lines.append(f"**Location:** `{_location(f)}` - **Confidence:** {_percent(f.confidence)}%")
        lines.append("")
        lines.append(f.message)
        if f.suggestion:
            lines.append("")
            lines.append(f"> **Suggestion:** {f.suggestion}")
        lines.append("")
    lines.extend(["</details>", ""])
    return lines


def _praise(praise: list[str]) -> list[str]:
    if not praise:
        return []
    lines = ["<details>", "<summary>What looks good</summary>", ""]
    lines.extend(f"- {p}" for p in praise)
    lines.extend(["", "</details>", ""])
    return lines


def render_comment(result: ReviewResult, review_hash: str | None = None) -> str:
    """把结构化 review 渲染成一条 PR 评论（markdown）。"""
    lines = _header_lines(review_hash)
    lines.append(f"## PRScope Review - {_RISK_LABELS[result.overall_risk]} `{result.overall_risk.upper()}`")
    lines.append("")
    lines.append(result.summary)
    lines.extend(["", "---", "", "### Findings", ""])
    lines.extend(_findings_table(result.findings))
    lines.extend(_finding_details(result.findings))
    lines.extend(_praise(result.praise))
    lines.extend(["---", "", FOOTER, ""])
    return "\n".join(lines)


def render_fallback_comment(reason: str, review_hash: str | None = None) -> str:
    """结构化 review 失败时的评论：明确说明失败，并带上原因（不要静默）。"""
    lines = _header_lines(review_hash)
    lines.extend(
        [
            "## PRScope Review",
            "",
            "PRScope could not produce a structured review for this PR.",
            "",
            f"**Reason:** {reason}",
            "",
            "This can happen with very large diffs, provider outages or provider-specific formatting quirks. "
            "Re-running the review usually helps.",
            "",
            "---",
            "",
            FOOTER,
            "",
        ]
    )
    return "\n".join(lines)


def render_inline_comment(finding: Finding) -> str:
    """inline 模式下单条 finding 的正文（挂在具体代码行上）。"""
    lines = [
        f"**{finding.severity.capitalize()} · {_CATEGORY_LABELS[finding.category]}: {finding.title}**",
        "",
        finding.message,
    ]
    if finding.suggestion:
        lines.extend(["", f"> **Suggestion:** {finding.suggestion}"])
    return "\n".join(lines)
