from __future__ import annotations

from prscope.review.models import Finding
from prscope.review.models import ReviewResult
from prscope.review.renderer import COMMENT_MARKER
from prscope.review.renderer import hash_marker
from prscope.review.renderer import render_comment
from prscope.review.renderer import render_fallback_comment
from prscope.review.renderer import render_inline_comment


def _finding(title: str, severity: str = "high", line: int | None = 42, suggestion: str = "Validate it.") -> Finding:
    return Finding(
        file="src/auth.ts",
        line=line,
        severity=severity,
        category="security",
        title=title,
        message="User input is not sanitized.",
        suggestion=suggestion,
        confidence=0.95,
    )


RESULT = ReviewResult(
    summary="This PR introduces a new authentication module.",
    overall_risk="medium",
    findings=[_finding("Missing input validation")],
    praise=["Good test coverage"],
)


def test_render_comment_includes_marker_and_risk() -> None:
    comment = render_comment(RESULT)
    assert comment.startswith(COMMENT_MARKER)
    assert "Medium Risk" in comment
    assert "`MEDIUM`" in comment
    assert RESULT.summary in comment


def test_render_comment_table_and_details() -> None:
    comment = render_comment(RESULT)
    assert "| Severity | Category | Finding | Location |" in comment
    assert "| High | Security | Missing input validation | `src/auth.ts:42` |" in comment
    assert "<summary>Detailed findings</summary>" in comment
    assert "**Confidence:** 95%" in comment
    assert "> **Suggestion:** Validate it." in comment


def test_render_comment_sorts_table_by_severity() -> None:
    result = RESULT.model_copy(update={"findings": [_finding("minor", severity="low"), _finding("major")]})
    comment = render_comment(result)
    assert comment.index("| major |") < comment.index("| minor |")


def test_render_comment_without_findings_or_praise() -> None:
    comment = render_comment(ReviewResult(summary="Nothing here.", overall_risk="low", findings=[], praise=[]))
    assert "No issues found" in comment
    assert "<details>" not in comment


def test_render_comment_location_without_line() -> None:
    comment = render_comment(RESULT.model_copy(update={"findings": [_finding("x", line=None)]}))
    assert "`src/auth.ts` |" in comment


def test_render_comment_praise_section() -> None:
    assert "- Good test coverage" in render_comment(RESULT)


def test_render_comment_embeds_hash_marker() -> None:
    assert hash_marker("abc") in render_comment(RESULT, review_hash="abc")
    assert "prscope:hash" not in render_comment(RESULT)


def test_render_fallback_comment_includes_marker_and_reason() -> None:
    comment = render_fallback_comment("Schema validation failed: overall_risk: bad")
    assert comment.startswith(COMMENT_MARKER)
    assert "could not produce a structured review" in comment
    assert "**Reason:** Schema validation failed: overall_risk: bad" in comment


def test_render_inline_comment_omits_empty_suggestion() -> None:
    body = render_inline_comment(_finding("Missing input validation", suggestion=""))
    assert "Missing input validation" in body
    assert "Suggestion" not in body


def test_render_comment_keeps_line_zero_in_location() -> None:
    comment = render_comment(RESULT.model_copy(update={"findings": [_finding("x", line=0)]}))
    assert "`src/auth.ts:0`" in comment


def test_render_comment_rounds_confidence_half_up() -> None:
    finding = _finding("x").model_copy(update={"confidence": 0.125})
    comment = render_comment(RESULT.model_copy(update={"findings": [finding]}))
    assert "**Confidence:** 13%" in comment
