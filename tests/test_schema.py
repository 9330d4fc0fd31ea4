from __future__ import annotations

import copy
import json

import pytest

from prscope.review.schema import ReviewAccepted
from prscope.review.schema import ReviewRejected
from prscope.review.schema import SchemaValidationError
from prscope.review.schema import extract_json
from prscope.review.schema import parse_review_result
from prscope.review.schema import validate_model_output

VALID_RESULT = {
    "summary": "This PR adds a new utility function.",
    "overall_risk": "low",
    "findings": [
        {
            "file": "src/utils.ts",
            "line": 42,
            "severity": "medium",
            "category": "bug",
            "title": "Potential null reference",
            "message": "The variable could be null at this point.",
            "suggestion": "Add a null check before accessing the property.",
            "confidence": 0.85,
        }
    ],
    "praise": ["Clean separation of concerns."],
}


def _with_finding(**changes: object) -> dict[str, object]:
    data = copy.deepcopy(VALID_RESULT)
    data["findings"][0].update(changes)  # type: ignore[index]
    return data


def test_extract_json_prefers_fenced_block() -> None:
    raw = 'Here is the review:\n```json\n{"summary": "x"}\n```\nThanks!'
    assert extract_json(raw) == '{"summary": "x"}'


def test_extract_json_untagged_fence() -> None:
    assert extract_json("```\n  {\"a\": 1}  \n```") == '{"a": 1}'


def test_extract_json_brace_span() -> None:
    raw = 'Sure! {"a": {"b": 1}} hope this helps'
    assert extract_json(raw) == '{"a": {"b": 1}}'


def test_extract_json_falls_back_to_trimmed_text() -> None:
    assert extract_json("  no json here  ") == "no json here"
    assert extract_json("} before {") == "} before {"


def test_parse_review_result_accepts_valid() -> None:
    result = parse_review_result(VALID_RESULT)
    assert result.summary == "This PR adds a new utility function."
    assert result.overall_risk == "low"
    assert len(result.findings) == 1
    assert result.praise == ["Clean separation of concerns."]


def test_parse_review_result_accepts_minimal() -> None:
    result = parse_review_result({"summary": "All good.", "overall_risk": "low", "findings": [], "praise": []})
    assert result.findings == []
    assert result.praise == []


def test_parse_review_result_null_line_and_missing_suggestion() -> None:
    data = _with_finding(line=None)
    del data["findings"][0]["suggestion"]  # type: ignore[index]
    finding = parse_review_result(data).findings[0]
    assert finding.line is None
    assert finding.suggestion == ""


def test_parse_review_result_keeps_finding_order() -> None:
    data = copy.deepcopy(VALID_RESULT)
    low = dict(data["findings"][0], severity="low", title="first")  # type: ignore[index]
    high = dict(data["findings"][0], severity="high", title="second")  # type: ignore[index]
    data["findings"] = [low, high]
    assert [f.title for f in parse_review_result(data).findings] == ["first", "second"]


@pytest.mark.parametrize("value", ["not json", 42, 3.5, None, [], True])
def test_parse_review_result_rejects_non_objects(value: object) -> None:
    with pytest.raises(SchemaValidationError):
        parse_review_result(value)


@pytest.mark.parametrize(
    "data",
    [
        dict(VALID_RESULT, overall_risk="extreme"),
        dict(VALID_RESULT, summary=""),
        {"summary": "x", "overall_risk": "low", "findings": []},
        _with_finding(severity="critical"),
        _with_finding(category="style"),
        _with_finding(confidence=1.5),
        _with_finding(confidence=-0.1),
        _with_finding(title=""),
        _with_finding(message=""),
    ],
)
def test_parse_review_result_rejects_invalid(data: dict[str, object]) -> None:
    with pytest.raises(SchemaValidationError):
        parse_review_result(data)


def test_schema_validation_error_has_diagnostic() -> None:
    with pytest.raises(SchemaValidationError) as excinfo:
        parse_review_result(_with_finding(severity="critical"))
    assert "findings.0.severity" in excinfo.value.diagnostic


def test_validate_model_output_accepts_fenced_json() -> None:
    raw = f"```json\n{json.dumps(VALID_RESULT)}\n```"
    outcome = validate_model_output(raw)
    assert isinstance(outcome, ReviewAccepted)
    assert outcome.kind == "accepted"
    assert outcome.review.findings[0].file == "src/utils.ts"


def test_validate_model_output_rejects_prose() -> None:
    outcome = validate_model_output("I could not review this PR, sorry.")
    assert isinstance(outcome, ReviewRejected)
    assert "not valid JSON" in outcome.reason


def test_validate_model_output_rejects_bad_schema() -> None:
    outcome = validate_model_output(json.dumps(dict(VALID_RESULT, overall_risk="extreme")))
    assert isinstance(outcome, ReviewRejected)
    assert "overall_risk" in outcome.reason


@pytest.mark.parametrize(
    "data",
    [
        _with_finding(confidence=True),
        _with_finding(confidence="0.9"),
        _with_finding(line=True),
        _with_finding(line="42"),
        dict(VALID_RESULT, praise=[1]),
    ],
)
def test_parse_review_result_rejects_coercible_values(data: dict[str, object]) -> None:
    with pytest.raises(SchemaValidationError):
        parse_review_result(data)


def test_parse_review_result_accepts_integer_confidence() -> None:
    assert parse_review_result(_with_finding(confidence=1)).findings[0].confidence == 1.0


def test_validate_model_output_rejects_deeply_nested_json() -> None:
    outcome = validate_model_output("[" * 100_000 + "]" * 100_000)
    assert isinstance(outcome, ReviewRejected)
    assert "nested too deeply" in outcome.reason
