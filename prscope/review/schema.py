"""
模型输出的提取与校验（唯一的信任边界）。

模型输出是任意文本：可能带 ``` 代码块、可能夹杂解释、可能根本不是 JSON。
这里做两件事：
- `extract_json`：尽量剥掉外层包装，拿到 JSON 文本
- `parse_review_result`：严格 schema 校验，失败抛 `SchemaValidationError`

下游只能拿到 `ReviewAccepted.review`，不要绕过这里直接信任模型输出。
"""

from __future__ import annotations

import json
import logging
import re
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, ValidationError

from prscope.review.models import ReviewResult

logger = logging.getLogger(__name__)

_FENCED_BLOCK = re.compile(r"```(?:json)?\s*([\s\S]*?)```")


class SchemaValidationError(ValueError):
    """模型输出不符合 ReviewResult schema；`diagnostic` 是给人看的原因。"""

    def __init__(self, diagnostic: str) -> None:
        super().__init__(diagnostic)
        self.diagnostic = diagnostic


class ReviewAccepted(BaseModel):
    kind: Literal["accepted"] = "accepted"
    review: ReviewResult


class ReviewRejected(BaseModel):
    kind: Literal["rejected"] = "rejected"
    reason: str


ReviewValidation = Annotated[Union[ReviewAccepted, ReviewRejected], Field(discriminator="kind")]


def extract_json(raw_text: str) -> str:
    """
    从模型原文里取出 JSON 文本，优先级：
    1) ``` 代码块（可带 json 标记）的内部
    2) 第一个 `{` 到最后一个 `}`
    3) 原文 trim
    """
    fenced = _FENCED_BLOCK.search(raw_text)
    if fenced and fenced.group(1):
        return fenced.group(1).strip()

    start = raw_text.find("{")
    end = raw_text.rfind("}")
    if start != -1 and end > start:
        return raw_text[start : end + 1]

    return raw_text.strip()


def _format_validation_error(exc: ValidationError) -> str:
    parts: list[str] = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err["loc"]) or "(root)"
        parts.append(f"{loc}: {err['msg']}")
    return "; ".join(parts)


def parse_review_result(value: object) -> ReviewResult:
    """
    校验已解析的 JSON 值。

    - 非对象（字符串、数字、None）、字段缺失、枚举越界、confidence 越界、必填字符串为空都会失败
    - `line` 允许 null；`suggestion` 缺失时为空字符串
    """
    try:
        return ReviewResult.model_validate(value)
    except ValidationError as exc:
        raise SchemaValidationError(_format_validation_error(exc)) from exc


def validate_model_output(raw_text: str) -> ReviewValidation:
    """模型原文 -> 带标签的结果（accepted / rejected），不抛异常。"""
    cleaned = extract_json(raw_text)
    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        logger.warning(f"Model output is not valid JSON: {exc}")
        return ReviewRejected(reason=f"Response is not valid JSON ({exc.msg} at line {exc.lineno})")
    except RecursionError:
        logger.warning("Model output is nested too deeply to parse")
        return ReviewRejected(reason="Response is not valid JSON (nested too deeply)")

    try:
        review = parse_review_result(parsed)
    except SchemaValidationError as exc:
        logger.warning(f"Model output failed schema validation: {exc.diagnostic}")
        return ReviewRejected(reason=exc.diagnostic)

    return ReviewAccepted(review=review)
