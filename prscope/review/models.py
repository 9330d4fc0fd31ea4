"""
Review 领域模型（Pydantic）。

用途：
- 明确 pipeline 各阶段的输入/输出结构（ChangedFile -> PreparedDiff -> ReviewResult）
- `Finding` / `ReviewResult` 同时是 LLM JSON 输出的 schema（只能经过 schema.py 校验后产生）
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

FileStatus = Literal["added", "modified", "removed", "renamed", "copied", "changed", "unchanged"]
ReviewProfile = Literal["balanced", "security", "performance", "strict"]
RiskLevel = Literal["low", "medium", "high"]
Severity = Literal["low", "medium", "high"]
Category = Literal["bug", "security", "performance", "maintainability", "dx"]


class ChangedFile(BaseModel):
    """PR 里的单个变更文件（由 PR file source 产生，之后只读）。"""

    model_config = ConfigDict(frozen=True)

    filename: str
    status: FileStatus
    # 二进制/超大文件拿不到 patch
    patch: str | None = None
    additions: int = Field(default=0, ge=0)
    deletions: int = Field(default=0, ge=0)
    content_hash: str = ""


class PreparedDiff(BaseModel):
    """送进 prompt 的单元：每次 review 现做现用，不缓存。"""

    model_config = ConfigDict(frozen=True)

    file: ChangedFile
    patch: str
    truncated: bool


class Finding(BaseModel):
    """模型给出的一条问题。"""

    # 模型输出是唯一的信任边界：不做 "0.9" -> 0.9、true -> 1 这类宽松转换
    model_config = ConfigDict(strict=True)

    file: str
    line: int | None = None
    severity: Severity
    category: Category
    title: str = Field(min_length=1)
    message: str = Field(min_length=1)
    suggestion: str = ""
    confidence: float = Field(ge=0, le=1)


class ReviewResult(BaseModel):
    """渲染层唯一消费的结构；findings 顺序保持模型原样。"""

    model_config = ConfigDict(strict=True)

    summary: str = Field(min_length=1)
    overall_risk: RiskLevel
    findings: list[Finding]
    praise: list[str]
