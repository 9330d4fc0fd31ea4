"""
应用配置加载。

设计目标：
- **严格**：缺少必要配置、枚举值非法就直接报错（不要在 review 核心里静默兜底）
- **类型安全**：使用 Pydantic 校验枚举/正整数/URL
- **可测试**：加载函数接收 `environ` / 目录显式输入，便于单元测试

优先级：默认值 < 配置文件（prscope.config.json / .prscopeRC.json）< 环境变量。
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, HttpUrl
from pydantic.alias_generators import to_camel

from prscope.review.models import ReviewProfile

ProviderType = Literal["openai", "anthropic", "openai-compat", "ollama"]
CommentMode = Literal["summary-only", "inline+summary"]

CONFIG_FILENAMES: tuple[str, ...] = ("prscope.config.json", ".prscopeRC.json")

DEFAULT_MAX_FILES = 30
DEFAULT_MAX_DIFF_BYTES = 100_000
DEFAULT_GITHUB_API_BASE_URL = "https://api.github.com"


class ReviewConfig(BaseModel):
    """一次 review 的配置；配置文件里用 camelCase（apiKeyEnv、maxFiles ...）。"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    provider: ProviderType
    model: str = Field(min_length=1)
    # 存放 API key 的环境变量名（不是 key 本身）
    api_key_env: str = Field(min_length=1)
    base_url: HttpUrl | None = None
    profile: ReviewProfile = "balanced"
    comment_mode: CommentMode = "summary-only"
    max_files: int = Field(default=DEFAULT_MAX_FILES, gt=0)
    max_diff_bytes: int = Field(default=DEFAULT_MAX_DIFF_BYTES, gt=0)


class GitHubConfig(BaseModel):
    api_base_url: HttpUrl
    token: str
    # 只有配置了 secret 才挂 webhook 路由
    webhook_secret: str | None = None


class AppConfig(BaseModel):
    review: ReviewConfig
    github: GitHubConfig | None = None


def load_config_file(directory: Path) -> dict[str, Any] | None:
    """
    按 `CONFIG_FILENAMES` 顺序在目录里找第一个配置文件。

    - 找不到：返回 None
    - 不是合法 JSON 或不是 object：抛 `ValueError`
    """
    for filename in CONFIG_FILENAMES:
        path = directory / filename
        if not path.is_file():
            continue
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise ValueError(f"Invalid JSON in {path}: {exc}") from exc
        if not isinstance(data, dict):
            raise ValueError(f"Config file {path} must contain a JSON object")
        return data
    return None


def resolve_review_config(overrides: Mapping[str, Any], base: Mapping[str, Any] | None = None) -> ReviewConfig:
    """合并 base 与 overrides（值为 None 的 override 忽略）并校验。"""
    merged: dict[str, Any] = dict(base or {})
    for key, value in overrides.items():
        if value is None:
            continue
        # 同一字段可能以 snake_case / camelCase 两种形式出现，统一成 camelCase
        camel = to_camel(key)
        merged.pop(key, None)
        merged[camel] = value
    return ReviewConfig.model_validate(merged)


def _review_overrides_from_env(environ: Mapping[str, str]) -> dict[str, Any]:
    keys = {
        "provider": "PRSCOPE_PROVIDER",
        "model": "PRSCOPE_MODEL",
        "api_key_env": "PRSCOPE_API_KEY_ENV",
        "base_url": "PRSCOPE_BASE_URL",
        "profile": "PRSCOPE_PROFILE",
        "comment_mode": "PRSCOPE_COMMENT_MODE",
        "max_files": "PRSCOPE_MAX_FILES",
        "max_diff_bytes": "PRSCOPE_MAX_DIFF_BYTES",
    }
    return {field: environ.get(env_key) or None for field, env_key in keys.items()}


def load_config_from_env(environ: Mapping[str, str], cwd: Path | None = None) -> AppConfig:
    """
    从环境变量（+ 可选配置文件）加载并校验配置。

    - **输入**：`environ`（例如 `os.environ`）；`cwd` 为查找配置文件的默认目录
    - **输出**：`AppConfig`
    - **失败**：缺失/非法抛 `ValueError`（pydantic `ValidationError` 也是 `ValueError`）
    """
    config_dir = Path(environ.get("PRSCOPE_CONFIG_PATH") or cwd or Path.cwd())
    base = load_config_file(config_dir)
    overrides = _review_overrides_from_env(environ)

    present = [k for k, v in overrides.items() if v is not None] + list(base or {})
    merged_keys = {to_camel(k) for k in present}
    missing = [name for name in ("provider", "model", "apiKeyEnv") if name not in merged_keys]
    if missing:
        raise ValueError(
            f"Missing required review config: {', '.join(missing)} "
            f"(set PRSCOPE_* env vars or create {' / '.join(CONFIG_FILENAMES)})"
        )
    review = resolve_review_config(overrides=overrides, base=base)

    github: GitHubConfig | None = None
    token = environ.get("GITHUB_TOKEN")
    if token:
        github = GitHubConfig(
            api_base_url=environ.get("GITHUB_API_BASE_URL") or DEFAULT_GITHUB_API_BASE_URL,
            token=token,
            webhook_secret=environ.get("GITHUB_WEBHOOK_SECRET") or None,
        )
    elif environ.get("GITHUB_WEBHOOK_SECRET"):
        raise ValueError("GITHUB_WEBHOOK_SECRET is set but GITHUB_TOKEN is missing")

    return AppConfig(review=review, github=github)
