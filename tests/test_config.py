from __future__ import annotations

import json
from pathlib import Path

import pytest

from prscope.config import load_config_file
from prscope.config import load_config_from_env
from prscope.config import resolve_review_config

REVIEW_ENV = {"PRSCOPE_PROVIDER": "openai", "PRSCOPE_MODEL": "gpt-4o", "PRSCOPE_API_KEY_ENV": "OPENAI_API_KEY"}


def test_load_config_requires_provider_model_and_key_env(tmp_path: Path) -> None:
    with pytest.raises(ValueError) as excinfo:
        load_config_from_env(environ={}, cwd=tmp_path)
    assert "provider, model, apiKeyEnv" in str(excinfo.value)


def test_load_config_env_only_uses_defaults(tmp_path: Path) -> None:
    cfg = load_config_from_env(environ=REVIEW_ENV, cwd=tmp_path)
    assert cfg.review.provider == "openai"
    assert cfg.review.profile == "balanced"
    assert cfg.review.comment_mode == "summary-only"
    assert cfg.review.max_files == 30
    assert cfg.review.max_diff_bytes == 100_000
    assert cfg.github is None


def test_load_config_reads_camel_case_file(tmp_path: Path) -> None:
    (tmp_path / "prscope.config.json").write_text(
        json.dumps(
            {
                "provider": "ollama",
                "model": "llama3",
                "apiKeyEnv": "UNUSED",
                "baseUrl": "http://localhost:11434",
                "profile": "security",
                "maxFiles": 5,
            }
        ),
        encoding="utf-8",
    )
    cfg = load_config_from_env(environ={}, cwd=tmp_path)
    assert cfg.review.provider == "ollama"
    assert cfg.review.profile == "security"
    assert cfg.review.max_files == 5
    assert str(cfg.review.base_url).startswith("http://localhost:11434")


def test_load_config_env_overrides_file(tmp_path: Path) -> None:
    (tmp_path / ".prscopeRC.json").write_text(
        json.dumps({"provider": "openai", "model": "gpt-4o", "apiKeyEnv": "KEY", "maxDiffBytes": 5000}),
        encoding="utf-8",
    )
    cfg = load_config_from_env(environ={"PRSCOPE_MODEL": "gpt-4o-mini", "PRSCOPE_MAX_DIFF_BYTES": "2000"}, cwd=tmp_path)
    assert cfg.review.model == "gpt-4o-mini"
    assert cfg.review.max_diff_bytes == 2000


def test_load_config_path_env_points_to_directory(tmp_path: Path) -> None:
    (tmp_path / "prscope.config.json").write_text(
        json.dumps({"provider": "anthropic", "model": "claude", "apiKeyEnv": "ANTHROPIC_API_KEY"}),
        encoding="utf-8",
    )
    cfg = load_config_from_env(environ={"PRSCOPE_CONFIG_PATH": str(tmp_path)}, cwd=Path("/nonexistent"))
    assert cfg.review.provider == "anthropic"


@pytest.mark.parametrize(
    "overrides",
    [
        {"PRSCOPE_PROFILE": "paranoid"},
        {"PRSCOPE_PROVIDER": "gemini"},
        {"PRSCOPE_COMMENT_MODE": "inline-only"},
        {"PRSCOPE_MAX_FILES": "0"},
        {"PRSCOPE_MAX_DIFF_BYTES": "-1"},
    ],
)
def test_load_config_rejects_invalid_values(tmp_path: Path, overrides: dict[str, str]) -> None:
    with pytest.raises(ValueError):
        load_config_from_env(environ={**REVIEW_ENV, **overrides}, cwd=tmp_path)


def test_load_config_github_ok(tmp_path: Path) -> None:
    environ = {**REVIEW_ENV, "GITHUB_TOKEN": "t", "GITHUB_WEBHOOK_SECRET": "s"}
    cfg = load_config_from_env(environ=environ, cwd=tmp_path)
    assert cfg.github is not None
    assert cfg.github.token == "t"
    assert cfg.github.webhook_secret == "s"
    assert str(cfg.github.api_base_url).startswith("https://api.github.com")


def test_load_config_rejects_webhook_secret_without_token(tmp_path: Path) -> None:
    with pytest.raises(ValueError):
        load_config_from_env(environ={**REVIEW_ENV, "GITHUB_WEBHOOK_SECRET": "s"}, cwd=tmp_path)


def test_load_config_file_invalid_json(tmp_path: Path) -> None:
    (tmp_path / "prscope.config.json").write_text("{not json", encoding="utf-8")
    with pytest.raises(ValueError):
        load_config_file(tmp_path)


def test_load_config_file_missing_returns_none(tmp_path: Path) -> None:
    assert load_config_file(tmp_path) is None


def test_resolve_review_config_ignores_none_overrides() -> None:
    cfg = resolve_review_config(
        overrides={"model": None, "max_files": 3},
        base={"provider": "openai", "model": "gpt-4o", "apiKeyEnv": "KEY", "maxFiles": 10},
    )
    assert cfg.model == "gpt-4o"
    assert cfg.max_files == 3
