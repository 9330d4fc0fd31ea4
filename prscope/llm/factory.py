"""
按配置创建 `ChatClient`（provider -> 实现类的分发）。
"""

from __future__ import annotations

from collections.abc import Mapping

import httpx

from prscope.config import ReviewConfig
from prscope.llm.anthropic import AnthropicClient
from prscope.llm.client import ChatClient
from prscope.llm.client import OpenAICompatLLMClient
from prscope.llm.ollama import OllamaClient

DEFAULT_OPENAI_BASE_URL = "https://api.openai.com"
DEFAULT_OPENAI_COMPAT_BASE_URL = "http://localhost:1234"
DEFAULT_ANTHROPIC_BASE_URL = "https://api.anthropic.com"
DEFAULT_OLLAMA_HOST = "http://localhost:11434"


def create_chat_client(config: ReviewConfig, environ: Mapping[str, str], http_client: httpx.AsyncClient) -> ChatClient:
    """
    - API key 从 `config.api_key_env` 指向的环境变量读取
    - openai / anthropic 缺 key 直接报错；本地服务（openai-compat / ollama）允许为空
    """
    api_key = environ.get(config.api_key_env, "")
    base_url = str(config.base_url).rstrip("/") if config.base_url is not None else None

    if config.provider == "openai":
        _require_api_key(api_key=api_key, config=config)
        return OpenAICompatLLMClient(
            api_key=api_key,
            base_url=base_url or DEFAULT_OPENAI_BASE_URL,
            http_client=http_client,
            model=config.model,
        )
    if config.provider == "anthropic":
        _require_api_key(api_key=api_key, config=config)
        return AnthropicClient(
            api_key=api_key,
            base_url=base_url or DEFAULT_ANTHROPIC_BASE_URL,
            http_client=http_client,
            model=config.model,
        )
    if config.provider == "openai-compat":
        return OpenAICompatLLMClient(
            api_key=api_key,
            base_url=base_url or DEFAULT_OPENAI_COMPAT_BASE_URL,
            http_client=http_client,
            model=config.model,
        )
    if config.provider == "ollama":
        return OllamaClient(host=base_url or DEFAULT_OLLAMA_HOST, http_client=http_client, model=config.model)
    raise ValueError(f"Unknown provider: {config.provider}")


def _require_api_key(api_key: str, config: ReviewConfig) -> None:
    if not api_key:
        raise ValueError(f"Env var {config.api_key_env} is empty; {config.provider} requires an API key")
