"""
LLM Client（基于 OpenAI SDK，对接 OpenAI / 任意 OpenAI-compatible 服务）。

目标：
- **尽量薄**：只做协议适配与错误处理
- **统一接口**：所有 provider 都实现 `ChatClient`（chat + list_models）
- 返回原始文本；JSON 提取与 schema 校验在 `review/schema.py`，不在这里
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Literal, Protocol

import httpx
from openai import AsyncOpenAI, OpenAIError
from pydantic import BaseModel

logger = logging.getLogger(__name__)


class ChatMessage(BaseModel):
    """chat message 的最小结构。"""

    role: Literal["system", "user", "assistant"]
    content: str


class ModelInfo(BaseModel):
    id: str
    name: str


class ChatClient(Protocol):
    """各 provider 的共同能力：单次对话 + 列出模型（后者只给 setup 工具用）。"""

    async def chat(self, messages: Sequence[ChatMessage]) -> str: ...

    async def list_models(self) -> list[ModelInfo]: ...


def _normalize_base_url(base_url: str) -> str:
    normalized = base_url.rstrip("/")
    if normalized.endswith("/v1"):
        return normalized
    return f"{normalized}/v1"


class OpenAICompatLLMClient:
    """
    通过 OpenAI SDK 调用 chat completions。

    `openai` 与 `openai-compat`（LM Studio、vLLM、LiteLLM Proxy 等）共用这个实现，只是 base_url 不同。
    """

    def __init__(self, api_key: str, base_url: str, http_client: httpx.AsyncClient, model: str) -> None:
        """
        - api_key: LLM API key
        - base_url: OpenAI-compatible base URL（自动补 `/v1`）
        - http_client: 复用 httpx.AsyncClient 连接池
        - model: 模型名
        """
        self._base_url = _normalize_base_url(base_url=base_url)
        self._model = model
        # 本地 compat 服务通常不校验 key，但 SDK 要求非空
        self._client = AsyncOpenAI(api_key=api_key or "not-needed", base_url=self._base_url, http_client=http_client)

    async def chat(self, messages: Sequence[ChatMessage]) -> str:
        """
        调用 chat completion 并返回纯文本 content。

        出错直接抛异常（记录日志后 re-raise），由 orchestrator 统一转成 fallback 评论。
        """
        try:
            logger.info(f"LLM request: model={self._model}, messages={len(messages)} msg(s)")
            response = await self._client.chat.completions.create(
                model=self._model,
                messages=[m.model_dump() for m in messages],
                temperature=0.2,
            )
        except OpenAIError as exc:
            logger.error(f"LLM API error: {exc}")
            raise
        except httpx.HTTPError as exc:
            logger.error(f"LLM HTTP error: {exc}")
            raise

        if not response.choices:
            logger.error("LLM returned no choices")
            raise RuntimeError("LLM returned no choices")
        content = response.choices[0].message.content
        if content is None:
            logger.error("LLM returned None content")
            raise RuntimeError("LLM returned None content")

        logger.info(f"LLM response: {len(content)} chars")
        return str(content)

    async def list_models(self) -> list[ModelInfo]:
        try:
            page = await self._client.models.list()
        except OpenAIError as exc:
            logger.error(f"LLM API error while listing models: {exc}")
            raise
        return sorted((ModelInfo(id=m.id, name=m.id) for m in page.data), key=lambda m: m.id)
