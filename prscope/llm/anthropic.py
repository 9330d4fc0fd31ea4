"""
Anthropic Messages API client（直接用 httpx，不引入额外 SDK）。

与 OpenAI 的差异：
- system prompt 是顶层字段，不在 messages 里
- 必须带 `max_tokens`
- 返回的是 content block 列表，这里只拼接 text block
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

import httpx

from prscope.llm.client import ChatMessage
from prscope.llm.client import ModelInfo

logger = logging.getLogger(__name__)

ANTHROPIC_API_VERSION = "2023-06-01"
DEFAULT_MAX_TOKENS = 4096


class AnthropicClient:
    def __init__(self, api_key: str, base_url: str, http_client: httpx.AsyncClient, model: str) -> None:
        self._base_url = base_url.rstrip("/").removesuffix("/v1")
        self._api_key = api_key
        self._http_client = http_client
        self._model = model

    def _headers(self) -> dict[str, str]:
        return {
            "x-api-key": self._api_key,
            "anthropic-version": ANTHROPIC_API_VERSION,
            "content-type": "application/json",
        }

    async def chat(self, messages: Sequence[ChatMessage]) -> str:
        system = "\n\n".join(m.content for m in messages if m.role == "system")
        payload: dict[str, object] = {
            "model": self._model,
            "max_tokens": DEFAULT_MAX_TOKENS,
            "messages": [m.model_dump() for m in messages if m.role != "system"],
        }
        if system:
            payload["system"] = system

        logger.info(f"Anthropic request: model={self._model}, messages={len(messages)} msg(s)")
        response = await self._http_client.post(f"{self._base_url}/v1/messages", headers=self._headers(), json=payload)
        if response.status_code >= 400:
            logger.error(f"Anthropic API error {response.status_code}")
            raise RuntimeError(f"Anthropic API error {response.status_code}: {response.text}")

        data = response.json()
        blocks = data.get("content") if isinstance(data, dict) else None
        if not isinstance(blocks, list):
            raise RuntimeError(f"Unexpected Anthropic response shape: {data}")
        text = "".join(b.get("text", "") for b in blocks if isinstance(b, dict) and b.get("type") == "text")
        logger.info(f"Anthropic response: {len(text)} chars")
        return text

    async def list_models(self) -> list[ModelInfo]:
        response = await self._http_client.get(f"{self._base_url}/v1/models", headers=self._headers())
        if response.status_code >= 400:
            raise RuntimeError(f"Anthropic API error {response.status_code}: {response.text}")
        items = response.json().get("data", [])
        return [ModelInfo(id=m["id"], name=m.get("display_name") or m["id"]) for m in items]
