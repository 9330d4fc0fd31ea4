"""
Ollama 本地模型 client（`/api/chat`，非流式）。
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

import httpx

from prscope.llm.client import ChatMessage
from prscope.llm.client import ModelInfo

logger = logging.getLogger(__name__)


class OllamaClient:
    def __init__(self, host: str, http_client: httpx.AsyncClient, model: str) -> None:
        self._host = host.rstrip("/")
        self._http_client = http_client
        self._model = model

    async def chat(self, messages: Sequence[ChatMessage]) -> str:
        payload = {
            "model": self._model,
            "messages": [m.model_dump() for m in messages],
            "stream": False,
            "options": {"temperature": 0.2},
        }
        logger.info(f"Ollama request: model={self._model}, messages={len(messages)} msg(s)")
        response = await self._http_client.post(f"{self._host}/api/chat", json=payload)
        if response.status_code >= 400:
            logger.error(f"Ollama error {response.status_code}")
            raise RuntimeError(f"Ollama error {response.status_code}: {response.text}")

        data = response.json()
        message = data.get("message") if isinstance(data, dict) else None
        if not isinstance(message, dict) or not isinstance(message.get("content"), str):
            raise RuntimeError(f"Unexpected Ollama response shape: {data}")
        content: str = message["content"]
        logger.info(f"Ollama response: {len(content)} chars")
        return content

    async def list_models(self) -> list[ModelInfo]:
        response = await self._http_client.get(f"{self._host}/api/tags")
        if response.status_code >= 400:
            raise RuntimeError(f"Ollama error {response.status_code}: {response.text}")
        models = response.json().get("models", [])
        return [ModelInfo(id=m["name"], name=m["name"]) for m in models]
