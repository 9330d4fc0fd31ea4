"""
本地 Mock OpenAI-compatible LLM server。

用途：
- 在没有真实模型的情况下，本地跑通闭环（prompt -> JSON review -> 评论）
- 配合 `PRSCOPE_PROVIDER=openai-compat PRSCOPE_BASE_URL=http://127.0.0.1:9001` 使用

启动：
  python -m prscope.dev.mock_openai_server
"""

from __future__ import annotations

import json
from collections.abc import Sequence

import uvicorn
from fastapi import FastAPI
from pydantic import BaseModel, Field

from prscope.llm.client import ChatMessage

MOCK_MODEL_ID = "mock-reviewer"


class ChatCompletionRequest(BaseModel):
    model: str
    messages: list[ChatMessage] = Field(default_factory=list)


def _extract_changed_paths_from_review_prompt(prompt: str) -> list[str]:
    """
    从 user prompt 里提取文件 path 列表。

    形如：
      --- src/app.py (modified) ---
    """
    paths: list[str] = []
    for line in prompt.splitlines():
        if not (line.startswith("--- ") and line.endswith(" ---")):
            continue
        raw = line.removeprefix("--- ").removesuffix(" ---")
        path = raw.rsplit(" (", 1)[0].strip()
        if path:
            paths.append(path)
    return paths


def _build_mock_review_json(changed_paths: list[str]) -> str:
    findings: list[dict[str, object]] = []
    if changed_paths:
        findings.append(
            {
                "file": changed_paths[0],
                "line": None,
                "severity": "low",
                "category": "maintainability",
                "title": "[MOCK] Add tests for the changed logic",
                "message": "[MOCK] The change has no accompanying tests; add unit tests for edge cases.",
                "suggestion": "Cover the new branches with unit tests.",
                "confidence": 0.8,
            }
        )
    review = {
        "summary": f"[MOCK] Reviewed {len(changed_paths)} file(s).",
        "overall_risk": "low",
        "findings": findings,
        "praise": ["[MOCK] Small, focused change."],
    }
    return json.dumps(review)


def _decide_mock_response(messages: Sequence[ChatMessage]) -> str:
    user_texts = [m.content for m in messages if m.role == "user"]
    if not user_texts:
        raise ValueError("Mock server expects at least one user message")
    changed_paths = _extract_changed_paths_from_review_prompt(prompt="\n".join(user_texts))
    # 模拟不听话的模型：包一层 code fence
    return f"```json\n{_build_mock_review_json(changed_paths=changed_paths)}\n```"


app = FastAPI(title="Mock OpenAI-compatible LLM", version="0.1.0")


@app.post("/v1/chat/completions")
async def chat_completions(req: ChatCompletionRequest) -> dict[str, object]:
    content = _decide_mock_response(messages=req.messages)
    return {
        "id": "chatcmpl-mock",
        "object": "chat.completion",
        "created": 0,
        "model": req.model,
        "choices": [{"index": 0, "message": {"role": "assistant", "content": content}, "finish_reason": "stop"}],
    }


@app.get("/v1/models")
async def list_models() -> dict[str, object]:
    return {"object": "list", "data": [{"id": MOCK_MODEL_ID, "object": "model", "created": 0, "owned_by": "prscope"}]}


def main() -> None:
    uvicorn.run(app, host="127.0.0.1", port=9001)


if __name__ == "__main__":
    main()
