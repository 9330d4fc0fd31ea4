"""
FastAPI 服务入口（webhook 模式）。

这里做三件事：
- 加载配置（严格校验环境变量 / 配置文件）
- 组装外部依赖（HTTP Client / Chat Client / GitHub Webhook handler）
- 装配路由（health + github webhook）

注意：
- 业务流程不写在这里（由 `review/orchestrator.py` 负责）
- `httpx.AsyncClient` 会被复用（避免每个请求新建连接）
"""

from __future__ import annotations

import os

import httpx
import uvicorn
from fastapi import FastAPI

from prscope.config import load_config_from_env
from prscope.github.webhook import build_github_webhook_router
from prscope.llm.factory import create_chat_client
from prscope.logging_config import configure_logging
from prscope.review.orchestrator import build_github_webhook_handler
from prscope.review.orchestrator import build_review_orchestrator


def build_app() -> FastAPI:
    """创建并返回 FastAPI app（便于测试/复用）。"""
    configure_logging()

    # 1) 配置：缺失/非法会直接抛错，启动失败（这是期望行为）
    config = load_config_from_env(os.environ)

    # 2) 可复用的 HTTP client：供 GitHub API 与 LLM 调用使用（模型调用的超时也在这里）
    http_client = httpx.AsyncClient(timeout=httpx.Timeout(120.0, connect=10.0))

    # 3) Chat client：按 provider 分发
    chat_client = create_chat_client(config=config.review, environ=os.environ, http_client=http_client)
    orchestrator = build_review_orchestrator(chat_client=chat_client, config=config.review)

    app = FastAPI(title="PRScope", version="0.1.0")

    @app.get("/health")
    async def health() -> dict[str, str]:
        """健康检查：用于 k8s / LB 探活。"""
        return {"status": "ok"}

    if config.github is not None and config.github.webhook_secret:
        handler = build_github_webhook_handler(config=config.github, http_client=http_client, orchestrator=orchestrator)
        app.include_router(build_github_webhook_router(webhook_secret=config.github.webhook_secret, handler=handler))
    return app


def main() -> None:
    uvicorn.run(build_app(), host=os.environ.get("HOST", "0.0.0.0"), port=int(os.environ.get("PORT", "8000")))


if __name__ == "__main__":
    main()
