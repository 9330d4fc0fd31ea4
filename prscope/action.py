"""
CI 一次性运行入口（GitHub Actions 的 pull_request 事件）。

输入全部来自环境：
- `GITHUB_EVENT_PATH`：事件 payload（取 PR number / head sha）
- `GITHUB_REPOSITORY`：`owner/repo`
- `GITHUB_TOKEN` + PRSCOPE_* / 配置文件：见 `prscope/config.py`

review 核心本身不会抛错；这里只兜 GitHub API 等外部失败：尽量贴一条 fallback 评论，然后非 0 退出。
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping
from pathlib import Path

import anyio
import httpx
from pydantic import ValidationError

from prscope.config import load_config_from_env
from prscope.github.client import GitHubClient
from prscope.github.schemas import GitHubPullRequest
from prscope.llm.factory import create_chat_client
from prscope.logging_config import configure_logging
from prscope.review.orchestrator import build_review_orchestrator
from prscope.review.orchestrator import review_pull_request
from prscope.review.renderer import render_fallback_comment

logger = logging.getLogger(__name__)


def read_pull_request_event(event_path: str) -> GitHubPullRequest | None:
    """读取事件 payload；不是 PR 事件返回 None。"""
    payload = json.loads(Path(event_path).read_text(encoding="utf-8"))
    pull_request = payload.get("pull_request") if isinstance(payload, dict) else None
    if pull_request is None:
        return None
    return GitHubPullRequest.model_validate(pull_request)


def split_repository(repository: str) -> tuple[str, str]:
    owner, sep, repo = repository.partition("/")
    if not sep or not owner or not repo:
        raise ValueError(f"GITHUB_REPOSITORY must look like owner/repo, got: {repository!r}")
    return owner, repo


async def run_action(environ: Mapping[str, str]) -> int:
    """返回进程退出码。"""
    event_path = environ.get("GITHUB_EVENT_PATH")
    if not event_path:
        logger.error("GITHUB_EVENT_PATH is not set; run inside a pull_request workflow")
        return 1
    try:
        pull_request = read_pull_request_event(event_path)
    except (OSError, ValueError, ValidationError) as exc:
        logger.error(f"Cannot read pull_request event from {event_path}: {exc}")
        return 1
    if pull_request is None:
        logger.info("Not a pull request event; skipping PRScope review")
        return 0

    try:
        config = load_config_from_env(environ)
        owner, repo = split_repository(environ.get("GITHUB_REPOSITORY", ""))
    except ValueError as exc:
        logger.error(f"Invalid PRScope configuration: {exc}")
        return 1
    if config.github is None:
        logger.error("GITHUB_TOKEN is required")
        return 1
    logger.info(f"PRScope reviewing PR #{pull_request.number} with {config.review.provider}/{config.review.model}")

    async with httpx.AsyncClient(timeout=httpx.Timeout(120.0, connect=10.0)) as http_client:
        github_client = GitHubClient(
            api_base_url=str(config.github.api_base_url).rstrip("/"),
            token=config.github.token,
            http_client=http_client,
        )
        try:
            chat_client = create_chat_client(config=config.review, environ=environ, http_client=http_client)
            orchestrator = build_review_orchestrator(chat_client=chat_client, config=config.review)
            outcome = await review_pull_request(
                orchestrator=orchestrator,
                github_client=github_client,
                owner=owner,
                repo=repo,
                pull_number=pull_request.number,
                head_sha=pull_request.head.sha,
            )
        except (RuntimeError, ValueError, httpx.HTTPError) as exc:
            logger.error(f"Review failed: {exc}")
            await github_client.upsert_comment(
                owner=owner,
                repo=repo,
                issue_number=pull_request.number,
                body=render_fallback_comment(str(exc)),
            )
            return 1

    logger.info(f"Review finished: {outcome.kind} ({outcome.prepared_count} file(s), {outcome.total_bytes} bytes)")
    return 0


def main() -> None:
    configure_logging()
    raise SystemExit(anyio.run(run_action, os.environ))


if __name__ == "__main__":
    main()
