"""
Review Orchestrator（核心流程编排）。

关键思想：
- **流程由工程代码控制**：过滤 -> 预算 -> prompt -> 单次模型调用 -> 校验 -> 渲染
- **LLM 只负责生成结构化输出**：输出不可信，必须经过 `review/schema.py`
- **永远返回可渲染的结果**：空输入、全部被过滤、模型调用失败、校验失败都会变成一条评论，
  `run_review` 不向调用方抛异常

终态只有三种：empty（无需 review）/ review（结构化结果）/ fallback（带原因的失败说明）。
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Literal

import httpx

from prscope.config import GitHubConfig
from prscope.config import ReviewConfig
from prscope.github.adapter import build_inline_review_comments
from prscope.github.adapter import changed_files_from_github
from prscope.github.client import GitHubClient
from prscope.github.schemas import GitHubPullRequestWebhookEvent
from prscope.llm.client import ChatClient
from prscope.review.budget import prepare_diffs
from prscope.review.hashing import compute_review_hash
from prscope.review.hashing import diff_fingerprint
from prscope.review.models import ChangedFile
from prscope.review.models import ReviewResult
from prscope.review.prompt import build_prompt
from prscope.review.renderer import hash_marker
from prscope.review.renderer import render_comment
from prscope.review.renderer import render_fallback_comment
from prscope.review.schema import ReviewRejected
from prscope.review.schema import validate_model_output

logger = logging.getLogger(__name__)

NO_FILES_SUMMARY = "This PR has no reviewable file changes."
ALL_FILTERED_SUMMARY = (
    "All changed files were filtered out (lockfiles, build artifacts, binaries). Nothing to review."
)
INLINE_REVIEW_BODY = "PRScope inline findings (see the summary comment for the full review)."

OutcomeKind = Literal["empty", "review", "fallback"]


@dataclass(frozen=True)
class ReviewOrchestrator:
    """Orchestrator 运行时依赖集合。"""

    chat_client: ChatClient
    config: ReviewConfig


@dataclass(frozen=True)
class ReviewOutcome:
    """一次 review 的终态；`comment` 总是可以直接贴到 PR 上。"""

    kind: OutcomeKind
    comment: str
    review: ReviewResult | None = None
    reason: str | None = None
    prepared_count: int = 0
    total_bytes: int = 0
    review_hash: str | None = None


def build_review_orchestrator(chat_client: ChatClient, config: ReviewConfig) -> ReviewOrchestrator:
    """创建 orchestrator（便于未来注入 cache/queue 等依赖）。"""
    return ReviewOrchestrator(chat_client=chat_client, config=config)


def _empty_outcome(summary: str) -> ReviewOutcome:
    review = ReviewResult(summary=summary, overall_risk="low", findings=[], praise=[])
    return ReviewOutcome(kind="empty", comment=render_comment(review), review=review)


def _fallback_outcome(reason: str, prepared_count: int = 0, total_bytes: int = 0) -> ReviewOutcome:
    logger.warning(f"Review fell back: {reason}")
    return ReviewOutcome(
        kind="fallback",
        comment=render_fallback_comment(reason),
        reason=reason,
        prepared_count=prepared_count,
        total_bytes=total_bytes,
    )


def _describe_error(exc: BaseException) -> str:
    return str(exc) or exc.__class__.__name__


async def run_review(orchestrator: ReviewOrchestrator, files: Sequence[ChangedFile]) -> ReviewOutcome:
    """
    跑一次完整 review，返回终态（不抛异常）。

    - Step 1: 过滤噪声 + 字节预算（非 AI）
    - Step 2: 组装 prompt（确定性）
    - Step 3: 单次模型调用（不重试，失败直接 fallback）
    - Step 4: 提取 + schema 校验 + 渲染
    """
    config = orchestrator.config
    if not files:
        logger.info("No changed files; nothing to review")
        return _empty_outcome(NO_FILES_SUMMARY)

    try:
        prepared = prepare_diffs(files=files, max_file_count=config.max_files, max_total_bytes=config.max_diff_bytes)
        if not prepared.diffs:
            logger.info(f"All {len(files)} changed file(s) filtered as noise; nothing to review")
            return _empty_outcome(ALL_FILTERED_SUMMARY)
        messages = build_prompt(diffs=prepared.diffs, profile=config.profile)
        review_hash = compute_review_hash(diff=diff_fingerprint(prepared.diffs), config=config)
    except Exception as exc:
        logger.exception("Review preparation failed")
        return _fallback_outcome(f"Review pipeline failed: {_describe_error(exc)}")

    count = len(prepared.diffs)
    try:
        raw = await orchestrator.chat_client.chat(list(messages))
    except Exception as exc:
        return _fallback_outcome(
            f"Model call failed: {_describe_error(exc)}", prepared_count=count, total_bytes=prepared.total_bytes
        )

    try:
        validation = validate_model_output(raw)
        if isinstance(validation, ReviewRejected):
            return _fallback_outcome(
                f"Schema validation failed: {validation.reason}",
                prepared_count=count,
                total_bytes=prepared.total_bytes,
            )
        review = validation.review
        comment = render_comment(review, review_hash=review_hash)
    except Exception as exc:
        logger.exception("Review rendering failed")
        return _fallback_outcome(
            f"Review pipeline failed: {_describe_error(exc)}", prepared_count=count, total_bytes=prepared.total_bytes
        )

    logger.info(f"Review complete: risk={review.overall_risk}, findings={len(review.findings)}")
    return ReviewOutcome(
        kind="review",
        comment=comment,
        review=review,
        prepared_count=count,
        total_bytes=prepared.total_bytes,
        review_hash=review_hash,
    )


async def review_pull_request(
    orchestrator: ReviewOrchestrator,
    github_client: GitHubClient,
    owner: str,
    repo: str,
    pull_number: int,
    head_sha: str,
) -> ReviewOutcome:
    """
    GitHub PR 的完整闭环：拉文件 -> run_review -> upsert 评论（-> inline review）。

    GitHub API 出错会直接抛（由入口决定如何处理）。
    """
    github_files = await github_client.list_pull_request_files(owner=owner, repo=repo, pull_number=pull_number)
    files = changed_files_from_github(files=github_files)
    logger.info(f"Reviewing {owner}/{repo}#{pull_number}: {len(files)} changed file(s)")

    outcome = await run_review(orchestrator=orchestrator, files=files)
    unchanged_marker = hash_marker(outcome.review_hash) if outcome.review_hash else None
    action = await github_client.upsert_comment(
        owner=owner,
        repo=repo,
        issue_number=pull_number,
        body=outcome.comment,
        unchanged_marker=unchanged_marker,
    )
    logger.info(f"Summary comment {action} on {owner}/{repo}#{pull_number}")

    if action == "unchanged" or orchestrator.config.comment_mode != "inline+summary" or outcome.review is None:
        return outcome
    comments = build_inline_review_comments(findings=outcome.review.findings, files=files)
    if comments:
        await github_client.create_pull_request_review(
            owner=owner,
            repo=repo,
            pull_number=pull_number,
            commit_id=head_sha,
            body=INLINE_REVIEW_BODY,
            comments=comments,
        )
        logger.info(f"Posted {len(comments)} inline comment(s)")
    return outcome


def build_github_webhook_handler(
    config: GitHubConfig,
    http_client: httpx.AsyncClient,
    orchestrator: ReviewOrchestrator,
) -> Callable[[GitHubPullRequestWebhookEvent], Awaitable[None]]:
    """
    装配 webhook handler：
    - 把外部依赖（GitHubClient）和业务编排（orchestrator）绑定起来
    - 返回一个 `async def handle(event)` 给 webhook 路由调用
    """
    github_client = GitHubClient(
        api_base_url=str(config.api_base_url).rstrip("/"),
        token=config.token,
        http_client=http_client,
    )

    async def handle(event: GitHubPullRequestWebhookEvent) -> None:
        await review_pull_request(
            orchestrator=orchestrator,
            github_client=github_client,
            owner=event.repository.owner.login,
            repo=event.repository.name,
            pull_number=event.pull_request.number,
            head_sha=event.pull_request.head.sha,
        )

    return handle
