"""
GitHub API 客户端（外部系统连接器）。

约定：
- 这里只做 HTTP 调用 + 错误处理 + schema 校验
- 出错直接抛错（不要吞），便于定位与告警
- 唯一例外：查询当前 token 对应的用户（Actions 的 GITHUB_TOKEN 没有这个权限，查不到就不按作者过滤）
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Literal

import httpx

from prscope.github.schemas import GitHubIssueComment
from prscope.github.schemas import GitHubPullRequestFile
from prscope.github.schemas import GitHubReviewComment
from prscope.review.diff_parser import split_unified_diff_by_file
from prscope.review.renderer import COMMENT_MARKER

logger = logging.getLogger(__name__)

PER_PAGE = 100

UpsertAction = Literal["created", "updated", "unchanged"]


class GitHubClient:
    """最小 GitHub API client（PR files、PR 级评论 upsert、PR review）。"""

    def __init__(self, api_base_url: str, token: str, http_client: httpx.AsyncClient) -> None:
        self._api_base_url = api_base_url.rstrip("/")
        self._token = token
        self._http_client = http_client

    def _headers(self, accept: str = "application/vnd.github+json") -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._token}",
            "Accept": accept,
            "X-GitHub-Api-Version": "2022-11-28",
        }

    @staticmethod
    def _raise_for_status(response: httpx.Response) -> None:
        if response.status_code >= 400:
            raise RuntimeError(f"GitHub API error {response.status_code}: {response.text}")

    async def _get_paginated(self, url: str) -> list[object]:
        page = 1
        all_items: list[object] = []
        while True:
            response = await self._http_client.get(
                url,
                headers=self._headers(),
                params={"per_page": PER_PAGE, "page": page},
            )
            self._raise_for_status(response)
            data = response.json()
            if not isinstance(data, list):
                raise RuntimeError(f"Unexpected GitHub response shape for {url}: {data}")
            all_items.extend(data)
            if len(data) < PER_PAGE:
                break
            page += 1
        return all_items

    async def list_pull_request_files(self, owner: str, repo: str, pull_number: int) -> list[GitHubPullRequestFile]:
        """
        拉取 PR 的变更文件列表（包含每个文件的 patch diff）。

        - GitHub API 有分页；这里会拉取全部文件
        - 缺 patch 的非删除文件，从整个 PR 的原始 diff 里回填；回填不到就保持 None
        """
        url = f"{self._api_base_url}/repos/{owner}/{repo}/pulls/{pull_number}/files"
        items = [GitHubPullRequestFile.model_validate(x) for x in await self._get_paginated(url)]

        missing = {f.filename for f in items if not f.patch and f.status != "removed"}
        if not missing:
            return items

        logger.info(f"Backfilling {len(missing)} patch(es) from raw PR diff")
        raw_patches = split_unified_diff_by_file(await self.get_pull_request_diff(owner, repo, pull_number))
        return [
            f.model_copy(update={"patch": raw_patches.get(f.filename)}) if f.filename in missing else f
            for f in items
        ]

    async def get_pull_request_diff(self, owner: str, repo: str, pull_number: int) -> str:
        url = f"{self._api_base_url}/repos/{owner}/{repo}/pulls/{pull_number}"
        response = await self._http_client.get(url, headers=self._headers(accept="application/vnd.github.diff"))
        self._raise_for_status(response)
        return response.text

    async def get_authenticated_login(self) -> str | None:
        response = await self._http_client.get(f"{self._api_base_url}/user", headers=self._headers())
        if response.status_code >= 400:
            logger.info(f"Cannot resolve authenticated user ({response.status_code}); matching comments by marker only")
            return None
        login = response.json().get("login")
        return login if isinstance(login, str) else None

    async def find_existing_comment(self, owner: str, repo: str, issue_number: int) -> GitHubIssueComment | None:
        """找到带 `COMMENT_MARKER` 的旧评论（能确定身份时只认自己发的）。"""
        url = f"{self._api_base_url}/repos/{owner}/{repo}/issues/{issue_number}/comments"
        comments = [GitHubIssueComment.model_validate(x) for x in await self._get_paginated(url)]
        login = await self.get_authenticated_login()
        for comment in comments:
            if COMMENT_MARKER not in (comment.body or ""):
                continue
            if login is not None and (comment.user is None or comment.user.login != login):
                continue
            return comment
        return None

    async def upsert_comment(
        self,
        owner: str,
        repo: str,
        issue_number: int,
        body: str,
        unchanged_marker: str | None = None,
    ) -> UpsertAction:
        """
        有旧评论就更新，没有就新建（每个 PR 只保留一条 PRScope 评论）。

        `unchanged_marker`：旧评论已包含该标记（同一份 diff 的 review hash）时不再改写。
        """
        existing = await self.find_existing_comment(owner=owner, repo=repo, issue_number=issue_number)
        if existing is not None:
            if unchanged_marker and unchanged_marker in (existing.body or ""):
                return "unchanged"
            url = f"{self._api_base_url}/repos/{owner}/{repo}/issues/comments/{existing.id}"
            response = await self._http_client.patch(url, headers=self._headers(), json={"body": body})
            self._raise_for_status(response)
            return "updated"

        url = f"{self._api_base_url}/repos/{owner}/{repo}/issues/{issue_number}/comments"
        response = await self._http_client.post(url, headers=self._headers(), json={"body": body})
        self._raise_for_status(response)
        return "created"

    async def create_pull_request_review(
        self,
        owner: str,
        repo: str,
        pull_number: int,
        commit_id: str,
        body: str,
        comments: Sequence[GitHubReviewComment] = (),
    ) -> None:
        """
        创建一条 PR review（会出现在 GitHub 的 “Reviews” 区域）。

        说明：event=COMMENT 表示“评论型 review”（不 approve / request changes）。
        """
        url = f"{self._api_base_url}/repos/{owner}/{repo}/pulls/{pull_number}/reviews"
        payload = {
            "commit_id": commit_id,
            "body": body,
            "event": "COMMENT",
            "comments": [c.model_dump() for c in comments],
        }
        response = await self._http_client.post(url, headers=self._headers(), json=payload)
        self._raise_for_status(response)
