"""
GitHub Webhook / API response schemas（Pydantic）。

说明：
- 字段只覆盖当前闭环需要的子集（PR webhook + list files + issue comments + review comments）。
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel


class GitHubOwner(BaseModel):
    login: str


class GitHubRepository(BaseModel):
    name: str
    owner: GitHubOwner
    full_name: str


class GitHubPullRequestHead(BaseModel):
    sha: str
    ref: str


class GitHubPullRequestBase(BaseModel):
    ref: str


class GitHubPullRequest(BaseModel):
    number: int
    head: GitHubPullRequestHead
    base: GitHubPullRequestBase
    merged: bool = False


class GitHubPullRequestWebhookEvent(BaseModel):
    """
    GitHub `pull_request` webhook event（最小结构）。

    action: opened/reopened/synchronize 等；其它 action 会被路由层忽略
    """

    action: str
    pull_request: GitHubPullRequest
    repository: GitHubRepository


class GitHubPullRequestFile(BaseModel):
    """
    PR 文件列表 item（GET /pulls/{pull_number}/files）。

    patch 可能缺失（大文件/二进制/被截断）；client 会尝试从原始 diff 回填。
    """

    filename: str
    status: Literal["added", "modified", "removed", "renamed", "changed", "copied", "unchanged"]
    patch: str | None = None
    additions: int = 0
    deletions: int = 0
    sha: str | None = None


class GitHubIssueComment(BaseModel):
    id: int
    body: str | None = None
    user: GitHubOwner | None = None


class GitHubReviewComment(BaseModel):
    """创建 PR review 时的一条 inline 评论（挂在新文件的某一行）。"""

    path: str
    line: int
    side: Literal["RIGHT"] = "RIGHT"
    body: str
