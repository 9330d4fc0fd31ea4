"""
GitHub <-> Review domain adapter。

职责：
- 将 GitHub PR files 转为平台无关的 `ChangedFile`
- 将校验过的 findings 转为可以挂在 diff 行上的 inline 评论
"""

from __future__ import annotations

from collections.abc import Sequence

from prscope.github.schemas import GitHubPullRequestFile
from prscope.github.schemas import GitHubReviewComment
from prscope.review.diff_parser import extract_changed_line_numbers
from prscope.review.models import ChangedFile
from prscope.review.models import Finding
from prscope.review.renderer import render_inline_comment


def changed_files_from_github(files: Sequence[GitHubPullRequestFile]) -> list[ChangedFile]:
    return [
        ChangedFile(
            filename=f.filename,
            status=f.status,
            patch=f.patch or None,
            additions=f.additions,
            deletions=f.deletions,
            content_hash=f.sha or "",
        )
        for f in files
    ]


def build_inline_review_comments(
    findings: Sequence[Finding],
    files: Sequence[ChangedFile],
) -> list[GitHubReviewComment]:
    """
    只保留能落到 diff 新增行上的 finding。

    GitHub 对不在 diff 里的行号会直接 422，所以这里用 patch 做白名单，而不是相信模型给的行号。
    """
    added_lines: dict[str, set[int]] = {}
    for f in files:
        if f.patch is None:
            continue
        try:
            added_lines[f.filename] = set(extract_changed_line_numbers(diff=f.patch))
        except ValueError:
            # hunk header 不合法的 patch 不挂 inline 评论
            continue

    comments: list[GitHubReviewComment] = []
    for finding in findings:
        if finding.line is None or finding.line not in added_lines.get(finding.file, set()):
            continue
        comments.append(GitHubReviewComment(path=finding.file, line=finding.line, body=render_inline_comment(finding)))
    return comments
