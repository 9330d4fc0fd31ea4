from __future__ import annotations

import hashlib
from collections.abc import Sequence

from prscope.config import ReviewConfig
from prscope.review.models import PreparedDiff


def compute_review_hash(diff: str, config: ReviewConfig) -> str:
    """同一份 diff + 同一模型/profile 得到同一个 hash（用于跳过重复评论）。"""
    payload = "|".join([diff, config.model, config.provider, config.profile])
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def diff_fingerprint(diffs: Sequence[PreparedDiff]) -> str:
    """把 prepared diffs 拼成稳定文本，作为 `compute_review_hash` 的输入。"""
    return "\n".join(f"{d.file.filename}\n{d.file.content_hash}\n{d.patch}" for d in diffs)
