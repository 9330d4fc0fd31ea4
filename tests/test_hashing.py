from __future__ import annotations

from prscope.config import ReviewConfig
from prscope.review.hashing import compute_review_hash
from prscope.review.hashing import diff_fingerprint
from prscope.review.models import ChangedFile
from prscope.review.models import PreparedDiff


def _config(**overrides: object) -> ReviewConfig:
    return ReviewConfig.model_validate({"provider": "openai", "model": "gpt-4o", "apiKeyEnv": "KEY", **overrides})


def test_compute_review_hash_is_stable() -> None:
    assert compute_review_hash(diff="d", config=_config()) == compute_review_hash(diff="d", config=_config())
    assert len(compute_review_hash(diff="d", config=_config())) == 64


def test_compute_review_hash_depends_on_diff_model_and_profile() -> None:
    base = compute_review_hash(diff="d", config=_config())
    assert compute_review_hash(diff="e", config=_config()) != base
    assert compute_review_hash(diff="d", config=_config(model="gpt-4o-mini")) != base
    assert compute_review_hash(diff="d", config=_config(profile="strict")) != base


def test_diff_fingerprint_includes_patch_and_hash() -> None:
    diff = PreparedDiff(
        file=ChangedFile(filename="a.py", status="added", patch="+x", content_hash="sha1"),
        patch="+x",
        truncated=False,
    )
    assert diff_fingerprint([diff]) == "a.py\nsha1\n+x"
