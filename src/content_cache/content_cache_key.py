"""Deterministic cache keys derived from canonical serializations of inputs."""

import hashlib
import json
from typing import Any, Sequence

from diff import Hunk


def canonical_json(value: Any) -> str:
    """
    Serialize a value so equal inputs always produce byte-identical text.

    Args:
        value: Any JSON-serializable value

    Returns:
        Compact JSON with sorted keys
    """
    return json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def hash_key(value: Any) -> str:
    """
    Hash a value into a cache key.

    Args:
        value: Any JSON-serializable value

    Returns:
        SHA-256 hex digest of the value's canonical serialization
    """
    return hashlib.sha256(canonical_json(value).encode("utf-8")).hexdigest()


def hunk_content_hash(hunks: Sequence[Hunk]) -> str:
    """
    Hash the full content of a hunk set, independent of the order hunks are given in.

    Args:
        hunks: Hunks to hash

    Returns:
        SHA-256 hex digest
    """
    ordered = sorted(hunks, key=lambda hunk: hunk.id)
    return hash_key([hunk.to_dict() for hunk in ordered])


def _hint(value: str | None) -> str:
    """Normalize an optional hint so None, empty and whitespace-only are the same."""
    return value.strip() if value else ""


def analysis_cache_key(
    hunks: Sequence[Hunk],
    context: str | None,
    model: str | None,
    lang: str | None
) -> str:
    """Key for a full analysis of a hunk set."""
    return hash_key({
        "hunkIds": sorted(hunk.id for hunk in hunks),
        "hunkHash": hunk_content_hash(hunks),
        "context": context or "",
        "model": _hint(model),
        "lang": _hint(lang)
    })


def refine_cache_key(group_hunks: Sequence[Hunk], model: str | None, lang: str | None) -> str:
    """
    Key for refining one group.

    Only the group's own hunks participate, so refining the same group from two different
    overall analyses maps to the same entry.
    """
    return hash_key({
        "hunkIds": sorted(hunk.id for hunk in group_hunks),
        "hunkHash": hunk_content_hash(group_hunks),
        "model": _hint(model),
        "lang": _hint(lang)
    })


def split_cache_key(hunks: Sequence[Hunk], threshold: int, model: str | None, lang: str | None) -> str:
    """Key for splitting the hunks of a hunk set that exceed a line threshold."""
    return hash_key({
        "hunkIds": sorted(hunk.id for hunk in hunks),
        "hunkHash": hunk_content_hash(hunks),
        "threshold": threshold,
        "model": _hint(model),
        "lang": _hint(lang)
    })


def diff_cache_key(repo: str, pr_number: int, updated_at: str) -> str:
    """Key for the raw diff text of one revision of a pull request."""
    return hash_key({"repo": repo, "number": pr_number, "updatedAt": updated_at})
