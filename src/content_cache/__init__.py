"""Content-addressed disk cache for diffs, analyses, refinements and splits."""

from content_cache.content_cache import ContentCache, format_size
from content_cache.content_cache_error import CacheIOError
from content_cache.content_cache_key import (
    analysis_cache_key,
    canonical_json,
    diff_cache_key,
    hash_key,
    hunk_content_hash,
    refine_cache_key,
    split_cache_key,
)
from content_cache.content_cache_namespace import CacheNamespace

__all__ = [
    'CacheIOError',
    'CacheNamespace',
    'ContentCache',
    'analysis_cache_key',
    'canonical_json',
    'diff_cache_key',
    'format_size',
    'hash_key',
    'hunk_content_hash',
    'refine_cache_key',
    'split_cache_key',
]
