"""Cache namespaces."""

from enum import Enum


class CacheNamespace(str, Enum):
    """Purpose-specific partitions of the content cache; entries are never mixed."""
    DIFF = "diff"
    ANALYSIS = "analysis"
    REFINE = "refine"
    SPLIT = "split"
