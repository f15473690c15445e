"""
Unified diff parsing and hunk addressing.

This package turns unified diff text into hunks with stable identifiers that can be
grouped, cached and split without ever being applied to a document.
"""

from diff.diff_exceptions import (
    DiffError,
    DiffParseError,
    DiffSplitError,
)
from diff.diff_parser import DiffParser
from diff.diff_splitter import (
    is_descendant_id,
    replace_hunk,
    split_hunk,
    verify_split,
)
from diff.diff_types import (
    DiffLine,
    DiffLineKind,
    Hunk,
)

__all__ = [
    # Exceptions
    'DiffError',
    'DiffParseError',
    'DiffSplitError',
    # Types
    'DiffLine',
    'DiffLineKind',
    'Hunk',
    # Core classes and functions
    'DiffParser',
    'is_descendant_id',
    'replace_hunk',
    'split_hunk',
    'verify_split',
]
