"""Change detection for deploywatch.

Submodules:
    canonical -- canonicalize_spec: drop volatile blocks, fix source key order.
    changes   -- deep_compare / compute_change_set: structural ChangeSet.
    readable  -- generate_readable_diff: line-numbered YAML diff text.
    detector  -- ChangeDetector: status flags, ChangeSet, merged change text.
"""

from deploywatch.diff.canonical import canonicalize_spec, is_directory_source
from deploywatch.diff.changes import ChangeSet, compute_change_set, deep_compare, format_path
from deploywatch.diff.detector import ChangeDetector, is_version_only_change
from deploywatch.diff.readable import DEFAULT_SEPARATOR, generate_readable_diff

__all__ = [
    "DEFAULT_SEPARATOR",
    "ChangeDetector",
    "ChangeSet",
    "canonicalize_spec",
    "compute_change_set",
    "deep_compare",
    "format_path",
    "generate_readable_diff",
    "is_directory_source",
    "is_version_only_change",
]
