"""Structural comparison of nested specs.

Equality here is not plain ``==``: with ``missing_as_none`` a key that is
absent on one side compares equal to the same key holding ``None`` on the
other. Argo CD omits empty fields inconsistently between list and watch
responses, and such gaps must not count as changes.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from typing import Any

ChangePath = tuple[str, ...]
ChangeSet = dict[ChangePath, Any]


def deep_compare(left: Any, right: Any, *, missing_as_none: bool = False) -> bool:
    """Return True when *left* and *right* are structurally equal.

    Mapping key order never matters. Lists are compared position by position.
    """
    if left is right:
        return True
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left == right
    if isinstance(left, Mapping) and isinstance(right, Mapping):
        return _mappings_equal(left, right, missing_as_none)
    if isinstance(left, list) and isinstance(right, list):
        if len(left) != len(right):
            return False
        return all(deep_compare(a, b, missing_as_none=missing_as_none) for a, b in zip(left, right, strict=True))
    if isinstance(left, Mapping | list) or isinstance(right, Mapping | list):
        return False
    return bool(left == right)


def _mappings_equal(left: Mapping[str, Any], right: Mapping[str, Any], missing_as_none: bool) -> bool:
    for key in _union_keys(left, right):
        in_left = key in left
        in_right = key in right
        if not (in_left and in_right):
            if not missing_as_none:
                return False
            present = left[key] if in_left else right[key]
            if present is not None:
                return False
            continue
        if not deep_compare(left[key], right[key], missing_as_none=missing_as_none):
            return False
    return True


def _union_keys(first: Mapping[str, Any], second: Mapping[str, Any]) -> Iterator[str]:
    yield from first
    for key in second:
        if key not in first:
            yield key


def compute_change_set(original: Mapping[str, Any], updated: Mapping[str, Any]) -> ChangeSet:
    """Map every differing leaf path to its value in *updated*.

    Nested mappings are descended into; anything else (scalars, lists) is a
    leaf. A leaf removed in *updated* maps to ``None``. An empty result means
    the two specs carry no semantic change.
    """
    changes: ChangeSet = {}
    _collect(original, updated, (), changes)
    return changes


def _collect(original: Mapping[str, Any], updated: Mapping[str, Any], prefix: ChangePath, out: ChangeSet) -> None:
    for key in _union_keys(updated, original):
        old = original.get(key)
        new = updated.get(key)
        if deep_compare(old, new, missing_as_none=True):
            continue
        path = (*prefix, key)
        if isinstance(old, Mapping) and isinstance(new, Mapping):
            _collect(old, new, path, out)
        else:
            out[path] = new


def format_path(path: ChangePath) -> str:
    return ".".join(path)
