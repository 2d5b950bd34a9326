"""Canonical form of an Application spec.

Volatile blocks are dropped and ``source`` keys are put in a fixed order so
that the rendered YAML always starts with what operators look at first:
repository, revision, chart, helm values.
"""

from __future__ import annotations

from typing import Any

# Never diffed: flipping automated sync or retry settings is not a deployment
VOLATILE_SPEC_KEYS = frozenset({"syncPolicy"})

_SOURCE_KEY_ORDER = ("repoURL", "targetRevision", "chart", "helm")


def _order_source(source: dict[str, Any]) -> dict[str, Any]:
    ordered = {key: source[key] for key in _SOURCE_KEY_ORDER if key in source}
    ordered.update((key, value) for key, value in source.items() if key not in ordered)
    return ordered


def canonicalize_spec(spec: dict[str, Any] | None) -> dict[str, Any]:
    """Return a new dict; the input is not modified."""
    if not spec:
        return {}
    result: dict[str, Any] = {}
    source = spec.get("source")
    if isinstance(source, dict):
        result["source"] = _order_source(source)
    sources = spec.get("sources")
    if isinstance(sources, list):
        result["sources"] = [_order_source(s) if isinstance(s, dict) else s for s in sources]
    for key, value in spec.items():
        if key in VOLATILE_SPEC_KEYS or key in result:
            continue
        result[key] = value
    return result


def is_directory_source(spec: dict[str, Any] | None) -> bool:
    """True for plain-directory (path based, non-helm) sources."""
    source = (spec or {}).get("source")
    return isinstance(source, dict) and bool(source.get("directory"))
