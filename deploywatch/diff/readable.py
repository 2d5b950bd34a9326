"""Render two structures as a compact, line-numbered text diff.

Pipeline: serialize both sides (YAML by default, key order preserved),
run a unified diff with N lines of context, drop the file headers, then
rewrite every hunk line as ``<old#> <new#> <diff line>``::

    .........
     4  4     helm:
     5  5       valuesObject:
     6    -       replicas: 2
        6 +       replicas: 3
    .........

A separator marks every gap between rendered regions, including a gap
before the first hunk and after the last one.
"""

from __future__ import annotations

import difflib
import json
import re
from dataclasses import dataclass
from typing import Any, Literal

import yaml

DEFAULT_SEPARATOR = "..." * 3

_HUNK_RE = re.compile(r"^@@ -(\d+)(?:,(\d+))? \+(\d+)(?:,(\d+))? @@")


@dataclass(frozen=True)
class _Hunk:
    old_start: int
    old_len: int
    new_start: int
    new_len: int
    lines: list[str]


def _stringify(value: Any, stringifier: Literal["yaml", "json"]) -> list[str]:
    if stringifier == "json":
        text = json.dumps(value, indent=2, default=str)
    else:
        text = yaml.safe_dump(value, sort_keys=False, default_flow_style=False, allow_unicode=True)
    return text.splitlines()


def _parse_hunks(diff_lines: list[str]) -> list[_Hunk]:
    hunks: list[_Hunk] = []
    for line in diff_lines:
        match = _HUNK_RE.match(line)
        if match:
            old_start, old_len, new_start, new_len = match.groups()
            hunks.append(
                _Hunk(
                    old_start=int(old_start),
                    old_len=1 if old_len is None else int(old_len),
                    new_start=int(new_start),
                    new_len=1 if new_len is None else int(new_len),
                    lines=[],
                )
            )
        elif hunks and line[:1] in ("+", "-", " "):
            hunks[-1].lines.append(line)
    return hunks


def _first_line(start: int, length: int) -> int:
    # difflib reports an empty range as the line *before* the gap
    return start + 1 if length == 0 else start


def generate_readable_diff(
    original: Any,
    updated: Any,
    *,
    context_lines: int = 4,
    separator: str = DEFAULT_SEPARATOR,
    line_numbers: bool = True,
    stringifier: Literal["yaml", "json"] = "yaml",
) -> str:
    """Return the formatted diff of *original* -> *updated*, or ``""`` if equal.

    An empty *separator* suppresses the separator lines entirely.
    """
    old_lines = _stringify(original, stringifier)
    new_lines = _stringify(updated, stringifier)

    raw = list(
        difflib.unified_diff(old_lines, new_lines, fromfile="original", tofile="updated", n=context_lines, lineterm="")
    )
    # First two lines are the ---/+++ file headers
    hunks = _parse_hunks(raw[2:])
    if not hunks:
        return ""

    max_line = max(max(h.old_start + h.old_len - 1, h.new_start + h.new_len - 1) for h in hunks)
    width = len(str(max(max_line, 1)))

    out: list[str] = []
    last_old = 0
    last_new = 0
    for hunk in hunks:
        old_no = _first_line(hunk.old_start, hunk.old_len)
        new_no = _first_line(hunk.new_start, hunk.new_len)
        if separator and (old_no > last_old + 1 or new_no > last_new + 1):
            out.append(separator)
        for line in hunk.lines:
            kind = line[0]
            if line_numbers:
                left = str(old_no).rjust(width) if kind != "+" else " " * width
                right = str(new_no).rjust(width) if kind != "-" else " " * width
                out.append(f"{left} {right} {line}")
            else:
                out.append(line)
            if kind in (" ", "-"):
                last_old = old_no
                old_no += 1
            if kind in (" ", "+"):
                last_new = new_no
                new_no += 1

    if separator and max(last_old, last_new) < max(len(old_lines), len(new_lines)):
        out.append(separator)

    return "\n".join(out)
