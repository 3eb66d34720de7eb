"""
ResponseExtractor — Locate the payload inside a vendor envelope.

A dotted root path ("data.list", "messages.matches") is walked one object
property per segment. A missing root is a valid "no data" outcome and
yields an empty list rather than an exception.
"""

from __future__ import annotations

from typing import Any

from connectkit.models import Record

_MISSING = object()


def _walk(document: Any, path: str | None) -> Any:
    if path is None or not path.strip():
        return document
    node = document
    for segment in path.strip().split("."):
        if not isinstance(node, dict) or segment not in node:
            return _MISSING
        node = node[segment]
    return node


def has_path(document: Any, path: str | None) -> bool:
    """True if every segment of `path` exists in `document`."""
    return _walk(document, path) is not _MISSING


def resolve_path(document: Any, path: str | None, default: Any = None) -> Any:
    """Raw node at `path`, or `default` when any segment is missing."""
    node = _walk(document, path)
    return default if node is _MISSING else node


def normalize(node: Any) -> list[Record]:
    """Turn an array/object node into records; scalars and null become []."""
    if isinstance(node, list):
        records: list[Record] = []
        for element in node:
            if isinstance(element, dict):
                records.append(dict(element))
            elif element is not None:
                records.append({"value": element})
        return records
    if isinstance(node, dict):
        return [dict(node)]
    return []


def extract(document: Any, root: str | None = None) -> list[Record]:
    """
    Records found at `root` inside `document`.

    Examples:
        >>> extract({"channels": [{"id": "C1"}, {"id": "C2"}]}, "channels")
        [{'id': 'C1'}, {'id': 'C2'}]
        >>> extract({"team": {"id": "T1"}}, "team")
        [{'id': 'T1'}]
        >>> extract({"data": {}}, "data.list")
        []
    """
    node = _walk(document, root)
    if node is _MISSING:
        return []
    return normalize(node)
