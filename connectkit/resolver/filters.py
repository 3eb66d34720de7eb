"""
FilterTranslator — Caller filters to a case-insensitive query map.

Filters arrive as FilterCriterion instances, (field, value) pairs or a plain
mapping. They are folded into a fresh QueryMap per call; duplicate field
names overwrite (last wins).
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping, MutableMapping
from typing import Any, Union

from connectkit.errors import MissingFilterError
from connectkit.models import FilterCriterion

FilterInput = Union[
    Iterable[FilterCriterion],
    Iterable[tuple[str, Any]],
    Mapping[str, Any],
    None,
]


class QueryMap(MutableMapping[str, str]):
    """
    String-to-string mapping with case-insensitive keys.

    The key spelling of the most recent assignment is kept for iteration,
    so query parameters go out the way the caller wrote them.
    """

    def __init__(self, data: Mapping[str, str] | Iterable[tuple[str, str]] | None = None):
        self._store: dict[str, tuple[str, str]] = {}
        if data is not None:
            self.update(data)

    def __setitem__(self, key: str, value: str) -> None:
        self._store[key.lower()] = (key, value)

    def __getitem__(self, key: str) -> str:
        return self._store[key.lower()][1]

    def __delitem__(self, key: str) -> None:
        del self._store[key.lower()]

    def __iter__(self) -> Iterator[str]:
        return (original for original, _ in self._store.values())

    def __len__(self) -> int:
        return len(self._store)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and key.lower() in self._store

    def copy(self) -> QueryMap:
        return QueryMap(self.items())

    def to_params(self, exclude: Iterable[str] = ()) -> dict[str, str]:
        """Plain dict for the transport, minus the excluded keys."""
        skip = {k.lower() for k in exclude}
        return {k: v for k, v in self.items() if k.lower() not in skip}

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Mapping):
            other_map = QueryMap(other.items())
            return {k: v for k, (_, v) in self._store.items()} == {
                k: v for k, (_, v) in other_map._store.items()
            }
        return NotImplemented

    def __repr__(self) -> str:
        return f"QueryMap({dict(self.items())!r})"


def _stringify(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    try:
        return str(value)
    except Exception:
        return ""


def _iter_pairs(criteria: FilterInput) -> Iterator[tuple[Any, Any]]:
    if criteria is None:
        return
    if isinstance(criteria, Mapping):
        yield from criteria.items()
        return
    for item in criteria:
        if item is None:
            continue
        if isinstance(item, FilterCriterion):
            yield item.field_name, item.value
        elif isinstance(item, tuple) and len(item) == 2:
            yield item[0], item[1]
        elif isinstance(item, Mapping) and "field_name" in item:
            yield item.get("field_name"), item.get("value")


def translate(criteria: FilterInput) -> QueryMap:
    """
    Fold filters into a new QueryMap.

    Blank field names are skipped, names are trimmed, values are
    stringified (None becomes "").
    """
    query = QueryMap()
    for field_name, value in _iter_pairs(criteria):
        if not isinstance(field_name, str) or not field_name.strip():
            continue
        query[field_name.strip()] = _stringify(value)
    return query


def missing_keys(query: Mapping[str, str], required: Iterable[str]) -> list[str]:
    """Required keys that are absent or blank, sorted."""
    lookup = query if isinstance(query, QueryMap) else QueryMap(query.items())
    return sorted(
        key for key in set(required) if key not in lookup or not lookup[key].strip()
    )


def validate_required(
    entity_name: str,
    query: Mapping[str, str],
    required: Iterable[str],
    *,
    connector_name: str | None = None,
) -> None:
    """Raise MissingFilterError listing every absent or blank required key."""
    missing = missing_keys(query, required)
    if missing:
        raise MissingFilterError(
            f"Entity '{entity_name}' requires filter(s): {', '.join(missing)}",
            entity=entity_name,
            missing=missing,
            connector_name=connector_name,
        )
