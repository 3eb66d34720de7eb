"""
EndpointTable + EndpointResolver.

The table is immutable configuration built once per connector instance:

    table = (
        EndpointTable.builder()
        .add("things", "things", root="data")
        .add("shadows", "things/{thing_name}/shadow", root="data", required=["thing_name"])
        .build()
    )

`resolve()` fills `{token}` placeholders from a query map, URL-escaping each
value. Placeholders appearing in the template are implicitly required.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator, Mapping
from types import MappingProxyType
from typing import Any
from urllib.parse import quote

from connectkit.errors import UnknownEntityError, UnresolvedPlaceholderError
from connectkit.models import EntityDescriptor, EntityInfo, HttpMethod
from connectkit.resolver.filters import QueryMap

_PLACEHOLDER = re.compile(r"\{([A-Za-z_][A-Za-z0-9_.\-]*)\}")


def placeholders(template: str) -> list[str]:
    """Token names in template order, without duplicates."""
    seen: list[str] = []
    for match in _PLACEHOLDER.finditer(template):
        token = match.group(1)
        if token not in seen:
            seen.append(token)
    return seen


def resolve(template: str, query: Mapping[str, str]) -> str:
    """
    Substitute every `{token}` in `template` from `query` (case-insensitive).

    Raises:
        UnresolvedPlaceholderError: if any token has no value in `query`.
    """
    lookup = query if isinstance(query, QueryMap) else QueryMap(query.items())
    unresolved: list[str] = []

    def _substitute(match: re.Match) -> str:
        token = match.group(1)
        if token in lookup:
            return quote(lookup[token], safe="")
        if token not in unresolved:
            unresolved.append(token)
        return match.group(0)

    resolved = _PLACEHOLDER.sub(_substitute, template)
    if unresolved:
        raise UnresolvedPlaceholderError(
            f"Unresolved placeholder(s) {', '.join(unresolved)} in endpoint '{template}'",
            tokens=unresolved,
            template=template,
        )
    return resolved


class EndpointTable(Mapping[str, EntityDescriptor]):
    """Read-only, case-insensitive mapping of entity name → EntityDescriptor."""

    def __init__(self, descriptors: Iterable[EntityDescriptor] = ()):
        entries: dict[str, EntityDescriptor] = {}
        for descriptor in descriptors:
            entries[descriptor.name.lower()] = descriptor
        self._entries = MappingProxyType(entries)

    @classmethod
    def builder(cls) -> EndpointTableBuilder:
        return EndpointTableBuilder()

    @classmethod
    def from_mapping(cls, entities: Mapping[str, Mapping[str, Any]]) -> EndpointTable:
        """Build from `{name: {endpoint, root, required, method, description}}`."""
        builder = cls.builder()
        for name, config in entities.items():
            builder.add(name, **dict(config))
        return builder.build()

    def __getitem__(self, name: str) -> EntityDescriptor:
        return self._entries[name.strip().lower()]

    def __iter__(self) -> Iterator[str]:
        return (d.name for d in self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.strip().lower() in self._entries

    def lookup(self, name: str, *, connector_name: str | None = None) -> EntityDescriptor:
        """Descriptor for `name`, or UnknownEntityError listing what exists."""
        if not isinstance(name, str) or name not in self:
            available = sorted(self)
            raise UnknownEntityError(
                f"Unknown entity '{name}'. Available: {available}",
                entity=str(name),
                available=available,
                connector_name=connector_name,
            )
        return self[name]

    def describe(self) -> list[EntityInfo]:
        return [
            EntityInfo(
                name=d.name,
                endpoint=d.endpoint,
                root=d.root,
                required_filters=sorted(d.required),
                description=d.description,
            )
            for d in self._entries.values()
        ]

    def __repr__(self) -> str:
        return f"<EndpointTable entities={list(self)!r}>"


class EndpointTableBuilder:
    """Collects descriptors, then freezes them into an EndpointTable."""

    def __init__(self):
        self._descriptors: dict[str, EntityDescriptor] = {}

    def add(
        self,
        name: str,
        endpoint: str,
        *,
        root: str | None = None,
        required: Iterable[str] = (),
        method: HttpMethod | str = HttpMethod.GET,
        description: str = "",
    ) -> EndpointTableBuilder:
        """Register an entity. Template placeholders are added to `required`."""
        descriptor = EntityDescriptor(
            name=name,
            endpoint=endpoint,
            root=root,
            required=frozenset(required) | frozenset(placeholders(endpoint)),
            method=HttpMethod(method.upper() if isinstance(method, str) else method),
            description=description,
        )
        self._descriptors[descriptor.name.lower()] = descriptor
        return self

    def alias(self, alias: str, target: str) -> EndpointTableBuilder:
        """Register `alias` with the same endpoint/root/required as `target`."""
        source = self._descriptors[target.lower()]
        self._descriptors[alias.lower()] = source.model_copy(update={"name": alias})
        return self

    def build(self) -> EndpointTable:
        return EndpointTable(self._descriptors.values())
