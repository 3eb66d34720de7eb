"""
RestEntityConnector — Declarative REST-entity connector base.

A concrete connector only declares data:

    class AWSIoTConnector(RestEntityConnector):
        def build_endpoints(self):
            return (
                EndpointTable.builder()
                .add("things", "things", root="data")
                .add("shadows", "things/{thing_name}/shadow", root="data")
                .build()
            )

        def create_client(self):
            return AsyncRestClient(base_url, connector_name=self.name, headers=...)

and inherits the whole request path:

    filters → translate → validate_required → resolve(endpoint)
        → HTTP (AsyncRestClient) → accept_response → extract(root)
        → records / PagedResult / typed models

Structural errors (unknown entity, missing filter, unresolved placeholder)
are raised before any network call. Transport failures follow
`settings.transport_error_policy`.
"""

from __future__ import annotations

from abc import abstractmethod
from collections.abc import AsyncIterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

import structlog
from pydantic import BaseModel

from connectkit.config import ConnectKitSettings, get_settings
from connectkit.connectors.base_connector import BaseConnector
from connectkit.connectors.http_client import AsyncRestClient
from connectkit.errors import ConnectKitError, ExtractionMismatchError, TransportError
from connectkit.models import EntityDescriptor, EntityInfo, HttpMethod, PagedResult, Record
from connectkit.observability import trace_connector_call
from connectkit.resolver import (
    EndpointTable,
    PageRequest,
    PagingStrategy,
    SinglePagePaging,
    extract,
    has_path,
    normalize,
    placeholders,
    resolve,
    translate,
    validate_required,
)
from connectkit.resolver.filters import FilterInput

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class PreparedRequest:
    """A fully validated request: resolved endpoint + remaining query params."""

    descriptor: EntityDescriptor
    endpoint: str
    params: Mapping[str, str] = field(default_factory=dict)


class RestEntityConnector(BaseConnector):
    """
    Base class for connectors built on an EndpointTable.

    Subclasses MUST implement:
      - build_endpoints(): the entity table
      - create_client(): the authenticated AsyncRestClient

    Subclasses MAY override:
      - build_paging(): paging strategy (default: fetch all, slice locally)
      - build_decoders(): entity name → pydantic model for get_typed()
      - default_filters(): values for required filters the caller omits
      - accept_response(): vendor guard run before extraction
      - extract_records(): vendor-specific envelope handling
    """

    health_entity: str | None = None

    def __init__(self, *, settings: ConnectKitSettings | None = None):
        self.settings = settings or get_settings()
        self.endpoints: EndpointTable = self.build_endpoints()
        self.paging: PagingStrategy = self.build_paging()
        self.decoders: Mapping[str, type[BaseModel]] = MappingProxyType(
            {name.lower(): model for name, model in self.build_decoders().items()}
        )
        self._client: AsyncRestClient | None = None

    # ── Declarations ─────────────────────────────────────────────────

    @abstractmethod
    def build_endpoints(self) -> EndpointTable:
        ...

    @abstractmethod
    def create_client(self) -> AsyncRestClient:
        ...

    def build_paging(self) -> PagingStrategy:
        return SinglePagePaging()

    def build_decoders(self) -> dict[str, type[BaseModel]]:
        return {}

    def default_filters(self) -> dict[str, str]:
        return {}

    # ── Client ───────────────────────────────────────────────────────

    @property
    def client(self) -> AsyncRestClient:
        """The connector's HTTP client. Lazy-initializes on first access."""
        if self._client is None:
            self._client = self.create_client()
        return self._client

    async def setup(self) -> None:
        """Pre-initialize the client."""
        _ = self.client

    async def teardown(self) -> None:
        """Close the HTTP/2 connection pool."""
        if self._client:
            await self._client.close()
            self._client = None

    async def health_check(self) -> bool:
        """
        Fetch `health_entity` when declared; otherwise only build the client.

        Bypasses `transport_error_policy`: a failed request or a response
        rejected by the vendor guard is unhealthy, never "no data".
        """
        try:
            if not self.health_entity:
                _ = self.client
                return True
            prepared = self.prepare(self.health_entity)
            document = await self._call(prepared.descriptor.method, prepared.endpoint, prepared.params)
        except ConnectKitError as e:
            logger.warning(
                "connector_health_check_failed",
                connector=self.name,
                error_code=e.error_code,
                error=str(e),
            )
            return False
        return self.accept_response(document, prepared.descriptor)

    # ── Entity table ─────────────────────────────────────────────────

    def entity_names(self) -> list[str]:
        return list(self.endpoints)

    def list_entities(self) -> list[EntityInfo]:
        """Entities advertised to callers."""
        return self.endpoints.describe()

    def get_descriptor(self, entity_name: str) -> EntityDescriptor:
        return self.endpoints.lookup(entity_name, connector_name=self.name)

    def prepare(self, entity_name: str, filters: FilterInput = None) -> PreparedRequest:
        """
        Validate and resolve a request without touching the network.

        Raises:
            UnknownEntityError, MissingFilterError, UnresolvedPlaceholderError
        """
        descriptor = self.get_descriptor(entity_name)
        query = translate(filters)
        required = {key.lower() for key in descriptor.required}
        for key, value in self.default_filters().items():
            if key.lower() not in required or not value:
                continue
            if key not in query or not query[key].strip():
                query[key] = value

        validate_required(descriptor.name, query, descriptor.required, connector_name=self.name)
        endpoint = resolve(descriptor.endpoint, query)
        params = query.to_params(exclude=placeholders(descriptor.endpoint))
        return PreparedRequest(descriptor=descriptor, endpoint=endpoint, params=params)

    # ── Response handling ────────────────────────────────────────────

    def accept_response(self, document: Any, descriptor: EntityDescriptor) -> bool:
        """Vendor guard; return False to treat the response as empty."""
        return True

    def extract_records(self, document: Any, descriptor: EntityDescriptor) -> list[Record]:
        if not self.accept_response(document, descriptor):
            return []
        if descriptor.root and not has_path(document, descriptor.root):
            if self.settings.strict_extraction:
                raise ExtractionMismatchError(
                    f"Root '{descriptor.root}' not found in {descriptor.name} response",
                    root=descriptor.root,
                    connector_name=self.name,
                )
            logger.info(
                "extraction_root_missing",
                connector=self.name,
                entity=descriptor.name,
                root=descriptor.root,
            )
            return []
        return extract(document, descriptor.root)

    def _write_records(self, document: Any, descriptor: EntityDescriptor) -> list[Record]:
        """Records from a write response, whose envelope often differs from reads."""
        if document is None or not self.accept_response(document, descriptor):
            return []
        if descriptor.root and has_path(document, descriptor.root):
            return extract(document, descriptor.root)
        return normalize(document)

    def _handle_transport_error(self, exc: TransportError, *, entity: str, operation: str) -> None:
        """Re-raise under the `raise` policy, log under the `empty` policy."""
        if self.settings.transport_error_policy == "raise":
            raise exc
        logger.warning(
            "transport_error_degraded_to_empty",
            connector=self.name,
            entity=entity,
            operation=operation,
            status_code=exc.status_code,
            error=str(exc),
        )

    async def _call(
        self,
        method: HttpMethod | str,
        endpoint: str,
        params: Mapping[str, str] | None = None,
        json: Any = None,
    ) -> Any:
        verb = method.value if isinstance(method, HttpMethod) else method.upper()
        return await self.client.request(verb, endpoint, params=params, json=json)

    # ── Reads ────────────────────────────────────────────────────────

    async def get_entity(self, entity_name: str, filters: FilterInput = None) -> list[Record]:
        """All records the endpoint returns for `entity_name`."""
        prepared = self.prepare(entity_name, filters)
        with trace_connector_call(self.name, "get_entity", entity=prepared.descriptor.name):
            try:
                document = await self._call(
                    prepared.descriptor.method, prepared.endpoint, prepared.params
                )
            except TransportError as exc:
                self._handle_transport_error(exc, entity=entity_name, operation="get_entity")
                return []

            records = self.extract_records(document, prepared.descriptor)
            logger.info(
                "entity_fetched",
                connector=self.name,
                entity=prepared.descriptor.name,
                count=len(records),
            )
            return records

    def _page_request(self, prepared: PreparedRequest) -> PageRequest:
        async def fetch(params: dict[str, str]) -> Any:
            return await self._call(prepared.descriptor.method, prepared.endpoint, params)

        return PageRequest(
            fetch=fetch,
            params=prepared.params,
            root=prepared.descriptor.root,
            extract=lambda document: self.extract_records(document, prepared.descriptor),
        )

    async def get_entity_page(
        self,
        entity_name: str,
        filters: FilterInput = None,
        page_number: int = 1,
        page_size: int | None = None,
    ) -> PagedResult:
        """One page of `entity_name`, walked with the connector's paging strategy."""
        prepared = self.prepare(entity_name, filters)
        page_size = page_size or self.settings.default_page_size
        with trace_connector_call(
            self.name,
            "get_entity_page",
            entity=prepared.descriptor.name,
            page_number=page_number,
            page_size=page_size,
        ):
            try:
                page = await self.paging.walk(self._page_request(prepared), page_size, page_number)
            except TransportError as exc:
                self._handle_transport_error(exc, entity=entity_name, operation="get_entity_page")
                return PagedResult(
                    page_number=max(1, page_number),
                    page_size=self.paging.clamp(page_size),
                    has_previous_page=page_number > 1,
                )

            logger.info(
                "entity_page_fetched",
                connector=self.name,
                entity=prepared.descriptor.name,
                page_number=page.page_number,
                count=page.count,
                has_next_page=page.has_next_page,
            )
            return page

    async def iter_entity_pages(
        self,
        entity_name: str,
        filters: FilterInput = None,
        page_size: int | None = None,
        max_pages: int | None = None,
    ) -> AsyncIterator[PagedResult]:
        """
        Yield every page of `entity_name` in order.

        Under the `empty` policy a transport failure ends the iteration
        after the pages already yielded.
        """
        prepared = self.prepare(entity_name, filters)
        page_size = page_size or self.settings.default_page_size
        with trace_connector_call(
            self.name,
            "iter_entity_pages",
            entity=prepared.descriptor.name,
            page_size=page_size,
        ):
            try:
                async for page in self.paging.iter_pages(
                    self._page_request(prepared), page_size, max_pages=max_pages
                ):
                    yield page
            except TransportError as exc:
                self._handle_transport_error(exc, entity=entity_name, operation="iter_entity_pages")

    def decode(self, entity_name: str, records: list[Record]) -> list[Any]:
        """Map records to the entity's registered model (records pass through otherwise)."""
        descriptor = self.get_descriptor(entity_name)
        model = self.decoders.get(descriptor.name.lower())
        if model is None:
            return list(records)
        return [model.model_validate(record) for record in records]

    async def get_typed(self, entity_name: str, filters: FilterInput = None) -> list[Any]:
        records = await self.get_entity(entity_name, filters)
        return self.decode(entity_name, records)

    # ── Writes ───────────────────────────────────────────────────────

    @staticmethod
    def _payload(payload: Any) -> Any:
        if isinstance(payload, BaseModel):
            return payload.model_dump(mode="json", exclude_none=True)
        return payload

    async def _write(
        self,
        operation: str,
        method: str,
        entity_name: str,
        payload: Any,
        filters: FilterInput,
    ) -> list[Record]:
        prepared = self.prepare(entity_name, filters)
        with trace_connector_call(self.name, operation, entity=prepared.descriptor.name):
            logger.info(
                "entity_write",
                connector=self.name,
                entity=prepared.descriptor.name,
                operation=operation,
                endpoint=prepared.endpoint,
            )
            try:
                document = await self._call(
                    method, prepared.endpoint, prepared.params, json=self._payload(payload)
                )
            except TransportError as exc:
                self._handle_transport_error(exc, entity=entity_name, operation=operation)
                return []
            return self._write_records(document, prepared.descriptor)

    async def create_entity(
        self, entity_name: str, payload: Any, filters: FilterInput = None
    ) -> list[Record]:
        """POST `payload` to the entity's endpoint."""
        return await self._write("create_entity", "POST", entity_name, payload, filters)

    async def update_entity(
        self,
        entity_name: str,
        payload: Any,
        filters: FilterInput = None,
        method: str = "PUT",
    ) -> list[Record]:
        """PUT (or PATCH/POST) `payload` to the entity's resolved endpoint."""
        return await self._write("update_entity", method, entity_name, payload, filters)

    async def delete_entity(self, entity_name: str, filters: FilterInput = None) -> bool:
        """DELETE the entity's resolved endpoint. False only under the `empty` policy."""
        prepared = self.prepare(entity_name, filters)
        with trace_connector_call(self.name, "delete_entity", entity=prepared.descriptor.name):
            try:
                await self._call("DELETE", prepared.endpoint, prepared.params)
            except TransportError as exc:
                self._handle_transport_error(exc, entity=entity_name, operation="delete_entity")
                return False
            logger.info(
                "entity_deleted",
                connector=self.name,
                entity=prepared.descriptor.name,
                endpoint=prepared.endpoint,
            )
            return True
