"""
DrupalConnector — Async-only Drupal JSON:API integration block.

Articles, taxonomy terms, users, media and files from a Drupal site's
JSON:API module. Collections page with `page[limit]` / `page[offset]`
(Drupal caps a page at 50 resources).

Usage:
    from connectkit.connectors import get_connector_registry
    drupal = get_connector_registry().get("drupal")
    articles = await drupal.get_typed("nodes")
    one = await drupal.get_resource("nodes", "3f2b...")
"""

from __future__ import annotations

import os
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from connectkit.config import ConnectKitSettings
from connectkit.connectors.http_client import AsyncRestClient
from connectkit.connectors.rest_connector import RestEntityConnector
from connectkit.errors import ConnectorConfigError
from connectkit.resolver import EndpointTable, OffsetLimitPaging, PagingStrategy

JSONAPI_MEDIA_TYPE = "application/vnd.api+json"

RESOURCES = {
    "nodes": "jsonapi/node/article",
    "taxonomy": "jsonapi/taxonomy_term/tags",
    "users": "jsonapi/user/user",
    "media": "jsonapi/media/image",
    "files": "jsonapi/file/file",
}


class Resource(BaseModel):
    """A JSON:API resource object."""

    model_config = ConfigDict(extra="allow")

    id: str
    type: str | None = None
    attributes: dict[str, Any] = Field(default_factory=dict)
    relationships: dict[str, Any] = Field(default_factory=dict)
    links: dict[str, Any] = Field(default_factory=dict)

    @property
    def title(self) -> str | None:
        return self.attributes.get("title") or self.attributes.get("name")


class DrupalConnector(RestEntityConnector):
    """
    Drupal integration block — content, taxonomy, users and media.

    Needs `DRUPAL_BASE_URL`; `DRUPAL_TOKEN` is sent as a bearer token when set.
    """

    health_entity = "nodes"

    def __init__(
        self,
        base_url: str | None = None,
        token: str | None = None,
        *,
        settings: ConnectKitSettings | None = None,
    ):
        self._base_url = base_url
        self._token = token
        super().__init__(settings=settings)

    @property
    def name(self) -> str:
        return "drupal"

    @property
    def icon(self) -> str:
        return "💧"

    @property
    def description(self) -> str:
        return "Read Drupal articles, taxonomy, users and media via JSON:API"

    def build_endpoints(self) -> EndpointTable:
        builder = EndpointTable.builder()
        for entity, path in RESOURCES.items():
            builder.add(entity, path, root="data")
            builder.add(f"{entity}.get", f"{path}/{{id}}", root="data")
        return builder.build()

    def build_paging(self) -> PagingStrategy:
        return OffsetLimitPaging(
            limit_param="page[limit]",
            offset_param="page[offset]",
            max_page_size=50,
        )

    def build_decoders(self) -> dict[str, type[BaseModel]]:
        decoders: dict[str, type[BaseModel]] = {}
        for entity in RESOURCES:
            decoders[entity] = Resource
            decoders[f"{entity}.get"] = Resource
        return decoders

    def create_client(self) -> AsyncRestClient:
        base_url = self._base_url or os.environ.get("DRUPAL_BASE_URL", "")
        if not base_url:
            raise ConnectorConfigError(
                "DRUPAL_BASE_URL environment variable is not set", connector_name=self.name
            )
        headers = {"Accept": JSONAPI_MEDIA_TYPE, "Content-Type": JSONAPI_MEDIA_TYPE}
        token = self._token or os.environ.get("DRUPAL_TOKEN", "")
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return AsyncRestClient(
            base_url,
            connector_name=self.name,
            headers=headers,
            settings=self.settings,
        )

    async def get_resource(self, entity: str, resource_id: str) -> Resource | None:
        """One resource by UUID, e.g. get_resource("nodes", uuid)."""
        resources = await self.get_typed(f"{entity}.get", {"id": resource_id})
        return resources[0] if resources else None
