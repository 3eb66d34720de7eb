"""
ManifestConnector — A RestEntityConnector driven entirely by a YAML manifest.

Usage:
    from connectkit.manifest import load_manifest
    from connectkit.connectors.manifest_connector import ManifestConnector

    petstore = ManifestConnector(load_manifest("manifests/petstore.yaml"))
    pets = await petstore.get_entity("pets")
"""

from __future__ import annotations

import os

from connectkit.config import ConnectKitSettings
from connectkit.connectors.http_client import AsyncRestClient
from connectkit.connectors.rest_connector import RestEntityConnector
from connectkit.errors import ConnectorConfigError, ManifestError
from connectkit.manifest import AuthType, ConnectorManifest
from connectkit.resolver import EndpointTable, PagingStrategy, build_strategy


class ManifestConnector(RestEntityConnector):
    """Connector whose name, auth, paging and entities come from a manifest."""

    def __init__(
        self,
        manifest: ConnectorManifest,
        *,
        token: str | None = None,
        settings: ConnectKitSettings | None = None,
    ):
        self.manifest = manifest
        self._token = token
        super().__init__(settings=settings)

    @property
    def name(self) -> str:
        return self.manifest.name

    @property
    def icon(self) -> str:
        return self.manifest.icon

    @property
    def description(self) -> str:
        return self.manifest.description or f"REST connector for {self.manifest.base_url}"

    def build_endpoints(self) -> EndpointTable:
        try:
            return EndpointTable.from_mapping(
                {name: entity.model_dump() for name, entity in self.manifest.entities.items()}
            )
        except ValueError as e:
            raise ManifestError(
                f"Invalid entities section in manifest '{self.manifest.name}': {e}",
                connector_name=self.manifest.name,
            ) from e

    def build_paging(self) -> PagingStrategy:
        try:
            return build_strategy(self.manifest.paging.style, **self.manifest.paging.options())
        except (TypeError, ValueError) as e:
            raise ManifestError(
                f"Invalid paging section in manifest '{self.manifest.name}': {e}",
                connector_name=self.manifest.name,
            ) from e

    def _auth_headers(self) -> dict[str, str]:
        auth = self.manifest.auth
        if auth.type == AuthType.NONE:
            return {}

        token = self._token
        if token is None and auth.token_env:
            token = os.environ.get(auth.token_env, "")
        if not token:
            raise ConnectorConfigError(
                f"{auth.token_env or 'token'} environment variable is not set",
                connector_name=self.name,
            )
        if auth.type == AuthType.BEARER:
            return {"Authorization": f"Bearer {token}"}
        return {auth.header_name: token}

    def create_client(self) -> AsyncRestClient:
        return AsyncRestClient(
            self.manifest.base_url,
            connector_name=self.name,
            headers=self._auth_headers(),
            params=self.manifest.params,
            settings=self.settings,
        )
