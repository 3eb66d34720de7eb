"""
connectkit — Declarative REST-entity connectors.

Provides the shared resolver (filters, endpoint templates, response
extraction, paging) and the connectors built on it.
"""

from connectkit.connectors import (
    BaseConnector,
    ConnectorRegistry,
    ManifestConnector,
    RestEntityConnector,
    get_connector_registry,
)
from connectkit.config import ConnectKitSettings, get_settings
from connectkit.logging import setup_logging
from connectkit.manifest import ConnectorManifest, load_manifest
from connectkit.models import EntityDescriptor, FilterCriterion, PagedResult
from connectkit.resolver import EndpointTable
from connectkit.version import VERSION

__version__ = VERSION

__all__ = [
    # Connectors
    "BaseConnector",
    "RestEntityConnector",
    "ManifestConnector",
    "ConnectorRegistry",
    "get_connector_registry",
    # Resolver
    "EndpointTable",
    "EntityDescriptor",
    "FilterCriterion",
    "PagedResult",
    # Manifests
    "ConnectorManifest",
    "load_manifest",
    # Configuration
    "ConnectKitSettings",
    "get_settings",
    "setup_logging",
]
