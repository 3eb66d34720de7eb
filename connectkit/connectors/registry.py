"""
ConnectorRegistry — Discovery and lifecycle management for connectors.

The registry holds every available connector and manages their lifecycle
(setup, teardown, health checks). Built-in connectors are registered on
first access, followed by any YAML manifests found in `manifests_dir`.

Note: This registry uses a process-global singleton pattern. It is NOT
thread-safe for concurrent writes, but safe for asyncio event loops within
a single process.

Usage:
    from connectkit.connectors import get_connector_registry

    registry = get_connector_registry()
    slack = registry.get("slack")
    channels = await slack.get_entity("channels")

    # Health check all connectors
    health = await registry.health_check_all()
    # {"slack": True, "quickbooks": False, ...}
"""

from __future__ import annotations

from pathlib import Path

import structlog

from connectkit.config import get_settings
from connectkit.connectors.base_connector import BaseConnector
from connectkit.errors import ConnectKitError
from connectkit.models import ConnectorInfo

logger = structlog.get_logger(__name__)


class ConnectorRegistry:
    """
    Registry for all available connectors.

    Provides:
      - Registration and lookup by name
      - Lifecycle management (setup_all, teardown_all)
      - Health check aggregation
      - Listing with per-connector entity names
    """

    def __init__(self):
        self._connectors: dict[str, BaseConnector] = {}

    def register(self, connector: BaseConnector) -> None:
        """Register a connector by its name."""
        if connector.name in self._connectors:
            logger.warning(
                "connector_already_registered",
                name=connector.name,
                replacing=True,
            )
        self._connectors[connector.name] = connector
        logger.info(
            "connector_registered",
            name=connector.name,
            icon=connector.icon,
            description=connector.description,
        )

    def get(self, name: str) -> BaseConnector:
        """Get a connector by name. Raises KeyError if not found."""
        if name not in self._connectors:
            available = list(self._connectors.keys())
            raise KeyError(f"Connector '{name}' not found. Available: {available}")
        return self._connectors[name]

    def list_all(self) -> list[ConnectorInfo]:
        """List all registered connectors with their info."""
        return [c.get_info() for c in self._connectors.values()]

    async def setup_all(self) -> None:
        """Initialize all registered connectors."""
        for name, connector in self._connectors.items():
            try:
                await connector.setup()
                logger.info("connector_setup_complete", name=name)
            except Exception as e:
                logger.error("connector_setup_failed", name=name, error=str(e))

    async def teardown_all(self) -> None:
        """Graceful shutdown of all connectors."""
        for name, connector in self._connectors.items():
            try:
                await connector.teardown()
                logger.info("connector_teardown_complete", name=name)
            except Exception as e:
                logger.error("connector_teardown_failed", name=name, error=str(e))

    async def health_check_all(self) -> dict[str, bool]:
        """Run health checks on all connectors."""
        results = {}
        for name, connector in self._connectors.items():
            try:
                results[name] = await connector.health_check()
            except Exception:
                results[name] = False
        return results

    @property
    def names(self) -> list[str]:
        """List of registered connector names."""
        return list(self._connectors.keys())

    def __len__(self) -> int:
        return len(self._connectors)

    def __contains__(self, name: str) -> bool:
        return name in self._connectors


# ── Singleton ────────────────────────────────────────────────────────

_registry: ConnectorRegistry | None = None


def get_connector_registry() -> ConnectorRegistry:
    """Singleton accessor for the ConnectorRegistry."""
    global _registry
    if _registry is None:
        _registry = ConnectorRegistry()
        _auto_register_connectors(_registry)
    return _registry


def reset_connector_registry() -> None:
    """Drop the singleton (tests and settings reloads)."""
    global _registry
    _registry = None


def _auto_register_connectors(registry: ConnectorRegistry) -> None:
    """Auto-register all built-in connectors, then manifest connectors."""
    from connectkit.connectors.aws_iot_connector import AWSIoTConnector
    from connectkit.connectors.drupal_connector import DrupalConnector
    from connectkit.connectors.quickbooks_connector import QuickBooksConnector
    from connectkit.connectors.slack_connector import SlackConnector
    from connectkit.connectors.tiktok_ads_connector import TikTokAdsConnector

    registry.register(SlackConnector())
    registry.register(AWSIoTConnector())
    registry.register(QuickBooksConnector())
    registry.register(TikTokAdsConnector())
    registry.register(DrupalConnector())

    register_manifests(registry, Path(get_settings().manifests_dir))

    logger.info(
        "connectors_auto_registered",
        count=len(registry),
        names=registry.names,
    )


def register_manifests(registry: ConnectorRegistry, directory: Path) -> int:
    """Register a ManifestConnector for every valid manifest in `directory`."""
    from connectkit.connectors.manifest_connector import ManifestConnector
    from connectkit.manifest import discover_manifests

    registered = 0
    for manifest in discover_manifests(directory):
        try:
            registry.register(ManifestConnector(manifest))
            registered += 1
        except ConnectKitError as e:
            logger.error("manifest_connector_failed", name=manifest.name, error=str(e))
    return registered
