"""
BaseConnector — Abstract base class for all connectors.

Every connector in the library extends this class, usually through
RestEntityConnector. The registry only relies on what is declared here.

Usage:
    class MyConnector(BaseConnector):
        name = "my_service"
        icon = "🔌"
        description = "Connects to My Service API"

        async def setup(self) -> None:
            self._client = MyServiceClient()

        async def health_check(self) -> bool:
            return await self._client.ping()
"""

from __future__ import annotations

from abc import ABC, abstractmethod

import structlog

from connectkit.models import ConnectorInfo

logger = structlog.get_logger(__name__)


class BaseConnector(ABC):
    """
    Abstract base class for all connectors.

    Subclasses MUST define:
      - name: str — Unique identifier (e.g. "slack", "aws_iot")
      - icon: str — Emoji for display
      - description: str — What this connector does

    Subclasses MAY override:
      - setup(): One-time initialization (auth, client creation)
      - teardown(): Cleanup (close connections)
      - health_check(): Verify the connection is alive
      - entity_names(): Logical entities advertised to callers
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique connector identifier (e.g. 'slack', 'quickbooks')."""
        ...

    @property
    @abstractmethod
    def icon(self) -> str:
        """Emoji icon for display (e.g. '💬', '📒')."""
        ...

    @property
    @abstractmethod
    def description(self) -> str:
        """Human-readable description of what this connector does."""
        ...

    # ── Lifecycle Hooks ──────────────────────────────────────────────

    async def setup(self) -> None:
        """Called once when the registry starts. Override for initialization."""
        pass

    async def teardown(self) -> None:
        """Called when the registry shuts down. Override for cleanup."""
        pass

    async def health_check(self) -> bool:
        """Check if the connector is healthy and ready to use."""
        return True

    # ── Info ──────────────────────────────────────────────────────────

    def entity_names(self) -> list[str]:
        return []

    def get_info(self) -> ConnectorInfo:
        """Return summary info for this connector."""
        return ConnectorInfo(
            name=self.name,
            icon=self.icon,
            description=self.description,
            entities=self.entity_names(),
        )

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"
