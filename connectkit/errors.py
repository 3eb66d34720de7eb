"""
Structured Error Taxonomy — Typed exceptions for connectkit.

Design principles:
  - Every error carries `retryable` + `error_code` for automated decisions
  - Hierarchy mirrors the library layers: Resolver → Transport → Extraction → Manifest
  - Structural errors (unknown entity, missing filter, unresolved placeholder)
    are raised before any network call is attempted
  - Structured logging friendly: all errors serialize cleanly to JSON
"""

from __future__ import annotations

__all__ = [
    # Base
    "ConnectKitError",
    # Resolver layer
    "ResolverError",
    "UnknownEntityError",
    "MissingFilterError",
    "UnresolvedPlaceholderError",
    # Transport layer
    "TransportError",
    "TransportAuthError",
    "TransportRateLimitError",
    # Extraction layer
    "ExtractionMismatchError",
    # Manifest layer
    "ManifestError",
    # Connector layer
    "ConnectorConfigError",
]


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
#  Base
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


class ConnectKitError(Exception):
    """Root exception for connectkit.

    Attributes:
        retryable: If True, the caller should consider retrying the operation.
        error_code: Machine-readable code for dashboards and alerting.
        connector_name: Connector that raised the error, when known.
    """

    retryable: bool = False
    error_code: str = "CONNECTKIT_ERROR"

    def __init__(
        self,
        message: str,
        *,
        detail: str | None = None,
        connector_name: str | None = None,
    ):
        self.detail = detail
        self.connector_name = connector_name
        super().__init__(message)

    def to_dict(self) -> dict:
        """Serialize for structured logging."""
        return {
            "error_code": self.error_code,
            "message": str(self),
            "detail": self.detail,
            "retryable": self.retryable,
            "connector_name": self.connector_name,
        }


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
#  Resolver Layer — Caller/programmer errors, never retried
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


class ResolverError(ConnectKitError):
    """Base for errors raised while resolving an entity request."""

    error_code = "RESOLVER_ERROR"


class UnknownEntityError(ResolverError):
    """The requested logical entity is not in the connector's endpoint table."""

    error_code = "UNKNOWN_ENTITY"

    def __init__(
        self, message: str, *, entity: str = "", available: list[str] | None = None, **kwargs
    ):
        self.entity = entity
        self.available = available or []
        super().__init__(message, **kwargs)

    def to_dict(self) -> dict:
        d = super().to_dict()
        d["entity"] = self.entity
        d["available"] = self.available
        return d


class MissingFilterError(ResolverError):
    """One or more required filter keys are absent or blank."""

    error_code = "MISSING_FILTER"

    def __init__(self, message: str, *, entity: str = "", missing: list[str] | None = None, **kwargs):
        self.entity = entity
        self.missing = missing or []
        super().__init__(message, **kwargs)

    def to_dict(self) -> dict:
        d = super().to_dict()
        d["entity"] = self.entity
        d["missing"] = self.missing
        return d


class UnresolvedPlaceholderError(ResolverError):
    """An endpoint template token had no value in the query map."""

    error_code = "UNRESOLVED_PLACEHOLDER"

    def __init__(self, message: str, *, tokens: list[str] | None = None, template: str = "", **kwargs):
        self.tokens = tokens or []
        self.template = template
        super().__init__(message, **kwargs)

    @property
    def token(self) -> str:
        """First unresolved token."""
        return self.tokens[0] if self.tokens else ""

    def to_dict(self) -> dict:
        d = super().to_dict()
        d["tokens"] = self.tokens
        d["template"] = self.template
        return d


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
#  Transport Layer — Errors from the HTTP boundary
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


class TransportError(ConnectKitError):
    """The HTTP call failed or returned a non-success status."""

    error_code = "TRANSPORT_ERROR"

    def __init__(self, message: str, *, status_code: int | None = None, **kwargs):
        self.status_code = status_code
        super().__init__(message, **kwargs)

    @property
    def retryable(self) -> bool:  # type: ignore[override]
        return self.status_code is None or self.status_code >= 500

    def to_dict(self) -> dict:
        d = super().to_dict()
        d["status_code"] = self.status_code
        return d


class TransportAuthError(TransportError):
    """Authentication/authorization failed for the external service."""

    error_code = "TRANSPORT_AUTH"

    @property
    def retryable(self) -> bool:  # type: ignore[override]
        return False


class TransportRateLimitError(TransportError):
    """External service returned a rate limit error."""

    error_code = "TRANSPORT_RATE_LIMIT"

    @property
    def retryable(self) -> bool:  # type: ignore[override]
        return True


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
#  Extraction Layer
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


class ExtractionMismatchError(ConnectKitError):
    """Root path not found in the response.

    Soft by default: only raised when strict extraction is enabled.
    """

    error_code = "EXTRACTION_MISMATCH"

    def __init__(self, message: str, *, root: str = "", **kwargs):
        self.root = root
        super().__init__(message, **kwargs)

    def to_dict(self) -> dict:
        d = super().to_dict()
        d["root"] = self.root
        return d


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
#  Manifest / Connector configuration
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


class ManifestError(ConnectKitError):
    """YAML connector manifest is missing or failed validation."""

    error_code = "MANIFEST_ERROR"

    def __init__(self, message: str, *, path: str = "", **kwargs):
        self.path = path
        super().__init__(message, **kwargs)

    def to_dict(self) -> dict:
        d = super().to_dict()
        d["path"] = self.path
        return d


class ConnectorConfigError(ConnectKitError):
    """A connector is missing credentials or settings it needs to run."""

    error_code = "CONNECTOR_CONFIG"
