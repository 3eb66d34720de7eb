"""
Connector manifests — zero-code REST connectors declared in YAML.

A manifest names the base URL, authentication, paging style and entity
table of a REST API. `ManifestConnector` turns it into a working
connector with the same resolver mechanics as the built-in ones.
"""

from __future__ import annotations

import enum
from pathlib import Path
from typing import Any

import structlog
import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from connectkit.errors import ManifestError

logger = structlog.get_logger(__name__)

MANIFEST_SUFFIXES = (".yaml", ".yml")


# ── Manifest Schema ──────────────────────────────────────────────────


class AuthType(str, enum.Enum):
    NONE = "none"
    BEARER = "bearer"
    HEADER = "header"


class AuthConfig(BaseModel):
    """How requests are authenticated. The token itself always comes from the environment."""

    type: AuthType = AuthType.NONE
    token_env: str | None = None
    header_name: str = "Authorization"


class PagingConfig(BaseModel):
    """Paging style plus the strategy's own options (limit_param, cursor_param, ...)."""

    model_config = ConfigDict(extra="allow")

    style: str = "none"

    def options(self) -> dict[str, Any]:
        return dict(self.model_extra or {})


class EntityConfig(BaseModel):
    endpoint: str
    root: str | None = None
    required: list[str] = Field(default_factory=list)
    method: str = "GET"
    description: str = ""


class ConnectorManifest(BaseModel):
    """
    Declarative manifest describing a REST connector.

    Loaded from a YAML file by `load_manifest()` or built in code.
    """

    name: str
    description: str = ""
    icon: str = "🔌"
    base_url: str
    auth: AuthConfig = Field(default_factory=AuthConfig)
    paging: PagingConfig = Field(default_factory=PagingConfig)
    # Static query parameters sent with every request (e.g. api-version)
    params: dict[str, str] = Field(default_factory=dict)
    entities: dict[str, EntityConfig]

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("manifest name must not be blank")
        return value

    @field_validator("entities")
    @classmethod
    def _at_least_one_entity(cls, value: dict[str, EntityConfig]) -> dict[str, EntityConfig]:
        if not value:
            raise ValueError("manifest must declare at least one entity")
        return value


# ── Loading ──────────────────────────────────────────────────────────


def load_manifest(path: Path | str) -> ConnectorManifest:
    """
    Load and validate a connector manifest.

    Args:
        path: The YAML file to read.

    Returns:
        The parsed ConnectorManifest.

    Raises:
        ManifestError: If the file is missing, is not valid YAML, or does
            not match the manifest schema.
    """
    path = Path(path)
    if not path.is_file():
        raise ManifestError(f"Manifest not found at {path}", path=str(path))

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ManifestError(f"Invalid YAML in {path}: {e}", path=str(path)) from e

    if not isinstance(data, dict):
        raise ManifestError(f"Manifest {path} must be a mapping", path=str(path))

    try:
        return ConnectorManifest(**data)
    except ValidationError as e:
        raise ManifestError(
            f"Manifest {path} failed validation: {e.error_count()} error(s)",
            path=str(path),
            detail=str(e),
        ) from e


def discover_manifests(directory: Path | str) -> list[ConnectorManifest]:
    """
    Load every manifest in `directory` (sorted by filename).

    Invalid manifests are logged and skipped; a missing directory yields [].
    """
    directory = Path(directory)
    if not directory.is_dir():
        logger.debug("manifests_dir_missing", path=str(directory))
        return []

    manifests: list[ConnectorManifest] = []
    for path in sorted(directory.iterdir()):
        if path.suffix.lower() not in MANIFEST_SUFFIXES:
            continue
        try:
            manifests.append(load_manifest(path))
        except ManifestError as e:
            logger.error("manifest_invalid", path=str(path), error=str(e))
    logger.info("manifests_discovered", path=str(directory), count=len(manifests))
    return manifests
