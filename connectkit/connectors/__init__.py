"""
Connectors — Declarative REST integration blocks.

Each connector wraps one external API (Slack, AWS IoT, QuickBooks, ...)
as an EndpointTable of logical entities. The ConnectorRegistry
auto-discovers the built-in connectors and YAML manifest connectors.

Usage:
    from connectkit.connectors import get_connector_registry

    registry = get_connector_registry()
    slack = registry.get("slack")
    qbo = registry.get("quickbooks")
"""

from connectkit.connectors.base_connector import BaseConnector
from connectkit.connectors.http_client import AsyncRestClient
from connectkit.connectors.rest_connector import PreparedRequest, RestEntityConnector
from connectkit.connectors.registry import (
    ConnectorRegistry,
    get_connector_registry,
    register_manifests,
    reset_connector_registry,
)
from connectkit.connectors.slack_connector import SlackConnector
from connectkit.connectors.aws_iot_connector import AWSIoTConnector
from connectkit.connectors.quickbooks_connector import QuickBooksConnector
from connectkit.connectors.tiktok_ads_connector import TikTokAdsConnector
from connectkit.connectors.drupal_connector import DrupalConnector
from connectkit.connectors.manifest_connector import ManifestConnector

__all__ = [
    "BaseConnector",
    "AsyncRestClient",
    "PreparedRequest",
    "RestEntityConnector",
    "ConnectorRegistry",
    "get_connector_registry",
    "register_manifests",
    "reset_connector_registry",
    "SlackConnector",
    "AWSIoTConnector",
    "QuickBooksConnector",
    "TikTokAdsConnector",
    "DrupalConnector",
    "ManifestConnector",
]
