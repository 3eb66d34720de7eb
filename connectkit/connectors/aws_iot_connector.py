"""
AWSIoTConnector — Async-only AWS IoT REST integration block.

Things, shadows, jobs, rules, certificates, policies and telemetry, all
resolved declaratively. Every response wraps its payload in `data`.

Usage:
    from connectkit.connectors import get_connector_registry
    iot = get_connector_registry().get("aws_iot")
    things = await iot.get_things()
    shadow = await iot.get_thing_shadow("sensor-42")
"""

from __future__ import annotations

import os
from typing import Any

import structlog
from pydantic import BaseModel, ConfigDict

from connectkit.config import ConnectKitSettings
from connectkit.connectors.http_client import AsyncRestClient
from connectkit.connectors.rest_connector import RestEntityConnector
from connectkit.errors import ConnectorConfigError
from connectkit.resolver import EndpointTable, MaxResultsPaging, PagingStrategy

logger = structlog.get_logger(__name__)


# ── Models ───────────────────────────────────────────────────────────


class IoTEntity(BaseModel):
    """Fields every AWS IoT resource shares."""

    model_config = ConfigDict(extra="allow")

    id: str | None = None
    created_at: str | None = None
    updated_at: str | None = None
    source: str | None = None


class Device(IoTEntity):
    thing_name: str | None = None
    thing_type_name: str | None = None
    thing_group_names: list[str] | None = None
    attributes: dict[str, str] | None = None
    registry: str | None = None
    status: str | None = None


class ShadowState(BaseModel):
    model_config = ConfigDict(extra="allow")

    desired: dict[str, Any] | None = None
    reported: dict[str, Any] | None = None
    delta: dict[str, Any] | None = None


class Shadow(IoTEntity):
    name: str | None = None
    thing_name: str | None = None
    state: ShadowState | None = None
    metadata: dict[str, Any] | None = None
    version: int | None = None
    timestamp: int | None = None
    client_token: str | None = None


class Job(IoTEntity):
    job_id: str | None = None
    job_arn: str | None = None
    document_source: str | None = None
    status: str | None = None
    targets: list[str] | None = None
    description: str | None = None
    comment: str | None = None


class Rule(IoTEntity):
    rule_name: str | None = None
    rule_arn: str | None = None
    sql: str | None = None
    description: str | None = None
    status: str | None = None
    actions: list[dict[str, Any]] | None = None


class Certificate(IoTEntity):
    certificate_arn: str | None = None
    certificate_id: str | None = None
    status: str | None = None
    owned_by: str | None = None
    creation_date: str | None = None


class Policy(IoTEntity):
    policy_name: str | None = None
    policy_arn: str | None = None
    policy_document: str | None = None
    default_version_id: str | None = None


class Telemetry(IoTEntity):
    topic: str | None = None
    payload: Any = None
    timestamp: str | None = None
    qos: int | None = None
    retain: bool | None = None


# ── Connector ────────────────────────────────────────────────────────


class AWSIoTConnector(RestEntityConnector):
    """
    AWS IoT integration block — device registry, shadows and telemetry.

    Needs `AWS_IOT_ENDPOINT` (account REST endpoint) and `AWS_IOT_TOKEN`.
    """

    health_entity = "endpoints"

    def __init__(
        self,
        endpoint: str | None = None,
        token: str | None = None,
        *,
        settings: ConnectKitSettings | None = None,
    ):
        self._endpoint = endpoint
        self._token = token
        super().__init__(settings=settings)

    @property
    def name(self) -> str:
        return "aws_iot"

    @property
    def icon(self) -> str:
        return "📡"

    @property
    def description(self) -> str:
        return "Manage AWS IoT things, shadows, jobs and rules; read telemetry"

    def build_endpoints(self) -> EndpointTable:
        return (
            EndpointTable.builder()
            .add("things", "things", root="data", description="Registered things")
            .add("thing", "things/{thing_name}", root="data", description="One thing by name")
            .add("shadows", "things/{thing_name}/shadow", root="data", description="Device shadow of a thing")
            .add("jobs", "jobs", root="data")
            .add("rules", "rules", root="data")
            .add("certificates", "certificates", root="data")
            .add("policies", "policies", root="data")
            .add("telemetry", "topics/{topic}", root="data", description="Messages published on a topic")
            .add("endpoints", "endpoints", root="data")
            .alias("devices", "things")
            .build()
        )

    def build_paging(self) -> PagingStrategy:
        return MaxResultsPaging(
            size_param="page_size",
            position_param="page",
            position_style="page",
            min_page_size=10,
            max_page_size=100,
        )

    def build_decoders(self) -> dict[str, type[BaseModel]]:
        return {
            "things": Device,
            "devices": Device,
            "thing": Device,
            "shadows": Shadow,
            "jobs": Job,
            "rules": Rule,
            "certificates": Certificate,
            "policies": Policy,
            "telemetry": Telemetry,
        }

    def create_client(self) -> AsyncRestClient:
        endpoint = self._endpoint or os.environ.get("AWS_IOT_ENDPOINT", "")
        token = self._token or os.environ.get("AWS_IOT_TOKEN", "")
        if not endpoint:
            raise ConnectorConfigError(
                "AWS_IOT_ENDPOINT environment variable is not set", connector_name=self.name
            )
        if not token:
            raise ConnectorConfigError(
                "AWS_IOT_TOKEN environment variable is not set", connector_name=self.name
            )
        return AsyncRestClient(
            endpoint,
            connector_name=self.name,
            headers={"Authorization": f"Bearer {token}"},
            settings=self.settings,
        )

    # ── Reads ────────────────────────────────────────────────────────

    async def get_things(self) -> list[Device]:
        return await self.get_typed("things")

    async def get_thing(self, thing_name: str) -> Device | None:
        devices = await self.get_typed("thing", {"thing_name": thing_name})
        return devices[0] if devices else None

    async def get_thing_shadow(self, thing_name: str) -> Shadow | None:
        shadows = await self.get_typed("shadows", {"thing_name": thing_name})
        return shadows[0] if shadows else None

    async def get_telemetry(self, topic: str) -> list[Telemetry]:
        return await self.get_typed("telemetry", {"topic": topic})

    # ── Writes ───────────────────────────────────────────────────────

    async def create_thing(self, thing: Device) -> list[Device]:
        records = await self.create_entity("things", thing)
        return self.decode("things", records)

    async def update_thing(self, thing_name: str, thing: Device) -> list[Device]:
        records = await self.update_entity("thing", thing, {"thing_name": thing_name})
        return self.decode("thing", records)

    async def update_shadow(self, thing_name: str, shadow: Shadow) -> list[Shadow]:
        records = await self.update_entity("shadows", shadow, {"thing_name": thing_name})
        logger.info("aws_iot_shadow_updated", thing_name=thing_name, count=len(records))
        return self.decode("shadows", records)

    async def create_job(self, job: Job) -> list[Job]:
        records = await self.create_entity("jobs", job)
        return self.decode("jobs", records)

    async def create_rule(self, rule: Rule) -> list[Rule]:
        records = await self.create_entity("rules", rule)
        return self.decode("rules", records)
