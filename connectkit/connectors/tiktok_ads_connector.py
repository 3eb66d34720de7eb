"""
TikTokAdsConnector — Async-only TikTok Marketing API integration block.

Campaigns, ad groups, ads, advertisers and integrated reports. Responses
look like `{"code": 0, "message": "OK", "data": {"list": [...],
"page_info": {"total_number": 123}}}`; a non-zero `code` is an API error
reported with HTTP 200 and is treated as an empty result.

Usage:
    from connectkit.connectors import get_connector_registry
    tiktok = get_connector_registry().get("tiktok_ads")
    campaigns = await tiktok.get_campaigns()
"""

from __future__ import annotations

import json
import os
from typing import Any

import structlog
from pydantic import BaseModel, ConfigDict

from connectkit.config import ConnectKitSettings
from connectkit.connectors.http_client import AsyncRestClient
from connectkit.connectors.rest_connector import RestEntityConnector
from connectkit.errors import ConnectorConfigError
from connectkit.models import EntityDescriptor, Record
from connectkit.resolver import EndpointTable, MaxResultsPaging, PagingStrategy

logger = structlog.get_logger(__name__)

TIKTOK_ADS_API_URL = "https://business-api.tiktok.com/open_api/v1.3/"


# ── Models ───────────────────────────────────────────────────────────


class Campaign(BaseModel):
    model_config = ConfigDict(extra="allow")

    campaign_id: str
    campaign_name: str | None = None
    advertiser_id: str | None = None
    campaign_type: str | None = None
    objective_type: str | None = None
    budget_mode: str | None = None
    budget: float | None = None
    operation_status: str | None = None


class AdGroup(BaseModel):
    model_config = ConfigDict(extra="allow")

    adgroup_id: str
    adgroup_name: str | None = None
    campaign_id: str | None = None
    advertiser_id: str | None = None
    placement_type: str | None = None
    billing_event: str | None = None
    bid_type: str | None = None
    bid_price: float | None = None
    budget: float | None = None
    operation_status: str | None = None


class Ad(BaseModel):
    model_config = ConfigDict(extra="allow")

    ad_id: str
    ad_name: str | None = None
    adgroup_id: str | None = None
    campaign_id: str | None = None
    advertiser_id: str | None = None
    ad_format: str | None = None
    ad_text: str | None = None
    operation_status: str | None = None


# ── Connector ────────────────────────────────────────────────────────


class TikTokAdsConnector(RestEntityConnector):
    """
    TikTok Ads integration block — campaign structure and performance reports.

    Needs `TIKTOK_ADS_ACCESS_TOKEN`. `TIKTOK_ADS_ADVERTISER_ID` is used
    whenever a call omits `advertiser_id`.
    """

    def __init__(
        self,
        access_token: str | None = None,
        advertiser_id: str | None = None,
        *,
        settings: ConnectKitSettings | None = None,
    ):
        self._access_token = access_token
        self._advertiser_id = advertiser_id
        super().__init__(settings=settings)

    @property
    def name(self) -> str:
        return "tiktok_ads"

    @property
    def icon(self) -> str:
        return "🎯"

    @property
    def description(self) -> str:
        return "Read TikTok Ads campaigns, ad groups, ads and reports"

    @property
    def advertiser_id(self) -> str:
        return self._advertiser_id or os.environ.get("TIKTOK_ADS_ADVERTISER_ID", "")

    def build_endpoints(self) -> EndpointTable:
        return (
            EndpointTable.builder()
            .add("campaigns", "campaign/get/", root="data.list", required=["advertiser_id"])
            .add("adgroups", "adgroup/get/", root="data.list", required=["advertiser_id"])
            .add("ads", "ad/get/", root="data.list", required=["advertiser_id"])
            .add(
                "advertisers",
                "advertiser/info/",
                root="data.list",
                required=["advertiser_ids"],
                description="Advertiser accounts; advertiser_ids is a JSON array string",
            )
            .add(
                "reports",
                "report/integrated/get/",
                root="data.list",
                required=["advertiser_id", "report_type", "data_level", "dimensions", "start_date", "end_date"],
                description="Integrated reporting rows",
            )
            .build()
        )

    def build_paging(self) -> PagingStrategy:
        return MaxResultsPaging(
            size_param="page_size",
            position_param="page",
            position_style="page",
            max_page_size=1000,
            total_path="data.page_info.total_number",
        )

    def build_decoders(self) -> dict[str, type[BaseModel]]:
        return {"campaigns": Campaign, "adgroups": AdGroup, "ads": Ad}

    def default_filters(self) -> dict[str, str]:
        return {"advertiser_id": self.advertiser_id}

    def create_client(self) -> AsyncRestClient:
        token = self._access_token or os.environ.get("TIKTOK_ADS_ACCESS_TOKEN", "")
        if not token:
            raise ConnectorConfigError(
                "TIKTOK_ADS_ACCESS_TOKEN environment variable is not set", connector_name=self.name
            )
        return AsyncRestClient(
            TIKTOK_ADS_API_URL,
            connector_name=self.name,
            headers={"Access-Token": token},
            settings=self.settings,
        )

    def accept_response(self, document: Any, descriptor: EntityDescriptor) -> bool:
        if isinstance(document, dict) and document.get("code", 0) != 0:
            logger.warning(
                "tiktok_ads_api_error",
                entity=descriptor.name,
                code=document.get("code"),
                message=document.get("message", ""),
                request_id=document.get("request_id"),
            )
            return False
        return True

    # ── Convenience ──────────────────────────────────────────────────

    async def get_campaigns(self, advertiser_id: str | None = None) -> list[Campaign]:
        filters = {"advertiser_id": advertiser_id} if advertiser_id else None
        return await self.get_typed("campaigns", filters)

    async def get_adgroups(self, advertiser_id: str | None = None) -> list[AdGroup]:
        filters = {"advertiser_id": advertiser_id} if advertiser_id else None
        return await self.get_typed("adgroups", filters)

    async def get_ads(self, advertiser_id: str | None = None) -> list[Ad]:
        filters = {"advertiser_id": advertiser_id} if advertiser_id else None
        return await self.get_typed("ads", filters)

    async def get_advertisers(self, advertiser_ids: list[str] | None = None) -> list[Record]:
        ids = advertiser_ids or [self.advertiser_id]
        return await self.get_entity("advertisers", {"advertiser_ids": json.dumps(ids)})

    async def get_report(
        self,
        start_date: str,
        end_date: str,
        *,
        data_level: str = "AUCTION_AD",
        dimensions: list[str] | None = None,
        report_type: str = "BASIC",
        advertiser_id: str | None = None,
    ) -> list[Record]:
        """Daily BASIC report rows per ad between two YYYY-MM-DD dates."""
        filters = {
            "report_type": report_type,
            "data_level": data_level,
            "dimensions": json.dumps(dimensions or ["ad_id", "stat_time_day"]),
            "start_date": start_date,
            "end_date": end_date,
        }
        if advertiser_id:
            filters["advertiser_id"] = advertiser_id
        return await self.get_entity("reports", filters)
