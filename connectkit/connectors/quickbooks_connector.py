"""
QuickBooksConnector — Async-only QuickBooks Online integration block.

Every QuickBooks read answers with a `QueryResponse` envelope holding one
array per entity type (`{"QueryResponse": {"Customer": [...], "maxResults": 2}}`).
The connector flattens those arrays into plain records. Paging uses
`maxresults` + 1-based `startposition`.

Usage:
    from connectkit.connectors import get_connector_registry
    qbo = get_connector_registry().get("quickbooks")
    page = await qbo.get_entity_page("invoices", page_number=2, page_size=100)
"""

from __future__ import annotations

import os
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from connectkit.config import ConnectKitSettings
from connectkit.connectors.http_client import AsyncRestClient
from connectkit.connectors.rest_connector import RestEntityConnector
from connectkit.errors import ConnectorConfigError
from connectkit.models import EntityDescriptor, Record
from connectkit.resolver import EndpointTable, MaxResultsPaging, PagingStrategy, normalize

QUICKBOOKS_API_URL = "https://quickbooks.api.intuit.com"

QUERY_ENTITIES = (
    "customers",
    "invoices",
    "bills",
    "accounts",
    "items",
    "employees",
    "vendors",
    "payments",
    "estimates",
    "purchaseorders",
    "taxcodes",
)


# ── Models ───────────────────────────────────────────────────────────


class QuickBooksEntity(BaseModel):
    """QuickBooks uses PascalCase keys; models accept either spelling."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str | None = Field(default=None, alias="Id")
    sync_token: str | None = Field(default=None, alias="SyncToken")
    meta_data: dict[str, Any] | None = Field(default=None, alias="MetaData")


class Customer(QuickBooksEntity):
    display_name: str | None = Field(default=None, alias="DisplayName")
    company_name: str | None = Field(default=None, alias="CompanyName")
    given_name: str | None = Field(default=None, alias="GivenName")
    family_name: str | None = Field(default=None, alias="FamilyName")
    active: bool | None = Field(default=None, alias="Active")
    balance: float | None = Field(default=None, alias="Balance")


class Invoice(QuickBooksEntity):
    doc_number: str | None = Field(default=None, alias="DocNumber")
    txn_date: str | None = Field(default=None, alias="TxnDate")
    due_date: str | None = Field(default=None, alias="DueDate")
    total_amt: float | None = Field(default=None, alias="TotalAmt")
    balance: float | None = Field(default=None, alias="Balance")
    customer_ref: dict[str, Any] | None = Field(default=None, alias="CustomerRef")


class Bill(QuickBooksEntity):
    txn_date: str | None = Field(default=None, alias="TxnDate")
    due_date: str | None = Field(default=None, alias="DueDate")
    total_amt: float | None = Field(default=None, alias="TotalAmt")
    balance: float | None = Field(default=None, alias="Balance")
    vendor_ref: dict[str, Any] | None = Field(default=None, alias="VendorRef")


class Account(QuickBooksEntity):
    name: str | None = Field(default=None, alias="Name")
    account_type: str | None = Field(default=None, alias="AccountType")
    classification: str | None = Field(default=None, alias="Classification")
    current_balance: float | None = Field(default=None, alias="CurrentBalance")
    active: bool | None = Field(default=None, alias="Active")


class Item(QuickBooksEntity):
    name: str | None = Field(default=None, alias="Name")
    type: str | None = Field(default=None, alias="Type")
    unit_price: float | None = Field(default=None, alias="UnitPrice")
    qty_on_hand: float | None = Field(default=None, alias="QtyOnHand")
    active: bool | None = Field(default=None, alias="Active")


class Employee(QuickBooksEntity):
    display_name: str | None = Field(default=None, alias="DisplayName")
    given_name: str | None = Field(default=None, alias="GivenName")
    family_name: str | None = Field(default=None, alias="FamilyName")
    active: bool | None = Field(default=None, alias="Active")


class Vendor(QuickBooksEntity):
    display_name: str | None = Field(default=None, alias="DisplayName")
    company_name: str | None = Field(default=None, alias="CompanyName")
    balance: float | None = Field(default=None, alias="Balance")
    active: bool | None = Field(default=None, alias="Active")


class CompanyInfo(QuickBooksEntity):
    company_name: str | None = Field(default=None, alias="CompanyName")
    legal_name: str | None = Field(default=None, alias="LegalName")
    country: str | None = Field(default=None, alias="Country")


class TaxCode(QuickBooksEntity):
    name: str | None = Field(default=None, alias="Name")
    description: str | None = Field(default=None, alias="Description")
    taxable: bool | None = Field(default=None, alias="Taxable")
    active: bool | None = Field(default=None, alias="Active")


# ── Connector ────────────────────────────────────────────────────────


class QuickBooksConnector(RestEntityConnector):
    """
    QuickBooks Online integration block — customers, invoices, bills and ledgers.

    Needs `QUICKBOOKS_ACCESS_TOKEN` (OAuth2 bearer) and `QUICKBOOKS_REALM_ID`.
    `QUICKBOOKS_API_URL` switches to the sandbox host.
    """

    health_entity = "companyinfo"

    def __init__(
        self,
        access_token: str | None = None,
        realm_id: str | None = None,
        *,
        api_url: str | None = None,
        settings: ConnectKitSettings | None = None,
    ):
        self._access_token = access_token
        self._realm_id = realm_id
        self._api_url = api_url
        super().__init__(settings=settings)

    @property
    def name(self) -> str:
        return "quickbooks"

    @property
    def icon(self) -> str:
        return "📒"

    @property
    def description(self) -> str:
        return "Read QuickBooks Online customers, invoices, bills and accounts"

    def build_endpoints(self) -> EndpointTable:
        builder = EndpointTable.builder()
        for entity in QUERY_ENTITIES:
            builder.add(entity, entity, root="QueryResponse")
            builder.alias(f"{entity}.query", entity)
        builder.add("companyinfo", "companyinfo", root="QueryResponse", description="Company profile")
        return builder.build()

    def build_paging(self) -> PagingStrategy:
        return MaxResultsPaging(
            size_param="maxresults",
            position_param="startposition",
            position_style="start",
            max_page_size=1000,
        )

    def build_decoders(self) -> dict[str, type[BaseModel]]:
        decoders: dict[str, type[BaseModel]] = {
            "customers": Customer,
            "invoices": Invoice,
            "bills": Bill,
            "accounts": Account,
            "items": Item,
            "employees": Employee,
            "vendors": Vendor,
            "taxcodes": TaxCode,
        }
        decoders.update({f"{name}.query": model for name, model in list(decoders.items())})
        decoders["companyinfo"] = CompanyInfo
        return decoders

    def create_client(self) -> AsyncRestClient:
        token = self._access_token or os.environ.get("QUICKBOOKS_ACCESS_TOKEN", "")
        realm_id = self._realm_id or os.environ.get("QUICKBOOKS_REALM_ID", "")
        if not token:
            raise ConnectorConfigError(
                "QUICKBOOKS_ACCESS_TOKEN environment variable is not set", connector_name=self.name
            )
        if not realm_id:
            raise ConnectorConfigError(
                "QUICKBOOKS_REALM_ID environment variable is not set", connector_name=self.name
            )
        api_url = self._api_url or os.environ.get("QUICKBOOKS_API_URL", QUICKBOOKS_API_URL)
        return AsyncRestClient(
            f"{api_url.rstrip('/')}/v3/company/{realm_id}/",
            connector_name=self.name,
            headers={"Authorization": f"Bearer {token}"},
            settings=self.settings,
        )

    def extract_records(self, document: Any, descriptor: EntityDescriptor) -> list[Record]:
        """Flatten the per-type arrays inside `QueryResponse`; scalar metadata is dropped."""
        records: list[Record] = []
        for envelope in super().extract_records(document, descriptor):
            for value in envelope.values():
                if isinstance(value, (list, dict)):
                    records.extend(normalize(value))
        return records
