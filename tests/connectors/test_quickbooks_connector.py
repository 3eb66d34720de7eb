import pytest

from connectkit.config import ConnectKitSettings
from connectkit.connectors.quickbooks_connector import Customer, QuickBooksConnector
from connectkit.errors import ConnectorConfigError


@pytest.fixture
def qbo():
    return QuickBooksConnector("token", "9130", settings=ConnectKitSettings(_env_file=None))


def test_query_aliases(qbo):
    assert qbo.get_descriptor("customers.query").endpoint == "customers"


def test_realm_is_required(monkeypatch):
    monkeypatch.delenv("QUICKBOOKS_REALM_ID", raising=False)
    connector = QuickBooksConnector(access_token="t", settings=ConnectKitSettings(_env_file=None))
    with pytest.raises(ConnectorConfigError):
        _ = connector.client


def test_base_url_contains_realm(qbo, mock_httpx_client):
    assert qbo.client.base_url == "https://quickbooks.api.intuit.com/v3/company/9130/"


@pytest.mark.asyncio
async def test_query_response_is_flattened(qbo, mock_httpx_client, make_response):
    mock_httpx_client.request.return_value = make_response(200, {
        "QueryResponse": {
            "Customer": [{"Id": "1", "DisplayName": "Amy"}, {"Id": "2", "DisplayName": "Bill"}],
            "startPosition": 1,
            "maxResults": 2,
        },
        "time": "2024-01-01T00:00:00Z",
    })

    customers = await qbo.get_typed("customers")

    assert customers == [Customer(Id="1", DisplayName="Amy"), Customer(Id="2", DisplayName="Bill")]
    assert customers[0].display_name == "Amy"


@pytest.mark.asyncio
async def test_missing_query_response_is_empty(qbo, mock_httpx_client, make_response):
    mock_httpx_client.request.return_value = make_response(200, {"Fault": {"Error": []}})
    assert await qbo.get_entity("invoices") == []


@pytest.mark.asyncio
async def test_start_position_paging(qbo, mock_httpx_client, make_response):
    mock_httpx_client.request.return_value = make_response(
        200, {"QueryResponse": {"Invoice": [{"Id": str(i)} for i in range(100)]}}
    )

    page = await qbo.get_entity_page("invoices", page_number=3, page_size=100)

    assert page.count == 100
    assert page.has_next_page is True
    mock_httpx_client.request.assert_awaited_once_with(
        "GET", "invoices", params={"maxresults": "100", "startposition": "201"}
    )


@pytest.mark.asyncio
async def test_page_size_capped_at_1000(qbo, mock_httpx_client, make_response):
    mock_httpx_client.request.return_value = make_response(200, {"QueryResponse": {}})
    page = await qbo.get_entity_page("items", page_size=5000)
    assert page.page_size == 1000
    assert page.data == []
