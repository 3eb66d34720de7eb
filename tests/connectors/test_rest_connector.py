import pytest
from pydantic import BaseModel

from connectkit.config import ConnectKitSettings
from connectkit.connectors.http_client import AsyncRestClient
from connectkit.connectors.rest_connector import RestEntityConnector
from connectkit.errors import (
    ExtractionMismatchError,
    MissingFilterError,
    TransportError,
    UnknownEntityError,
)
from connectkit.models import FilterCriterion
from connectkit.resolver import EndpointTable, OffsetLimitPaging


class Widget(BaseModel):
    id: int
    name: str = ""


class WidgetConnector(RestEntityConnector):
    name = "widgets"
    icon = "🧩"
    description = "Widget test API"

    def build_endpoints(self):
        return (
            EndpointTable.builder()
            .add("widgets", "widgets", root="data")
            .add("widget", "widgets/{widget_id}", root="data")
            .add("parts", "widgets/{widget_id}/parts", root="data.items", required=["region"])
            .build()
        )

    def build_paging(self):
        return OffsetLimitPaging()

    def build_decoders(self):
        return {"widgets": Widget}

    def create_client(self):
        return AsyncRestClient("https://widgets.example.com/", connector_name=self.name, settings=self.settings)


def make_connector(**settings):
    return WidgetConnector(settings=ConnectKitSettings(_env_file=None, **settings))


class TestPrepare:
    def test_unknown_entity(self):
        with pytest.raises(UnknownEntityError):
            make_connector().prepare("gadgets")

    def test_missing_filter_is_raised_before_io(self):
        connector = make_connector()
        with pytest.raises(MissingFilterError) as exc_info:
            connector.prepare("parts", {"widget_id": "7"})
        assert exc_info.value.missing == ["region"]
        assert connector._client is None

    def test_placeholder_keys_are_not_sent_as_params(self):
        prepared = make_connector().prepare(
            "parts",
            [FilterCriterion(field_name="widget_id", value=7), FilterCriterion(field_name="region", value="eu")],
        )
        assert prepared.endpoint == "widgets/7/parts"
        assert prepared.params == {"region": "eu"}

    def test_list_entities(self):
        names = [e.name for e in make_connector().list_entities()]
        assert names == ["widgets", "widget", "parts"]

    def test_get_info_lists_entities(self):
        info = make_connector().get_info()
        assert info.name == "widgets"
        assert info.entities == ["widgets", "widget", "parts"]


class TestReads:
    @pytest.mark.asyncio
    async def test_get_entity(self, mock_httpx_client, make_response):
        mock_httpx_client.request.return_value = make_response(200, {"data": [{"id": 1}, {"id": 2}]})

        records = await make_connector().get_entity("widgets", {"color": "red"})

        assert records == [{"id": 1}, {"id": 2}]
        mock_httpx_client.request.assert_awaited_once_with("GET", "widgets", params={"color": "red"})

    @pytest.mark.asyncio
    async def test_missing_root_is_empty(self, mock_httpx_client, make_response):
        mock_httpx_client.request.return_value = make_response(200, {"error": "nope"})
        assert await make_connector().get_entity("widgets") == []

    @pytest.mark.asyncio
    async def test_strict_extraction_raises(self, mock_httpx_client, make_response):
        mock_httpx_client.request.return_value = make_response(200, {"error": "nope"})
        with pytest.raises(ExtractionMismatchError):
            await make_connector(strict_extraction=True).get_entity("widgets")

    @pytest.mark.asyncio
    async def test_transport_error_raises_by_default(self, mock_httpx_client, make_response):
        mock_httpx_client.request.return_value = make_response(500, text="boom")
        with pytest.raises(TransportError):
            await make_connector(max_retries=1).get_entity("widgets")

    @pytest.mark.asyncio
    async def test_transport_error_empty_policy(self, mock_httpx_client, make_response):
        mock_httpx_client.request.return_value = make_response(500, text="boom")
        connector = make_connector(max_retries=1, transport_error_policy="empty")
        assert await connector.get_entity("widgets") == []

    @pytest.mark.asyncio
    async def test_get_entity_page(self, mock_httpx_client, make_response):
        mock_httpx_client.request.return_value = make_response(200, {"data": [{"id": i} for i in range(10)]})

        page = await make_connector().get_entity_page("widgets", page_number=3, page_size=10)

        assert page.page_number == 3
        assert page.has_next_page is True
        assert page.has_previous_page is True
        mock_httpx_client.request.assert_awaited_once_with(
            "GET", "widgets", params={"limit": "10", "offset": "20"}
        )

    @pytest.mark.asyncio
    async def test_get_entity_page_default_size(self, mock_httpx_client, make_response):
        mock_httpx_client.request.return_value = make_response(200, {"data": []})
        page = await make_connector(default_page_size=25).get_entity_page("widgets")
        assert page.page_size == 25
        assert page.has_next_page is False

    @pytest.mark.asyncio
    async def test_get_entity_page_empty_policy(self, mock_httpx_client, make_response):
        mock_httpx_client.request.return_value = make_response(502)
        connector = make_connector(max_retries=1, transport_error_policy="empty")
        page = await connector.get_entity_page("widgets", page_number=2, page_size=5)
        assert page.data == []
        assert page.page_number == 2

    @pytest.mark.asyncio
    async def test_iter_entity_pages(self, mock_httpx_client, make_response):
        mock_httpx_client.request.side_effect = [
            make_response(200, {"data": [{"id": 1}, {"id": 2}]}),
            make_response(200, {"data": [{"id": 3}]}),
        ]
        pages = [p async for p in make_connector().iter_entity_pages("widgets", page_size=2)]
        assert [p.count for p in pages] == [2, 1]

    @pytest.mark.asyncio
    async def test_get_typed_uses_decoder(self, mock_httpx_client, make_response):
        mock_httpx_client.request.return_value = make_response(200, {"data": [{"id": 1, "name": "bolt"}]})
        widgets = await make_connector().get_typed("widgets")
        assert widgets == [Widget(id=1, name="bolt")]

    @pytest.mark.asyncio
    async def test_get_typed_without_decoder_returns_records(self, mock_httpx_client, make_response):
        mock_httpx_client.request.return_value = make_response(200, {"data": {"id": 9}})
        assert await make_connector().get_typed("widget", {"widget_id": 9}) == [{"id": 9}]


class TestWrites:
    @pytest.mark.asyncio
    async def test_create_entity(self, mock_httpx_client, make_response):
        mock_httpx_client.request.return_value = make_response(201, {"data": {"id": 5}})

        records = await make_connector().create_entity("widgets", Widget(id=5, name="nut"))

        assert records == [{"id": 5}]
        mock_httpx_client.request.assert_awaited_once_with("POST", "widgets", json={"id": 5, "name": "nut"})

    @pytest.mark.asyncio
    async def test_update_entity_patch(self, mock_httpx_client, make_response):
        mock_httpx_client.request.return_value = make_response(200, {"id": 5, "name": "washer"})

        records = await make_connector().update_entity("widget", {"name": "washer"}, {"widget_id": 5}, method="PATCH")

        assert records == [{"id": 5, "name": "washer"}]
        mock_httpx_client.request.assert_awaited_once_with("PATCH", "widgets/5", json={"name": "washer"})

    @pytest.mark.asyncio
    async def test_delete_entity(self, mock_httpx_client, make_response):
        mock_httpx_client.request.return_value = make_response(204)
        assert await make_connector().delete_entity("widget", {"widget_id": 5}) is True
        mock_httpx_client.request.assert_awaited_once_with("DELETE", "widgets/5")

    @pytest.mark.asyncio
    async def test_delete_entity_empty_policy(self, mock_httpx_client, make_response):
        mock_httpx_client.request.return_value = make_response(404)
        connector = make_connector(transport_error_policy="empty")
        assert await connector.delete_entity("widget", {"widget_id": 5}) is False


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_teardown_closes_client(self, mock_httpx_client):
        connector = make_connector()
        await connector.setup()
        await connector.teardown()
        mock_httpx_client.aclose.assert_awaited_once()
        assert connector._client is None

    @pytest.mark.asyncio
    async def test_health_check_without_entity(self, mock_httpx_client):
        assert await make_connector().health_check() is True

    @pytest.mark.asyncio
    async def test_health_check_fetches_health_entity(self, mock_httpx_client, make_response):
        connector = make_connector()
        connector.health_entity = "widgets"
        mock_httpx_client.request.return_value = make_response(200, {"data": []})
        assert await connector.health_check() is True
        mock_httpx_client.request.assert_awaited_once_with("GET", "widgets")

    @pytest.mark.asyncio
    async def test_health_check_fails_under_empty_policy(self, mock_httpx_client, make_response):
        connector = make_connector(max_retries=1, transport_error_policy="empty")
        connector.health_entity = "widgets"
        mock_httpx_client.request.return_value = make_response(503)
        assert await connector.health_check() is False


class TestIterPages:
    @pytest.mark.asyncio
    async def test_transport_error_raises_by_default(self, mock_httpx_client, make_response):
        mock_httpx_client.request.return_value = make_response(500, text="boom")
        connector = make_connector(max_retries=1)
        with pytest.raises(TransportError):
            _ = [p async for p in connector.iter_entity_pages("widgets", page_size=2)]

    @pytest.mark.asyncio
    async def test_empty_policy_stops_iteration(self, mock_httpx_client, make_response):
        mock_httpx_client.request.return_value = make_response(500, text="boom")
        connector = make_connector(max_retries=1, transport_error_policy="empty")
        pages = [p async for p in connector.iter_entity_pages("widgets", page_size=2)]
        assert pages == []

    @pytest.mark.asyncio
    async def test_empty_policy_keeps_pages_already_fetched(self, mock_httpx_client, make_response):
        mock_httpx_client.request.side_effect = [
            make_response(200, {"data": [{"id": 1}, {"id": 2}]}),
            make_response(500, text="boom"),
        ]
        connector = make_connector(max_retries=1, transport_error_policy="empty")
        pages = [p async for p in connector.iter_entity_pages("widgets", page_size=2)]
        assert [p.data for p in pages] == [[{"id": 1}, {"id": 2}]]
