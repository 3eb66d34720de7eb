import httpx
import pytest

from connectkit.config import ConnectKitSettings
from connectkit.connectors.http_client import AsyncRestClient
from connectkit.errors import TransportAuthError, TransportError, TransportRateLimitError


@pytest.fixture
def client(mock_httpx_client):
    return AsyncRestClient(
        "https://api.example.com/v1",
        connector_name="example",
        headers={"Authorization": "Bearer t"},
        settings=ConnectKitSettings(_env_file=None, max_retries=3),
    )


@pytest.mark.asyncio
async def test_base_url_gets_trailing_slash(client):
    assert client.base_url == "https://api.example.com/v1/"


@pytest.mark.asyncio
async def test_get_returns_json(client, mock_httpx_client, make_response):
    mock_httpx_client.request.return_value = make_response(200, {"data": [1]})

    result = await client.get("things", params={"page": "2"})

    assert result == {"data": [1]}
    mock_httpx_client.request.assert_awaited_once_with("GET", "things", params={"page": "2"})


@pytest.mark.asyncio
async def test_post_sends_json_body(client, mock_httpx_client):
    await client.post("things", json={"thing_name": "s1"})
    mock_httpx_client.request.assert_awaited_once_with("POST", "things", json={"thing_name": "s1"})


@pytest.mark.asyncio
async def test_204_returns_none(client, mock_httpx_client, make_response):
    mock_httpx_client.request.return_value = make_response(204)
    assert await client.delete("things/s1") is None


@pytest.mark.asyncio
async def test_rate_limit_is_retried_then_raised(client, mock_httpx_client, make_response):
    mock_httpx_client.request.return_value = make_response(429)

    with pytest.raises(TransportRateLimitError):
        await client.get("things")

    assert mock_httpx_client.request.call_count == 3


@pytest.mark.asyncio
async def test_server_error_recovers_on_retry(client, mock_httpx_client, make_response):
    mock_httpx_client.request.side_effect = [
        make_response(503, text="unavailable"),
        make_response(200, {"ok": True}),
    ]

    assert await client.get("things") == {"ok": True}
    assert mock_httpx_client.request.call_count == 2


@pytest.mark.asyncio
async def test_client_error_is_not_retried(client, mock_httpx_client, make_response):
    mock_httpx_client.request.return_value = make_response(404, text="not found")

    with pytest.raises(TransportError) as exc_info:
        await client.get("things/missing")

    assert exc_info.value.status_code == 404
    assert mock_httpx_client.request.call_count == 1


@pytest.mark.asyncio
async def test_auth_error_is_not_retried(client, mock_httpx_client, make_response):
    mock_httpx_client.request.return_value = make_response(401)

    with pytest.raises(TransportAuthError):
        await client.get("things")

    assert mock_httpx_client.request.call_count == 1


@pytest.mark.asyncio
async def test_connection_error_is_wrapped(client, mock_httpx_client):
    mock_httpx_client.request.side_effect = httpx.ConnectError("refused")

    with pytest.raises(TransportError) as exc_info:
        await client.get("things")

    assert exc_info.value.status_code is None
    assert mock_httpx_client.request.call_count == 3


@pytest.mark.asyncio
async def test_invalid_json_raises(client, mock_httpx_client, make_response):
    response = make_response(200)
    response.json.side_effect = ValueError("no json")
    mock_httpx_client.request.return_value = response

    with pytest.raises(TransportError):
        await client.get("things")


@pytest.mark.asyncio
async def test_close(client, mock_httpx_client):
    await client.close()
    mock_httpx_client.aclose.assert_awaited_once()
