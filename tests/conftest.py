import httpx
import pytest
from unittest.mock import AsyncMock, MagicMock
from opentelemetry import trace
from tenacity import wait_none


@pytest.fixture(autouse=True)
def disable_tracing():
    """Disable OpenTelemetry tracer console exports to prevent Pytest stdout closed exceptions."""
    # Set a dummy provider so background spans do not log to pytest stdout on exit
    from opentelemetry.sdk.trace import TracerProvider
    trace.set_tracer_provider(TracerProvider())
    yield


@pytest.fixture(autouse=True)
def reset_settings(monkeypatch):
    """Each test starts from default settings and a fresh connector registry."""
    from connectkit.config import get_settings
    from connectkit.connectors import registry as registry_module

    get_settings.cache_clear()
    registry_module._registry = None
    yield
    get_settings.cache_clear()
    registry_module._registry = None


@pytest.fixture
def fast_retries(monkeypatch):
    """No backoff between tenacity attempts."""
    from connectkit.connectors.http_client import AsyncRestClient

    monkeypatch.setattr(AsyncRestClient, "retry_wait", wait_none())


@pytest.fixture
def make_response():
    """Factory for mocked httpx responses."""

    def _make(status_code: int = 200, payload=None, text: str = ""):
        response = MagicMock()
        response.status_code = status_code
        response.json.return_value = payload if payload is not None else {}
        response.text = text
        response.http_version = "HTTP/2"
        return response

    return _make


@pytest.fixture
def mock_httpx_client(monkeypatch, make_response, fast_retries):
    """Mocks the httpx.AsyncClient to prevent actual network calls."""
    mock_client_instance = AsyncMock(spec=httpx.AsyncClient)
    # By default, a 200 OK response
    mock_client_instance.request.return_value = make_response(200, {})

    # Needs aclose method for teardown
    mock_client_instance.aclose = AsyncMock()

    monkeypatch.setattr("httpx.AsyncClient", lambda **kwargs: mock_client_instance)
    return mock_client_instance
