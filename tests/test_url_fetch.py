import httpx
import pytest

from copilot_context.core.errors import AuthError, FetchTimeoutError, NetworkError, NotFoundError
from copilot_context.fetchers import url

URL = "https://example.com/README.md"


def _client(handler) -> httpx.Client:
    return httpx.Client(transport=httpx.MockTransport(handler))


def test_success_returns_body_as_single_file():
    def handler(request: httpx.Request):
        assert request.method == "GET"
        assert str(request.url) == URL
        return httpx.Response(200, content=b"# Title\n")

    with _client(handler) as client:
        files = url.fetch(URL, client=client)
    assert len(files) == 1
    assert files[0].rel_path == ""
    assert files[0].read() == b"# Title\n"


def test_404_is_not_found():
    with _client(lambda request: httpx.Response(404)) as client:
        with pytest.raises(NotFoundError) as excinfo:
            url.fetch(URL, client=client)
    assert excinfo.value.status_code == 404


def test_403_is_auth_failure():
    with _client(lambda request: httpx.Response(403)) as client:
        with pytest.raises(AuthError):
            url.fetch(URL, client=client)


def test_other_error_status_is_network_failure_with_code():
    with _client(lambda request: httpx.Response(503)) as client:
        with pytest.raises(NetworkError) as excinfo:
            url.fetch(URL, client=client)
    assert excinfo.value.status_code == 503
    assert "503" in str(excinfo.value)


def test_connection_error_is_network_failure():
    def handler(request: httpx.Request):
        raise httpx.ConnectError("refused", request=request)

    with _client(handler) as client:
        with pytest.raises(NetworkError):
            url.fetch(URL, client=client)


def test_timeout_is_reported_as_timeout():
    def handler(request: httpx.Request):
        raise httpx.ReadTimeout("slow", request=request)

    with _client(handler) as client:
        with pytest.raises(FetchTimeoutError):
            url.fetch(URL, client=client, timeout=1)
