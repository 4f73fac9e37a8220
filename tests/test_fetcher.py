import httpx
import pytest

from pulse.errors import FetchError
from pulse.services.fetcher import HttpFetcher


def _fetcher(handler, token: str = "secret-token") -> HttpFetcher:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return HttpFetcher(base_url="http://upstream.test/api/", auth_token=token, timeout=0.5, client=client)


@pytest.mark.asyncio
async def test_fetch_sends_bearer_credential_and_extracts_items():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"numbers": [2, 3, 5, 7]})

    items = await _fetcher(handler).fetch("primes", "numbers")

    assert items == [2, 3, 5, 7]
    assert str(seen[0].url) == "http://upstream.test/api/primes"
    assert seen[0].headers["Authorization"] == "Bearer secret-token"


@pytest.mark.asyncio
async def test_fetch_omits_authorization_without_token():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"posts": []})

    assert await _fetcher(handler, token="").fetch("users/1/posts", "posts") == []
    assert "Authorization" not in seen[0].headers


@pytest.mark.asyncio
async def test_mapping_payload_becomes_ordered_pairs():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"users": {"3": "Alice", "1": "John", "2": "Jane"}})

    items = await _fetcher(handler).fetch("users", "users")
    assert items == [("3", "Alice"), ("1", "John"), ("2", "Jane")]


@pytest.mark.asyncio
async def test_http_error_status_raises_fetch_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, json={"message": "unavailable"})

    with pytest.raises(FetchError) as exc_info:
        await _fetcher(handler).fetch("rand", "numbers")
    assert exc_info.value.resource_id == "rand"
    assert "503" in str(exc_info.value)


@pytest.mark.asyncio
async def test_timeout_raises_fetch_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("too slow", request=request)

    with pytest.raises(FetchError) as exc_info:
        await _fetcher(handler).fetch("fibo", "numbers")
    assert "timed out" in str(exc_info.value)


@pytest.mark.asyncio
async def test_connection_error_raises_fetch_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(FetchError):
        await _fetcher(handler).fetch("even", "numbers")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(200, text="not json"),
        httpx.Response(200, json={"other": []}),
        httpx.Response(200, json=[1, 2, 3]),
        httpx.Response(200, json={"numbers": "1,2,3"}),
    ],
)
async def test_malformed_payload_raises_fetch_error(response):
    with pytest.raises(FetchError):
        await _fetcher(lambda request: response).fetch("primes", "numbers")


@pytest.mark.asyncio
async def test_null_collection_is_empty():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"comments": None})

    assert await _fetcher(handler).fetch("posts/1/comments", "comments") == []


@pytest.mark.asyncio
async def test_close_leaves_injected_client_open():
    client = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200, json={"numbers": []})))
    fetcher = HttpFetcher(base_url="http://upstream.test", client=client)
    await fetcher.close()
    assert not client.is_closed
    await client.aclose()
