"""API tests over the ASGI app with in-memory upstreams."""

import pytest
from httpx import ASGITransport, AsyncClient

from pulse.errors import FetchError
from pulse.main import create_app
from pulse.settings import Settings
from tests.helpers import FakeFetcher, make_post, social_responses


@pytest.fixture
def numbers_upstream() -> FakeFetcher:
    return FakeFetcher({"primes": [2, 3, 5], "even": [2, 4, 6]})


@pytest.fixture
def social_upstream() -> FakeFetcher:
    return FakeFetcher(
        social_responses(
            users={"1": "John", "2": "Jane"},
            posts={
                "1": [make_post(10, 1), make_post(11, 1)],
                "2": [make_post(20, 2)],
            },
            comment_counts={10: 4, 11: 1, 20: 4},
        )
    )


@pytest.fixture
async def client(numbers_upstream, social_upstream, clock):
    """Create test client."""
    app = create_app(
        Settings(window_size=5, cache_ttl_seconds=60),
        numbers_fetcher=numbers_upstream,
        social_fetcher=social_upstream,
        clock=clock,
    )
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest.mark.asyncio
async def test_health_check(client: AsyncClient):
    """Test health endpoint returns ok."""
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"ok": True}


@pytest.mark.asyncio
async def test_numbers_endpoint(client: AsyncClient, numbers_upstream: FakeFetcher):
    response = await client.get("/numbers/p")
    assert response.status_code == 200
    assert response.json() == {
        "windowPrevState": [],
        "windowCurrState": [2, 3, 5],
        "numbers": [2, 3, 5],
        "avg": 3.33,
    }

    numbers_upstream.responses["primes"] = [3, 7]
    data = (await client.get("/numbers/p")).json()
    assert data["windowPrevState"] == [2, 3, 5]
    assert data["windowCurrState"] == [2, 3, 5, 7]
    assert data["avg"] == 4.25


@pytest.mark.asyncio
async def test_numbers_endpoint_survives_upstream_failure(client: AsyncClient, numbers_upstream: FakeFetcher):
    numbers_upstream.responses["even"] = FetchError("even", "HTTP 500")
    response = await client.get("/numbers/e")
    assert response.status_code == 200
    assert response.json()["numbers"] == []
    assert response.json()["avg"] == 0


@pytest.mark.asyncio
async def test_numbers_endpoint_rejects_unknown_category(client: AsyncClient, numbers_upstream: FakeFetcher):
    response = await client.get("/numbers/z")
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "INVALID_CATEGORY"
    assert numbers_upstream.calls == []


@pytest.mark.asyncio
async def test_top_users_endpoint(client: AsyncClient):
    response = await client.get("/users")
    assert response.status_code == 200
    data = response.json()
    assert data["cacheKey"] == "topUsers"
    assert "expiresAt" in data
    assert data["items"] == [
        {"userId": "1", "userName": "John", "postCount": 2},
        {"userId": "2", "userName": "Jane", "postCount": 1},
    ]


@pytest.mark.asyncio
async def test_popular_posts_endpoint(client: AsyncClient):
    response = await client.get("/posts", params={"type": "popular"})
    assert response.status_code == 200
    items = response.json()["items"]
    assert [p["id"] for p in items] == [10, 20]
    assert items[0] == {"id": 10, "userid": 1, "content": "post 10", "commentCount": 4}


@pytest.mark.asyncio
async def test_latest_posts_endpoint(client: AsyncClient):
    response = await client.get("/posts", params={"type": "latest"})
    assert response.status_code == 200
    items = response.json()["items"]
    assert [p["id"] for p in items] == [20, 11, 10]
    assert "commentCount" not in items[0]


@pytest.mark.asyncio
@pytest.mark.parametrize("params", [{}, {"type": "oldest"}])
async def test_posts_endpoint_rejects_bad_type(client: AsyncClient, social_upstream: FakeFetcher, params):
    response = await client.get("/posts", params=params)
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "INVALID_QUERY_TYPE"
    assert social_upstream.calls == []


@pytest.mark.asyncio
async def test_upstream_failure_is_server_error(client: AsyncClient, social_upstream: FakeFetcher):
    social_upstream.responses["users/2/posts"] = FetchError("users/2/posts", "timed out")
    response = await client.get("/users")
    assert response.status_code == 502
    error = response.json()["error"]
    assert error["code"] == "DATA_SOURCE_ERROR"
    assert error["detail"] == {"resource_id": "users/2/posts"}


@pytest.mark.asyncio
async def test_rankings_are_cached(client: AsyncClient, social_upstream: FakeFetcher, clock):
    await client.get("/users")
    calls = len(social_upstream.calls)

    await client.get("/users")
    assert len(social_upstream.calls) == calls

    clock.advance(61)
    await client.get("/users")
    assert len(social_upstream.calls) > calls


@pytest.mark.asyncio
async def test_latest_posts_keep_null_upstream_fields(client: AsyncClient, social_upstream: FakeFetcher):
    social_upstream.responses["users/2/posts"] = [
        {"id": 30, "userid": None, "content": "anon", "tags": None},
    ]
    response = await client.get("/posts", params={"type": "latest"})
    assert response.status_code == 200
    newest = response.json()["items"][0]
    assert newest == {"id": 30, "userid": None, "content": "anon", "tags": None}


@pytest.mark.asyncio
async def test_default_fetchers_share_one_http_client():
    app = create_app(Settings(window_size=5, cache_ttl_seconds=60))
    shared = app.state.http_client
    assert shared is not None
    assert app.state.number_aggregator.fetcher._http_client is shared
    assert app.state.rank_engine.fetcher._http_client is shared

    async with app.router.lifespan_context(app):
        pass
    assert shared.is_closed


def test_injected_fetchers_need_no_http_client(numbers_upstream, social_upstream):
    app = create_app(
        Settings(window_size=5, cache_ttl_seconds=60),
        numbers_fetcher=numbers_upstream,
        social_fetcher=social_upstream,
    )
    assert app.state.http_client is None
