"""Tests for the async listing client against a mocked transport."""
import httpx
import pytest

from shelfshare.async_client import AsyncShelfShareClient
from shelfshare.errors import AuthError, NetworkError

API = "https://shelfshare.test/api"


def listing(books, page=1, total_books=None, total_pages=1):
    return {
        "books": books,
        "currentPage": page,
        "totalBooks": total_books if total_books is not None else len(books),
        "totalPages": total_pages,
    }


def client_for(handler, token="tok"):
    return AsyncShelfShareClient(API, token=token, transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_list_books_unfiltered_sends_paging_and_token():
    seen = {}

    def handler(request):
        seen["path"] = request.url.path
        seen["params"] = dict(request.url.params)
        seen["auth"] = request.headers.get("Authorization")
        return httpx.Response(200, json=listing([{"_id": "1", "title": "A"}], page="2", total_books=5, total_pages=3))

    async with client_for(handler) as api:
        page = await api.list_books(page=2, limit=2)

    assert seen["path"] == "/api/books"
    assert seen["params"] == {"page": "2", "limit": "2"}
    assert seen["auth"] == "Bearer tok"
    assert page.current_page == 2
    assert page.total_pages == 3
    assert page.books[0].id == "1"


@pytest.mark.asyncio
async def test_list_books_by_genre_uses_genre_route():
    paths = []

    def handler(request):
        paths.append(request.url.path)
        return httpx.Response(200, json=listing([]))

    async with client_for(handler) as api:
        await api.list_books(genre="Science Fiction")
        await api.list_books(genre="All")

    assert paths == ["/api/books/genre/Science Fiction", "/api/books"]


@pytest.mark.asyncio
async def test_active_genres():
    def handler(request):
        assert request.url.path == "/api/books/active-genres"
        return httpx.Response(200, json=["Fiction", "Horror"])

    async with client_for(handler) as api:
        assert await api.active_genres() == ["Fiction", "Horror"]


@pytest.mark.asyncio
async def test_401_raises_auth_error():
    def handler(request):
        return httpx.Response(401, json={"message": "Token is not valid"})

    async with client_for(handler) as api:
        with pytest.raises(AuthError) as exc_info:
            await api.list_books()

    assert exc_info.value.message == "Token is not valid"


@pytest.mark.asyncio
async def test_server_error_raises_network_error():
    def handler(request):
        return httpx.Response(500, text="<html>oops</html>")

    async with client_for(handler) as api:
        with pytest.raises(NetworkError) as exc_info:
            await api.active_genres()

    assert exc_info.value.status_code == 500
    assert not isinstance(exc_info.value, AuthError)


@pytest.mark.asyncio
async def test_transport_failure_raises_network_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    async with client_for(handler, token=None) as api:
        with pytest.raises(NetworkError) as exc_info:
            await api.list_books()

    assert exc_info.value.status_code is None


@pytest.mark.asyncio
async def test_undecodable_success_body_raises_network_error():
    """A 200 HTML page (proxy, captive portal) is not an empty listing."""
    def handler(request):
        return httpx.Response(200, text="<html>Sign in to Wi-Fi</html>")

    async with client_for(handler) as api:
        with pytest.raises(NetworkError, match="Malformed response from /books"):
            await api.list_books()
        with pytest.raises(NetworkError):
            await api.active_genres()


@pytest.mark.asyncio
async def test_wrong_json_shape_raises_network_error():
    def handler(request):
        if request.url.path == "/api/books":
            return httpx.Response(200, json=[{"_id": "1"}])
        return httpx.Response(200, json={"genres": ["Fiction"]})

    async with client_for(handler) as api:
        with pytest.raises(NetworkError):
            await api.list_books()
        with pytest.raises(NetworkError):
            await api.active_genres()
