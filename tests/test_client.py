"""Tests for the sync account/CRUD client."""
import base64

import pytest
import requests

from shelfshare.client import ShelfShareClient, image_data_url
from shelfshare.errors import AuthError, NetworkError, ValidationError

API = "https://shelfshare.test/api"


class FakeResponse:
    def __init__(self, status_code, body=None):
        self.status_code = status_code
        self._body = body

    @property
    def ok(self):
        return 200 <= self.status_code < 300

    def json(self):
        if self._body is None:
            raise ValueError("no json")
        return self._body


class FakeSession:
    """Records requests and replays canned responses."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests = []
        self.closed = False

    def request(self, method, url, json=None, headers=None, timeout=None):
        self.requests.append({"method": method, "url": url, "json": json, "headers": headers})
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    def close(self):
        self.closed = True


USER = {"_id": "u1", "username": "reader", "email": "r@example.com", "createdAt": "2025-05-01T00:00:00Z"}


def test_login_returns_token_and_user_without_auth_header():
    session = FakeSession(FakeResponse(200, {"token": "t1", "user": USER}))
    client = ShelfShareClient(API, token="old", session=session)

    token, user = client.login("r@example.com", "secret1")

    assert token == "t1"
    assert user.username == "reader"
    assert session.requests[0]["url"] == f"{API}/auth/login"
    assert session.requests[0]["headers"] == {}


@pytest.mark.parametrize("username, password", [("ab", "secret1"), ("reader", "12345")])
def test_register_validates_before_sending(username, password):
    session = FakeSession()
    client = ShelfShareClient(API, session=session)

    with pytest.raises(ValidationError):
        client.register(username, "r@example.com", password)

    assert session.requests == []


def test_create_book_normalizes_genre():
    created = {"_id": "b9", "title": "Dune", "caption": "Spice", "image": "https://img/x.jpg",
               "rating": 5, "genre": "Science Fiction", "user": "u1"}
    session = FakeSession(FakeResponse(201, created))
    client = ShelfShareClient(API, token="t1", session=session)

    book = client.create_book("Dune", "Spice", "data:image/jpg;base64,AAAA", 5, " sci-fi ")

    sent = session.requests[0]
    assert sent["method"] == "POST"
    assert sent["json"]["genre"] == "Science Fiction"
    assert sent["headers"] == {"Authorization": "Bearer t1"}
    assert book.id == "b9"


@pytest.mark.parametrize("rating", [0, 6, "5", True])
def test_create_book_rejects_bad_rating(rating):
    client = ShelfShareClient(API, token="t1", session=FakeSession())

    with pytest.raises(ValidationError):
        client.create_book("Dune", "Spice", "data:...", rating, "Fiction")


def test_delete_book_not_owner_raises_auth_error():
    session = FakeSession(FakeResponse(401, {"message": "Not authorized"}))
    client = ShelfShareClient(API, token="t1", session=session)

    with pytest.raises(AuthError, match="Not authorized"):
        client.delete_book("b1")

    assert session.requests[0]["url"] == f"{API}/books/b1"


def test_timeout_becomes_network_error():
    client = ShelfShareClient(API, token="t1", session=FakeSession(requests.exceptions.Timeout()))

    with pytest.raises(NetworkError):
        client.user_books()


def test_user_books():
    session = FakeSession(FakeResponse(200, [{"_id": "b1", "title": "A"}, {"_id": "b2", "title": "B"}]))

    with ShelfShareClient(API, token="t1", session=session) as client:
        books = client.user_books()

    assert [b.id for b in books] == ["b1", "b2"]
    assert session.closed


def test_image_data_url(tmp_path):
    image = tmp_path / "cover.PNG"
    image.write_bytes(b"\x89PNG")

    url = image_data_url(str(image))

    assert url == "data:image/png;base64," + base64.b64encode(b"\x89PNG").decode()


def test_undecodable_success_body_raises_network_error():
    session = FakeSession(FakeResponse(200, None))
    client = ShelfShareClient(API, token="t1", session=session)

    with pytest.raises(NetworkError, match="Malformed response"):
        client.delete_book("b1")


def test_user_books_rejects_non_list_body():
    client = ShelfShareClient(API, token="t1", session=FakeSession(FakeResponse(200, {"books": []})))

    with pytest.raises(NetworkError):
        client.user_books()
