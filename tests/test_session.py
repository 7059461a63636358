"""Tests for the explicit session context."""
import pytest

from shelfshare.errors import AuthError
from shelfshare.models import User
from shelfshare.session import SessionContext


class FakeAuthClient:
    def __init__(self):
        self.token = None

    def login(self, email, password):
        return "tok-login", User(id="u1", username="reader", email=email)

    def register(self, username, email, password):
        return "tok-register", User(id="u2", username=username, email=email)


class MemoryStore:
    def __init__(self, stored=None, fail_save=False):
        self.stored = stored
        self.fail_save = fail_save

    def save_session(self, token, user):
        if self.fail_save:
            return False
        self.stored = (token, {"_id": user.id, "username": user.username, "email": user.email})
        return True

    def load_session(self):
        return self.stored

    def delete_session(self):
        self.stored = None


def test_load_restores_persisted_session():
    client = FakeAuthClient()
    store = MemoryStore(stored=("tok", {"_id": "u1", "username": "reader"}))
    session = SessionContext(client, store)

    assert session.load()

    assert session.is_authenticated
    assert session.user.username == "reader"
    assert client.token == "tok"


def test_load_without_stored_session():
    session = SessionContext(FakeAuthClient(), MemoryStore())

    assert session.load() is False
    assert not session.is_authenticated
    with pytest.raises(AuthError):
        session.require_token()


def test_login_persists_and_logout_tears_down():
    client = FakeAuthClient()
    store = MemoryStore()
    session = SessionContext(client, store)

    session.login("r@example.com", "secret1")
    assert store.stored[0] == "tok-login"
    assert session.require_token() == "tok-login"

    session.logout()
    assert store.stored is None
    assert session.token is None
    assert client.token is None


def test_register_works_when_store_cannot_save():
    session = SessionContext(FakeAuthClient(), MemoryStore(fail_save=True))

    user = session.register("newbie", "n@example.com", "secret1")

    assert user.username == "newbie"
    assert session.is_authenticated


def test_in_memory_session_without_store():
    session = SessionContext(FakeAuthClient())

    assert session.load() is False
    session.login("r@example.com", "secret1")
    session.logout()
    assert not session.is_authenticated
