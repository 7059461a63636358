# tests/conftest.py
import pytest

from tests.fakes import make_books


@pytest.fixture
def fiction_books():
    return make_books(5, prefix="f", genre="Fiction")
