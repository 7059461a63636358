"""Tests for parsing functions."""
from shelfshare.parse import parse_book, parse_page, parse_user, deduplicate_books
from tests.fakes import make_book


def test_parse_book_complete():
    """Test parsing a listing book with a populated user."""
    item = {
        "_id": "664a1f",
        "title": "Dune",
        "caption": "Spice must flow",
        "image": "https://res.cloudinary.com/demo/image/upload/v1/dune.jpg",
        "rating": 5,
        "genre": "Science Fiction",
        "user": {"_id": "u42", "username": "paul", "profileImage": "https://a.example/p.svg"},
        "createdAt": "2025-05-06T10:30:00.000Z",
    }

    book = parse_book(item)

    assert book is not None
    assert book.id == "664a1f"
    assert book.rating == 5
    assert book.owner.username == "paul"
    assert book.published_str == "May 6, 2025"
    assert book.stars == "★★★★★"


def test_parse_book_unpopulated_user_and_string_rating():
    """The create route returns the user as a bare id and may echo a string rating."""
    book = parse_book({"_id": "b1", "title": "T", "rating": "3", "user": "u1"})

    assert book.owner.id == "u1"
    assert book.owner.username is None
    assert book.owner_str == "Unknown"
    assert book.rating == 3
    assert book.created_at is None


def test_parse_book_no_id():
    """Test that book without ID returns None."""
    assert parse_book({"title": "No ID Book"}) is None


def test_parse_page_coerces_string_page_number():
    """The unfiltered route echoes currentPage straight from the query string."""
    page = parse_page(
        {
            "books": [{"_id": "1", "title": "A"}, {"title": "missing id"}],
            "currentPage": "2",
            "totalBooks": 5,
            "totalPages": 3,
        },
        limit=2,
    )

    assert page.current_page == 2
    assert page.total_pages == 3
    assert [b.id for b in page.books] == ["1"]


def test_parse_page_derives_total_pages():
    page = parse_page({"books": [], "totalBooks": 5}, limit=2)

    assert page.total_pages == 3
    assert page.is_empty


def test_parse_user():
    user = parse_user({
        "_id": "u1",
        "username": "reader",
        "email": "r@example.com",
        "createdAt": "2025-05-01T00:00:00Z",
    })

    assert user.username == "reader"
    assert user.member_since == "May 2025"


def test_deduplicate_books():
    """Test deduplication by book ID."""
    books = [
        make_book("1", title="Book A"),
        make_book("2", title="Book B"),
        make_book("1", title="Book A Duplicate"),
    ]

    unique = deduplicate_books(books)

    assert len(unique) == 2
    assert unique[0].title == "Book A"
    assert unique[1].id == "2"
