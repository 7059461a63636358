"""Parse and normalize ShelfShare API responses."""
import logging
import math
from datetime import datetime
from typing import Dict, Any, List, Optional

from shelfshare.models import Book, Owner, Page, User

logger = logging.getLogger(__name__)


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp such as ``2025-05-06T10:00:00.000Z``."""
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (TypeError, ValueError):
        logger.warning(f"Unparseable timestamp: {value!r}")
        return None


def parse_owner(raw: Any) -> Optional[Owner]:
    # The listing routes populate the user; others send only its id.
    if not raw:
        return None
    if isinstance(raw, str):
        return Owner(id=raw)
    return Owner(
        id=str(raw.get("_id", "")),
        username=raw.get("username"),
        profile_image=raw.get("profileImage"),
    )


def parse_book(item: Dict[str, Any]) -> Optional[Book]:
    """
    Parse a single book document.

    Args:
        item: One element of a ``books`` array

    Returns:
        Book object or None if the item is unusable
    """
    book_id = item.get("_id") or item.get("id")
    if not book_id:
        return None

    try:
        rating = int(item.get("rating", 0))
    except (TypeError, ValueError):
        logger.warning(f"Bad rating on book {book_id}: {item.get('rating')!r}")
        rating = 0

    return Book(
        id=str(book_id),
        title=item.get("title", "Unknown Title"),
        caption=item.get("caption", ""),
        image=item.get("image"),
        rating=rating,
        genre=item.get("genre", ""),
        owner=parse_owner(item.get("user")),
        created_at=parse_timestamp(item.get("createdAt")),
    )


def parse_books(items: List[Dict[str, Any]]) -> List[Book]:
    """Parse a list of book documents, skipping unusable ones."""
    books = []
    for item in items or []:
        book = parse_book(item)
        if book:
            books.append(book)
    return books


def parse_page(response_json: Dict[str, Any], limit: int) -> Page:
    """
    Parse a paginated listing response.

    Args:
        response_json: ``{books, currentPage, totalBooks, totalPages}``
        limit: Page size that was requested

    Returns:
        Page (``currentPage`` may arrive as a string)
    """
    books = parse_books(response_json.get("books", []))
    total_books = int(response_json.get("totalBooks") or 0)

    total_pages = response_json.get("totalPages")
    if total_pages is None:
        total_pages = math.ceil(total_books / limit) if limit else 0

    return Page(
        books=books,
        current_page=int(response_json.get("currentPage") or 1),
        total_books=total_books,
        total_pages=int(total_pages),
    )


def parse_user(raw: Dict[str, Any]) -> User:
    """Parse the ``user`` object returned by the auth routes."""
    return User(
        id=str(raw.get("_id") or raw.get("id", "")),
        username=raw.get("username", ""),
        email=raw.get("email"),
        profile_image=raw.get("profileImage"),
        created_at=parse_timestamp(raw.get("createdAt")),
    )


def deduplicate_books(books: List[Book]) -> List[Book]:
    """
    Remove duplicate books by ID, keeping the first occurrence.

    Args:
        books: List of Book objects

    Returns:
        Deduplicated list of books
    """
    seen_ids = set()
    unique_books = []

    for book in books:
        if book.id not in seen_ids:
            seen_ids.add(book.id)
            unique_books.append(book)

    return unique_books
