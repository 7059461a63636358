"""Merge a fetched page into the feed without duplicate ids."""
from enum import Enum
from typing import List, Sequence

from shelfshare.models import Book
from shelfshare.parse import deduplicate_books


class MergeMode(Enum):
    APPEND = "append"
    REPLACE = "replace"


def merge_books(
    existing: Sequence[Book],
    incoming: Sequence[Book],
    mode: MergeMode = MergeMode.APPEND
) -> List[Book]:
    """
    Combine the current items with a newly fetched page.

    Pages can overlap when books are posted between fetches (offsets
    shift), so ids already shown are skipped rather than moved.

    Args:
        existing: Items currently in the feed
        incoming: Books from the fetched page, in backend order
        mode: APPEND keeps ``existing`` first; REPLACE discards it

    Returns:
        New list, unique by id, first occurrence wins
    """
    if mode is MergeMode.REPLACE:
        return deduplicate_books(list(incoming))

    merged = list(existing)
    seen_ids = {book.id for book in merged}
    for book in incoming:
        if book.id not in seen_ids:
            seen_ids.add(book.id)
            merged.append(book)
    return merged
