"""Data models for the book feed."""
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Optional, List


@dataclass(frozen=True)
class Owner:
    """The user who posted a recommendation."""
    id: str
    username: Optional[str] = None
    profile_image: Optional[str] = None


@dataclass(frozen=True)
class Book:
    """A book recommendation as served by the backend."""
    id: str
    title: str
    caption: str
    image: Optional[str]
    rating: int
    genre: str
    owner: Optional[Owner] = None
    created_at: Optional[datetime] = None

    @property
    def stars(self) -> str:
        """Render the rating as five stars, e.g. ★★★☆☆."""
        filled = max(0, min(5, self.rating))
        return "★" * filled + "☆" * (5 - filled)

    @property
    def owner_str(self) -> str:
        if self.owner and self.owner.username:
            return self.owner.username
        return "Unknown"

    @property
    def published_str(self) -> str:
        """Format the share date as "May 6, 2025"."""
        if not self.created_at:
            return "Unknown"
        return f"{self.created_at:%B} {self.created_at.day}, {self.created_at.year}"


@dataclass(frozen=True)
class User:
    """The authenticated user."""
    id: str
    username: str
    email: Optional[str] = None
    profile_image: Optional[str] = None
    created_at: Optional[datetime] = None

    @property
    def member_since(self) -> str:
        """Format the signup date as "May 2025"."""
        if not self.created_at:
            return "Unknown"
        return f"{self.created_at:%b} {self.created_at.year}"


@dataclass(frozen=True)
class Page:
    """One page of the book listing."""
    books: List[Book]
    current_page: int
    total_books: int
    total_pages: int

    @property
    def is_empty(self) -> bool:
        return not self.books


class FeedStatus(Enum):
    """States of the feed filter switch."""
    IDLE = "idle"
    LOADING = "loading"
    REFRESHING = "refreshing"
    ERROR = "error"


@dataclass
class FeedState:
    """
    Client-visible aggregate of the book feed.

    Only FeedController writes to it. Everyone else should read
    ``snapshot()`` copies.
    """
    genre: str
    items: List[Book] = field(default_factory=list)
    cursor: int = 1
    has_more: bool = True
    loading: bool = False
    refreshing: bool = False
    error: Optional[Exception] = None
    status: FeedStatus = FeedStatus.IDLE
    generation: int = 0

    @property
    def ids(self) -> List[str]:
        return [book.id for book in self.items]

    def snapshot(self) -> "FeedState":
        """Return a copy that does not share the item list."""
        return replace(self, items=list(self.items))
