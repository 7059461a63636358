"""Genre taxonomy: normalization table and the active-genre catalog."""
import logging
from typing import Iterable, List, Optional

from shelfshare.errors import ShelfShareError, ValidationError

logger = logging.getLogger(__name__)

# Sentinel shown first in the catalog; selects the unfiltered feed.
ALL_GENRES = "All"

# Lower-cased alias -> canonical genre name.
GENRE_MAPPING = {
    # Science Fiction
    "sci-fi": "Science Fiction",
    "scifi": "Science Fiction",
    "science-fiction": "Science Fiction",
    "sciencefiction": "Science Fiction",
    "science fiction": "Science Fiction",
    "sf": "Science Fiction",
    # Non-Fiction
    "non-fiction": "Non-Fiction",
    "nonfiction": "Non-Fiction",
    "non fiction": "Non-Fiction",
    "nf": "Non-Fiction",
    # Fiction
    "fiction": "Fiction",
    "general fiction": "Fiction",
    # Romance
    "romance": "Romance",
    "romantic": "Romance",
    "love story": "Romance",
    "rom": "Romance",
    # Thriller
    "thriller": "Thriller",
    "suspense": "Thriller",
    "thrill": "Thriller",
    "psychological thriller": "Thriller",
    # Mystery
    "mystery": "Mystery",
    "crime": "Mystery",
    "detective": "Mystery",
    "whodunit": "Mystery",
    # Horror
    "horror": "Horror",
    "scary": "Horror",
    "terror": "Horror",
    # Fantasy
    "fantasy": "Fantasy",
    "high fantasy": "Fantasy",
    "epic fantasy": "Fantasy",
    "fant": "Fantasy",
    # Classics
    "classics": "Classics",
    "classic": "Classics",
    "literary classics": "Classics",
    # Biography
    "biography": "Biography",
    "bio": "Biography",
    "autobiography": "Biography",
    "memoir": "Biography",
    # History ("historical" belongs to Historical Fiction)
    "history": "History",
    "hist": "History",
    # Self-Help
    "self-help": "Self-Help",
    "selfhelp": "Self-Help",
    "personal development": "Self-Help",
    "self-improvement": "Self-Help",
    # Cookbook
    "cookbook": "Cookbook",
    "cooking": "Cookbook",
    "recipe": "Cookbook",
    "culinary": "Cookbook",
    # Educational
    "educational": "Educational",
    "education": "Educational",
    "academic": "Educational",
    "textbook": "Educational",
    # Young Adult
    "young adult": "Young Adult",
    "ya": "Young Adult",
    "teen": "Young Adult",
    "youth": "Young Adult",
    # Children's
    "children's": "Children's",
    "childrens": "Children's",
    "kids": "Children's",
    "juvenile": "Children's",
    # Personal Finance
    "personal finance": "Personal Finance",
    "finance": "Personal Finance",
    "money": "Personal Finance",
    "financial": "Personal Finance",
    # Historical Fiction
    "historical fiction": "Historical Fiction",
    "histfic": "Historical Fiction",
    "historical novel": "Historical Fiction",
    "historical": "Historical Fiction",
    # Literary Fiction
    "literary fiction": "Literary Fiction",
    "lit fic": "Literary Fiction",
    "literary": "Literary Fiction",
    "lit": "Literary Fiction",
    # Business
    "business": "Business",
    "biz": "Business",
    "entrepreneurship": "Business",
    "management": "Business",
    # Poetry
    "poetry": "Poetry",
    "poem": "Poetry",
    "verse": "Poetry",
    # Adventure
    "adventure": "Adventure",
    "action": "Adventure",
    "quest": "Adventure",
    # Dystopian
    "dystopian": "Dystopian",
    "dystopia": "Dystopian",
    "post-apocalyptic": "Dystopian",
    # Humor
    "humor": "Humor",
    "comedy": "Humor",
    "funny": "Humor",
    "satire": "Humor",
    # Graphic Novel
    "graphic novel": "Graphic Novel",
    "comic": "Graphic Novel",
    "manga": "Graphic Novel",
    "graphic": "Graphic Novel",
    # True Crime
    "true crime": "True Crime",
    "truecrime": "True Crime",
    "crime story": "True Crime",
    # Paranormal
    "paranormal": "Paranormal",
    "supernatural": "Paranormal",
    "ghost story": "Paranormal",
    # Western
    "western": "Western",
    "cowboy": "Western",
    "frontier": "Western",
    # Travel
    "travel": "Travel",
    "travelogue": "Travel",
    "adventure travel": "Travel",
}

# Offered when posting even if no book uses them yet.
SUGGESTED_GENRES = [
    "Fiction",
    "Non-Fiction",
    "Romance",
    "Thriller",
    "Mystery",
    "Fantasy",
    "Science Fiction",
    "Classics",
    "Biography",
    "History",
    "Self-Help",
    "Cookbook",
    "Educational",
    "Young Adult",
    "Children's",
    "Personal Finance",
    "Historical Fiction",
    "Literary Fiction",
    "Business",
]


def normalize_genre(raw: str) -> str:
    """
    Map a user-entered genre onto its canonical name.

    Args:
        raw: Genre as typed, e.g. " Sci-Fi "

    Returns:
        Canonical name, or the trimmed input if it has no alias

    Raises:
        ValidationError: If the genre is blank
    """
    trimmed = (raw or "").strip()
    if not trimmed:
        raise ValidationError("Genre cannot be empty")
    return GENRE_MAPPING.get(trimmed.lower(), trimmed)


def build_catalog(names: Iterable[str]) -> List[str]:
    """Sort distinct non-blank genre names behind the "All" sentinel."""
    distinct = {
        name.strip()
        for name in names
        if name and name.strip() and name.strip() != ALL_GENRES
    }
    return [ALL_GENRES] + sorted(distinct)


class GenreCatalog:
    """Active-genre list backing the feed's filter chips."""

    def __init__(self, api):
        """
        Initialize the catalog.

        Args:
            api: Object with an ``active_genres()`` coroutine
        """
        self.api = api
        self.genres: List[str] = []
        self.last_error: Optional[ShelfShareError] = None

    async def load(self) -> List[str]:
        """
        Fetch active genres, keeping the previous list on failure.

        Returns:
            The current catalog (unchanged if the fetch failed)
        """
        try:
            names = await self.api.active_genres()
        except ShelfShareError as e:
            self.last_error = e
            logger.warning(f"Could not load genres, keeping {len(self.genres)} cached: {e}")
            return self.genres

        self.genres = build_catalog(names)
        self.last_error = None
        logger.info(f"Loaded {len(self.genres) - 1} active genres")
        return self.genres
