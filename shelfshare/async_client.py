"""Async HTTP client for the book listing and genre endpoints."""
import asyncio
import httpx
from typing import List, Optional, Dict, Any
from urllib.parse import quote
import logging

from shelfshare.errors import NetworkError, error_from_response
from shelfshare.genres import ALL_GENRES
from shelfshare.models import Book, Page
from shelfshare.parse import parse_books, parse_page

logger = logging.getLogger(__name__)


class AsyncShelfShareClient:
    """Async client used by the feed controller and genre catalog."""

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout: int = 10,
        max_concurrent: int = 5,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Initialize async client.

        Args:
            base_url: API root, e.g. https://host/api
            token: Bearer token sent on every request
            timeout: Request timeout
            max_concurrent: Maximum concurrent requests
            transport: Optional httpx transport (tests pass a MockTransport)
        """
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self.semaphore = asyncio.Semaphore(max_concurrent)

        self.client = httpx.AsyncClient(timeout=timeout, transport=transport)

    def _headers(self) -> Dict[str, str]:
        if self.token:
            return {"Authorization": f"Bearer {self.token}"}
        return {}

    async def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """
        GET a path and decode the JSON body.

        Raises:
            AuthError: On 401
            NetworkError: On transport failure or any other non-2xx status
        """
        url = f"{self.base_url}{path}"

        async with self.semaphore:
            logger.info(f"Async request: GET {path} {params or ''}")
            try:
                response = await self.client.get(url, params=params, headers=self._headers())
            except httpx.HTTPError as e:
                logger.error(f"Async request failed: {e}")
                raise NetworkError(f"Request to {path} failed: {e}") from e

        try:
            body = response.json()
        except ValueError:
            if response.is_success:
                logger.error(f"Undecodable body from {path} (status {response.status_code})")
                raise NetworkError(f"Malformed response from {path}", response.status_code)
            body = None

        if not response.is_success:
            logger.warning(f"Status {response.status_code} for {path}")
            raise error_from_response(response.status_code, body)

        return body

    async def _get_as(self, path: str, expected: type, params: Optional[Dict[str, Any]] = None) -> Any:
        # A 2xx body of the wrong shape is a failure, not an empty result.
        body = await self._get(path, params=params)
        if not isinstance(body, expected):
            logger.error(f"Unexpected {type(body).__name__} body from {path}")
            raise NetworkError(f"Malformed response from {path}")
        return body

    async def list_books(
        self,
        page: int = 1,
        limit: int = 2,
        genre: Optional[str] = None
    ) -> Page:
        """
        Fetch one page of the feed, newest first.

        Args:
            page: 1-based page number
            limit: Page size
            genre: Genre filter; None or "All" lists every genre

        Returns:
            Parsed Page
        """
        if genre and genre != ALL_GENRES:
            path = f"/books/genre/{quote(genre, safe='')}"
        else:
            path = "/books"

        body = await self._get_as(path, dict, params={"page": page, "limit": limit})
        return parse_page(body, limit)

    async def active_genres(self) -> List[str]:
        """Genres that have at least one book."""
        return list(await self._get_as("/books/active-genres", list))

    async def all_genres(self) -> List[str]:
        """Active genres plus the backend's suggested defaults."""
        return list(await self._get_as("/books/genres", list))

    async def user_books(self) -> List[Book]:
        """Books posted by the authenticated user."""
        return parse_books(await self._get_as("/books/user", list))

    async def close(self):
        """Close the HTTP client."""
        await self.client.aclose()

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()
