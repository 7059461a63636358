"""HTTP client for the ShelfShare auth and book CRUD endpoints."""
import base64
import os
import requests
from typing import Optional, Dict, Any, List, Tuple
import logging

from shelfshare.errors import NetworkError, ValidationError, error_from_response
from shelfshare.genres import normalize_genre
from shelfshare.models import Book, User
from shelfshare.parse import parse_book, parse_books, parse_user

logger = logging.getLogger(__name__)

MIN_USERNAME_LENGTH = 3
MIN_PASSWORD_LENGTH = 6


def image_data_url(path: str) -> str:
    """
    Encode an image file as a ``data:`` URL for upload.

    Args:
        path: Local image path; the extension picks the MIME type

    Returns:
        ``data:image/<ext>;base64,...``
    """
    ext = os.path.splitext(path)[1].lstrip(".").lower()
    image_type = f"image/{ext}" if ext else "image/jpeg"

    with open(path, "rb") as f:
        encoded = base64.b64encode(f.read()).decode("ascii")

    return f"data:{image_type};base64,{encoded}"


class ShelfShareClient:
    """Client for account and recommendation management."""

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout: int = 10,
        session: Optional[requests.Session] = None
    ):
        """
        Initialize ShelfShare API client.

        Args:
            base_url: API root, e.g. https://host/api
            token: Bearer token for authenticated routes
            timeout: Request timeout in seconds
            session: Optional preconfigured session
        """
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout

        # Create session for connection pooling
        self.session = session or requests.Session()

    def _request(
        self,
        method: str,
        path: str,
        json_body: Optional[Dict[str, Any]] = None,
        auth: bool = True
    ) -> Any:
        """
        Make an HTTP request and decode the JSON reply.

        Args:
            method: HTTP method
            path: Path below the API root
            json_body: Request body
            auth: Send the bearer token

        Returns:
            Decoded response JSON

        Raises:
            AuthError: On 401
            NetworkError: On transport failure or any other non-2xx status
        """
        url = f"{self.base_url}{path}"
        headers = {}
        if auth and self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        logger.info(f"Request: {method} {path}")
        try:
            response = self.session.request(
                method,
                url,
                json=json_body,
                headers=headers,
                timeout=self.timeout
            )
        except requests.exceptions.Timeout as e:
            logger.warning(f"Timeout on {method} {path}")
            raise NetworkError(f"Request to {path} timed out") from e
        except requests.exceptions.RequestException as e:
            logger.warning(f"Connection error on {method} {path}: {e}")
            raise NetworkError(f"Request to {path} failed: {e}") from e

        try:
            body = response.json()
        except ValueError:
            if response.ok:
                logger.error(f"Undecodable body from {method} {path} (status {response.status_code})")
                raise NetworkError(f"Malformed response from {path}", response.status_code)
            body = None

        if not response.ok:
            logger.error(f"Client error ({response.status_code}) on {method} {path}")
            raise error_from_response(response.status_code, body)

        return body

    def register(self, username: str, email: str, password: str) -> Tuple[str, User]:
        """
        Create an account.

        Returns:
            (token, user)
        """
        if not username or not email or not password:
            raise ValidationError("All fields are required")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
        if len(username) < MIN_USERNAME_LENGTH:
            raise ValidationError(f"Username must be at least {MIN_USERNAME_LENGTH} characters")

        data = self._request(
            "POST",
            "/auth/register",
            {"username": username, "email": email, "password": password},
            auth=False
        )
        return data["token"], parse_user(data["user"])

    def login(self, email: str, password: str) -> Tuple[str, User]:
        """
        Exchange credentials for a token.

        Returns:
            (token, user)
        """
        if not email or not password:
            raise ValidationError("All fields are required")

        data = self._request(
            "POST",
            "/auth/login",
            {"email": email, "password": password},
            auth=False
        )
        return data["token"], parse_user(data["user"])

    def create_book(
        self,
        title: str,
        caption: str,
        image: str,
        rating: int,
        genre: str
    ) -> Book:
        """
        Post a recommendation.

        Args:
            title: Book title
            caption: Why you recommend it
            image: Image data URL (see ``image_data_url``) or hosted URL
            rating: 1 to 5
            genre: Free text; normalized before sending

        Returns:
            The created Book
        """
        if not title or not caption or not image or not rating or not genre:
            raise ValidationError("All fields are required")
        if isinstance(rating, bool) or not isinstance(rating, int) or not 1 <= rating <= 5:
            raise ValidationError("Rating must be between 1 and 5")

        payload = {
            "title": title,
            "caption": caption,
            "image": image,
            "rating": rating,
            "genre": normalize_genre(genre),
        }
        book = parse_book(self._request("POST", "/books", payload) or {})
        if book is None:
            raise NetworkError("Backend returned no book for the create request")
        return book

    def delete_book(self, book_id: str) -> str:
        """Delete one of your own recommendations; returns the backend message."""
        data = self._request("DELETE", f"/books/{book_id}")
        return (data or {}).get("message", "Book deleted")

    def user_books(self) -> List[Book]:
        """Books posted by the authenticated user, newest first."""
        data = self._request("GET", "/books/user")
        if not isinstance(data, list):
            raise NetworkError("Malformed response from /books/user")
        return parse_books(data)

    def close(self):
        """Close the session."""
        self.session.close()

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
