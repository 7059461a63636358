"""Authenticated session context.

The session is an explicit object created at start-up, loaded from
persisted storage, passed to whatever needs the token, and torn down on
logout. There is no module-level session.
"""
import logging
from typing import Optional

from shelfshare.errors import AuthError
from shelfshare.models import User
from shelfshare.parse import parse_user

logger = logging.getLogger(__name__)


class SessionContext:
    """Holds the bearer token and user for one app run."""

    def __init__(self, client, store=None):
        """
        Args:
            client: ShelfShareClient used for login/register; its token is kept in sync
            store: Persisted storage with save_session/load_session/delete_session
                (``Database``); None keeps the session in memory only
        """
        self.client = client
        self.store = store
        self.token: Optional[str] = None
        self.user: Optional[User] = None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token and self.user)

    def require_token(self) -> str:
        """Return the token or raise AuthError if nobody is logged in."""
        if not self.is_authenticated:
            raise AuthError("Not logged in")
        return self.token

    def load(self) -> bool:
        """
        Initialise from persisted storage.

        Returns:
            True if a stored session was restored
        """
        if self.store is None:
            return False

        stored = self.store.load_session()
        if not stored:
            logger.info("No stored session")
            return False

        token, raw_user = stored
        self._set(token, parse_user(raw_user))
        logger.info(f"Restored session for {self.user.username}")
        return True

    def login(self, email: str, password: str) -> User:
        token, user = self.client.login(email, password)
        self._set(token, user)
        self._persist()
        logger.info(f"Logged in as {user.username}")
        return user

    def register(self, username: str, email: str, password: str) -> User:
        token, user = self.client.register(username, email, password)
        self._set(token, user)
        self._persist()
        logger.info(f"Registered {user.username}")
        return user

    def logout(self) -> None:
        """Forget the session here and in storage."""
        if self.store is not None:
            self.store.delete_session()
        self._set(None, None)
        logger.info("Logged out")

    def _set(self, token: Optional[str], user: Optional[User]) -> None:
        self.token = token
        self.user = user
        self.client.token = token

    def _persist(self) -> None:
        if self.store is not None and not self.store.save_session(self.token, self.user):
            logger.warning("Session could not be persisted; it will not survive a restart")
