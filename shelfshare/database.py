"""Database layer for the persisted session and fetched feed books."""
import psycopg2
from psycopg2 import pool
from typing import Optional, List, Dict, Any, Tuple
import json
import logging

from shelfshare.models import Book, Owner, User
from shelfshare.parse import parse_timestamp

logger = logging.getLogger(__name__)

SESSION_KEY = "current"


class Database:
    """PostgreSQL database with connection pooling."""

    def __init__(self, connection_string: str, min_conn: int = 1, max_conn: int = 10):
        """
        Initialize database connection pool.

        Args:
            connection_string: PostgreSQL connection string
            min_conn: Minimum connections in pool
            max_conn: Maximum connections in pool
        """
        self.connection_pool = psycopg2.pool.SimpleConnectionPool(
            min_conn,
            max_conn,
            connection_string
        )

        if self.connection_pool:
            logger.info("Database connection pool created successfully")
        else:
            raise Exception("Failed to create connection pool")

    def init_schema(self):
        """Create database tables if they don't exist."""
        conn = self.connection_pool.getconn()
        try:
            with conn.cursor() as cur:
                # Single-row session storage
                cur.execute("""
                    CREATE TABLE IF NOT EXISTS sessions (
                        session_key VARCHAR(32) PRIMARY KEY,
                        token TEXT NOT NULL,
                        user_data JSONB NOT NULL,
                        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                    )
                """)

                # Books seen in the feed
                cur.execute("""
                    CREATE TABLE IF NOT EXISTS books (
                        id VARCHAR(64) PRIMARY KEY,
                        title TEXT NOT NULL,
                        caption TEXT,
                        image TEXT,
                        rating INTEGER,
                        genre VARCHAR(100),
                        owner_id VARCHAR(64),
                        owner_username VARCHAR(100),
                        created_at TIMESTAMPTZ,
                        fetched_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                    )
                """)

                cur.execute("""
                    CREATE INDEX IF NOT EXISTS idx_books_genre
                    ON books (genre)
                """)

                cur.execute("""
                    CREATE INDEX IF NOT EXISTS idx_books_created
                    ON books (created_at DESC)
                """)

                conn.commit()
                logger.info("Database schema initialized successfully")

        finally:
            self.connection_pool.putconn(conn)

    def save_session(self, token: str, user: User) -> bool:
        """
        Persist the logged-in session, replacing any previous one.

        Returns:
            True if successful, False otherwise
        """
        user_data = {
            "_id": user.id,
            "username": user.username,
            "email": user.email,
            "profileImage": user.profile_image,
            "createdAt": user.created_at.isoformat() if user.created_at else None,
        }
        conn = self.connection_pool.getconn()
        try:
            with conn.cursor() as cur:
                cur.execute("""
                    INSERT INTO sessions (session_key, token, user_data)
                    VALUES (%s, %s, %s)
                    ON CONFLICT (session_key) DO UPDATE SET
                        token = EXCLUDED.token,
                        user_data = EXCLUDED.user_data,
                        created_at = CURRENT_TIMESTAMP
                """, (SESSION_KEY, token, json.dumps(user_data)))
                conn.commit()
                return True
        except Exception as e:
            conn.rollback()
            logger.error(f"Failed to save session: {e}")
            return False
        finally:
            self.connection_pool.putconn(conn)

    def load_session(self) -> Optional[Tuple[str, Dict[str, Any]]]:
        """Return (token, raw user dict) of the persisted session, if any."""
        conn = self.connection_pool.getconn()
        try:
            with conn.cursor() as cur:
                cur.execute("""
                    SELECT token, user_data FROM sessions WHERE session_key = %s
                """, (SESSION_KEY,))
                row = cur.fetchone()
                if row:
                    return row[0], row[1]  # JSONB is automatically deserialized
                return None
        finally:
            self.connection_pool.putconn(conn)

    def delete_session(self) -> None:
        conn = self.connection_pool.getconn()
        try:
            with conn.cursor() as cur:
                cur.execute("DELETE FROM sessions WHERE session_key = %s", (SESSION_KEY,))
                conn.commit()
                logger.info("Session removed")
        finally:
            self.connection_pool.putconn(conn)

    def insert_book(self, book: Book) -> bool:
        """
        Insert or update a book in the database.

        Args:
            book: Book object

        Returns:
            True if successful, False otherwise
        """
        owner = book.owner or Owner(id="")
        conn = self.connection_pool.getconn()
        try:
            with conn.cursor() as cur:
                cur.execute("""
                    INSERT INTO books (
                        id, title, caption, image, rating, genre,
                        owner_id, owner_username, created_at, fetched_at
                    ) VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, CURRENT_TIMESTAMP)
                    ON CONFLICT (id) DO UPDATE SET
                        title = EXCLUDED.title,
                        caption = EXCLUDED.caption,
                        image = EXCLUDED.image,
                        rating = EXCLUDED.rating,
                        genre = EXCLUDED.genre,
                        owner_id = EXCLUDED.owner_id,
                        owner_username = EXCLUDED.owner_username,
                        fetched_at = CURRENT_TIMESTAMP
                """, (
                    book.id, book.title, book.caption, book.image, book.rating,
                    book.genre, owner.id, owner.username, book.created_at
                ))
                conn.commit()
                return True
        except Exception as e:
            conn.rollback()
            logger.error(f"Failed to insert book: {e}")
            return False
        finally:
            self.connection_pool.putconn(conn)

    def list_books(self, genre: Optional[str] = None, limit: int = 100) -> List[Book]:
        """
        List stored books, newest first.

        Args:
            genre: Optional exact genre filter
            limit: Maximum results

        Returns:
            List of Book objects
        """
        conn = self.connection_pool.getconn()
        try:
            with conn.cursor() as cur:
                if genre:
                    cur.execute("""
                        SELECT id, title, caption, image, rating, genre,
                               owner_id, owner_username, created_at
                        FROM books
                        WHERE genre = %s
                        ORDER BY created_at DESC
                        LIMIT %s
                    """, (genre, limit))
                else:
                    cur.execute("""
                        SELECT id, title, caption, image, rating, genre,
                               owner_id, owner_username, created_at
                        FROM books
                        ORDER BY created_at DESC
                        LIMIT %s
                    """, (limit,))

                return [_row_to_book(row) for row in cur.fetchall()]
        finally:
            self.connection_pool.putconn(conn)

    def get_stats(self) -> Dict[str, Any]:
        """Get database statistics."""
        conn = self.connection_pool.getconn()
        try:
            with conn.cursor() as cur:
                cur.execute("SELECT COUNT(*) FROM books")
                book_count = cur.fetchone()[0]

                cur.execute("SELECT COUNT(DISTINCT genre) FROM books")
                genre_count = cur.fetchone()[0]

                cur.execute("SELECT COUNT(*) FROM sessions")
                session_count = cur.fetchone()[0]

                return {
                    "total_books": book_count,
                    "distinct_genres": genre_count,
                    "logged_in": session_count > 0
                }
        finally:
            self.connection_pool.putconn(conn)

    def close(self):
        """Close all connections in the pool."""
        if self.connection_pool:
            self.connection_pool.closeall()
            logger.info("Database connection pool closed")

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()


def _row_to_book(row) -> Book:
    book_id, title, caption, image, rating, genre, owner_id, owner_username, created_at = row
    if isinstance(created_at, str):
        created_at = parse_timestamp(created_at)
    return Book(
        id=book_id,
        title=title,
        caption=caption or "",
        image=image,
        rating=rating or 0,
        genre=genre or "",
        owner=Owner(id=owner_id, username=owner_username) if owner_id else None,
        created_at=created_at,
    )
