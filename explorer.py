#!/usr/bin/env python3
"""ShelfShare Explorer CLI - browse and post book recommendations."""
import argparse
import asyncio
import csv
import sys
import json
from tabulate import tabulate
from shelfshare.async_client import AsyncShelfShareClient
from shelfshare.client import ShelfShareClient, image_data_url
from shelfshare.config import Config
from shelfshare.database import Database
from shelfshare.errors import AuthError, ShelfShareError
from shelfshare.feed import FeedController
from shelfshare.genres import ALL_GENRES, SUGGESTED_GENRES, GenreCatalog
from shelfshare.session import SessionContext
import logging

logger = logging.getLogger(__name__)


def setup_database(config: Config) -> Database:
    """Initialize database."""
    db = Database(config.DATABASE_URL)
    db.init_schema()
    return db


def book_to_dict(book) -> dict:
    return {
        "id": book.id,
        "title": book.title,
        "caption": book.caption,
        "image": book.image,
        "rating": book.rating,
        "genre": book.genre,
        "owner": book.owner_str,
        "created_at": book.created_at.isoformat() if book.created_at else None
    }


def display_books(books, format_type: str):
    """Display books in specified format."""
    if format_type == "table":
        headers = ["Title", "Genre", "Rating", "Shared by", "Shared on"]
        rows = [
            [
                book.title[:50] + "..." if len(book.title) > 50 else book.title,
                book.genre,
                book.stars,
                book.owner_str,
                book.published_str
            ]
            for book in books
        ]
        print("\n" + tabulate(rows, headers=headers, tablefmt="grid"))

    elif format_type == "json":
        print(json.dumps([book_to_dict(book) for book in books], indent=2))

    elif format_type == "compact":
        for i, book in enumerate(books, 1):
            print(f"{i}. {book.title} [{book.genre}] {book.stars} - {book.owner_str}")


async def browse_feed(args, config: Config, session: SessionContext, db: Database):
    """Load the feed page by page, the way infinite scroll does."""
    async with AsyncShelfShareClient(
        config.API_URL,
        token=session.require_token(),
        timeout=config.DEFAULT_TIMEOUT,
        max_concurrent=config.MAX_CONCURRENT
    ) as api:
        catalog = GenreCatalog(api)
        feed = FeedController(api, page_size=args.page_size or config.FEED_PAGE_SIZE)

        if args.genre and args.genre.strip().lower() != ALL_GENRES.lower():
            await catalog.load()
            await feed.set_filter(args.genre)
        else:
            await feed.start(catalog)

        if catalog.last_error:
            logger.warning(f"Genres unavailable: {catalog.last_error}")
        elif catalog.genres:
            logger.info(f"Genres: {', '.join(catalog.genres)}")

        while feed.state.has_more and feed.state.cursor <= args.pages and not feed.state.error:
            await feed.load_next_page()

        state = feed.snapshot()
        if state.error:
            raise state.error

        if not state.items:
            print(f"No books found in {state.genre}" if state.genre != ALL_GENRES else "No recommendations yet")
            return

        if not args.no_store:
            for book in state.items:
                db.insert_book(book)
            logger.info(f"Stored {len(state.items)} books in database")

        display_books(state.items, args.format)
        if state.has_more:
            print(f"\n... more available (next page: {state.cursor})")


async def list_genres(args, config: Config, session: SessionContext):
    async with AsyncShelfShareClient(
        config.API_URL,
        token=session.require_token(),
        timeout=config.DEFAULT_TIMEOUT
    ) as api:
        if args.all:
            genres = await api.all_genres()
        else:
            catalog = GenreCatalog(api)
            genres = await catalog.load()
            if catalog.last_error:
                raise catalog.last_error

    for genre in genres:
        print(genre)


def register(args, session: SessionContext):
    user = session.register(args.username, args.email, args.password)
    print(f"✅ Welcome, {user.username}!")


def login(args, session: SessionContext):
    user = session.login(args.email, args.password)
    print(f"✅ Logged in as {user.username} (member since {user.member_since})")


def logout(args, session: SessionContext):
    session.logout()
    print("✅ Logged out")


def create_book(args, session: SessionContext):
    session.require_token()
    book = session.client.create_book(
        title=args.title,
        caption=args.caption,
        image=image_data_url(args.image),
        rating=args.rating,
        genre=args.genre
    )
    print(f"✅ Shared \"{book.title}\" in {book.genre} ({book.id})")


def delete_book(args, session: SessionContext):
    session.require_token()
    print(f"✅ {session.client.delete_book(args.book_id)}")


def my_books(args, session: SessionContext):
    session.require_token()
    display_books(session.client.user_books(), args.format)


def show_stats(args, db: Database, session: SessionContext):
    """Show database statistics."""
    stats = db.get_stats()

    print("\n" + "=" * 50)
    print("SHELFSHARE LOCAL STATISTICS")
    print("=" * 50)
    print(f"Books stored: {stats['total_books']}")
    print(f"Distinct genres: {stats['distinct_genres']}")
    if session.is_authenticated:
        print(f"Logged in as: {session.user.username}")
    else:
        print("Logged in as: nobody")
    print("=" * 50 + "\n")


def export_data(args, db: Database):
    """Export stored books."""
    books = db.list_books(genre=args.genre, limit=args.limit or 1000)

    if args.format == "json":
        data = [book_to_dict(book) for book in books]

        if args.output:
            with open(args.output, 'w') as f:
                json.dump(data, f, indent=2)
            logger.info(f"✅ Exported {len(books)} books to {args.output}")
        else:
            print(json.dumps(data, indent=2))

    elif args.format == "csv":
        output_file = args.output or "books_export.csv"
        with open(output_file, 'w', newline='', encoding='utf-8') as f:
            writer = csv.writer(f)
            writer.writerow(["ID", "Title", "Genre", "Rating", "Shared by", "Shared on"])

            for book in books:
                writer.writerow([
                    book.id,
                    book.title,
                    book.genre,
                    book.rating,
                    book.owner_str,
                    book.created_at.isoformat() if book.created_at else ""
                ])

        logger.info(f"✅ Exported {len(books)} books to {output_file}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="ShelfShare Explorer - browse and share book recommendations",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Log in once; the session is stored in the database
  %(prog)s login reader@example.com secret123

  # First three pages of the feed, filtered to sci-fi
  %(prog)s feed --genre sci-fi --pages 3

  # Share a recommendation
  %(prog)s create --title Dune --caption "Spice!" --image cover.jpg --rating 5 --genre scifi
        """
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    register_parser = subparsers.add_parser("register", help="Create an account")
    register_parser.add_argument("username")
    register_parser.add_argument("email")
    register_parser.add_argument("password")

    login_parser = subparsers.add_parser("login", help="Log in")
    login_parser.add_argument("email")
    login_parser.add_argument("password")

    subparsers.add_parser("logout", help="Forget the stored session")

    genres_parser = subparsers.add_parser("genres", help="List genres")
    genres_parser.add_argument("--all", action="store_true", help="Include suggested genres with no books")

    feed_parser = subparsers.add_parser("feed", help="Browse the recommendation feed")
    feed_parser.add_argument("--genre", help="Genre filter (aliases like sci-fi are accepted)")
    feed_parser.add_argument("--pages", type=int, default=1, help="Pages to load (default: 1)")
    feed_parser.add_argument("--page-size", type=int, help="Books per page (default: FEED_PAGE_SIZE)")
    feed_parser.add_argument("--format", choices=["table", "json", "compact"], default="table", help="Output format")
    feed_parser.add_argument("--no-store", action="store_true", help="Do not store fetched books")

    mine_parser = subparsers.add_parser("mine", help="List your own recommendations")
    mine_parser.add_argument("--format", choices=["table", "json", "compact"], default="table", help="Output format")

    create_parser = subparsers.add_parser("create", help="Share a recommendation")
    create_parser.add_argument("--title", required=True)
    create_parser.add_argument("--caption", required=True)
    create_parser.add_argument("--image", required=True, help="Path to the cover image")
    create_parser.add_argument("--rating", type=int, default=3, help="1-5 (default: 3)")
    create_parser.add_argument(
        "--genre",
        required=True,
        help=f"Genre or alias, e.g. {', '.join(SUGGESTED_GENRES)}"
    )

    delete_parser = subparsers.add_parser("delete", help="Delete one of your recommendations")
    delete_parser.add_argument("book_id")

    subparsers.add_parser("stats", help="Show local statistics")

    export_parser = subparsers.add_parser("export", help="Export stored books")
    export_parser.add_argument("--format", choices=["json", "csv"], default="json", help="Export format")
    export_parser.add_argument("--output", help="Output file (default: stdout for JSON)")
    export_parser.add_argument("--genre", help="Only this genre")
    export_parser.add_argument("--limit", type=int, help="Limit results")

    return parser


def main():
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s'
    )

    if not args.command:
        parser.print_help()
        sys.exit(1)

    config = Config()

    try:
        with setup_database(config) as db, ShelfShareClient(
            config.API_URL,
            timeout=config.DEFAULT_TIMEOUT
        ) as client:
            session = SessionContext(client, db)
            session.load()

            if args.command == "register":
                register(args, session)
            elif args.command == "login":
                login(args, session)
            elif args.command == "logout":
                logout(args, session)
            elif args.command == "genres":
                asyncio.run(list_genres(args, config, session))
            elif args.command == "feed":
                asyncio.run(browse_feed(args, config, session, db))
            elif args.command == "mine":
                my_books(args, session)
            elif args.command == "create":
                create_book(args, session)
            elif args.command == "delete":
                delete_book(args, session)
            elif args.command == "stats":
                show_stats(args, db, session)
            elif args.command == "export":
                export_data(args, db)

    except KeyboardInterrupt:
        logger.info("\n⚠️  Interrupted by user")
        sys.exit(0)
    except AuthError as e:
        logger.error(f"❌ {e.message}. Log in again with: explorer.py login EMAIL PASSWORD")
        sys.exit(1)
    except ShelfShareError as e:
        logger.error(f"❌ {e}")
        sys.exit(1)
    except Exception as e:
        logger.error(f"❌ Error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
