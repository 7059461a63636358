"""Paginated, genre-filtered book feed.

FeedController owns a FeedState and is the only thing that writes to it.
Every reset (filter change, refresh, retry of a reset) bumps
``state.generation``; a response is applied only if the generation it was
issued under is still current, so a page that resolves after a reset is
dropped instead of being merged into the new feed.
"""
import asyncio
import logging
from typing import Optional

from shelfshare.errors import ShelfShareError
from shelfshare.genres import ALL_GENRES, GenreCatalog, normalize_genre
from shelfshare.merge import MergeMode, merge_books
from shelfshare.models import FeedState, FeedStatus

logger = logging.getLogger(__name__)


class FeedController:
    """Drives page loads for one feed view."""

    def __init__(self, api, page_size: int = 2, genre: str = ALL_GENRES):
        """
        Args:
            api: Object with a ``list_books(page, limit, genre)`` coroutine
                returning a Page (``AsyncShelfShareClient``)
            page_size: Books requested per page
            genre: Initial genre filter
        """
        self.api = api
        self.page_size = page_size
        self.state = FeedState(genre=genre)
        self._failed_mode: Optional[MergeMode] = None

    def snapshot(self) -> FeedState:
        return self.state.snapshot()

    async def start(self, catalog: Optional[GenreCatalog] = None) -> bool:
        """
        Initial load: genre catalog first, then page 1.

        A catalog failure is recorded on the catalog and never blocks the feed.
        """
        if catalog is not None:
            await catalog.load()
        self._begin_reset(FeedStatus.LOADING)
        return await self._issue(1, MergeMode.REPLACE)

    async def load_next_page(self) -> bool:
        """
        Fetch the page at the cursor and append it.

        No-op while a load or refresh is in flight, or when there are no
        more pages.

        Returns:
            True if a page was applied
        """
        state = self.state
        if state.loading or state.refreshing or not state.has_more:
            logger.debug(
                f"Skipping page {state.cursor}: loading={state.loading} "
                f"refreshing={state.refreshing} has_more={state.has_more}"
            )
            return False

        state.loading = True
        state.error = None
        state.status = FeedStatus.LOADING
        return await self._issue(state.cursor, MergeMode.APPEND)

    async def refresh(self) -> bool:
        """Refetch page 1 and replace the items. Always allowed."""
        self._begin_reset(FeedStatus.REFRESHING)
        return await self._issue(1, MergeMode.REPLACE)

    async def set_filter(self, genre: str) -> bool:
        """
        Switch the genre filter and load its first page.

        Args:
            genre: Genre name or "All"; aliases are normalized

        Returns:
            False without fetching if the genre is already selected
        """
        if genre.strip().lower() == ALL_GENRES.lower():
            genre = ALL_GENRES
        else:
            genre = normalize_genre(genre)

        state = self.state
        if genre == state.genre:
            return False

        logger.info(f"Filter changed: {state.genre} -> {genre}")
        state.genre = genre
        state.items = []
        state.cursor = 1
        state.has_more = True
        self._begin_reset(FeedStatus.LOADING)
        return await self._issue(1, MergeMode.REPLACE)

    async def retry(self) -> bool:
        """
        Re-issue the request that failed.

        A failed reset reloads page 1; a failed page load retries the
        same cursor. No-op unless the feed is in the error state.
        """
        if self.state.status is not FeedStatus.ERROR:
            return False

        if self._failed_mode is MergeMode.REPLACE:
            self._begin_reset(FeedStatus.LOADING)
            return await self._issue(1, MergeMode.REPLACE)
        return await self.load_next_page()

    def _begin_reset(self, status: FeedStatus) -> None:
        # Any page load still in flight is now stale; release its flag.
        state = self.state
        state.generation += 1
        state.loading = status is FeedStatus.LOADING
        state.refreshing = status is FeedStatus.REFRESHING
        state.error = None
        state.status = status

    def _is_stale(self, generation: int, page_num: int) -> bool:
        if generation != self.state.generation:
            logger.debug(
                f"Dropping stale response for page {page_num} "
                f"(generation {generation}, current {self.state.generation})"
            )
            return True
        return False

    def _settle(self) -> None:
        self.state.loading = False
        self.state.refreshing = False

    async def _issue(self, page_num: int, mode: MergeMode) -> bool:
        state = self.state
        generation = state.generation

        try:
            page = await self.api.list_books(
                page=page_num,
                limit=self.page_size,
                genre=state.genre
            )
        except ShelfShareError as e:
            if self._is_stale(generation, page_num):
                return False
            logger.warning(f"Failed to load page {page_num} of {state.genre}: {e}")
            self._settle()
            state.error = e
            state.status = FeedStatus.ERROR
            self._failed_mode = mode
            return False
        except asyncio.CancelledError:
            if not self._is_stale(generation, page_num):
                logger.info(f"Load of page {page_num} cancelled")
                self._settle()
                state.status = FeedStatus.IDLE
            raise
        except Exception as e:
            if not self._is_stale(generation, page_num):
                self._settle()
                state.error = e
                state.status = FeedStatus.ERROR
                self._failed_mode = mode
            raise

        if self._is_stale(generation, page_num):
            return False

        self._settle()
        state.items = merge_books(state.items, page.books, mode)
        state.cursor = page_num + 1
        state.has_more = page_num < page.total_pages
        state.error = None
        state.status = FeedStatus.IDLE
        self._failed_mode = None
        logger.info(
            f"Applied page {page_num}/{page.total_pages} of {state.genre}: "
            f"{len(state.items)} books"
        )
        return True
