"""Catalog state: the paginated, searchable movie list and the user's favorite ids."""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from kinoteka.config import settings
from kinoteka.errors import StoreError
from kinoteka.notifications import Confirm, NotificationKind, Notifier
from kinoteka.schemas.cursor import SortDirection, SortField, ViewCursor
from kinoteka.schemas.movie import CatalogMovie
from kinoteka.services.favorites import FavoriteMarks
from kinoteka.state.base import Outcome, RequestTracker, StateContainer
from kinoteka.store.base import Order, RemoteStore, eq, ilike, in_, parse_row

logger = logging.getLogger(__name__)

DEFAULT_SORT_FIELD = SortField.UPDATED_AT
DEFAULT_SORT_DIRECTION = SortDirection.DESC


class FavoriteAction(str, Enum):
    ADD = "add"
    REMOVE = "remove"


@dataclass(frozen=True)
class CatalogState:
    movies: list[CatalogMovie] = field(default_factory=list)
    total_count: int = 0
    loading: bool = False
    error: str | None = None

    search_text: str = ""  # What the user is typing
    current_search_text: str = ""  # What the list is filtered by
    current_page: int = 1
    sort_field: SortField = DEFAULT_SORT_FIELD
    sort_direction: SortDirection = DEFAULT_SORT_DIRECTION

    favorite_ids: frozenset[str] = frozenset()
    favorites_loading: frozenset[str] = frozenset()


async def count_comments(store: RemoteStore, movie_ids: list[str]) -> dict[str, int]:
    """
    Count comments for a page of movies with a single query.

    Ids without comments map to 0. A failed lookup maps every id to 0.
    """
    counts = {movie_id: 0 for movie_id in movie_ids}
    if not movie_ids:
        return counts

    try:
        result = await store.select("comments", columns="movie_id", filters=[in_("movie_id", movie_ids)])
    except StoreError as e:
        logger.error(f"Failed to load comment counts: {e.message}")
        return counts

    for row in result.rows:
        movie_id = str(row["movie_id"])
        if movie_id in counts:
            counts[movie_id] += 1
    return counts


class CatalogContainer(StateContainer[CatalogState]):
    """
    Loads catalog pages and toggles favorites against the remote store.

    Page loads are tagged with request ids: when several loads race, only the
    most recently issued one may commit its result.
    """

    def __init__(
        self,
        store: RemoteStore,
        confirm: Confirm,
        notifier: Notifier | None = None,
        page_size: int | None = None,
    ) -> None:
        super().__init__(CatalogState(), notifier)
        self.store = store
        self.confirm = confirm
        self.page_size = page_size or settings.page_size
        self.marks = FavoriteMarks(store)
        self._page_requests = RequestTracker()

    @property
    def cursor(self) -> ViewCursor:
        return ViewCursor(
            page=self.state.current_page,
            sort_field=self.state.sort_field,
            sort_direction=self.state.sort_direction,
            search=self.state.current_search_text,
        )

    # ------------------------------------------------------------------
    # Cursor mutators
    # ------------------------------------------------------------------

    def set_search_text(self, text: str) -> None:
        self._commit(search_text=text)

    def commit_search(self, text: str | None = None) -> None:
        """Filter by the staged search text (or `text`) starting from page 1."""
        committed = self.state.search_text if text is None else text
        self._commit(search_text=committed, current_search_text=committed, current_page=1)

    def clear_search(self) -> None:
        self._commit(search_text="", current_search_text="", current_page=1)

    def set_page(self, page: int) -> None:
        if page < 1:
            raise ValueError("page must be 1 or greater")
        self._commit(current_page=page)

    def set_sort(self, sort_field: SortField, direction: SortDirection) -> None:
        self._commit(sort_field=sort_field, sort_direction=direction, current_page=1)

    def clear_sort(self) -> None:
        self.set_sort(DEFAULT_SORT_FIELD, DEFAULT_SORT_DIRECTION)

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    async def load_page(self, cursor: ViewCursor | None = None) -> Outcome:
        """
        Load one page of the catalog.

        With a search term, ranked full-text search is tried first and a plain
        title match is used when the RPC fails. Every page is annotated with
        comment counts.
        """
        cursor = cursor or self.cursor
        request_id = self._page_requests.next()
        self._commit(loading=True, error=None)

        try:
            movies, total = await self._fetch_page(cursor)
        except StoreError as e:
            if not self._page_requests.is_current(request_id):
                return Outcome.STALE
            logger.error(f"Failed to load catalog page {cursor.page}: {e.message}")
            self._commit(loading=False, error=e.message, movies=[], total_count=0)
            return Outcome.FAILED

        if not self._page_requests.is_current(request_id):
            logger.debug(f"Discarding stale catalog page {cursor.page} (request {request_id})")
            return Outcome.STALE

        self._commit(loading=False, movies=movies, total_count=total)
        return Outcome.DONE

    async def _fetch_page(self, cursor: ViewCursor) -> tuple[list[CatalogMovie], int]:
        offset = cursor.offset(self.page_size)
        term = cursor.search.strip()

        if term:
            try:
                rows = await self.store.rpc(
                    "search_movies",
                    {"search_text": term, "offset_val": offset, "limit_val": self.page_size},
                )
            except StoreError as e:
                logger.warning(f"Full-text search failed, falling back to title match: {e.message}")
                rows, total = await self._title_search(term, cursor, offset)
            else:
                rows = rows or []
                total = await self._full_text_count(term)
        else:
            result = await self.store.select(
                "movies",
                order=Order(cursor.sort_field.value, cursor.sort_direction.ascending),
                offset=offset,
                limit=self.page_size,
                count=True,
            )
            rows, total = result.rows, result.count or 0

        rows = rows[: self.page_size]
        ids = [str(row["id"]) for row in rows if row.get("id") is not None]
        counts = await count_comments(self.store, ids)
        movies = [
            parse_row(
                CatalogMovie.model_validate,
                {**row, "comment_count": counts.get(str(row.get("id")), 0)},
            )
            for row in rows
        ]
        return movies, total

    async def _title_search(
        self, term: str, cursor: ViewCursor, offset: int
    ) -> tuple[list[dict[str, Any]], int]:
        result = await self.store.select(
            "movies",
            filters=[ilike("title", f"%{term}%")],
            order=Order(cursor.sort_field.value, cursor.sort_direction.ascending),
            offset=offset,
            limit=self.page_size,
            count=True,
        )
        rows = [{**row, "rank": 0} for row in result.rows]
        return rows, result.count or 0

    async def _full_text_count(self, term: str) -> int:
        try:
            count = await self.store.rpc("search_movies_count", {"search_text": term})
            return int(count or 0)
        except StoreError as e:
            logger.warning(f"Full-text count failed, falling back to title count: {e.message}")

        try:
            result = await self.store.select(
                "movies", filters=[ilike("title", f"%{term}%")], head=True
            )
        except StoreError as e:
            logger.error(f"Title count failed: {e.message}")
            return 0
        return result.count or 0

    async def load_favorite_ids(self, user_id: str) -> Outcome:
        """Load every movie id the user marked. Failure leaves nothing marked."""
        try:
            ids = await self.marks.movie_ids(user_id)
        except StoreError as e:
            logger.warning(f"Failed to load favorite ids for user {user_id}: {e.message}")
            self._commit(favorite_ids=frozenset())
            return Outcome.FAILED

        self._commit(favorite_ids=frozenset(ids))
        return Outcome.DONE

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def toggle_favorite(
        self, movie_id: str, title: str, user_id: str, action: FavoriteAction
    ) -> Outcome:
        """
        Add or remove a favorite mark for one movie.

        Distinct movies may be toggled concurrently; a second toggle for a
        movie whose previous toggle has not finished is rejected.
        """
        if movie_id in self.state.favorites_loading:
            logger.info(f"Favorite toggle for {movie_id} already in flight, ignoring")
            return Outcome.NOOP

        self._commit(favorites_loading=self.state.favorites_loading | {movie_id})
        try:
            if action is FavoriteAction.ADD:
                return await self._add_favorite(movie_id, title, user_id)
            return await self._remove_favorite(movie_id, title, user_id)
        finally:
            self._commit(favorites_loading=self.state.favorites_loading - {movie_id})

    async def _add_favorite(self, movie_id: str, title: str, user_id: str) -> Outcome:
        try:
            if await self.marks.exists(user_id, movie_id):
                self._notify(
                    NotificationKind.WARNING, "Already in favorites", f'"{title}" is already in favorites!'
                )
                return Outcome.NOOP
            await self.marks.add(user_id, movie_id)
        except StoreError as e:
            self._notify(
                NotificationKind.ERROR,
                "Could not add to favorites",
                f'Failed to add "{title}" to favorites: {e.message}',
            )
            return Outcome.FAILED

        self._commit(favorite_ids=self.state.favorite_ids | {movie_id})
        self._notify(NotificationKind.SUCCESS, "Added to favorites", f'"{title}" was added to favorites!')
        return Outcome.DONE

    async def _remove_favorite(self, movie_id: str, title: str, user_id: str) -> Outcome:
        if not await self.confirm(f'Remove "{title}" from favorites?'):
            return Outcome.DECLINED

        try:
            await self.marks.remove(user_id, movie_id)
        except StoreError as e:
            self._notify(
                NotificationKind.ERROR,
                "Could not remove from favorites",
                f'Failed to remove "{title}" from favorites: {e.message}',
            )
            return Outcome.FAILED

        self._commit(favorite_ids=self.state.favorite_ids - {movie_id})
        self._notify(NotificationKind.SUCCESS, "Removed from favorites", f'"{title}" was removed from favorites.')
        return Outcome.DONE

    async def delete_movie(self, movie_id: str, title: str, cursor: ViewCursor | None = None) -> Outcome:
        """
        Delete a movie, then its favorites and comments, then reload the page.

        The cascade runs after the movie row is gone and is not transactional;
        a failed cleanup step is reported but not rolled back.
        """
        if not await self.confirm(f'Delete the movie "{title}"?'):
            return Outcome.DECLINED

        try:
            await self.store.delete("movies", [eq("id", movie_id)])
        except StoreError as e:
            logger.warning(f"Movie {movie_id} was not deleted, list left unchanged: {e.message}")
            self._notify(NotificationKind.ERROR, "Delete failed", f'Failed to delete "{title}": {e.message}')
            return Outcome.FAILED

        leftovers = []
        for table in ("favorites", "comments"):
            try:
                await self.store.delete(table, [eq("movie_id", movie_id)])
            except StoreError as e:
                logger.error(f"Failed to delete {table} of movie {movie_id}: {e.message}")
                leftovers.append(table)

        await self.load_page(cursor)

        self._notify(NotificationKind.SUCCESS, "Movie deleted", f'"{title}" was deleted from the catalog.')
        if leftovers:
            self._notify(
                NotificationKind.WARNING,
                "Cleanup incomplete",
                f'Some {" and ".join(leftovers)} of "{title}" could not be deleted.',
            )
        return Outcome.DONE
