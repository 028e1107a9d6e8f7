"""Favorites state: the paginated list of movies the user marked."""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

from kinoteka.config import settings
from kinoteka.errors import StoreError
from kinoteka.notifications import Confirm, NotificationKind, Notifier
from kinoteka.schemas.cursor import SortDirection, SortField, ViewCursor
from kinoteka.schemas.movie import Movie
from kinoteka.services.favorites import FavoriteMarks
from kinoteka.state.base import Outcome, RequestTracker, StateContainer
from kinoteka.store.base import Order, RemoteStore, in_, parse_row

logger = logging.getLogger(__name__)

DEFAULT_SORT_FIELD = SortField.CREATED_AT
DEFAULT_SORT_DIRECTION = SortDirection.DESC

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


@dataclass(frozen=True)
class FavoritesState:
    movies: list[Movie] = field(default_factory=list)
    total_count: int = 0
    loading: bool = False
    error: str | None = None
    current_page: int = 1
    sort_field: SortField = DEFAULT_SORT_FIELD
    sort_direction: SortDirection = DEFAULT_SORT_DIRECTION
    removing: frozenset[str] = frozenset()


class FavoritesContainer(StateContainer[FavoritesState]):
    """
    Pages through the user's favorites.

    Pagination happens client-side over the user's marks; only the movie
    rows of the requested page are fetched. Sorting by `created_at` means
    sorting by when each movie was marked, not when it was created.
    """

    def __init__(
        self,
        store: RemoteStore,
        confirm: Confirm,
        notifier: Notifier | None = None,
        page_size: int | None = None,
    ) -> None:
        super().__init__(FavoritesState(), notifier)
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
        )

    def set_page(self, page: int) -> None:
        if page < 1:
            raise ValueError("page must be 1 or greater")
        self._commit(current_page=page)

    def set_sort(self, sort_field: SortField, direction: SortDirection) -> None:
        self._commit(sort_field=sort_field, sort_direction=direction, current_page=1)

    def clear_sort(self) -> None:
        self.set_sort(DEFAULT_SORT_FIELD, DEFAULT_SORT_DIRECTION)

    async def load_page(self, user_id: str, cursor: ViewCursor | None = None) -> Outcome:
        cursor = cursor or self.cursor
        request_id = self._page_requests.next()
        self._commit(loading=True, error=None)

        try:
            movies, total = await self._fetch_page(user_id, cursor)
        except StoreError as e:
            if not self._page_requests.is_current(request_id):
                return Outcome.STALE
            logger.error(f"Failed to load favorites page {cursor.page}: {e.message}")
            self._commit(loading=False, error=e.message, movies=[], total_count=0)
            return Outcome.FAILED

        if not self._page_requests.is_current(request_id):
            logger.debug(f"Discarding stale favorites page {cursor.page} (request {request_id})")
            return Outcome.STALE

        self._commit(loading=False, movies=movies, total_count=total)
        return Outcome.DONE

    async def _fetch_page(self, user_id: str, cursor: ViewCursor) -> tuple[list[Movie], int]:
        ascending = cursor.sort_direction.ascending
        marks = await self.marks.marks(user_id, ascending=ascending)
        if not marks:
            return [], 0

        offset = cursor.offset(self.page_size)
        page_ids = [mark.movie_id for mark in marks[offset : offset + self.page_size]]
        if not page_ids:
            return [], len(marks)

        by_mark_time = cursor.sort_field is SortField.CREATED_AT
        result = await self.store.select(
            "movies",
            filters=[in_("id", page_ids)],
            order=None if by_mark_time else Order(cursor.sort_field.value, ascending),
        )
        movies = [parse_row(Movie.model_validate, row) for row in result.rows]

        if by_mark_time:
            # The row fetch does not keep mark order.
            marked_at = {mark.movie_id: mark.created_at or _EPOCH for mark in marks}
            movies.sort(key=lambda movie: marked_at.get(movie.id, _EPOCH), reverse=not ascending)

        return movies, len(marks)

    async def remove_favorite(
        self, movie_id: str, title: str, user_id: str, refresh: bool = False
    ) -> Outcome:
        """Remove a mark after confirmation, optionally reloading the current page."""
        if movie_id in self.state.removing:
            logger.info(f"Removal of favorite {movie_id} already in flight, ignoring")
            return Outcome.NOOP

        self._commit(removing=self.state.removing | {movie_id})
        try:
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
        finally:
            self._commit(removing=self.state.removing - {movie_id})

        self._notify(NotificationKind.SUCCESS, "Removed from favorites", f'"{title}" was removed from favorites.')
        if refresh:
            await self.load_page(user_id)
        return Outcome.DONE
