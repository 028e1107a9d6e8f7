"""Tests for the favorites state container."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from kinoteka.errors import StoreError
from kinoteka.notifications import NotificationKind
from kinoteka.schemas.cursor import SortDirection, SortField, ViewCursor
from kinoteka.state.base import Outcome
from kinoteka.state.catalog import CatalogContainer, FavoriteAction
from kinoteka.state.favorites import FavoritesContainer
from kinoteka.store.base import Filter, Order, SelectResult

PAGE_SIZE = 2


def make_mark(movie_id: str, created_at: str) -> dict:
    return {"id": f"f-{movie_id}", "user_id": "u1", "movie_id": movie_id, "created_at": created_at}


def make_movie_row(id: str, title: str | None = None, rating: float = 5.0) -> dict:
    return {
        "id": id,
        "title": title or f"Movie {id}",
        "release_year": 1990,
        "duration_minutes": 120,
        "rating": rating,
    }


def make_favorites(store: MagicMock, confirm: AsyncMock, notifier: MagicMock) -> FavoritesContainer:
    return FavoritesContainer(store, confirm, notifier, page_size=PAGE_SIZE)


MARKS_NEWEST_FIRST = [
    make_mark("c", "2024-03-03T00:00:00+00:00"),
    make_mark("b", "2024-02-02T00:00:00+00:00"),
    make_mark("a", "2024-01-01T00:00:00+00:00"),
]


# ---------------------------------------------------------------------------
# Cursor mutators
# ---------------------------------------------------------------------------


class TestCursor:
    def test_defaults_to_newest_mark_first(self, store, confirm, notifier) -> None:
        favorites = make_favorites(store, confirm, notifier)
        assert favorites.cursor == ViewCursor(sort_field=SortField.CREATED_AT, sort_direction=SortDirection.DESC)

    def test_sort_change_resets_page(self, store, confirm, notifier) -> None:
        favorites = make_favorites(store, confirm, notifier)
        favorites.set_page(3)
        favorites.set_sort(SortField.TITLE, SortDirection.ASC)
        assert favorites.state.current_page == 1
        favorites.set_page(2)
        favorites.clear_sort()
        assert favorites.state.sort_field is SortField.CREATED_AT
        assert favorites.state.current_page == 1

    def test_rejects_page_zero(self, store, confirm, notifier) -> None:
        with pytest.raises(ValueError):
            make_favorites(store, confirm, notifier).set_page(0)


# ---------------------------------------------------------------------------
# load_page
# ---------------------------------------------------------------------------


class TestLoadPage:
    async def test_first_page_in_mark_order(self, store, confirm, notifier) -> None:
        store.select = AsyncMock(
            side_effect=[
                SelectResult(rows=MARKS_NEWEST_FIRST),
                # Movie rows come back in arbitrary order
                SelectResult(rows=[make_movie_row("b"), make_movie_row("c")]),
            ]
        )
        favorites = make_favorites(store, confirm, notifier)

        assert await favorites.load_page("u1") is Outcome.DONE

        assert [m.id for m in favorites.state.movies] == ["c", "b"]
        assert favorites.state.total_count == 3
        marks_call, movies_call = store.select.call_args_list
        assert marks_call.kwargs["order"] == Order("created_at", ascending=False)
        assert movies_call.kwargs["filters"] == [Filter("id", "in", ("c", "b"))]
        assert movies_call.kwargs["order"] is None

    async def test_second_page(self, store, confirm, notifier) -> None:
        store.select = AsyncMock(
            side_effect=[SelectResult(rows=MARKS_NEWEST_FIRST), SelectResult(rows=[make_movie_row("a")])]
        )
        favorites = make_favorites(store, confirm, notifier)

        await favorites.load_page("u1", ViewCursor(page=2))

        assert [m.id for m in favorites.state.movies] == ["a"]
        assert store.select.call_args_list[1].kwargs["filters"] == [Filter("id", "in", ("a",))]

    async def test_oldest_mark_first(self, store, confirm, notifier) -> None:
        store.select = AsyncMock(
            side_effect=[
                SelectResult(rows=list(reversed(MARKS_NEWEST_FIRST))),
                SelectResult(rows=[make_movie_row("b"), make_movie_row("a")]),
            ]
        )
        favorites = make_favorites(store, confirm, notifier)

        await favorites.load_page(
            "u1", ViewCursor(sort_field=SortField.CREATED_AT, sort_direction=SortDirection.ASC)
        )

        assert [m.id for m in favorites.state.movies] == ["a", "b"]
        assert store.select.call_args_list[0].kwargs["order"] == Order("created_at", ascending=True)

    async def test_other_sort_fields_are_ordered_by_store(self, store, confirm, notifier) -> None:
        store.select = AsyncMock(
            side_effect=[
                SelectResult(rows=MARKS_NEWEST_FIRST),
                SelectResult(rows=[make_movie_row("b", rating=9), make_movie_row("c", rating=3)]),
            ]
        )
        favorites = make_favorites(store, confirm, notifier)

        await favorites.load_page(
            "u1", ViewCursor(sort_field=SortField.RATING, sort_direction=SortDirection.DESC)
        )

        assert [m.id for m in favorites.state.movies] == ["b", "c"]
        assert store.select.call_args_list[1].kwargs["order"] == Order("rating", ascending=False)

    async def test_no_marks(self, store, confirm, notifier) -> None:
        favorites = make_favorites(store, confirm, notifier)

        assert await favorites.load_page("u1") is Outcome.DONE

        assert favorites.state.movies == []
        assert favorites.state.total_count == 0
        store.select.assert_awaited_once()

    async def test_page_past_the_end(self, store, confirm, notifier) -> None:
        store.select = AsyncMock(return_value=SelectResult(rows=MARKS_NEWEST_FIRST))
        favorites = make_favorites(store, confirm, notifier)

        await favorites.load_page("u1", ViewCursor(page=5))

        assert favorites.state.movies == []
        assert favorites.state.total_count == 3
        store.select.assert_awaited_once()

    async def test_failure(self, store, confirm, notifier) -> None:
        store.select = AsyncMock(side_effect=StoreError("JWT expired"))
        favorites = make_favorites(store, confirm, notifier)

        assert await favorites.load_page("u1") is Outcome.FAILED

        assert favorites.state.error == "JWT expired"
        assert favorites.state.movies == []
        assert favorites.state.loading is False

    async def test_unreadable_movie_row_fails_the_page(self, store, confirm, notifier) -> None:
        broken = {**make_movie_row("b"), "duration_minutes": None}
        store.select = AsyncMock(
            side_effect=[SelectResult(rows=MARKS_NEWEST_FIRST), SelectResult(rows=[make_movie_row("c"), broken])]
        )
        favorites = make_favorites(store, confirm, notifier)

        assert await favorites.load_page("u1") is Outcome.FAILED

        assert favorites.state.loading is False
        assert favorites.state.movies == []
        assert "malformed" in favorites.state.error

    async def test_new_favorite_shows_first(self, store, confirm, notifier) -> None:
        marks = [make_mark("a", "2024-01-01T00:00:00+00:00")]

        async def select(table: str, **kwargs):
            if table == "favorites" and kwargs.get("columns") == "id":
                return SelectResult(rows=[])
            if table == "favorites":
                newest_first = sorted(marks, key=lambda m: m["created_at"], reverse=True)
                return SelectResult(rows=newest_first)
            ids = kwargs["filters"][0].value
            return SelectResult(rows=[make_movie_row(i) for i in sorted(ids)])

        async def insert(table: str, values: dict, columns: str = "*"):
            row = make_mark(values["movie_id"], "2024-05-05T00:00:00+00:00")
            marks.append(row)
            return row

        store.select = AsyncMock(side_effect=select)
        store.insert = AsyncMock(side_effect=insert)
        catalog = CatalogContainer(store, confirm, notifier, page_size=PAGE_SIZE)
        favorites = make_favorites(store, confirm, notifier)

        assert await catalog.toggle_favorite("z", "Zodiac", "u1", FavoriteAction.ADD) is Outcome.DONE
        await favorites.load_page("u1")

        assert favorites.state.movies[0].id == "z"
        assert favorites.state.total_count == 2


# ---------------------------------------------------------------------------
# remove_favorite
# ---------------------------------------------------------------------------


class TestRemoveFavorite:
    async def test_remove_and_refresh(self, store, confirm, notifier) -> None:
        store.select = AsyncMock(
            side_effect=[SelectResult(rows=MARKS_NEWEST_FIRST[1:]), SelectResult(rows=[make_movie_row("b")])]
        )
        favorites = make_favorites(store, confirm, notifier)

        outcome = await favorites.remove_favorite("c", "Casablanca", "u1", refresh=True)

        assert outcome is Outcome.DONE
        store.delete.assert_awaited_once_with(
            "favorites", [Filter("user_id", "eq", "u1"), Filter("movie_id", "eq", "c")]
        )
        assert store.select.await_count == 2
        assert favorites.state.total_count == 2
        assert favorites.state.removing == frozenset()
        assert notifier.notify.call_args.args[0] is NotificationKind.SUCCESS

    async def test_without_refresh_does_not_reload(self, store, confirm, notifier) -> None:
        favorites = make_favorites(store, confirm, notifier)

        assert await favorites.remove_favorite("c", "Casablanca", "u1") is Outcome.DONE
        store.select.assert_not_awaited()

    async def test_declined(self, store, decline, notifier) -> None:
        store.select = AsyncMock(
            side_effect=[SelectResult(rows=MARKS_NEWEST_FIRST), SelectResult(rows=[make_movie_row("c")])]
        )
        favorites = make_favorites(store, decline, notifier)
        await favorites.load_page("u1")
        before = favorites.state.movies

        outcome = await favorites.remove_favorite("c", "Casablanca", "u1", refresh=True)

        assert outcome is Outcome.DECLINED
        assert favorites.state.movies == before
        assert favorites.state.error is None
        assert favorites.state.removing == frozenset()
        store.delete.assert_not_awaited()
        notifier.notify.assert_not_called()

    async def test_failure(self, store, confirm, notifier) -> None:
        store.delete = AsyncMock(side_effect=StoreError("down"))
        favorites = make_favorites(store, confirm, notifier)

        outcome = await favorites.remove_favorite("c", "Casablanca", "u1", refresh=True)

        assert outcome is Outcome.FAILED
        assert favorites.state.removing == frozenset()
        assert notifier.notify.call_args.args[0] is NotificationKind.ERROR
        store.select.assert_not_awaited()
