"""Queries over the favorites table shared by the catalog, favorites and poller."""

import logging

from kinoteka.schemas.favorite import FavoriteMark
from kinoteka.store.base import Order, RemoteStore, eq, parse_row

logger = logging.getLogger(__name__)

TABLE = "favorites"


class FavoriteMarks:
    """Reads and writes favorite marks for a user."""

    def __init__(self, store: RemoteStore) -> None:
        self.store = store

    async def exists(self, user_id: str, movie_id: str) -> bool:
        result = await self.store.select(
            TABLE,
            columns="id",
            filters=[eq("user_id", user_id), eq("movie_id", movie_id)],
            limit=1,
        )
        return bool(result.rows)

    async def add(self, user_id: str, movie_id: str) -> FavoriteMark:
        row = await self.store.insert(TABLE, {"user_id": user_id, "movie_id": movie_id})
        return parse_row(FavoriteMark.model_validate, row)

    async def remove(self, user_id: str, movie_id: str) -> None:
        await self.store.delete(TABLE, [eq("user_id", user_id), eq("movie_id", movie_id)])

    async def movie_ids(self, user_id: str) -> list[str]:
        result = await self.store.select(
            TABLE, columns="movie_id", filters=[eq("user_id", user_id)]
        )
        return [str(row["movie_id"]) for row in result.rows]

    async def marks(self, user_id: str, ascending: bool = False) -> list[FavoriteMark]:
        """All marks of a user ordered by when they were made."""
        result = await self.store.select(
            TABLE,
            filters=[eq("user_id", user_id)],
            order=Order("created_at", ascending=ascending),
        )
        return [parse_row(FavoriteMark.model_validate, row) for row in result.rows]

    async def count(self, user_id: str) -> int:
        result = await self.store.select(
            TABLE, columns="id", filters=[eq("user_id", user_id)], head=True
        )
        return result.count or 0
