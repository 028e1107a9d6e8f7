"""Pydantic schema for favorite marks."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator


class FavoriteMark(BaseModel):
    """Relates one user to one movie they marked as favorite."""

    model_config = ConfigDict(extra="ignore")

    id: str | None = None
    user_id: str
    movie_id: str
    created_at: datetime | None = None

    @field_validator("id", "user_id", "movie_id", mode="before")
    @classmethod
    def _coerce_ids(cls, value: Any) -> str | None:
        return None if value is None else str(value)
