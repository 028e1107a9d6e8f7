"""Pydantic schema for movie comments."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator

ANONYMOUS_AUTHOR = "Anonymous"


class Comment(BaseModel):
    """A comment row with its author's display name attached."""

    model_config = ConfigDict(extra="ignore")

    id: str
    movie_id: str
    user_id: str
    comment: str
    created_at: datetime | None = None
    updated_at: datetime | None = None
    author_name: str = ANONYMOUS_AUTHOR

    @field_validator("id", "movie_id", "user_id", mode="before")
    @classmethod
    def _coerce_ids(cls, value: Any) -> str | None:
        return None if value is None else str(value)

    @property
    def is_edited(self) -> bool:
        return self.updated_at is not None and self.updated_at != self.created_at

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Comment":
        """Build a comment from a row carrying an embedded `user` object."""
        user = row.get("user") or {}
        return cls.model_validate(
            {**row, "author_name": user.get("name") or ANONYMOUS_AUTHOR}
        )
