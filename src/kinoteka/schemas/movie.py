"""Pydantic schemas for movie data."""

from datetime import datetime
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, field_validator

# Fields a user can set on a movie; identity and timestamps are server-owned.
EDITABLE_FIELDS = (
    "title",
    "release_year",
    "duration_minutes",
    "description",
    "rating",
    "subtitles",
)


def clamp_rating(value: float) -> float:
    return min(max(value, 0.0), 10.0)


class Movie(BaseModel):
    """A row of the movies table."""

    model_config = ConfigDict(extra="ignore")

    id: str
    title: str
    release_year: int
    duration_minutes: int
    description: str = ""
    rating: float = 0.0
    subtitles: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> str | None:
        return None if value is None else str(value)

    @field_validator("rating", mode="before")
    @classmethod
    def _clamp_rating(cls, value: Any) -> float:
        return clamp_rating(float(value or 0))


class CatalogMovie(Movie):
    """Movie row annotated for the catalog view. Annotations are never persisted."""

    rank: float | None = None
    comment_count: int = 0


class SelectedSubtitle(BaseModel):
    """A downloaded subtitle file attached to a draft."""

    file_name: str
    content: str


class MovieDraft(BaseModel):
    """
    A movie being assembled before its first save.

    Every field is optional while the user fills the form; `missing_required`
    reports what still blocks persistence.
    """

    title: str | None = None
    release_year: int | None = None
    duration_minutes: int | None = None
    description: str | None = None
    rating: float | None = None

    REQUIRED_FOR_SAVE: ClassVar[tuple[str, ...]] = (
        "title",
        "release_year",
        "duration_minutes",
        "description",
        "rating",
    )

    def missing_required(self) -> list[str]:
        # Zero or negative numbers count as missing.
        missing = []
        for field in self.REQUIRED_FOR_SAVE:
            value = getattr(self, field)
            if not value or (isinstance(value, (int, float)) and value <= 0):
                missing.append(field)
        return missing

    def has_subtitle_lookup_keys(self) -> bool:
        return bool(self.title) and bool(self.release_year)

    def to_row(self, subtitle: SelectedSubtitle | None = None) -> dict[str, Any]:
        """Build the insert payload for the movies table."""
        row = self.model_dump(exclude_none=True)
        row["subtitles"] = subtitle.content if subtitle else None
        return row
