"""Pydantic schemas for external metadata and subtitle search results."""

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class CandidateMovie(BaseModel):
    """A film returned by the Kinopoisk keyword search. Never persisted."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name_ru: str | None = Field(default=None, alias="nameRu")
    name_en: str | None = Field(default=None, alias="nameEn")
    year: str | None = None
    film_length: str | None = Field(default=None, alias="filmLength")
    description: str | None = None
    countries: list[str] = Field(default_factory=list)
    genres: list[str] = Field(default_factory=list)
    rating: str | None = None
    rating_vote_count: str | None = Field(default=None, alias="ratingVoteCount")
    external_id: int | None = Field(
        default=None,
        validation_alias=AliasChoices("external_id", "filmId", "kinopoiskId", "externalId"),
    )

    @field_validator("year", "film_length", "rating", "rating_vote_count", mode="before")
    @classmethod
    def _as_text(cls, value: Any) -> str | None:
        return None if value is None else str(value)

    @field_validator("countries", "genres", mode="before")
    @classmethod
    def _flatten_tags(cls, value: Any) -> list[str]:
        # The API nests tags as [{"country": "США"}] / [{"genre": "драма"}].
        if not value:
            return []
        tags = []
        for item in value:
            if isinstance(item, dict):
                tags.extend(str(v) for v in item.values() if v)
            elif item:
                tags.append(str(item))
        return tags

    @property
    def display_title(self) -> str:
        return self.name_ru or self.name_en or ""


class SubtitleMatch(BaseModel):
    """Best subtitle file found for a movie."""

    file_id: int
    file_name: str
    language: str | None = None
    release: str | None = None
