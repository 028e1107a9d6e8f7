"""Pagination and sort cursor for list views."""

from dataclasses import dataclass
from enum import Enum


class SortField(str, Enum):
    TITLE = "title"
    RELEASE_YEAR = "release_year"
    DURATION_MINUTES = "duration_minutes"
    RATING = "rating"
    UPDATED_AT = "updated_at"
    CREATED_AT = "created_at"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"

    @property
    def ascending(self) -> bool:
        return self is SortDirection.ASC


@dataclass(frozen=True)
class ViewCursor:
    """Everything that determines a single page request."""

    page: int = 1
    sort_field: SortField = SortField.UPDATED_AT
    sort_direction: SortDirection = SortDirection.DESC
    search: str = ""

    def __post_init__(self) -> None:
        if self.page < 1:
            raise ValueError("page must be 1 or greater")

    def offset(self, page_size: int) -> int:
        return (self.page - 1) * page_size
