"""Pydantic schemas for store rows, drafts and external payloads."""

from kinoteka.schemas.candidate import CandidateMovie, SubtitleMatch
from kinoteka.schemas.comment import Comment
from kinoteka.schemas.cursor import SortDirection, SortField, ViewCursor
from kinoteka.schemas.favorite import FavoriteMark
from kinoteka.schemas.movie import CatalogMovie, Movie, MovieDraft, SelectedSubtitle
from kinoteka.schemas.session import Session

__all__ = [
    "CandidateMovie",
    "CatalogMovie",
    "Comment",
    "FavoriteMark",
    "Movie",
    "MovieDraft",
    "SelectedSubtitle",
    "Session",
    "SortDirection",
    "SortField",
    "SubtitleMatch",
    "ViewCursor",
]
