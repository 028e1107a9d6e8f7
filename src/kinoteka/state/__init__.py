"""State containers, one per domain area."""

from kinoteka.state.auth import AuthContainer, AuthState
from kinoteka.state.base import Outcome, StateContainer
from kinoteka.state.catalog import CatalogContainer, CatalogState, FavoriteAction
from kinoteka.state.comments import CommentsContainer, CommentsState
from kinoteka.state.draft import DraftContainer, DraftState, DraftStatus
from kinoteka.state.edit import EditContainer, EditState
from kinoteka.state.favorites import FavoritesContainer, FavoritesState

__all__ = [
    "AuthContainer",
    "AuthState",
    "CatalogContainer",
    "CatalogState",
    "CommentsContainer",
    "CommentsState",
    "DraftContainer",
    "DraftState",
    "DraftStatus",
    "EditContainer",
    "EditState",
    "FavoriteAction",
    "FavoritesContainer",
    "FavoritesState",
    "Outcome",
    "StateContainer",
]
