"""Movie edit state: load one movie and save only the fields that changed."""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from kinoteka.errors import InvalidInputError, StoreError
from kinoteka.notifications import NotificationKind, Notifier
from kinoteka.schemas.movie import EDITABLE_FIELDS, Movie
from kinoteka.state.base import Outcome, StateContainer
from kinoteka.store.base import RemoteStore, eq, parse_row

logger = logging.getLogger(__name__)

MIN_RELEASE_YEAR = 1888


@dataclass(frozen=True)
class EditState:
    current_movie: Movie | None = None
    loading: bool = False
    saving: bool = False
    error: str | None = None


def stringify(value: Any) -> str:
    """Render a field value the way the edit form shows it."""
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def diff_fields(baseline: Movie, form_values: Mapping[str, Any]) -> dict[str, str]:
    """
    Compare form values against the loaded movie field by field.

    Only editable fields present in `form_values` are compared.

    Returns:
        Changed fields mapped to their new values as strings
    """
    changed = {}
    for name in EDITABLE_FIELDS:
        if name not in form_values:
            continue
        new_value = stringify(form_values[name])
        if stringify(getattr(baseline, name)) != new_value:
            changed[name] = new_value
    return changed


def coerce_changes(changed: dict[str, str]) -> dict[str, Any]:
    """
    Convert changed form strings into column values and validate them.

    Raises:
        InvalidInputError: A value cannot be stored
    """
    update: dict[str, Any] = {}
    for name, text in changed.items():
        if name in ("release_year", "duration_minutes"):
            try:
                number = int(text)
            except ValueError:
                raise InvalidInputError(f"{name} must be a whole number.") from None
            if name == "release_year" and number < MIN_RELEASE_YEAR:
                raise InvalidInputError(f"release_year must be {MIN_RELEASE_YEAR} or later.")
            if name == "duration_minutes" and number <= 0:
                raise InvalidInputError("duration_minutes must be positive.")
            update[name] = number
        elif name == "rating":
            try:
                rating = float(text)
            except ValueError:
                raise InvalidInputError("rating must be a number.") from None
            if not 0 <= rating <= 10:
                raise InvalidInputError("rating must be between 0 and 10.")
            update[name] = rating
        elif name == "title":
            if not text.strip():
                raise InvalidInputError("title cannot be empty.")
            update[name] = text
        elif name == "subtitles":
            update[name] = text or None
        else:
            update[name] = text
    return update


class EditContainer(StateContainer[EditState]):
    """Edits one existing movie."""

    def __init__(self, store: RemoteStore, notifier: Notifier | None = None) -> None:
        super().__init__(EditState(), notifier)
        self.store = store

    async def load(self, movie_id: str) -> Outcome:
        self._commit(loading=True, error=None)
        try:
            result = await self.store.select("movies", filters=[eq("id", movie_id)], limit=1)
            if not result.rows:
                raise StoreError("Movie not found.")
            movie = parse_row(Movie.model_validate, result.rows[0])
        except StoreError as e:
            logger.error(f"Failed to load movie {movie_id}: {e.message}")
            self._commit(loading=False, error=e.message, current_movie=None)
            self._notify(NotificationKind.ERROR, "Could not load movie", e.message)
            return Outcome.FAILED

        self._commit(loading=False, current_movie=movie)
        return Outcome.DONE

    async def save(self, movie_id: str, form_values: Mapping[str, Any]) -> Outcome:
        """
        Send the fields that differ from the loaded movie.

        Identical form values make no remote call.

        Raises:
            InvalidInputError: Nothing was loaded, or a changed value is invalid
        """
        baseline = self.state.current_movie
        if baseline is None:
            raise InvalidInputError("Load the movie before saving it.")

        changed = diff_fields(baseline, form_values)
        if not changed:
            self._notify(NotificationKind.INFO, "Nothing to save", "There are no changes to save.")
            return Outcome.NOOP

        update = coerce_changes(changed)
        logger.info(f"Updating movie {movie_id}: {sorted(update)}")

        self._commit(saving=True, error=None)
        try:
            rows = await self.store.update("movies", update, [eq("id", movie_id)])
            if not rows:
                raise StoreError("Movie not found.")
            movie = parse_row(Movie.model_validate, rows[0])
        except StoreError as e:
            logger.error(f"Failed to update movie {movie_id}: {e.message}")
            self._commit(saving=False, error=e.message)
            self._notify(NotificationKind.ERROR, "Could not save movie", e.message)
            return Outcome.FAILED

        self._commit(saving=False, current_movie=movie)
        self._notify(NotificationKind.SUCCESS, "Movie updated", f'"{movie.title}" was updated!')
        return Outcome.DONE

    def reset(self) -> None:
        self._commit(current_movie=None, loading=False, saving=False, error=None)
