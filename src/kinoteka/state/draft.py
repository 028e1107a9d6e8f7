"""Movie creation state: external search, draft assembly, subtitles and save."""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from kinoteka.config import settings
from kinoteka.errors import GatewayError, InvalidInputError, StoreError
from kinoteka.notifications import NotificationKind, Notifier
from kinoteka.schemas.candidate import CandidateMovie
from kinoteka.schemas.movie import Movie, MovieDraft, SelectedSubtitle
from kinoteka.services.kinopoisk_client import KinopoiskClient
from kinoteka.services.subtitles_client import OpenSubtitlesClient
from kinoteka.state.base import Outcome, StateContainer
from kinoteka.store.base import RemoteStore, parse_row
from kinoteka.utils.parsing import candidate_to_draft

logger = logging.getLogger(__name__)


class DraftStatus(str, Enum):
    EMPTY = "empty"
    SEARCHING = "searching"
    RESULTS_SHOWN = "results_shown"
    SELECTED = "selected"
    FETCHING_SUBTITLES = "fetching_subtitles"
    READY = "ready"
    SAVING = "saving"
    SAVED = "saved"
    SAVE_FAILED = "save_failed"


@dataclass(frozen=True)
class DraftState:
    status: DraftStatus = DraftStatus.EMPTY
    draft: MovieDraft | None = None
    subtitle: SelectedSubtitle | None = None
    search_results: list[CandidateMovie] = field(default_factory=list)
    selected: CandidateMovie | None = None
    is_fetching_metadata: bool = False
    is_fetching_subtitles: bool = False
    saving: bool = False
    error: str | None = None
    auto_search_subtitles: bool = True


class DraftContainer(StateContainer[DraftState]):
    """
    Drives the creation of one movie.

    The usual path is search → select → (fetch subtitles) → save, but the
    draft can also be filled by hand through `update_draft`. Validation
    failures raise InvalidInputError and leave the state untouched.
    """

    def __init__(
        self,
        store: RemoteStore,
        metadata: KinopoiskClient | None = None,
        subtitles: OpenSubtitlesClient | None = None,
        notifier: Notifier | None = None,
        results_limit: int | None = None,
    ) -> None:
        super().__init__(DraftState(), notifier)
        self.store = store
        self.metadata = metadata or KinopoiskClient()
        self.subtitles = subtitles or OpenSubtitlesClient()
        self.results_limit = results_limit or settings.search_results_limit

    def _settled_status(self) -> DraftStatus:
        """Status to return to once a side operation has finished."""
        if self.state.draft is None:
            return DraftStatus.RESULTS_SHOWN if self.state.search_results else DraftStatus.EMPTY
        if self.state.subtitle is not None:
            return DraftStatus.READY
        return DraftStatus.SELECTED if self.state.selected is not None else DraftStatus.READY

    # ------------------------------------------------------------------
    # External search
    # ------------------------------------------------------------------

    async def search(self, title: str) -> Outcome:
        """
        Search the metadata API for candidates.

        Raises:
            InvalidInputError: The title is blank
        """
        if not title or not title.strip():
            raise InvalidInputError("Enter a movie title to search for.")

        self._commit(
            status=DraftStatus.SEARCHING,
            is_fetching_metadata=True,
            error=None,
            search_results=[],
            selected=None,
        )

        try:
            films = await self.metadata.search_films(title.strip())
        except GatewayError as e:
            return self._search_failed(e.message)

        if not films:
            return self._search_failed(f'No movies found for "{title.strip()}"')

        results = films[: self.results_limit]
        logger.info(f"Found {len(results)} candidates for '{title}'")
        self._commit(
            status=DraftStatus.RESULTS_SHOWN,
            is_fetching_metadata=False,
            search_results=results,
        )
        return Outcome.DONE

    def _search_failed(self, message: str) -> Outcome:
        self._notify(NotificationKind.ERROR, "Search failed", message)
        self._commit(
            status=DraftStatus.EMPTY if self.state.draft is None else DraftStatus.READY,
            is_fetching_metadata=False,
            error=message,
            search_results=[],
        )
        return Outcome.FAILED

    def select(self, candidate: CandidateMovie) -> MovieDraft:
        """Replace the draft with the fields mapped from a search result."""
        draft = candidate_to_draft(candidate)
        self._commit(
            status=DraftStatus.SELECTED,
            draft=draft,
            selected=candidate,
            subtitle=None,
            error=None,
        )
        self._notify(NotificationKind.SUCCESS, "Movie data loaded", f'Data for "{draft.title}" was loaded.')
        return draft

    def clear_search_results(self) -> None:
        self._commit(search_results=[], selected=None, status=self._settled_status())

    def update_draft(self, **fields: Any) -> MovieDraft:
        """Merge manual form edits into the draft."""
        current = self.state.draft or MovieDraft()
        draft = MovieDraft.model_validate({**current.model_dump(), **fields})
        self._commit(draft=draft)
        if self.state.status in (DraftStatus.EMPTY, DraftStatus.SAVED):
            self._commit(status=DraftStatus.READY)
        return draft

    # ------------------------------------------------------------------
    # Subtitles
    # ------------------------------------------------------------------

    async def fetch_subtitles(self) -> Outcome:
        """
        Find and download subtitles for the draft's title and year.

        Not finding any (including timeouts) is reported as NOOP; the draft
        stays usable without subtitles.

        Raises:
            InvalidInputError: The draft has no title or release year yet
        """
        draft = self.state.draft
        if draft is None or not draft.has_subtitle_lookup_keys():
            raise InvalidInputError("Movie title and release year are required to search for subtitles.")

        self._commit(
            status=DraftStatus.FETCHING_SUBTITLES,
            is_fetching_subtitles=True,
            error=None,
            subtitle=None,
        )

        subtitle = await self.subtitles.find_and_download(draft.title, draft.release_year)

        if subtitle is None:
            self._commit(is_fetching_subtitles=False, status=self._settled_status())
            self._notify(
                NotificationKind.INFO,
                "Subtitles not found",
                f'No subtitles were found for "{draft.title}".',
            )
            return Outcome.NOOP

        self._commit(is_fetching_subtitles=False, subtitle=subtitle, status=DraftStatus.READY)
        self._notify(
            NotificationKind.SUCCESS,
            "Subtitles downloaded",
            f'Subtitles for "{draft.title}" were found and downloaded.',
        )
        return Outcome.DONE

    def clear_subtitles(self) -> None:
        self._commit(subtitle=None, status=self._settled_status())

    async def set_auto_search_subtitles(self, enabled: bool) -> Outcome:
        """
        Change the auto-search preference.

        Turning it on when the draft already has a title and year but no
        subtitles runs the search right away.
        """
        self._commit(auto_search_subtitles=enabled)
        draft = self.state.draft
        if (
            enabled
            and draft is not None
            and draft.has_subtitle_lookup_keys()
            and self.state.subtitle is None
            and not self.state.is_fetching_subtitles
        ):
            return await self.fetch_subtitles()
        return Outcome.NOOP

    async def toggle_auto_search_subtitles(self) -> Outcome:
        return await self.set_auto_search_subtitles(not self.state.auto_search_subtitles)

    # ------------------------------------------------------------------
    # Save
    # ------------------------------------------------------------------

    async def save(self) -> Movie | None:
        """
        Persist the draft as a new movie.

        Returns:
            The stored movie, or None when the insert failed (draft kept)

        Raises:
            InvalidInputError: Title, description, a positive release year and
                duration, or a non-zero rating is missing
        """
        draft = self.state.draft
        missing = draft.missing_required() if draft else list(MovieDraft.REQUIRED_FOR_SAVE)
        if missing:
            raise InvalidInputError(f"Missing required fields: {', '.join(missing)}.")

        self._commit(status=DraftStatus.SAVING, saving=True, error=None)
        try:
            row = await self.store.insert("movies", draft.to_row(self.state.subtitle))
            movie = parse_row(Movie.model_validate, row)
        except StoreError as e:
            logger.error(f"Failed to save movie '{draft.title}': {e.message}")
            self._commit(status=DraftStatus.SAVE_FAILED, saving=False, error=e.message)
            self._notify(NotificationKind.ERROR, "Could not add movie", e.message)
            return None

        self._commit(
            status=DraftStatus.SAVED,
            saving=False,
            draft=None,
            subtitle=None,
            search_results=[],
            selected=None,
        )
        self._notify(NotificationKind.SUCCESS, "Movie added", f'"{movie.title}" was added to the catalog!')
        return movie

    def reset(self) -> None:
        """Discard everything except the auto-search preference."""
        self._commit(
            status=DraftStatus.EMPTY,
            draft=None,
            subtitle=None,
            search_results=[],
            selected=None,
            is_fetching_metadata=False,
            is_fetching_subtitles=False,
            saving=False,
            error=None,
        )
