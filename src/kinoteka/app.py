"""Application wiring: builds the store, gateways and state containers."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

from kinoteka.config import Settings, settings as default_settings
from kinoteka.notifications import Confirm, LoggingNotifier, Notifier
from kinoteka.services.kinopoisk_client import KinopoiskClient
from kinoteka.services.subtitles_client import OpenSubtitlesClient
from kinoteka.state import (
    AuthContainer,
    CatalogContainer,
    CommentsContainer,
    DraftContainer,
    EditContainer,
    FavoritesContainer,
)
from kinoteka.storage import FileSessionStorage, SessionStorage
from kinoteka.store.base import RemoteStore
from kinoteka.store.rest import PostgrestStore
from kinoteka.tasks.favorites_count import FavoritesCountPoller

logger = logging.getLogger(__name__)


def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(
        level=(level or default_settings.log_level).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@dataclass
class KinotekaApp:
    """Every container the UI talks to, sharing one store."""

    store: RemoteStore
    auth: AuthContainer
    catalog: CatalogContainer
    favorites: FavoritesContainer
    draft: DraftContainer
    edit: EditContainer
    comments: CommentsContainer
    favorites_count: FavoritesCountPoller


def build_app(
    confirm: Confirm,
    notifier: Notifier | None = None,
    config: Settings | None = None,
    store: RemoteStore | None = None,
    storage: SessionStorage | None = None,
) -> KinotekaApp:
    """
    Create the application from settings.

    Args:
        confirm: Asks the user to confirm destructive actions
        notifier: Notification sink (logs by default)
        config: Settings (uses the global settings if not provided)
        store: Remote store (a PostgREST client from settings if not provided)
        storage: Session storage (a JSON file from settings if not provided)
    """
    config = config or default_settings
    notifier = notifier or LoggingNotifier()
    store = store or PostgrestStore(config.store_url, config.store_api_key, config.store_timeout)
    storage = storage or FileSessionStorage(config.session_file)

    auth = AuthContainer(store, storage, notifier)
    metadata = KinopoiskClient(
        config.kinopoisk_api_key, config.kinopoisk_api_url, config.kinopoisk_timeout
    )
    subtitles = OpenSubtitlesClient(
        config.opensubtitles_api_key,
        config.opensubtitles_api_url,
        config.subtitles_timeout,
        config.subtitles_language,
    )

    return KinotekaApp(
        store=store,
        auth=auth,
        catalog=CatalogContainer(store, confirm, notifier, config.page_size),
        favorites=FavoritesContainer(store, confirm, notifier, config.page_size),
        draft=DraftContainer(store, metadata, subtitles, notifier, config.search_results_limit),
        edit=EditContainer(store, notifier),
        comments=CommentsContainer(store, confirm, notifier),
        favorites_count=FavoritesCountPoller(
            store, lambda: auth.session, config.favorites_poll_interval
        ),
    )


@asynccontextmanager
async def lifespan(app: KinotekaApp) -> AsyncIterator[KinotekaApp]:
    # Startup: begin background polling
    app.favorites_count.start()
    logger.info("Kinoteka started")

    try:
        yield app
    finally:
        # Shutdown: stop polling and drop any unsaved draft
        app.favorites_count.stop()
        app.draft.reset()
        logger.info("Kinoteka shut down")
