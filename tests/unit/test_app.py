"""Tests for application wiring."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from kinoteka.app import build_app, lifespan
from kinoteka.config import Settings
from kinoteka.state.draft import DraftStatus
from kinoteka.storage import MemorySessionStorage
from kinoteka.store.base import SelectResult
from kinoteka.store.rest import PostgrestStore


def make_settings(**overrides) -> Settings:
    values = {"store_url": "https://db.example.com", "store_api_key": "anon-key", "page_size": 5}
    values.update(overrides)
    return Settings(**values)


class TestBuildApp:
    def test_defaults_to_postgrest_store(self, confirm) -> None:
        app = build_app(confirm, config=make_settings(), storage=MemorySessionStorage())
        assert isinstance(app.store, PostgrestStore)
        assert app.store.rest_url == "https://db.example.com/rest/v1"

    def test_containers_share_store_and_settings(self, store, confirm, notifier) -> None:
        app = build_app(confirm, notifier, make_settings(), store, MemorySessionStorage())

        for container in (app.catalog, app.favorites, app.draft, app.edit, app.comments, app.auth):
            assert container.store is store
            assert container.notifier is notifier
        assert app.catalog.page_size == 5
        assert app.favorites.page_size == 5

    async def test_poller_reads_auth_session(self, store, confirm) -> None:
        storage = MemorySessionStorage({"isAuthenticated": "true", "userId": "u1", "username": "anna"})
        store.select = AsyncMock(return_value=SelectResult(count=2))
        app = build_app(confirm, config=make_settings(), store=store, storage=storage)

        assert await app.favorites_count.refresh() == 2
        app.auth.logout()
        assert await app.favorites_count.refresh() == 0


class TestLifespan:
    async def test_starts_and_stops_polling(self, store, confirm) -> None:
        app = build_app(confirm, MagicMock(), make_settings(), store, MemorySessionStorage())

        async with lifespan(app) as running:
            assert running is app
            assert app.favorites_count.running
            app.draft.update_draft(title="Unsaved")

        assert not app.favorites_count.running
        assert app.draft.state.status is DraftStatus.EMPTY
        assert app.draft.state.draft is None

    async def test_stops_polling_when_body_raises(self, store, confirm) -> None:
        app = build_app(confirm, MagicMock(), make_settings(), store, MemorySessionStorage())

        with pytest.raises(RuntimeError):
            async with lifespan(app):
                app.draft.update_draft(title="Unsaved")
                raise RuntimeError("render loop crashed")

        assert not app.favorites_count.running
        assert app.draft.state.draft is None


class TestMetadataTimeout:
    def test_kinopoisk_uses_its_own_timeout(self, store, confirm) -> None:
        config = make_settings(store_timeout=3.0, kinopoisk_timeout=45.0)
        app = build_app(confirm, config=config, store=store, storage=MemorySessionStorage())

        assert app.draft.metadata.timeout == 45.0
