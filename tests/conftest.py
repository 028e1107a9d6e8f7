"""Shared test fixtures."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from kinoteka.store.base import RemoteStore, SelectResult


@pytest.fixture
def store() -> MagicMock:
    """A RemoteStore whose every call succeeds with an empty result."""
    mock = MagicMock(spec=RemoteStore)
    mock.select = AsyncMock(return_value=SelectResult(rows=[], count=0))
    mock.insert = AsyncMock(return_value={})
    mock.update = AsyncMock(return_value=[])
    mock.delete = AsyncMock(return_value=None)
    mock.rpc = AsyncMock(return_value=[])
    return mock


@pytest.fixture
def notifier() -> MagicMock:
    return MagicMock()


@pytest.fixture
def confirm() -> AsyncMock:
    """Confirmation handler that says yes."""
    return AsyncMock(return_value=True)


@pytest.fixture
def decline() -> AsyncMock:
    """Confirmation handler that says no."""
    return AsyncMock(return_value=False)
