"""Tests for the authentication state container."""

from unittest.mock import AsyncMock

import pytest

from kinoteka.errors import InvalidInputError, StoreError
from kinoteka.notifications import NotificationKind
from kinoteka.schemas.session import Session
from kinoteka.state.auth import INVALID_CREDENTIALS, AuthContainer, read_session
from kinoteka.state.base import Outcome
from kinoteka.storage import MemorySessionStorage

SAVED_SESSION = {"isAuthenticated": "true", "userId": "u1", "username": "anna"}


@pytest.fixture
def storage() -> MemorySessionStorage:
    return MemorySessionStorage()


@pytest.fixture
def auth(store, storage, notifier) -> AuthContainer:
    return AuthContainer(store, storage, notifier)


class TestReadSession:
    def test_restores_saved_session(self) -> None:
        session = read_session(MemorySessionStorage(SAVED_SESSION))
        assert session == Session(is_authenticated=True, user_id="u1", username="anna")

    def test_anonymous_without_flag(self) -> None:
        storage = MemorySessionStorage({"userId": "u1", "username": "anna"})
        assert read_session(storage) == Session.anonymous()

    def test_container_starts_from_storage(self, store) -> None:
        auth = AuthContainer(store, MemorySessionStorage(SAVED_SESSION))
        assert auth.state.is_authenticated
        assert auth.session.user_id == "u1"


class TestLogin:
    async def test_login_then_logout(self, auth: AuthContainer, store, storage) -> None:
        store.rpc = AsyncMock(return_value=[{"id": 17, "name": "anna"}])

        assert await auth.login("anna", "secret") is Outcome.DONE

        store.rpc.assert_awaited_once_with(
            "authenticate_user", {"username_param": "anna", "password_param": "secret"}
        )
        assert auth.session == Session(is_authenticated=True, user_id="17", username="anna")
        assert storage.data == {"isAuthenticated": "true", "userId": "17", "username": "anna"}
        assert auth.state.loading is False

        auth.logout()

        assert auth.session == Session.anonymous()
        assert storage.data == {}

    async def test_invalid_credentials(self, auth: AuthContainer, store, storage, notifier) -> None:
        store.rpc = AsyncMock(return_value=[])

        assert await auth.login("anna", "wrong") is Outcome.FAILED

        assert auth.state.error == INVALID_CREDENTIALS
        assert not auth.state.is_authenticated
        assert storage.data == {}
        assert notifier.notify.call_args.args[0] is NotificationKind.ERROR

    async def test_server_error(self, auth: AuthContainer, store) -> None:
        store.rpc = AsyncMock(side_effect=StoreError("function authenticate_user does not exist"))

        assert await auth.login("anna", "secret") is Outcome.FAILED

        assert auth.state.error == "Server error: function authenticate_user does not exist"
        assert auth.state.loading is False

    async def test_user_row_without_id_is_rejected(self, auth: AuthContainer, store, storage) -> None:
        store.rpc = AsyncMock(return_value=[{"name": "anna"}])

        assert await auth.login("anna", "secret") is Outcome.FAILED

        assert auth.state.error == INVALID_CREDENTIALS
        assert not auth.state.is_authenticated
        assert storage.data == {}

    async def test_failed_login_signs_out_previous_user(self, store, notifier) -> None:
        storage = MemorySessionStorage(SAVED_SESSION)
        auth = AuthContainer(store, storage, notifier)
        store.rpc = AsyncMock(return_value=[])

        await auth.login("boris", "wrong")

        assert auth.session == Session.anonymous()

    @pytest.mark.parametrize("username,password", [("", "secret"), ("   ", "secret"), ("anna", "")])
    async def test_blank_credentials(self, auth: AuthContainer, store, username, password) -> None:
        with pytest.raises(InvalidInputError):
            await auth.login(username, password)
        store.rpc.assert_not_awaited()
        assert auth.state.error is None

    async def test_listeners_see_session_change(self, auth: AuthContainer, store) -> None:
        store.rpc = AsyncMock(return_value=[{"id": "u1", "name": "anna"}])
        sessions = []
        auth.subscribe(lambda state: sessions.append(state.session.is_authenticated))

        await auth.login("anna", "secret")
        auth.logout()

        assert sessions[-2:] == [True, False]
