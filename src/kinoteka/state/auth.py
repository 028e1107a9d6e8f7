"""Authentication state backed by durable session storage."""

import logging
from dataclasses import dataclass, field

from kinoteka.errors import InvalidInputError, StoreError
from kinoteka.notifications import NotificationKind, Notifier
from kinoteka.schemas.session import Session
from kinoteka.state.base import Outcome, StateContainer
from kinoteka.storage import (
    AUTHENTICATED_KEY,
    SESSION_KEYS,
    USER_ID_KEY,
    USERNAME_KEY,
    SessionStorage,
)
from kinoteka.store.base import RemoteStore

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid username or password"


@dataclass(frozen=True)
class AuthState:
    session: Session = field(default_factory=Session.anonymous)
    loading: bool = False
    error: str | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.session.is_authenticated


def read_session(storage: SessionStorage) -> Session:
    """Rebuild the session saved by a previous login."""
    if storage.get(AUTHENTICATED_KEY) != "true":
        return Session.anonymous()
    return Session(
        is_authenticated=True,
        user_id=storage.get(USER_ID_KEY),
        username=storage.get(USERNAME_KEY),
    )


class AuthContainer(StateContainer[AuthState]):
    """
    Owns the signed-in session.

    Other parts of the application read `session`; only login and logout
    change it, and only they touch the storage.
    """

    def __init__(
        self, store: RemoteStore, storage: SessionStorage, notifier: Notifier | None = None
    ) -> None:
        super().__init__(AuthState(session=read_session(storage)), notifier)
        self.store = store
        self.storage = storage

    @property
    def session(self) -> Session:
        return self.state.session

    async def login(self, username: str, password: str) -> Outcome:
        """
        Check credentials with the `authenticate_user` RPC.

        Raises:
            InvalidInputError: Username or password is blank
        """
        if not username or not username.strip() or not password:
            raise InvalidInputError("Enter both username and password.")

        self._commit(loading=True, error=None)
        try:
            rows = await self.store.rpc(
                "authenticate_user",
                {"username_param": username, "password_param": password},
            )
        except StoreError as e:
            logger.error(f"authenticate_user RPC failed: {e.message}")
            return self._login_failed(f"Server error: {e.message}")

        user = rows[0] if rows else None
        if not user or user.get("id") is None:
            logger.info(f"Rejected login for '{username}'")
            return self._login_failed(INVALID_CREDENTIALS)

        session = Session(
            is_authenticated=True, user_id=str(user["id"]), username=user.get("name") or username
        )
        self.storage.set(AUTHENTICATED_KEY, "true")
        self.storage.set(USER_ID_KEY, session.user_id)
        self.storage.set(USERNAME_KEY, session.username)

        logger.info(f"User {session.user_id} signed in")
        self._commit(loading=False, session=session)
        return Outcome.DONE

    def _login_failed(self, message: str) -> Outcome:
        self._commit(loading=False, error=message, session=Session.anonymous())
        self._notify(NotificationKind.ERROR, "Sign-in failed", message)
        return Outcome.FAILED

    def logout(self) -> None:
        for key in SESSION_KEYS:
            self.storage.remove(key)
        self._commit(session=Session.anonymous(), error=None)
