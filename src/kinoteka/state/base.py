"""Common machinery for the state containers."""

import dataclasses
import logging
from collections.abc import Callable
from enum import Enum
from typing import Generic, TypeVar

from kinoteka.notifications import LoggingNotifier, NotificationKind, Notifier

logger = logging.getLogger(__name__)

S = TypeVar("S")

Listener = Callable[[S], None]


class Outcome(str, Enum):
    """How an operation ended, as seen by the caller."""

    DONE = "done"
    NOOP = "noop"  # Nothing to do, or rejected without touching the store
    DECLINED = "declined"  # The user did not confirm; never an error
    FAILED = "failed"
    STALE = "stale"  # A newer request for the same slice superseded this one


class StateContainer(Generic[S]):
    """
    Owns one immutable state snapshot and publishes every replacement.

    Subclasses mutate state only through `_commit`, which swaps in a copy
    with the given fields changed and calls each listener with it.
    """

    def __init__(self, initial: S, notifier: Notifier | None = None) -> None:
        self._state = initial
        self._listeners: list[Listener[S]] = []
        self.notifier = notifier or LoggingNotifier()

    @property
    def state(self) -> S:
        return self._state

    def subscribe(self, listener: Listener[S]) -> Callable[[], None]:
        """Register a listener; returns a function that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _commit(self, **changes: object) -> S:
        self._state = dataclasses.replace(self._state, **changes)
        for listener in list(self._listeners):
            try:
                listener(self._state)
            except Exception as e:
                logger.error(f"State listener failed: {e}", exc_info=True)
        return self._state

    def _notify(self, kind: NotificationKind, title: str, message: str) -> None:
        self.notifier.notify(kind, title, message)


class RequestTracker:
    """
    Hands out increasing request ids for one state slice.

    A response is only applied when its id is still the latest issued.
    """

    def __init__(self) -> None:
        self._latest = 0

    def next(self) -> int:
        self._latest += 1
        return self._latest

    def is_current(self, request_id: int) -> bool:
        return request_id == self._latest
