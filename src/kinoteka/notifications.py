"""Notification and confirmation sinks consumed by the state containers."""

import logging
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Protocol

logger = logging.getLogger("kinoteka.notify")


class NotificationKind(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"
    WARNING = "warning"


class Notifier(Protocol):
    """Anything that can show a toast-style message to the user."""

    def notify(self, kind: NotificationKind, title: str, message: str) -> None: ...


# Asks the user a yes/no question; resolves to True when confirmed.
Confirm = Callable[[str], Awaitable[bool]]


_LEVELS = {
    NotificationKind.SUCCESS: logging.INFO,
    NotificationKind.INFO: logging.INFO,
    NotificationKind.WARNING: logging.WARNING,
    NotificationKind.ERROR: logging.ERROR,
}


class LoggingNotifier:
    """Default notifier that writes every notification to the log."""

    def notify(self, kind: NotificationKind, title: str, message: str) -> None:
        logger.log(_LEVELS[kind], f"[{kind.value}] {title}: {message}")


async def always_confirm(message: str) -> bool:
    """Confirmation handler for non-interactive use."""
    logger.debug(f"Auto-confirmed: {message}")
    return True
