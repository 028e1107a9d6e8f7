"""Durable storage for the signed-in session."""

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path

logger = logging.getLogger(__name__)

# Keys written together on login and removed together on logout.
AUTHENTICATED_KEY = "isAuthenticated"
USER_ID_KEY = "userId"
USERNAME_KEY = "username"
SESSION_KEYS = (AUTHENTICATED_KEY, USER_ID_KEY, USERNAME_KEY)


class SessionStorage(ABC):
    """String key/value storage that survives a reload."""

    @abstractmethod
    def get(self, key: str) -> str | None: ...

    @abstractmethod
    def set(self, key: str, value: str) -> None: ...

    @abstractmethod
    def remove(self, key: str) -> None: ...


class MemorySessionStorage(SessionStorage):
    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self.data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value

    def remove(self, key: str) -> None:
        self.data.pop(key, None)


class FileSessionStorage(SessionStorage):
    """Keeps the keys in a small JSON file, rewritten on every change."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def _read(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable session file {self.path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: dict[str, str]) -> None:
        if data:
            self.path.write_text(json.dumps(data), encoding="utf-8")
        else:
            self.path.unlink(missing_ok=True)

    def get(self, key: str) -> str | None:
        return self._read().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    def remove(self, key: str) -> None:
        data = self._read()
        if data.pop(key, None) is not None:
            self._write(data)
