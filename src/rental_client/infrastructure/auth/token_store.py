from __future__ import annotations

import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)


class MemoryTokenStore:
    """Implements application.ports.token_store.TokenStore in memory."""

    def __init__(self, token: str | None = None) -> None:
        self._token = token

    def load(self) -> str | None:
        return self._token

    def save(self, token: str) -> None:
        self._token = token

    def clear(self) -> None:
        self._token = None


class FileTokenStore:
    """Token persisted in a single user-private file, re-read on every load."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path).expanduser()

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> str | None:
        try:
            token = self._path.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            return None
        return token or None

    def save(self, token: str) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(".tmp")
        tmp.write_text(token, encoding="utf-8")
        os.chmod(tmp, 0o600)
        tmp.replace(self._path)
        logger.debug("Token written to %s", self._path)

    def clear(self) -> None:
        self._path.unlink(missing_ok=True)
