from __future__ import annotations

from typing import Protocol


class TokenStore(Protocol):
    """Persisted bearer token. Read on every request, never cached by callers."""

    def load(self) -> str | None: ...

    def save(self, token: str) -> None: ...

    def clear(self) -> None: ...
