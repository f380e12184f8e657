from __future__ import annotations

from typing import Protocol

from rental_client.domain.entities.user import CurrentUser


class UsersApi(Protocol):
    async def me(self) -> CurrentUser: ...

    async def signature(self) -> str | None:
        """Stored signature of the current user as base64 (data-URL prefix allowed)."""
        ...
