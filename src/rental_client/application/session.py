"""Authenticated session shared by the API client, realtime transport and services."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Awaitable, Callable

from rental_client.application.exceptions import AppError
from rental_client.application.observers import Observable, Subscription
from rental_client.application.ports.token_store import TokenStore
from rental_client.domain.entities.user import CurrentUser

if TYPE_CHECKING:
    from rental_client.application.ports.users import UsersApi

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SessionState:
    token: str | None
    user: CurrentUser | None

    @property
    def is_authenticated(self) -> bool:
        return self.token is not None and self.user is not None

    @property
    def key(self) -> tuple[str, str] | None:
        """Identity of a realtime connection: one per (user, token)."""
        if self.token is None or self.user is None:
            return None
        return self.user.id, self.token


SessionListener = Callable[[SessionState], Awaitable[None]]


class Session:
    """Single owner of auth state. Dependents observe it, they never mutate it."""

    def __init__(self, token_store: TokenStore) -> None:
        self._store = token_store
        self._user: CurrentUser | None = None
        self._changes: Observable[SessionState] = Observable("session")

    @property
    def token(self) -> str | None:
        return self._store.load()

    @property
    def user(self) -> CurrentUser | None:
        return self._user

    @property
    def state(self) -> SessionState:
        return SessionState(token=self.token, user=self._user)

    @property
    def is_authenticated(self) -> bool:
        return self.state.is_authenticated

    def subscribe(self, listener: SessionListener) -> Subscription:
        return self._changes.subscribe(listener)

    async def login(self, token: str, user: CurrentUser) -> None:
        self._store.save(token)
        self._user = user
        logger.info("Session started for user %s", user.id)
        await self._changes.emit(self.state)

    async def rotate_token(self, token: str) -> None:
        self._store.save(token)
        await self._changes.emit(self.state)

    async def logout(self) -> None:
        """Clear token and user, then wait for every observer to react."""
        had_session = self._user is not None or self._store.load() is not None
        self._store.clear()
        self._user = None
        if had_session:
            logger.info("Session cleared")
        await self._changes.emit(self.state)

    async def restore(self, users: UsersApi) -> bool:
        """Re-hydrate the user from a persisted token. Returns True if authenticated."""
        from rental_client.infrastructure.auth.token_claims import is_expired

        token = self._store.load()
        if not token:
            return False
        if is_expired(token):
            logger.info("Persisted token expired, discarding")
            await self.logout()
            return False
        try:
            user = await users.me()
        except AppError as exc:
            logger.warning("Session restore failed: %s", exc.detail or type(exc).__name__)
            await self.logout()
            return False
        await self.login(token, user)
        return True
