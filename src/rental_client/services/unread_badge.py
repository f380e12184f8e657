"""Unread counters for the navigation badge, kept fresh by realtime events."""
from __future__ import annotations

import logging
from typing import Any

from rental_client.application.exceptions import AppError
from rental_client.application.observers import Observable, Subscription, SubscriptionGroup
from rental_client.application.ports.messaging import MessagingApi, NotificationsApi
from rental_client.application.ports.realtime import RealtimeChannel
from rental_client.application.session import Session, SessionState
from rental_client.infrastructure.realtime import protocol

logger = logging.getLogger(__name__)

REFRESH_EVENTS = (
    protocol.NEW_MESSAGE,
    protocol.MESSAGE_READ,
    protocol.CONVERSATIONS_LOADED,
)


class UnreadBadge:
    """Second consumer of the shared realtime channel.

    Counts are re-fetched from REST whenever a relevant event arrives rather
    than being derived locally.
    """

    def __init__(
        self,
        session: Session,
        messaging: MessagingApi,
        channel: RealtimeChannel,
        notifications: NotificationsApi | None = None,
    ) -> None:
        self._session = session
        self._messaging = messaging
        self._notifications = notifications
        self._channel = channel
        self._subscriptions = SubscriptionGroup()
        self._changes: Observable[UnreadBadge] = Observable("unread-badge")

        self.messages = 0
        self.offers = 0
        self.rental_requests = 0

    @property
    def total(self) -> int:
        return self.messages + self.offers + self.rental_requests

    def subscribe(self, listener: Any) -> Subscription:
        return self._changes.subscribe(listener)

    async def start(self) -> None:
        self._subscriptions.add(self._session.subscribe(self._on_session_changed))
        self._subscriptions.add(self._channel.on_connectivity(self._on_connectivity))
        for event in REFRESH_EVENTS:
            self._subscriptions.add(self._channel.subscribe(event, self._on_event))
        if self._session.is_authenticated:
            if self._channel.is_connected:
                await self._channel.ensure_joined_conversations()
            await self.refresh()

    def close(self) -> None:
        self._subscriptions.dispose()

    async def refresh(self) -> None:
        if not self._session.is_authenticated:
            return
        try:
            self.messages = await self._messaging.unread_count()
        except AppError as exc:
            logger.warning("Unread message count failed: %s", exc.detail or type(exc).__name__)
        if self._notifications is not None:
            try:
                counts = await self._notifications.unread_counts()
            except AppError as exc:
                logger.warning("Notification counts failed: %s", exc.detail or type(exc).__name__)
            else:
                self.offers = counts.get("offers", 0)
                self.rental_requests = counts.get("rentalRequests", 0)
        await self._changes.emit(self)

    async def _on_event(self, _event: Any) -> None:
        await self.refresh()

    async def _on_connectivity(self, connected: bool) -> None:
        if connected:
            await self._channel.ensure_joined_conversations()

    async def _on_session_changed(self, state: SessionState) -> None:
        if state.is_authenticated:
            await self.refresh()
            return
        self.messages = self.offers = self.rental_requests = 0
        await self._changes.emit(self)
