from __future__ import annotations

from typing import Any, Awaitable, Callable, Protocol

from rental_client.application.observers import Subscription

EventHandler = Callable[[Any], Awaitable[None]]
ConnectivityHandler = Callable[[bool], Awaitable[None]]


class RealtimeChannel(Protocol):
    """Consumer view of the shared realtime connection.

    Consumers subscribe and emit; only the owner connects or disconnects.
    """

    @property
    def is_connected(self) -> bool: ...

    def subscribe(self, event: str, handler: EventHandler) -> Subscription: ...

    def on_connectivity(self, handler: ConnectivityHandler) -> Subscription: ...

    async def emit(self, event: str, data: Any = None) -> bool: ...

    async def ensure_joined_conversations(self) -> bool: ...

    async def join_conversation(self, conversation_id: str) -> None: ...
