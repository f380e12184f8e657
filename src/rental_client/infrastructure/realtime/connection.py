"""The single Socket.IO connection of an authenticated session."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable

import socketio
from socketio.exceptions import ConnectionError as SocketConnectionError

from rental_client.application.observers import EventHub, Observable, Subscription
from rental_client.application.ports.realtime import ConnectivityHandler, EventHandler
from rental_client.application.session import Session, SessionState
from rental_client.config import settings
from rental_client.infrastructure.realtime import protocol

logger = logging.getLogger(__name__)

SocketClientFactory = Callable[[], socketio.AsyncClient]

RECONNECT_DELAY_SECONDS = 5.0


def _default_client() -> socketio.AsyncClient:
    return socketio.AsyncClient(reconnection=True, logger=False, engineio_logger=False)


class RealtimeConnection:
    """Implements application.ports.realtime.RealtimeChannel.

    Follows the session: exactly one client per (user, token). A change of
    either tears the old client down before the new one connects; logout tears
    it down. Consumers only subscribe and emit.
    """

    def __init__(
        self,
        session: Session,
        *,
        url: str | None = None,
        socketio_path: str | None = None,
        transports: list[str] | None = None,
        client_factory: SocketClientFactory | None = None,
        reconnect_delay: float = RECONNECT_DELAY_SECONDS,
    ) -> None:
        self._session = session
        self._url = url or settings.socket_url
        self._path = socketio_path or settings.SOCKET_PATH
        self._transports = transports or list(settings.SOCKET_TRANSPORTS)
        self._client_factory = client_factory or _default_client
        self._reconnect_delay = reconnect_delay

        self._sio: socketio.AsyncClient | None = None
        self._key: tuple[str, str] | None = None
        self._connected = False
        self._joined = False
        self._retry_task: asyncio.Task[None] | None = None
        self._lock = asyncio.Lock()

        self._events = EventHub()
        self._connectivity: Observable[bool] = Observable("connectivity")
        self._session_sub: Subscription | None = None

    @property
    def is_connected(self) -> bool:
        return self._connected

    @property
    def connection_key(self) -> tuple[str, str] | None:
        return self._key

    async def start(self) -> None:
        if self._session_sub is None:
            self._session_sub = self._session.subscribe(self._on_session_changed)
        await self._sync(self._session.state)

    async def close(self) -> None:
        if self._session_sub is not None:
            self._session_sub.dispose()
            self._session_sub = None
        async with self._lock:
            await self._teardown()

    def subscribe(self, event: str, handler: EventHandler) -> Subscription:
        return self._events.subscribe(event, handler)

    def on_connectivity(self, handler: ConnectivityHandler) -> Subscription:
        return self._connectivity.subscribe(handler)

    async def emit(self, event: str, data: Any = None) -> bool:
        sio = self._sio
        if sio is None or not self._connected:
            logger.debug("Dropping %s while disconnected", event)
            return False
        if data is None:
            await sio.emit(event)
        else:
            await sio.emit(event, data)
        return True

    async def ensure_joined_conversations(self) -> bool:
        """Emit ``join-conversations`` once per connection lifetime."""
        if self._joined or not self._connected:
            return False
        self._joined = True
        await self.emit(protocol.JOIN_CONVERSATIONS)
        return True

    async def join_conversation(self, conversation_id: str) -> None:
        await self.emit(protocol.JOIN_CONVERSATION, conversation_id)

    async def _on_session_changed(self, state: SessionState) -> None:
        await self._sync(state)

    async def _sync(self, state: SessionState) -> None:
        async with self._lock:
            key = state.key
            if key is not None and key == self._key and self._sio is not None:
                return
            await self._teardown()
            if key is None or state.token is None:
                return
            await self._open(state.token, key)

    async def _open(self, token: str, key: tuple[str, str]) -> None:
        sio = self._client_factory()
        self._register(sio)
        self._sio = sio
        self._key = key
        if not await self._connect(sio, token):
            self._retry_task = asyncio.create_task(
                self._retry_connect(sio, token), name="realtime-reconnect",
            )

    async def _connect(self, sio: socketio.AsyncClient, token: str) -> bool:
        try:
            await sio.connect(
                self._url,
                auth={"token": token},
                transports=self._transports,
                socketio_path=self._path,
            )
        except SocketConnectionError as exc:
            logger.warning("Realtime connection to %s failed: %s", self._url, exc)
            return False
        logger.info("Realtime connected to %s", self._url)
        return True

    async def _retry_connect(self, sio: socketio.AsyncClient, token: str) -> None:
        while sio is self._sio and not self._connected:
            await asyncio.sleep(self._reconnect_delay)
            if sio is not self._sio:
                return
            if await self._connect(sio, token):
                return

    async def _teardown(self) -> None:
        sio = self._sio
        self._sio = None
        self._key = None
        self._joined = False
        if self._retry_task is not None:
            self._retry_task.cancel()
            try:
                await self._retry_task
            except asyncio.CancelledError:
                current = asyncio.current_task()
                if current is not None and current.cancelling():
                    raise
            self._retry_task = None
        if sio is not None:
            try:
                await sio.disconnect()
            except Exception:
                logger.warning("Error while closing realtime connection", exc_info=True)
            logger.info("Realtime connection closed")
        await self._set_connected(False)

    async def _set_connected(self, value: bool) -> None:
        if not value:
            # A reconnect is a new lifetime: it must join again.
            self._joined = False
        if value == self._connected:
            return
        self._connected = value
        await self._connectivity.emit(value)

    def _register(self, sio: socketio.AsyncClient) -> None:
        async def _on_connect(*_args: Any) -> None:
            if sio is self._sio:
                await self._set_connected(True)

        async def _on_disconnect(*_args: Any) -> None:
            if sio is self._sio:
                logger.info("Realtime disconnected")
                await self._set_connected(False)

        async def _on_connect_error(*args: Any) -> None:
            if sio is self._sio:
                logger.warning("Realtime connect_error: %s", args[0] if args else "")
                await self._set_connected(False)

        sio.on("connect", _on_connect)
        sio.on("disconnect", _on_disconnect)
        sio.on("connect_error", _on_connect_error)
        for event in protocol.SERVER_EVENTS:
            sio.on(event, self._dispatcher(sio, event))

    def _dispatcher(self, sio: socketio.AsyncClient, event: str) -> Callable[..., Any]:
        async def _handler(*args: Any) -> None:
            if sio is not self._sio:
                return
            payload = args[0] if args else None
            parsed = protocol.parse_server_event(event, payload)
            if parsed is None:
                return
            await self._events.emit(event, parsed)

        return _handler
