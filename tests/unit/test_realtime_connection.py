from __future__ import annotations

import asyncio

import pytest

from rental_client.domain.events.message_created import MessageCreated
from rental_client.infrastructure.realtime import protocol
from rental_client.infrastructure.realtime.connection import RealtimeConnection
from tests.conftest import FakeSocketClient, make_user

MESSAGE_PAYLOAD = {
    "id": "m-1",
    "conversationId": "conv-1",
    "content": "hello",
    "senderId": "landlord-1",
    "sender": {"id": "landlord-1", "name": "Jan"},
    "isRead": False,
    "createdAt": "2026-03-01T12:00:00Z",
}


class SocketFactory:
    def __init__(self, *, fail_first_connect: int = 0) -> None:
        self.clients: list[FakeSocketClient] = []
        self._fail = fail_first_connect

    def __call__(self) -> FakeSocketClient:
        client = FakeSocketClient(fail_connect=self._fail)
        self._fail = 0
        self.clients.append(client)
        return client


def _connection(session, factory, **kwargs) -> RealtimeConnection:
    return RealtimeConnection(
        session,
        url="http://chat.test",
        socketio_path="socket.io",
        transports=["websocket", "polling"],
        client_factory=factory,
        **kwargs,
    )


@pytest.mark.asyncio
async def test_connects_with_token_handshake(session):
    factory = SocketFactory()
    conn = _connection(session, factory)
    await conn.start()
    assert factory.clients == []

    await session.login("tok-1", make_user())

    assert conn.is_connected is True
    call = factory.clients[0].connect_calls[0]
    assert call["url"] == "http://chat.test"
    assert call["auth"] == {"token": "tok-1"}
    assert call["transports"] == ["websocket", "polling"]
    await conn.close()


@pytest.mark.asyncio
async def test_one_connection_per_user_and_token(session):
    factory = SocketFactory()
    conn = _connection(session, factory)
    await conn.start()
    await session.login("tok-1", make_user())
    await session.login("tok-1", make_user())
    assert len(factory.clients) == 1

    await session.rotate_token("tok-2")

    assert len(factory.clients) == 2
    assert factory.clients[0].disconnected is True
    assert factory.clients[1].connect_calls[0]["auth"] == {"token": "tok-2"}
    assert conn.connection_key == ("tenant-1", "tok-2")
    await conn.close()


@pytest.mark.asyncio
async def test_logout_tears_down(session):
    factory = SocketFactory()
    conn = _connection(session, factory)
    await conn.start()
    states = []

    async def _on(connected):
        states.append(connected)

    conn.on_connectivity(_on)
    await session.login("tok-1", make_user())
    await session.logout()

    assert factory.clients[0].disconnected is True
    assert conn.is_connected is False
    assert states == [True, False]
    await conn.close()


@pytest.mark.asyncio
async def test_join_latch_once_per_connection_lifetime(session):
    factory = SocketFactory()
    conn = _connection(session, factory)
    await conn.start()
    await session.login("tok-1", make_user())
    sio = factory.clients[0]

    assert await conn.ensure_joined_conversations() is True
    assert await conn.ensure_joined_conversations() is False
    await conn.join_conversation("conv-1")
    await conn.join_conversation("conv-1")

    await sio.server_event("disconnect")
    assert conn.is_connected is False
    assert await conn.ensure_joined_conversations() is False
    await sio.server_event("connect")
    assert await conn.ensure_joined_conversations() is True

    events = [e for e, _ in sio.emitted]
    assert events == [
        protocol.JOIN_CONVERSATIONS,
        protocol.JOIN_CONVERSATION,
        protocol.JOIN_CONVERSATION,
        protocol.JOIN_CONVERSATIONS,
    ]
    await conn.close()


@pytest.mark.asyncio
async def test_emit_while_disconnected_is_dropped(session):
    conn = _connection(session, SocketFactory())
    assert await conn.emit(protocol.TYPING, "conv-1") is False


@pytest.mark.asyncio
async def test_server_events_are_parsed_and_dispatched(session):
    factory = SocketFactory()
    conn = _connection(session, factory)
    await conn.start()
    await session.login("tok-1", make_user())
    received = []

    async def _handler(event):
        received.append(event)

    sub = conn.subscribe(protocol.NEW_MESSAGE, _handler)
    await factory.clients[0].server_event(protocol.NEW_MESSAGE, MESSAGE_PAYLOAD)
    await factory.clients[0].server_event(protocol.NEW_MESSAGE, {"id": "broken"})
    sub.dispose()
    await factory.clients[0].server_event(protocol.NEW_MESSAGE, MESSAGE_PAYLOAD)

    assert len(received) == 1
    event = received[0]
    assert isinstance(event, MessageCreated)
    assert event.conversation_id == "conv-1"
    assert event.message.sender_name == "Jan"
    await conn.close()


@pytest.mark.asyncio
async def test_events_from_replaced_client_are_ignored(session):
    factory = SocketFactory()
    conn = _connection(session, factory)
    await conn.start()
    await session.login("tok-1", make_user())
    old = factory.clients[0]
    await session.rotate_token("tok-2")
    received = []

    async def _handler(event):
        received.append(event)

    conn.subscribe(protocol.NEW_MESSAGE, _handler)
    await old.server_event(protocol.NEW_MESSAGE, MESSAGE_PAYLOAD)
    await old.server_event("disconnect")

    assert received == []
    assert conn.is_connected is True
    await conn.close()


@pytest.mark.asyncio
async def test_initial_connect_failure_is_retried(session):
    factory = SocketFactory(fail_first_connect=1)
    conn = _connection(session, factory, reconnect_delay=0.01)
    await conn.start()

    await session.login("tok-1", make_user())
    assert conn.is_connected is False

    await asyncio.sleep(0.05)
    assert conn.is_connected is True
    assert len(factory.clients[0].connect_calls) == 2
    await conn.close()


@pytest.mark.asyncio
async def test_start_with_existing_session_connects(session):
    await session.login("tok-1", make_user())
    factory = SocketFactory()
    conn = _connection(session, factory)

    await conn.start()

    assert conn.is_connected is True
    await conn.close()
    assert factory.clients[0].disconnected is True
