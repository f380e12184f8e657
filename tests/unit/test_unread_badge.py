from __future__ import annotations

import pytest

from rental_client.application.exceptions import ApiError
from rental_client.domain.events.message_created import MessageCreated
from rental_client.domain.events.message_read import MessageRead
from rental_client.infrastructure.realtime import protocol
from rental_client.services.chat_sync import ChatSync
from rental_client.services.unread_badge import UnreadBadge
from tests.conftest import (
    FakeMessagingApi,
    FakeNotificationsApi,
    FakeRealtimeChannel,
    make_message,
    make_user,
)


@pytest.mark.asyncio
async def test_counts_follow_realtime_events(session):
    api = FakeMessagingApi(unread=2)
    notifications = FakeNotificationsApi(counts={"offers": 1, "rentalRequests": 3})
    channel = FakeRealtimeChannel(connected=True)
    await session.login("tok", make_user())
    badge = UnreadBadge(session, api, channel, notifications)
    await badge.start()
    assert (badge.messages, badge.offers, badge.rental_requests) == (2, 1, 3)
    assert badge.total == 6

    api.unread = 3
    await channel.push(protocol.NEW_MESSAGE, MessageCreated("conv-1", make_message()))
    assert badge.messages == 3

    api.unread = 0
    await channel.push(protocol.MESSAGE_READ, MessageRead("m-1"))
    assert badge.messages == 0
    badge.close()


@pytest.mark.asyncio
async def test_badge_and_chat_share_one_room_join(session):
    channel = FakeRealtimeChannel(connected=False)
    await session.login("tok", make_user())
    chat = ChatSync(session, FakeMessagingApi(), channel, poll_interval=3600)
    badge = UnreadBadge(session, FakeMessagingApi(), channel)
    await chat.start()
    await badge.start()

    await channel.set_connected(True)

    assert channel.join_all_count == 1
    badge.close()
    await chat.close()


@pytest.mark.asyncio
async def test_logout_resets_counts(session):
    api = FakeMessagingApi(unread=5)
    channel = FakeRealtimeChannel(connected=True)
    await session.login("tok", make_user())
    badge = UnreadBadge(session, api, channel)
    await badge.start()
    seen = []

    async def _listener(b):
        seen.append(b.total)

    badge.subscribe(_listener)
    await session.logout()

    assert badge.messages == 0
    assert seen[-1] == 0
    badge.close()


@pytest.mark.asyncio
async def test_failed_refresh_keeps_previous_count(session):
    api = FakeMessagingApi(unread=4)
    await session.login("tok", make_user())
    badge = UnreadBadge(session, api, FakeRealtimeChannel(connected=True))
    await badge.start()

    api.fail_with = ApiError(500, "down")
    await badge.refresh()

    assert badge.messages == 4
    badge.close()
