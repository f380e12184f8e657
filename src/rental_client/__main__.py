"""Entrypoint: python -m rental_client

Tails the signed-in user's conversations, logging every incoming message.
"""
from __future__ import annotations

import argparse
import asyncio
import logging

from rental_client.application.session import Session
from rental_client.config import settings
from rental_client.domain.events.message_created import MessageCreated
from rental_client.infrastructure.auth.token_store import FileTokenStore
from rental_client.infrastructure.http.client import AuthenticatedApiClient
from rental_client.infrastructure.http.messaging_api import HttpMessagingApi, HttpNotificationsApi
from rental_client.infrastructure.http.users_api import HttpUsersApi
from rental_client.infrastructure.realtime import protocol
from rental_client.infrastructure.realtime.connection import RealtimeConnection
from rental_client.services.chat_sync import ChatSync
from rental_client.services.unread_badge import UnreadBadge

logger = logging.getLogger("rental_client")


async def tail(conversation_id: str | None = None) -> int:
    session = Session(FileTokenStore(settings.TOKEN_FILE))
    async with AuthenticatedApiClient(session) as client:
        if not await session.restore(HttpUsersApi(client)):
            logger.error("No valid session in %s, sign in first", settings.TOKEN_FILE)
            return 1

        messaging = HttpMessagingApi(client)
        connection = RealtimeConnection(session)
        chat = ChatSync(session, messaging, connection)
        badge = UnreadBadge(session, messaging, connection, HttpNotificationsApi(client))

        async def _log_message(event: MessageCreated) -> None:
            m = event.message
            logger.info("[%s] %s: %s", event.conversation_id, m.sender_name or m.sender_id, m.content)

        async def _log_badge(b: UnreadBadge) -> None:
            logger.info("Unread: %d messages, %d offers, %d requests", b.messages, b.offers, b.rental_requests)

        subscriptions = [
            connection.subscribe(protocol.NEW_MESSAGE, _log_message),
            badge.subscribe(_log_badge),
        ]
        await connection.start()
        await chat.start()
        await badge.start()
        await chat.load_conversations()
        logger.info("Watching %d conversations", len(chat.state.conversations))
        if conversation_id:
            await chat.join_conversation(conversation_id)

        try:
            while session.is_authenticated:
                await asyncio.sleep(1)
        finally:
            for sub in subscriptions:
                sub.dispose()
            badge.close()
            await chat.close()
            await connection.close()
    logger.info("Session ended")
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(prog="rental-client", description=__doc__)
    parser.add_argument("--conversation", help="conversation id to open", default=None)
    args = parser.parse_args()
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        raise SystemExit(asyncio.run(tail(args.conversation)))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
