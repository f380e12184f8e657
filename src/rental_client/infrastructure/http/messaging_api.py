from __future__ import annotations

import logging

from rental_client.application.dto.message import SendMessageDTO
from rental_client.domain.entities.conversation import Conversation
from rental_client.domain.entities.message import Message
from rental_client.domain.value_objects.ids import ConversationId, MessageId
from rental_client.infrastructure.http.client import AuthenticatedApiClient, parse_as
from rental_client.infrastructure.http.mappers import conversation as conversation_mapper
from rental_client.infrastructure.http.mappers import message as message_mapper
from rental_client.infrastructure.http.schemas import (
    ConversationSchema,
    MessageSchema,
    NotificationCountsSchema,
    UnreadCountSchema,
)

logger = logging.getLogger(__name__)


class HttpMessagingApi:
    """Implements application.ports.messaging.MessagingApi over REST."""

    def __init__(self, client: AuthenticatedApiClient) -> None:
        self._client = client

    async def list_conversations(self) -> list[Conversation]:
        data = await self._client.get_json("/messaging/conversations")
        rows = parse_as(list[ConversationSchema], data)
        return [conversation_mapper.schema_to_entity(r) for r in rows]

    async def list_messages(
        self,
        conversation_id: ConversationId,
        *,
        page: int = 1,
        limit: int = 50,
    ) -> list[Message]:
        data = await self._client.get_json(
            f"/messaging/conversations/{conversation_id}/messages",
            params={"page": page, "limit": limit},
        )
        rows = parse_as(list[MessageSchema], data)
        return [message_mapper.schema_to_entity(r, conversation_id=conversation_id) for r in rows]

    async def send_message(self, dto: SendMessageDTO) -> Message:
        path = f"/messaging/conversations/{dto.conversation_id}/messages"
        if dto.attachment is not None:
            form: dict[str, str] = {}
            if dto.content:
                form["content"] = dto.content
            if dto.reply_to_id:
                form["replyToId"] = dto.reply_to_id
            response = await self._client.request(
                "POST",
                path,
                data=form,
                files={
                    "attachment": (
                        dto.attachment.filename,
                        dto.attachment.content,
                        dto.attachment.content_type,
                    )
                },
            )
            data = response.json()
        else:
            body: dict[str, str] = {"content": dto.content}
            if dto.reply_to_id:
                body["replyToId"] = dto.reply_to_id
            data = await self._client.post_json(path, body)
        return message_mapper.schema_to_entity(
            parse_as(MessageSchema, data), conversation_id=dto.conversation_id,
        )

    async def mark_read(
        self, conversation_id: ConversationId, message_ids: list[MessageId]
    ) -> None:
        await self._client.put_json(
            f"/messaging/conversations/{conversation_id}/messages/read",
            {"messageIds": list(message_ids)},
        )

    async def unread_count(self) -> int:
        data = await self._client.get_json("/messaging/conversations/unread-count")
        return parse_as(UnreadCountSchema, data).unread_count

    async def create_conversation(
        self,
        participant_ids: list[str],
        *,
        property_id: str | None = None,
        title: str | None = None,
    ) -> Conversation:
        body: dict[str, object] = {"participantIds": participant_ids}
        if property_id is not None:
            body["propertyId"] = property_id
        if title is not None:
            body["title"] = title
        data = await self._client.post_json("/messaging/conversations", body)
        return conversation_mapper.schema_to_entity(parse_as(ConversationSchema, data))


class HttpNotificationsApi:
    """Implements application.ports.messaging.NotificationsApi."""

    def __init__(self, client: AuthenticatedApiClient) -> None:
        self._client = client

    async def unread_counts(self) -> dict[str, int]:
        data = await self._client.get_json("/notifications/unread-counts")
        counts = parse_as(NotificationCountsSchema, data)
        return {"offers": counts.offers, "rentalRequests": counts.rental_requests}
