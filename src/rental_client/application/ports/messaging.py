from __future__ import annotations

from typing import Protocol

from rental_client.application.dto.message import SendMessageDTO
from rental_client.domain.entities.conversation import Conversation
from rental_client.domain.entities.message import Message
from rental_client.domain.value_objects.ids import ConversationId, MessageId


class MessagingApi(Protocol):
    async def list_conversations(self) -> list[Conversation]: ...

    async def list_messages(
        self,
        conversation_id: ConversationId,
        *,
        page: int = 1,
        limit: int = 50,
    ) -> list[Message]:
        """Oldest-first page of messages. Page 1 is the most recent page."""
        ...

    async def send_message(self, dto: SendMessageDTO) -> Message: ...

    async def mark_read(
        self, conversation_id: ConversationId, message_ids: list[MessageId]
    ) -> None: ...

    async def unread_count(self) -> int: ...

    async def create_conversation(
        self,
        participant_ids: list[str],
        *,
        property_id: str | None = None,
        title: str | None = None,
    ) -> Conversation: ...


class NotificationsApi(Protocol):
    async def unread_counts(self) -> dict[str, int]:
        """Badge counters keyed by ``offers`` and ``rentalRequests``."""
        ...
