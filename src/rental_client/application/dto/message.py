from __future__ import annotations

from dataclasses import dataclass

from rental_client.domain.value_objects.ids import ConversationId


@dataclass(frozen=True, slots=True)
class Attachment:
    filename: str
    content: bytes
    content_type: str = "application/octet-stream"


@dataclass(frozen=True, slots=True)
class SendMessageDTO:
    conversation_id: ConversationId
    content: str
    reply_to_id: str | None = None
    attachment: Attachment | None = None
