from __future__ import annotations

from rental_client.domain.entities.message import AttachmentInfo, Message
from rental_client.infrastructure.http.schemas import MessageSchema


def schema_to_entity(s: MessageSchema, *, conversation_id: str | None = None) -> Message:
    attachment = None
    if s.attachment_url:
        attachment = AttachmentInfo(
            url=s.attachment_url,
            name=s.attachment_name,
            size=s.attachment_size,
            content_type=s.attachment_type,
        )
    return Message(
        id=s.id,
        conversation_id=s.conversation_id or conversation_id or "",
        sender_id=s.sender_id,
        sender_name=s.sender.name if s.sender else None,
        content=s.content,
        type=s.message_type,
        is_read=s.is_read,
        read_at=s.read_at,
        reply_to_id=s.reply_to_id or (s.reply_to.id if s.reply_to else None),
        attachment=attachment,
        created_at=s.created_at,
        updated_at=s.updated_at or s.created_at,
    )
