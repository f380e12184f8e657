"""Socket.IO event names and payload models."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from rental_client.domain.events.conversations_loaded import ConversationsLoaded
from rental_client.domain.events.message_created import MessageCreated
from rental_client.domain.events.message_read import MessageRead
from rental_client.domain.events.typing_changed import UserStoppedTyping, UserTyping
from rental_client.infrastructure.http.mappers import conversation as conversation_mapper
from rental_client.infrastructure.http.mappers import message as message_mapper
from rental_client.infrastructure.http.schemas import (
    ConversationSchema,
    MessageSchema,
    WireModel,
)

logger = logging.getLogger(__name__)

# Client -> server
JOIN_CONVERSATIONS = "join-conversations"
JOIN_CONVERSATION = "join-conversation"
SEND_MESSAGE = "send-message"
TYPING = "typing"
STOP_TYPING = "stop-typing"

# Server -> client
CONVERSATIONS_LOADED = "conversations-loaded"
JOINED_CONVERSATION = "joined-conversation"
NEW_MESSAGE = "new-message"
MESSAGE_READ = "message-read"
USER_TYPING = "user-typing"
USER_STOP_TYPING = "user-stop-typing"
SERVER_ERROR = "error"

SERVER_EVENTS: tuple[str, ...] = (
    CONVERSATIONS_LOADED,
    JOINED_CONVERSATION,
    NEW_MESSAGE,
    MESSAGE_READ,
    USER_TYPING,
    USER_STOP_TYPING,
    SERVER_ERROR,
)


class SendMessagePayload(WireModel):
    conversation_id: str
    content: str
    reply_to_id: str | None = None

    def wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class MessageReadPayload(WireModel):
    message_id: str
    read_at: datetime | None = None


class TypingPayload(WireModel):
    user_id: str
    user_name: str = ""


class StopTypingPayload(WireModel):
    user_id: str


_conversations_adapter = TypeAdapter(list[ConversationSchema])


def parse_server_event(event: str, data: Any) -> Any:
    """Turn a raw server payload into its domain event. Returns None when malformed."""
    try:
        if event == NEW_MESSAGE:
            s = MessageSchema.model_validate(data)
            msg = message_mapper.schema_to_entity(s)
            return MessageCreated(conversation_id=msg.conversation_id, message=msg)
        if event == MESSAGE_READ:
            p = MessageReadPayload.model_validate(data)
            return MessageRead(message_id=p.message_id, read_at=p.read_at)
        if event == USER_TYPING:
            t = TypingPayload.model_validate(data)
            return UserTyping(user_id=t.user_id, user_name=t.user_name)
        if event == USER_STOP_TYPING:
            st = StopTypingPayload.model_validate(data)
            return UserStoppedTyping(user_id=st.user_id)
        if event == CONVERSATIONS_LOADED:
            rows = _conversations_adapter.validate_python(data)
            return ConversationsLoaded(
                conversations=tuple(conversation_mapper.schema_to_entity(r) for r in rows)
            )
        if event in (SERVER_ERROR, JOINED_CONVERSATION):
            if isinstance(data, dict):
                return str(data.get("message") or data.get("error") or data)
            return str(data) if data is not None else ""
    except PydanticValidationError:
        logger.warning("Dropping malformed %s payload", event, exc_info=True)
        return None
    logger.debug("Ignoring unknown event: %s", event)
    return None
