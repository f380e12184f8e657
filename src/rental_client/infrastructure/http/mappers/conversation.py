from __future__ import annotations

from rental_client.domain.entities.conversation import Conversation
from rental_client.domain.entities.participant import Participant
from rental_client.infrastructure.http.mappers import message as message_mapper
from rental_client.infrastructure.http.schemas import ConversationSchema, ParticipantSchema


def participant_to_entity(s: ParticipantSchema) -> Participant:
    return Participant(
        id=s.id,
        user_id=s.user_id,
        role=s.role,
        name=(s.user.name if s.user else None) or "",
        email=s.user.email if s.user else None,
        user_role=s.user.role if s.user else None,
    )


def schema_to_entity(s: ConversationSchema) -> Conversation:
    # Newest first; the list endpoint embeds only the latest message.
    last = s.messages[0] if s.messages else None
    return Conversation(
        id=s.id,
        title=s.title,
        type=s.type,
        status=s.status,
        property_id=s.property_id,
        offer_id=s.offer_id,
        participants=tuple(participant_to_entity(p) for p in s.participants),
        last_message=message_mapper.schema_to_entity(last, conversation_id=s.id) if last else None,
        created_at=s.created_at,
        updated_at=s.updated_at,
    )
