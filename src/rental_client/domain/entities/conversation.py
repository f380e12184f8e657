from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime

from rental_client.domain.entities.message import Message
from rental_client.domain.entities.participant import Participant


@dataclass(frozen=True, slots=True)
class Conversation:
    id: str
    type: str
    status: str
    participants: tuple[Participant, ...]
    created_at: datetime
    updated_at: datetime
    title: str | None = None
    property_id: str | None = None
    offer_id: str | None = None
    last_message: Message | None = None

    def with_last_message(self, message: Message) -> Conversation:
        return replace(self, last_message=message, updated_at=message.created_at)

    def has_participant(self, user_id: str) -> bool:
        return any(p.user_id == user_id for p in self.participants)
