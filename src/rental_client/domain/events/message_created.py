from __future__ import annotations

from dataclasses import dataclass

from rental_client.domain.entities.message import Message


@dataclass(frozen=True, slots=True)
class MessageCreated:
    """``new-message`` push for any conversation the user belongs to."""

    conversation_id: str
    message: Message
