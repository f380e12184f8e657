from __future__ import annotations

from dataclasses import dataclass

from rental_client.domain.entities.conversation import Conversation


@dataclass(frozen=True, slots=True)
class ConversationsLoaded:
    conversations: tuple[Conversation, ...]
