from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime

from rental_client.domain.value_objects.enums import DeliveryState


@dataclass(frozen=True, slots=True)
class AttachmentInfo:
    url: str
    name: str | None = None
    size: int | None = None
    content_type: str | None = None


@dataclass(frozen=True, slots=True)
class Message:
    id: str
    conversation_id: str
    sender_id: str
    content: str
    type: str
    is_read: bool
    created_at: datetime
    updated_at: datetime
    sender_name: str | None = None
    read_at: datetime | None = None
    reply_to_id: str | None = None
    attachment: AttachmentInfo | None = None
    delivery: DeliveryState = DeliveryState.SENT

    def mark_read(self, read_at: datetime | None) -> Message:
        """Return a read copy. Read state never reverts, and the first read_at wins."""
        if self.is_read:
            if self.read_at is None and read_at is not None:
                return replace(self, read_at=read_at)
            return self
        return replace(self, is_read=True, read_at=read_at)

    @property
    def is_local(self) -> bool:
        return self.delivery != DeliveryState.SENT
