"""Pure merge rules for the three message sources: REST pages, pushes and optimistic sends.

Every function returns a new list; inputs are never mutated. Lists are kept
oldest-first and contain at most one entry per message id.
"""
from __future__ import annotations

import uuid
from dataclasses import replace
from datetime import datetime
from typing import Iterable, Sequence

from rental_client.domain.entities.conversation import Conversation
from rental_client.domain.entities.message import Message
from rental_client.domain.entities.typing_user import TypingUser
from rental_client.domain.value_objects.enums import DeliveryState

LOCAL_ID_PREFIX = "local-"


def new_local_id() -> str:
    return f"{LOCAL_ID_PREFIX}{uuid.uuid4().hex}"


def _merge_read(existing: Message, incoming: Message) -> Message:
    if incoming.is_read:
        return existing.mark_read(incoming.read_at)
    return existing


def _carry_read(item: Message, existing: Message | None) -> Message:
    if existing is not None and existing.is_read:
        return item.mark_read(existing.read_at)
    return item


def merge_incoming(messages: Sequence[Message], incoming: Message) -> list[Message]:
    """Append a pushed message unless its id is already present.

    A duplicate is dropped; only its read state is folded into the existing entry.
    """
    result = list(messages)
    for i, existing in enumerate(result):
        if existing.id == incoming.id:
            result[i] = _merge_read(existing, incoming)
            return result
    result.append(incoming)
    return result


def merge_page(
    messages: Sequence[Message],
    page_items: Sequence[Message],
    page: int,
) -> list[Message]:
    """Page 1 replaces the list; later pages are older and go in front.

    Read state already known locally survives a reload of the same messages.
    """
    known = {m.id: m for m in messages}
    if page <= 1:
        fresh = [_carry_read(item, known.get(item.id)) for item in page_items]
        pending = [m for m in messages if m.is_local]
        return _dedupe([*fresh, *pending])
    older: list[Message] = []
    for item in page_items:
        if item.id in known:
            continue
        older.append(item)
    return _dedupe([*older, *messages])


def _dedupe(items: Iterable[Message]) -> list[Message]:
    seen: dict[str, int] = {}
    result: list[Message] = []
    for m in items:
        idx = seen.get(m.id)
        if idx is None:
            seen[m.id] = len(result)
            result.append(m)
        else:
            result[idx] = _merge_read(result[idx], m)
    return result


def has_more(page_items: Sequence[Message], page_size: int) -> bool:
    return len(page_items) == page_size


def apply_read(
    messages: Sequence[Message],
    message_ids: Iterable[str],
    read_at: datetime | None,
) -> list[Message]:
    ids = set(message_ids)
    return [m.mark_read(read_at) if m.id in ids else m for m in messages]


def unread_from_others(
    messages: Sequence[Message],
    current_user_id: str | None,
    already_requested: Iterable[str] = (),
) -> list[str]:
    """Ids that still need a mark-read request."""
    skip = set(already_requested)
    return [
        m.id
        for m in messages
        if not m.is_read
        and not m.is_local
        and m.sender_id != current_user_id
        and m.id not in skip
    ]


def append_pending(messages: Sequence[Message], local: Message) -> list[Message]:
    return [*messages, local]


def reconcile_sent(
    messages: Sequence[Message],
    local_id: str,
    confirmed: Message,
) -> list[Message]:
    """Swap the optimistic copy for the server copy.

    When the push already delivered the server copy the local entry is dropped.
    """
    already_pushed = any(m.id == confirmed.id for m in messages)
    result: list[Message] = []
    for m in messages:
        if m.id == local_id:
            if not already_pushed:
                result.append(replace(confirmed, delivery=DeliveryState.SENT))
            continue
        result.append(m)
    return result


def mark_failed(messages: Sequence[Message], local_id: str) -> list[Message]:
    return [
        replace(m, delivery=DeliveryState.FAILED) if m.id == local_id else m
        for m in messages
    ]


def upsert_typing(users: Sequence[TypingUser], user: TypingUser) -> list[TypingUser]:
    result = list(users)
    for i, existing in enumerate(result):
        if existing.user_id == user.user_id:
            result[i] = user
            return result
    result.append(user)
    return result


def remove_typing(users: Sequence[TypingUser], user_id: str) -> list[TypingUser]:
    return [u for u in users if u.user_id != user_id]


def touch_conversation(
    conversations: Sequence[Conversation],
    message: Message,
) -> list[Conversation]:
    """Refresh the last-message cache and move the conversation to the top."""
    target = None
    rest: list[Conversation] = []
    for c in conversations:
        if c.id == message.conversation_id and target is None:
            target = c
        else:
            rest.append(c)
    if target is None:
        return list(conversations)
    return [target.with_last_message(message), *rest]
