from __future__ import annotations

from dataclasses import replace
from datetime import timedelta

from rental_client.domain.entities.typing_user import TypingUser
from rental_client.domain.value_objects.enums import DeliveryState
from rental_client.services import message_merge as merge
from tests.conftest import T0, make_conversation, make_message


def _ids(messages):
    return [m.id for m in messages]


def test_merge_incoming_appends_new_message():
    existing = [make_message(message_id="m1")]
    result = merge.merge_incoming(existing, make_message(message_id="m2"))
    assert _ids(result) == ["m1", "m2"]
    assert _ids(existing) == ["m1"]


def test_merge_incoming_drops_duplicate_but_keeps_read_state():
    original = make_message(message_id="m1", content="first")
    dup = make_message(message_id="m1", content="changed", is_read=True, read_at=T0)

    result = merge.merge_incoming([original], dup)

    assert len(result) == 1
    assert result[0].content == "first"
    assert result[0].is_read is True
    assert result[0].read_at == T0


def test_merge_incoming_never_unreads():
    read = make_message(message_id="m1", is_read=True, read_at=T0)
    result = merge.merge_incoming([read], make_message(message_id="m1"))
    assert result[0].is_read is True
    assert result[0].read_at == T0


def test_page_one_replaces_list():
    current = [make_message(message_id="old-1"), make_message(message_id="old-2")]
    page = [make_message(message_id="a"), make_message(message_id="b")]
    assert _ids(merge.merge_page(current, page, 1)) == ["a", "b"]


def test_page_one_keeps_pending_local_copies():
    local = merge.append_pending([], replace(make_message(message_id="local-x"), delivery=DeliveryState.PENDING))
    page = [make_message(message_id="a")]
    assert _ids(merge.merge_page(local, page, 1)) == ["a", "local-x"]


def test_older_page_is_prepended_without_duplicates():
    current = [make_message(message_id="c"), make_message(message_id="d")]
    older = [make_message(message_id="a"), make_message(message_id="b"), make_message(message_id="c")]
    assert _ids(merge.merge_page(current, older, 2)) == ["a", "b", "c", "d"]


def test_has_more_only_for_full_page():
    page = [make_message() for _ in range(50)]
    assert merge.has_more(page, 50) is True
    assert merge.has_more(page[:49], 50) is False


def test_apply_read_is_idempotent():
    messages = [make_message(message_id="m1"), make_message(message_id="m2")]
    once = merge.apply_read(messages, ["m1"], T0)
    twice = merge.apply_read(once, ["m1"], T0 + timedelta(minutes=5))
    assert once == twice
    assert twice[0].read_at == T0
    assert twice[1].is_read is False


def test_unread_from_others_skips_own_read_and_requested():
    messages = [
        make_message(message_id="mine", sender_id="tenant-1"),
        make_message(message_id="read", is_read=True),
        make_message(message_id="asked"),
        make_message(message_id="todo"),
    ]
    assert merge.unread_from_others(messages, "tenant-1", {"asked"}) == ["todo"]


def test_reconcile_replaces_local_copy_with_server_copy():
    local = make_message(message_id="local-1", sender_id="tenant-1")
    server = make_message(message_id="srv-1", sender_id="tenant-1")
    result = merge.reconcile_sent([make_message(message_id="m0"), local], "local-1", server)
    assert _ids(result) == ["m0", "srv-1"]
    assert result[-1].delivery == DeliveryState.SENT


def test_reconcile_drops_local_copy_when_push_arrived_first():
    local = make_message(message_id="local-1")
    server = make_message(message_id="srv-1")
    messages = merge.merge_incoming([local], server)
    result = merge.reconcile_sent(messages, "local-1", server)
    assert _ids(result) == ["srv-1"]


def test_mark_failed_flags_only_local_copy():
    messages = [make_message(message_id="m0"), make_message(message_id="local-1")]
    result = merge.mark_failed(messages, "local-1")
    assert result[0].delivery == DeliveryState.SENT
    assert result[1].delivery == DeliveryState.FAILED


def test_typing_insert_is_idempotent_and_stop_removes():
    users = merge.upsert_typing([], TypingUser("landlord-1", "Jan"))
    users = merge.upsert_typing(users, TypingUser("landlord-1", "Jan"))
    assert len(users) == 1
    assert merge.remove_typing(users, "landlord-1") == []


def test_touch_conversation_moves_it_to_top():
    convs = [make_conversation(conversation_id="a"), make_conversation(conversation_id="b")]
    msg = make_message(conversation_id="b", created_at=T0 + timedelta(hours=1))
    result = merge.touch_conversation(convs, msg)
    assert [c.id for c in result] == ["b", "a"]
    assert result[0].last_message == msg
    assert result[0].updated_at == msg.created_at
