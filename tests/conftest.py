"""Shared test fixtures."""
from __future__ import annotations

import asyncio
import uuid
from dataclasses import dataclass, field, replace
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any

import pytest
from socketio.exceptions import ConnectionError as SocketConnectionError

from rental_client.application.dto.message import SendMessageDTO
from rental_client.application.dto.offer import UpdateOfferStatusDTO
from rental_client.application.exceptions import AppError
from rental_client.application.observers import EventHub, Observable, Subscription
from rental_client.application.session import Session
from rental_client.domain.entities.contract import Contract, ContractEligibility
from rental_client.domain.entities.conversation import Conversation
from rental_client.domain.entities.message import Message
from rental_client.domain.entities.offer import Offer
from rental_client.domain.entities.participant import Participant
from rental_client.domain.entities.user import CurrentUser, Party
from rental_client.domain.value_objects.enums import (
    ConversationStatus,
    ConversationType,
    EligibilityState,
    MessageType,
    OfferStatus,
    ParticipantRole,
)
from rental_client.infrastructure.auth.token_store import MemoryTokenStore

T0 = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def token_store() -> MemoryTokenStore:
    return MemoryTokenStore()


@pytest.fixture
def session(token_store: MemoryTokenStore) -> Session:
    return Session(token_store)


def make_user(*, user_id: str = "tenant-1", name: str = "Anna Nowak", party: Party | None = None) -> CurrentUser:
    return CurrentUser(id=user_id, name=name, email="anna@example.com", role="TENANT", party=party)


def make_message(
    *,
    message_id: str | None = None,
    conversation_id: str = "conv-1",
    sender_id: str = "landlord-1",
    content: str = "hello",
    is_read: bool = False,
    read_at: datetime | None = None,
    created_at: datetime | None = None,
) -> Message:
    ts = created_at or T0
    return Message(
        id=message_id or uuid.uuid4().hex,
        conversation_id=conversation_id,
        sender_id=sender_id,
        content=content,
        type=MessageType.TEXT,
        is_read=is_read,
        read_at=read_at,
        created_at=ts,
        updated_at=ts,
    )


def make_conversation(*, conversation_id: str = "conv-1", user_ids: tuple[str, ...] = ("tenant-1", "landlord-1")) -> Conversation:
    return Conversation(
        id=conversation_id,
        type=ConversationType.DIRECT,
        status=ConversationStatus.ACTIVE,
        participants=tuple(
            Participant(id=f"p-{uid}", user_id=uid, role=ParticipantRole.MEMBER, name=uid)
            for uid in user_ids
        ),
        created_at=T0,
        updated_at=T0,
    )


def make_offer(
    *,
    offer_id: str = "offer-1",
    status: str = OfferStatus.PENDING,
    rent: str = "3000",
    available_from: date | None = date(2026, 3, 15),
    lease_duration: int = 12,
    tenant: Party | None = None,
    landlord: Party | None = None,
    payment_date: datetime | None = None,
) -> Offer:
    return Offer(
        id=offer_id,
        rental_request_id="rr-1",
        landlord_id="landlord-1",
        tenant_id="tenant-1",
        rent_amount=Decimal(rent),
        deposit_amount=Decimal("3000"),
        lease_duration=lease_duration,
        available_from=available_from,
        status=status,
        created_at=T0,
        property_address="ul. Prosta 1, Warszawa",
        property_type="APARTMENT",
        landlord=landlord,
        tenant=tenant,
        payment_date=payment_date,
    )


class FixedClock:
    def __init__(self, now: datetime = T0) -> None:
        self._now = now

    def now(self) -> datetime:
        return self._now

    def today(self) -> date:
        return self._now.date()


@dataclass
class FakeMessagingApi:
    conversations: list[Conversation] = field(default_factory=list)
    pages: dict[tuple[str, int], list[Message]] = field(default_factory=dict)
    unread: int = 0
    fail_with: AppError | None = None
    fail_send: AppError | None = None
    gate: asyncio.Event | None = None
    list_calls: list[tuple[str, int, int]] = field(default_factory=list)
    sent: list[SendMessageDTO] = field(default_factory=list)
    read_calls: list[tuple[str, list[str]]] = field(default_factory=list)
    created: list[tuple[list[str], str | None, str | None]] = field(default_factory=list)
    conversation_calls: int = 0

    async def list_conversations(self) -> list[Conversation]:
        self.conversation_calls += 1
        if self.fail_with:
            raise self.fail_with
        return list(self.conversations)

    async def list_messages(self, conversation_id: str, *, page: int = 1, limit: int = 50) -> list[Message]:
        self.list_calls.append((conversation_id, page, limit))
        if self.gate is not None:
            await self.gate.wait()
        if self.fail_with:
            raise self.fail_with
        return list(self.pages.get((conversation_id, page), []))

    async def send_message(self, dto: SendMessageDTO) -> Message:
        self.sent.append(dto)
        if self.fail_send:
            raise self.fail_send
        return make_message(
            message_id=f"srv-{len(self.sent)}",
            conversation_id=dto.conversation_id,
            sender_id="tenant-1",
            content=dto.content,
        )

    async def mark_read(self, conversation_id: str, message_ids: list[str]) -> None:
        self.read_calls.append((conversation_id, list(message_ids)))
        if self.fail_with:
            raise self.fail_with

    async def unread_count(self) -> int:
        if self.fail_with:
            raise self.fail_with
        return self.unread

    async def create_conversation(
        self,
        participant_ids: list[str],
        *,
        property_id: str | None = None,
        title: str | None = None,
    ) -> Conversation:
        self.created.append((participant_ids, property_id, title))
        if self.fail_with:
            raise self.fail_with
        return make_conversation(conversation_id=f"conv-new-{len(self.created)}")


@dataclass
class FakeNotificationsApi:
    counts: dict[str, int] = field(default_factory=lambda: {"offers": 0, "rentalRequests": 0})

    async def unread_counts(self) -> dict[str, int]:
        return dict(self.counts)


@dataclass
class FakeOfferApi:
    offers: list[Offer] = field(default_factory=list)
    fail_with: AppError | None = None
    status_calls: list[UpdateOfferStatusDTO] = field(default_factory=list)
    list_calls: int = 0

    async def list_my_offers(self) -> list[Offer]:
        self.list_calls += 1
        if self.fail_with:
            raise self.fail_with
        return list(self.offers)

    async def update_status(self, dto: UpdateOfferStatusDTO) -> Offer:
        self.status_calls.append(dto)
        if self.fail_with:
            raise self.fail_with
        current = next(o for o in self.offers if o.id == dto.offer_id)
        updated = replace(
            current,
            status=dto.status.value,
            preferred_payment_gateway=(
                dto.preferred_payment_gateway.value if dto.preferred_payment_gateway else None
            ),
        )
        self.offers = [updated if o.id == dto.offer_id else o for o in self.offers]
        return updated


@dataclass
class FakeContractApi:
    result: ContractEligibility = field(
        default_factory=lambda: ContractEligibility(
            state=EligibilityState.NOT_AVAILABLE, reason="Payment required",
        )
    )
    after_sign: ContractEligibility | None = None
    after_generate: ContractEligibility | None = None
    fail_sign: AppError | None = None
    fail_generate: AppError | None = None
    fail_eligibility: AppError | None = None
    contracts: list[Contract] = field(default_factory=list)
    eligibility_calls: list[str] = field(default_factory=list)
    sign_calls: list[tuple[str, str | None]] = field(default_factory=list)
    generate_calls: list[str] = field(default_factory=list)
    pdf: bytes = b"%PDF-1.4"

    async def eligibility(self, rental_request_id: str) -> ContractEligibility:
        self.eligibility_calls.append(rental_request_id)
        if self.fail_eligibility:
            raise self.fail_eligibility
        return self.result

    async def sign(self, contract_id: str, signature: str | None = None) -> None:
        self.sign_calls.append((contract_id, signature))
        if self.fail_sign:
            raise self.fail_sign
        if self.after_sign is not None:
            self.result = self.after_sign

    async def preview(self, offer_id: str) -> str:
        return f"<html>{offer_id}</html>"

    async def generate(self, rental_request_id: str) -> Contract:
        self.generate_calls.append(rental_request_id)
        if self.fail_generate:
            raise self.fail_generate
        if self.after_generate is not None:
            self.result = self.after_generate
        contract = Contract(id="contract-1", contract_number="SR-202603-0001", status="GENERATED")
        self.contracts.append(contract)
        return contract

    async def download(self, contract_id: str) -> bytes:
        return self.pdf

    async def my_contracts(self) -> list[Contract]:
        return list(self.contracts)


@dataclass
class FakeUsersApi:
    user: CurrentUser = field(default_factory=make_user)
    stored_signature: str | None = None
    fail_with: AppError | None = None
    me_calls: int = 0
    signature_calls: int = 0

    async def me(self) -> CurrentUser:
        self.me_calls += 1
        if self.fail_with:
            raise self.fail_with
        return self.user

    async def signature(self) -> str | None:
        self.signature_calls += 1
        if self.fail_with:
            raise self.fail_with
        return self.stored_signature


class FakeRealtimeChannel:
    """In-memory RealtimeChannel; tests push server events with ``push``."""

    def __init__(self, connected: bool = False) -> None:
        self.connected = connected
        self.emitted: list[tuple[str, Any]] = []
        self.joined_rooms: list[str] = []
        self.join_all_count = 0
        self._joined = False
        self._hub = EventHub()
        self._connectivity: Observable[bool] = Observable("connectivity")

    @property
    def is_connected(self) -> bool:
        return self.connected

    def subscribe(self, event: str, handler: Any) -> Subscription:
        return self._hub.subscribe(event, handler)

    def on_connectivity(self, handler: Any) -> Subscription:
        return self._connectivity.subscribe(handler)

    async def emit(self, event: str, data: Any = None) -> bool:
        if not self.connected:
            return False
        self.emitted.append((event, data))
        return True

    async def ensure_joined_conversations(self) -> bool:
        if self._joined or not self.connected:
            return False
        self._joined = True
        self.join_all_count += 1
        return True

    async def join_conversation(self, conversation_id: str) -> None:
        if self.connected:
            self.joined_rooms.append(conversation_id)

    async def push(self, event: str, value: Any) -> None:
        await self._hub.emit(event, value)

    async def set_connected(self, value: bool) -> None:
        self.connected = value
        if not value:
            self._joined = False
        await self._connectivity.emit(value)

    def listener_count(self, event: str) -> int:
        return self._hub.listener_count(event)


class FakeSocketClient:
    """Stands in for socketio.AsyncClient: records handlers and fires connect/disconnect."""

    def __init__(self, *, fail_connect: int = 0) -> None:
        self.handlers: dict[str, Any] = {}
        self.connect_calls: list[dict[str, Any]] = []
        self.emitted: list[tuple[str, Any]] = []
        self.disconnected = False
        self._fail_connect = fail_connect

    def on(self, event: str, handler: Any = None) -> None:
        self.handlers[event] = handler

    async def connect(self, url: str, **kwargs: Any) -> None:
        self.connect_calls.append({"url": url, **kwargs})
        if self._fail_connect > 0:
            self._fail_connect -= 1
            raise SocketConnectionError("refused")
        await self.handlers["connect"]()

    async def disconnect(self) -> None:
        self.disconnected = True
        handler = self.handlers.get("disconnect")
        if handler is not None:
            await handler()

    async def emit(self, event: str, data: Any = None) -> None:
        self.emitted.append((event, data))

    async def server_event(self, event: str, *args: Any) -> None:
        await self.handlers[event](*args)
