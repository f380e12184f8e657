"""Wire models for the marketplace REST and realtime payloads (camelCase on the wire)."""
from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,
        extra="ignore",
    )


class UserRef(WireModel):
    id: str
    name: str | None = None
    email: str | None = None
    role: str | None = None


class ReplyToSchema(WireModel):
    id: str


class MessageSchema(WireModel):
    id: str
    conversation_id: str | None = None
    content: str = ""
    message_type: str = "TEXT"
    attachment_url: str | None = None
    attachment_name: str | None = None
    attachment_size: int | None = None
    attachment_type: str | None = None
    is_read: bool = False
    read_at: datetime | None = None
    sender_id: str
    sender: UserRef | None = None
    reply_to_id: str | None = None
    reply_to: ReplyToSchema | None = None
    created_at: datetime
    updated_at: datetime | None = None


class ParticipantSchema(WireModel):
    id: str
    user_id: str
    role: str = "MEMBER"
    user: UserRef | None = None


class ConversationSchema(WireModel):
    id: str
    title: str | None = None
    type: str = "DIRECT"
    status: str = "ACTIVE"
    property_id: str | None = None
    offer_id: str | None = None
    participants: list[ParticipantSchema] = Field(default_factory=list)
    messages: list[MessageSchema] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class UnreadCountSchema(WireModel):
    unread_count: int


class NotificationCountsSchema(WireModel):
    offers: int = 0
    rental_requests: int = 0


class PartySchema(WireModel):
    id: str | None = None
    name: str | None = None
    email: str | None = None
    phone_number: str | None = None
    street: str | None = None
    city: str | None = None
    zip_code: str | None = None
    country: str | None = None
    pesel: str | None = None
    passport_number: str | None = None
    karta_pobytu_number: str | None = None
    signature_base64: str | None = None


class RentalRequestRef(WireModel):
    id: str
    tenant: PartySchema | None = None


class OfferSchema(WireModel):
    id: str
    rental_request_id: str
    landlord_id: str
    tenant_id: str | None = None
    rent_amount: Decimal
    deposit_amount: Decimal | None = None
    lease_duration: int = 12
    available_from: date | None = None
    status: str
    preferred_payment_gateway: str | None = None
    property_address: str | None = None
    property_type: str | None = None
    property_size: str | None = None
    description: str | None = None
    payment_date: datetime | None = None
    landlord: PartySchema | None = None
    tenant: PartySchema | None = None
    rental_request: RentalRequestRef | None = None
    created_at: datetime

    @field_validator("available_from", mode="before")
    @classmethod
    def _date_only(cls, v: Any) -> Any:
        # The API sends full ISO timestamps for calendar dates.
        if isinstance(v, str) and "T" in v:
            return v.split("T", 1)[0]
        return v


class OfferListSchema(WireModel):
    offers: list[OfferSchema] = Field(default_factory=list)


class EligibilitySchema(WireModel):
    can_generate: bool = False
    reason: str | None = None
    contract_id: str | None = None
    contract_number: str | None = None
    signed_at: datetime | None = None
    contract_status: str | None = None


class ContractSchema(WireModel):
    id: str
    contract_number: str
    status: str = "GENERATED"
    generated_at: datetime | None = None
    signed_at: datetime | None = None
    pdf_url: str | None = None


class UserSchema(WireModel):
    id: str
    name: str
    email: str
    role: str = "TENANT"
    phone_number: str | None = None
    street: str | None = None
    city: str | None = None
    zip_code: str | None = None
    country: str | None = None
    pesel: str | None = None
    passport_number: str | None = None
    karta_pobytu_number: str | None = None
    signature_base64: str | None = None
