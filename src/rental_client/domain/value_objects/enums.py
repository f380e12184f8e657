from __future__ import annotations

from enum import StrEnum


class ConversationType(StrEnum):
    DIRECT = "DIRECT"
    GROUP = "GROUP"
    PROPERTY = "PROPERTY"


class ConversationStatus(StrEnum):
    PENDING = "PENDING"
    ACTIVE = "ACTIVE"
    ARCHIVED = "ARCHIVED"


class ParticipantRole(StrEnum):
    ADMIN = "ADMIN"
    MEMBER = "MEMBER"
    READONLY = "READONLY"


class MessageType(StrEnum):
    TEXT = "TEXT"
    IMAGE = "IMAGE"
    DOCUMENT = "DOCUMENT"
    SYSTEM = "SYSTEM"


class DeliveryState(StrEnum):
    """Client-side delivery of a message; server copies are always SENT."""

    PENDING = "PENDING"
    SENT = "SENT"
    FAILED = "FAILED"


class OfferStatus(StrEnum):
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    PAID = "PAID"
    REJECTED = "REJECTED"


class PaymentGateway(StrEnum):
    STRIPE = "STRIPE"
    PAYU = "PAYU"
    P24 = "P24"
    TPAY = "TPAY"


class EligibilityState(StrEnum):
    NOT_AVAILABLE = "NOT_AVAILABLE"
    UNSIGNED = "UNSIGNED"
    SIGNED = "SIGNED"


class OfferAction(StrEnum):
    ACCEPT = "accept"
    REJECT = "reject"
    SIGN = "sign"
    DOWNLOAD = "download"
    GENERATE = "generate"
