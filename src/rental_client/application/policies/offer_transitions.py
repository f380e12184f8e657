from __future__ import annotations

from rental_client.application.exceptions import ConflictError, ValidationError
from rental_client.domain.value_objects.enums import OfferStatus, PaymentGateway

# ACCEPTED -> PAID happens server-side after payment; the client only observes it.
ALLOWED_TRANSITIONS: dict[OfferStatus, frozenset[OfferStatus]] = {
    OfferStatus.PENDING: frozenset({OfferStatus.ACCEPTED, OfferStatus.REJECTED}),
    OfferStatus.ACCEPTED: frozenset({OfferStatus.PAID}),
    OfferStatus.PAID: frozenset(),
    OfferStatus.REJECTED: frozenset(),
}

TENANT_TRANSITIONS: frozenset[OfferStatus] = frozenset(
    {OfferStatus.ACCEPTED, OfferStatus.REJECTED}
)


def can_transition(current: str, target: str) -> bool:
    try:
        return OfferStatus(target) in ALLOWED_TRANSITIONS[OfferStatus(current)]
    except (KeyError, ValueError):
        return False


def assert_can_transition(current: str, target: OfferStatus) -> None:
    """Raise if the offer cannot move from ``current`` to ``target``."""
    if not can_transition(current, target):
        raise ConflictError(f"Offer is {current} and cannot be {target.value.lower()}")


def assert_tenant_transition(current: str, target: OfferStatus) -> None:
    if target not in TENANT_TRANSITIONS:
        raise ConflictError(f"{target.value} is not set by the tenant")
    assert_can_transition(current, target)


def parse_gateway(value: str | PaymentGateway | None) -> PaymentGateway:
    if value is None or value == "":
        raise ValidationError("Please select a payment method")
    try:
        return PaymentGateway(value)
    except ValueError:
        allowed = ", ".join(g.value for g in PaymentGateway)
        raise ValidationError(f"Invalid payment gateway. Must be one of: {allowed}.") from None
