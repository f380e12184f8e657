"""Lease contract document model built from an offer and the tenant's identity."""
from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal

from dateutil.relativedelta import relativedelta

from rental_client.application.exceptions import AppError
from rental_client.application.ports.clock import Clock, SystemClock
from rental_client.application.ports.users import UsersApi
from rental_client.application.session import Session
from rental_client.domain.entities.offer import Offer
from rental_client.domain.entities.user import CurrentUser, Party

logger = logging.getLogger(__name__)

NOT_AVAILABLE = "N/A"
DEFAULT_COUNTRY = "Poland"
DEFAULT_LEASE_MONTHS = 12
RENT_DUE_DAY = 10
PRORATION_DAYS = 30


@dataclass(frozen=True, slots=True)
class PartyDetails:
    name: str
    email: str
    phone: str
    street: str
    city: str
    zip_code: str
    country: str
    pesel: str
    passport_number: str | None = None
    residence_card_number: str | None = None


@dataclass(frozen=True, slots=True)
class ScheduledPayment:
    number: int
    due_date: date
    amount: Decimal
    description: str
    is_last_month: bool = False


@dataclass(frozen=True, slots=True)
class ContractDocument:
    contract_number: str
    issued_at: datetime
    landlord: PartyDetails
    tenant: PartyDetails
    property_address: str
    property_type: str
    lease_duration: int
    lease_start: date
    lease_end: date
    rent_amount: Decimal
    deposit_amount: Decimal
    payment_schedule: tuple[ScheduledPayment, ...] = field(default_factory=tuple)
    landlord_signature: str | None = None
    tenant_signature: str | None = None


def strip_data_url(signature: str | None) -> str | None:
    """``data:image/png;base64,AAAA`` -> ``AAAA``."""
    if not signature:
        return None
    if signature.startswith("data:image/"):
        _, _, payload = signature.partition(",")
        return payload or None
    return signature


def new_contract_number(issued_at: datetime, rng: random.Random | None = None) -> str:
    suffix = (rng or random).randrange(0, 9999)
    return f"SR-{issued_at:%Y%m}-{suffix:04d}"


def lease_end_date(start: date, months: int) -> date:
    return start + relativedelta(months=months)


def payment_schedule(start: date, months: int, rent: Decimal) -> list[ScheduledPayment]:
    """Monthly rent due on the 10th, beginning the month after move-in.

    The first month is settled at signing. When the lease ends mid-month the
    last installment is prorated by day over a 30-day month.
    """
    end = lease_end_date(start, months)
    schedule: list[ScheduledPayment] = []
    current = (start + relativedelta(months=1)).replace(day=1)
    while current < end:
        is_last = (current.year, current.month) == (end.year, end.month)
        amount = rent
        description = "Monthly Rent"
        if is_last:
            amount = (rent * end.day / PRORATION_DAYS).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
            description = "Final Month (Prorated)"
        schedule.append(
            ScheduledPayment(
                number=len(schedule) + 1,
                due_date=current.replace(day=RENT_DUE_DAY),
                amount=amount,
                description=description,
                is_last_month=is_last,
            )
        )
        current = current + relativedelta(months=1)
    return schedule


def _details(party: Party | None, *, fallback_name: str, fallback_email: str) -> PartyDetails:
    p = party or Party()
    return PartyDetails(
        name=p.name or fallback_name,
        email=p.email or fallback_email,
        phone=p.phone_number or NOT_AVAILABLE,
        street=p.street or NOT_AVAILABLE,
        city=p.city or NOT_AVAILABLE,
        zip_code=p.zip_code or NOT_AVAILABLE,
        country=p.country or DEFAULT_COUNTRY,
        pesel=p.pesel or NOT_AVAILABLE,
        passport_number=p.passport_number,
        residence_card_number=p.residence_card_number,
    )


def _tenant_party(offer: Offer, user: CurrentUser | None) -> Party | None:
    if offer.tenant is not None:
        return offer.tenant
    if user is None:
        return None
    if user.party is not None:
        return user.party
    return Party(id=user.id, name=user.name, email=user.email)


def generate_rental_contract(
    offer: Offer,
    user: CurrentUser | None = None,
    *,
    clock: Clock | None = None,
    contract_number: str | None = None,
    tenant_signature: str | None = None,
    rng: random.Random | None = None,
) -> ContractDocument:
    """Build the document without any I/O.

    A new contract number is drawn unless ``contract_number`` is given; the
    number of an existing contract is never picked up implicitly.
    """
    clock = clock or SystemClock()
    issued_at = offer.payment_date or clock.now()
    start = offer.available_from or clock.today()
    months = offer.lease_duration or DEFAULT_LEASE_MONTHS
    tenant = _tenant_party(offer, user)

    schedule: list[ScheduledPayment] = []
    if offer.available_from is not None and offer.rent_amount:
        schedule = payment_schedule(start, months, offer.rent_amount)

    return ContractDocument(
        contract_number=contract_number or new_contract_number(issued_at, rng),
        issued_at=issued_at,
        landlord=_details(offer.landlord, fallback_name="Landlord", fallback_email="landlord@email.com"),
        tenant=_details(tenant, fallback_name="Tenant", fallback_email="tenant@email.com"),
        property_address=offer.property_address or NOT_AVAILABLE,
        property_type=offer.property_type or NOT_AVAILABLE,
        lease_duration=months,
        lease_start=start,
        lease_end=lease_end_date(start, months),
        rent_amount=offer.rent_amount or Decimal(0),
        deposit_amount=offer.deposit_amount or Decimal(0),
        payment_schedule=tuple(schedule),
        landlord_signature=strip_data_url(offer.landlord.signature_base64 if offer.landlord else None),
        tenant_signature=strip_data_url(
            (tenant.signature_base64 if tenant is not None else None) or tenant_signature
        ),
    )


async def build_contract_document(
    offer: Offer,
    session: Session,
    users: UsersApi,
    *,
    clock: Clock | None = None,
    contract_number: str | None = None,
) -> ContractDocument:
    """Generate the document, fetching the stored signature if the offer lacks one.

    The fetch is best effort: on failure the document is still produced and
    renders the signature as unavailable.
    """
    user = session.user
    signature: str | None = None
    embedded = offer.tenant.signature_base64 if offer.tenant is not None else None
    if not embedded and user is not None:
        try:
            signature = await users.signature()
        except AppError as exc:
            logger.warning("Could not fetch stored signature: %s", exc.detail or type(exc).__name__)
    return generate_rental_contract(
        offer,
        user,
        clock=clock,
        contract_number=contract_number,
        tenant_signature=signature,
    )
