from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal

from rental_client.domain.entities.user import Party
from rental_client.domain.value_objects.enums import OfferStatus


@dataclass(frozen=True, slots=True)
class Offer:
    id: str
    rental_request_id: str
    landlord_id: str
    tenant_id: str | None
    rent_amount: Decimal
    deposit_amount: Decimal | None
    lease_duration: int
    available_from: date | None
    status: str
    created_at: datetime
    property_address: str | None = None
    property_type: str | None = None
    property_size: str | None = None
    description: str | None = None
    preferred_payment_gateway: str | None = None
    payment_date: datetime | None = None
    landlord: Party | None = None
    tenant: Party | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status in (OfferStatus.PAID, OfferStatus.REJECTED)
