from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Party:
    """Identity snapshot of a landlord or tenant as embedded in an offer."""

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
    residence_card_number: str | None = None
    signature_base64: str | None = None


@dataclass(frozen=True, slots=True)
class CurrentUser:
    id: str
    name: str
    email: str
    role: str
    party: Party | None = None
