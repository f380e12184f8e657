from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from rental_client.domain.value_objects.enums import EligibilityState


@dataclass(frozen=True, slots=True)
class Contract:
    id: str
    contract_number: str
    status: str
    generated_at: datetime | None = None
    signed_at: datetime | None = None
    pdf_url: str | None = None


@dataclass(frozen=True, slots=True)
class ContractEligibility:
    state: EligibilityState
    reason: str | None = None
    can_generate: bool = False
    contract_id: str | None = None
    contract_number: str | None = None
    signed_at: datetime | None = None
