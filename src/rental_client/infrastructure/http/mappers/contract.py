from __future__ import annotations

from rental_client.domain.entities.contract import Contract, ContractEligibility
from rental_client.domain.value_objects.enums import EligibilityState
from rental_client.infrastructure.http.schemas import ContractSchema, EligibilitySchema


def eligibility_to_entity(s: EligibilitySchema) -> ContractEligibility:
    if s.contract_id is None:
        state = EligibilityState.NOT_AVAILABLE
    elif s.signed_at is None:
        state = EligibilityState.UNSIGNED
    else:
        state = EligibilityState.SIGNED
    return ContractEligibility(
        state=state,
        reason=s.reason,
        can_generate=s.can_generate,
        contract_id=s.contract_id,
        contract_number=s.contract_number,
        signed_at=s.signed_at,
    )


def schema_to_entity(s: ContractSchema) -> Contract:
    return Contract(
        id=s.id,
        contract_number=s.contract_number,
        status=s.status,
        generated_at=s.generated_at,
        signed_at=s.signed_at,
        pdf_url=s.pdf_url,
    )
