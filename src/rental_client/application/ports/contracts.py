from __future__ import annotations

from typing import Protocol

from rental_client.domain.entities.contract import Contract, ContractEligibility
from rental_client.domain.value_objects.ids import ContractId, OfferId, RentalRequestId


class ContractApi(Protocol):
    async def eligibility(self, rental_request_id: RentalRequestId) -> ContractEligibility: ...

    async def sign(self, contract_id: ContractId, signature: str | None = None) -> None: ...

    async def preview(self, offer_id: OfferId) -> str:
        """Server-rendered contract HTML."""
        ...

    async def generate(self, rental_request_id: RentalRequestId) -> Contract: ...

    async def download(self, contract_id: ContractId) -> bytes: ...

    async def my_contracts(self) -> list[Contract]: ...
