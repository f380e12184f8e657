from __future__ import annotations

from rental_client.application.exceptions import ApiError
from rental_client.domain.entities.contract import Contract, ContractEligibility
from rental_client.domain.value_objects.ids import ContractId, OfferId, RentalRequestId
from rental_client.infrastructure.http.client import AuthenticatedApiClient, parse_as
from rental_client.infrastructure.http.mappers import contract as contract_mapper
from rental_client.infrastructure.http.schemas import ContractSchema, EligibilitySchema


class HttpContractApi:
    """Implements application.ports.contracts.ContractApi over REST."""

    def __init__(self, client: AuthenticatedApiClient) -> None:
        self._client = client

    async def eligibility(self, rental_request_id: RentalRequestId) -> ContractEligibility:
        try:
            data = await self._client.get_json(f"/contracts/{rental_request_id}/eligibility")
        except ApiError as exc:
            # "Not paid yet" comes back as 400 with a regular eligibility body.
            if exc.status_code == 400 and "canGenerate" in exc.payload:
                data = exc.payload
            else:
                raise
        return contract_mapper.eligibility_to_entity(parse_as(EligibilitySchema, data))

    async def sign(self, contract_id: ContractId, signature: str | None = None) -> None:
        body = {"signature": signature} if signature else {}
        await self._client.post_json(f"/contracts/sign/{contract_id}", body)

    async def preview(self, offer_id: OfferId) -> str:
        data = await self._client.get_json(f"/contracts/preview/{offer_id}")
        html = data.get("html") if isinstance(data, dict) else None
        if not isinstance(html, str):
            raise ApiError(502, "Unexpected response from server")
        return html

    async def generate(self, rental_request_id: RentalRequestId) -> Contract:
        data = await self._client.post_json(f"/contracts/generate/{rental_request_id}")
        raw = data.get("contract", data) if isinstance(data, dict) else data
        return contract_mapper.schema_to_entity(parse_as(ContractSchema, raw))

    async def download(self, contract_id: ContractId) -> bytes:
        return await self._client.get_bytes(f"/contracts/download/{contract_id}")

    async def my_contracts(self) -> list[Contract]:
        data = await self._client.get_json("/contracts/my-contracts")
        raw = data.get("contracts", []) if isinstance(data, dict) else data
        return [contract_mapper.schema_to_entity(r) for r in parse_as(list[ContractSchema], raw)]
