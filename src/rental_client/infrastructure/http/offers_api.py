from __future__ import annotations

from typing import Any

from rental_client.application.dto.offer import UpdateOfferStatusDTO
from rental_client.domain.entities.offer import Offer
from rental_client.infrastructure.http.client import AuthenticatedApiClient, parse_as
from rental_client.infrastructure.http.mappers import offer as offer_mapper
from rental_client.infrastructure.http.schemas import OfferListSchema, OfferSchema


class HttpOfferApi:
    """Implements application.ports.offers.OfferApi over REST."""

    def __init__(self, client: AuthenticatedApiClient) -> None:
        self._client = client

    async def list_my_offers(self) -> list[Offer]:
        data = await self._client.get_json("/offers/my")
        rows = parse_as(OfferListSchema, data).offers
        return [offer_mapper.schema_to_entity(r) for r in rows]

    async def update_status(self, dto: UpdateOfferStatusDTO) -> Offer:
        data: Any = await self._client.put_json(f"/offers/{dto.offer_id}/status", dto.as_body())
        # {"message": ..., "offer": {...}}
        raw = data.get("offer", data) if isinstance(data, dict) else data
        return offer_mapper.schema_to_entity(parse_as(OfferSchema, raw))
