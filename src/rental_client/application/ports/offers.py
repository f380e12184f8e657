from __future__ import annotations

from typing import Protocol

from rental_client.application.dto.offer import UpdateOfferStatusDTO
from rental_client.domain.entities.offer import Offer


class OfferApi(Protocol):
    async def list_my_offers(self) -> list[Offer]: ...

    async def update_status(self, dto: UpdateOfferStatusDTO) -> Offer: ...
