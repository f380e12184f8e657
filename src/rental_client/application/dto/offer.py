from __future__ import annotations

from dataclasses import dataclass

from rental_client.domain.value_objects.enums import OfferStatus, PaymentGateway
from rental_client.domain.value_objects.ids import OfferId


@dataclass(frozen=True, slots=True)
class UpdateOfferStatusDTO:
    offer_id: OfferId
    status: OfferStatus
    preferred_payment_gateway: PaymentGateway | None = None

    def as_body(self) -> dict[str, str]:
        body = {"status": self.status.value}
        if self.preferred_payment_gateway is not None:
            body["preferredPaymentGateway"] = self.preferred_payment_gateway.value
        return body
