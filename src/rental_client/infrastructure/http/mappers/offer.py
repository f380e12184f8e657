from __future__ import annotations

from rental_client.domain.entities.offer import Offer
from rental_client.infrastructure.http.mappers.user import party_to_entity
from rental_client.infrastructure.http.schemas import OfferSchema


def schema_to_entity(s: OfferSchema) -> Offer:
    tenant = s.tenant
    if tenant is None and s.rental_request is not None:
        tenant = s.rental_request.tenant
    return Offer(
        id=s.id,
        rental_request_id=s.rental_request_id,
        landlord_id=s.landlord_id,
        tenant_id=s.tenant_id or (tenant.id if tenant else None),
        rent_amount=s.rent_amount,
        deposit_amount=s.deposit_amount,
        lease_duration=s.lease_duration,
        available_from=s.available_from,
        status=s.status,
        preferred_payment_gateway=s.preferred_payment_gateway,
        property_address=s.property_address,
        property_type=s.property_type,
        property_size=s.property_size,
        description=s.description,
        payment_date=s.payment_date,
        landlord=party_to_entity(s.landlord) if s.landlord else None,
        tenant=party_to_entity(tenant) if tenant else None,
        created_at=s.created_at,
    )
