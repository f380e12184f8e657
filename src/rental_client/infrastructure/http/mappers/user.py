from __future__ import annotations

from rental_client.domain.entities.user import CurrentUser, Party
from rental_client.infrastructure.http.schemas import PartySchema, UserSchema


def party_to_entity(s: PartySchema | UserSchema) -> Party:
    return Party(
        id=s.id,
        name=s.name,
        email=s.email,
        phone_number=s.phone_number,
        street=s.street,
        city=s.city,
        zip_code=s.zip_code,
        country=s.country,
        pesel=s.pesel,
        passport_number=s.passport_number,
        residence_card_number=s.karta_pobytu_number,
        signature_base64=s.signature_base64,
    )


def user_to_entity(s: UserSchema) -> CurrentUser:
    return CurrentUser(
        id=s.id,
        name=s.name,
        email=s.email,
        role=s.role,
        party=party_to_entity(s),
    )
