from __future__ import annotations

from rental_client.domain.entities.user import CurrentUser
from rental_client.infrastructure.http.client import AuthenticatedApiClient, parse_as
from rental_client.infrastructure.http.mappers.user import user_to_entity
from rental_client.infrastructure.http.schemas import UserSchema


class HttpUsersApi:
    """Implements application.ports.users.UsersApi over REST."""

    def __init__(self, client: AuthenticatedApiClient) -> None:
        self._client = client

    async def me(self) -> CurrentUser:
        data = await self._client.get_json("/auth/me")
        raw = data.get("user", data) if isinstance(data, dict) else data
        return user_to_entity(parse_as(UserSchema, raw))

    async def signature(self) -> str | None:
        data = await self._client.get_json("/users/signature")
        if not isinstance(data, dict):
            return None
        value = data.get("signatureBase64") or data.get("signature")
        return value if isinstance(value, str) and value else None
