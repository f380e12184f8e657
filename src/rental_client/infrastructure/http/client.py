"""httpx wrapper that authenticates every request from the live session."""
from __future__ import annotations

import logging
import time
import uuid
from typing import Any, Mapping, TypeVar

import httpx
from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from rental_client.application.exceptions import ApiError, AuthenticationError, TransportError
from rental_client.application.session import Session
from rental_client.config import settings

logger = logging.getLogger(__name__)

T = TypeVar("T")

REQUEST_ID_HEADER = "X-Request-ID"


def _error_payload(response: httpx.Response) -> dict[str, Any]:
    try:
        data = response.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


def _error_detail(payload: Mapping[str, Any]) -> str:
    for key in ("error", "message", "detail"):
        value = payload.get(key)
        if isinstance(value, str) and value:
            return value
    return ""


def parse_as(tp: type[T] | Any, data: Any) -> T:
    """Validate a decoded JSON body, turning schema drift into an ApiError."""
    try:
        return TypeAdapter(tp).validate_python(data)
    except PydanticValidationError as exc:
        logger.warning("Unexpected response shape for %s: %s", getattr(tp, "__name__", tp), exc)
        raise ApiError(502, "Unexpected response from server") from exc


class AuthenticatedApiClient:
    """Adds ``Authorization: Bearer`` from the session at send time; 401 ends the session.

    The token is looked up by a request hook rather than bound at construction,
    so a rotated token is used by the next call without rebuilding the client.
    Nothing is retried here.
    """

    def __init__(
        self,
        session: Session,
        *,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._session = session
        self._client = httpx.AsyncClient(
            base_url=base_url or settings.API_URL,
            timeout=timeout if timeout is not None else settings.REQUEST_TIMEOUT,
            transport=transport,
            event_hooks={"request": [self._authorize]},
        )

    async def _authorize(self, request: httpx.Request) -> None:
        token = self._session.token
        if token:
            request.headers["Authorization"] = f"Bearer {token}"
        else:
            request.headers.pop("Authorization", None)
        request.headers.setdefault(REQUEST_ID_HEADER, uuid.uuid4().hex)

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        json: Any = None,
        data: Mapping[str, Any] | None = None,
        files: Mapping[str, Any] | None = None,
    ) -> httpx.Response:
        start = time.perf_counter()
        try:
            response = await self._client.request(
                method, path, params=params, json=json, data=data, files=files,
            )
        except httpx.TransportError as exc:
            logger.warning("%s %s failed: %s", method, path, exc)
            raise TransportError(f"Network error: {exc.__class__.__name__}") from exc
        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.debug("%s %s %s %.1fms", method, path, response.status_code, elapsed_ms)

        if response.status_code == 401:
            payload = _error_payload(response)
            # Clear the session before the caller sees the failure.
            await self._session.logout()
            raise AuthenticationError(_error_detail(payload) or "Session expired", payload)
        if response.is_error:
            payload = _error_payload(response)
            raise ApiError(response.status_code, _error_detail(payload), payload)
        return response

    async def get_json(self, path: str, *, params: Mapping[str, Any] | None = None) -> Any:
        response = await self.request("GET", path, params=params)
        return response.json()

    async def post_json(self, path: str, body: Any = None) -> Any:
        response = await self.request("POST", path, json=body)
        return _json_or_empty(response)

    async def put_json(self, path: str, body: Any = None) -> Any:
        response = await self.request("PUT", path, json=body)
        return _json_or_empty(response)

    async def get_bytes(self, path: str) -> bytes:
        response = await self.request("GET", path)
        return response.content

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> AuthenticatedApiClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()


def _json_or_empty(response: httpx.Response) -> Any:
    if not response.content:
        return {}
    try:
        return response.json()
    except ValueError:
        return {}
