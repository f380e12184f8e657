"""Inspect bearer tokens locally. Signature verification stays with the server."""
from __future__ import annotations

import time
from typing import Any

import jwt


def read_claims(token: str) -> dict[str, Any]:
    return jwt.decode(
        token,
        options={"verify_signature": False, "verify_exp": False},
        algorithms=["HS256", "RS256", "ES256"],
    )


def is_expired(token: str, *, leeway: float = 0.0, now: float | None = None) -> bool:
    """True when the token carries an ``exp`` in the past or cannot be decoded."""
    try:
        claims = read_claims(token)
    except jwt.InvalidTokenError:
        return True
    exp = claims.get("exp")
    if exp is None:
        return False
    current = time.time() if now is None else now
    return float(exp) + leeway <= current
