from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Participant:
    id: str
    user_id: str
    role: str
    name: str
    email: str | None = None
    user_role: str | None = None
