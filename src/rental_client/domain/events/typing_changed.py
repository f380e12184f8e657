from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class UserTyping:
    user_id: str
    user_name: str


@dataclass(frozen=True, slots=True)
class UserStoppedTyping:
    user_id: str
