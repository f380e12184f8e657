from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class TypingUser:
    user_id: str
    user_name: str
