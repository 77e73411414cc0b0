from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Credentials:
    """Bearer token issued at login plus the identity it belongs to."""

    token: str
    user_id: str | None = None
    role: str | None = None

    @property
    def authorization(self) -> str:
        return f"Bearer {self.token}"
