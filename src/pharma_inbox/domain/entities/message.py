from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Message:
    id: str
    sender_id: str
    receiver_id: str
    room_id: str
    text: str
    timestamp: str | None
