from __future__ import annotations

from dataclasses import dataclass, field

from pharma_inbox.domain.entities.message import Message
from pharma_inbox.domain.entities.partner import ConversationPartner


@dataclass(frozen=True, slots=True)
class FailedSend:
    text: str
    room_id: str
    receiver_id: str
    error: str


@dataclass(slots=True)
class RoomSession:
    """Client-side state of the conversation currently on screen.

    ``messages`` is append-only for the lifetime of the session: history is
    installed once as the prefix and live messages are appended in arrival
    order. A new partner selection always gets a fresh session.
    """

    partner: ConversationPartner
    room_id: str | None = None
    messages: list[Message] = field(default_factory=list)
    is_loading_history: bool = True
    error: str | None = None
    failed_sends: list[FailedSend] = field(default_factory=list)
