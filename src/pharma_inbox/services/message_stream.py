"""Text rendering of the active conversation plus the compose box."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from pharma_inbox.domain.entities.partner import ConversationPartner
from pharma_inbox.domain.entities.room_session import RoomSession
from pharma_inbox.domain.value_objects.enums import Alignment
from pharma_inbox.infrastructure.notify.log_notifier import LogNotifier
from pharma_inbox.services.room_session import RoomSessionController

logger = logging.getLogger(__name__)

NO_CONVERSATIONS = "No conversations found."
NO_SELECTION = "Select a chat to start messaging."
LOADING = "Loading messages..."


def format_timestamp(timestamp: str | None) -> str:
    """``HH:MM`` in local time, or an empty string for missing/invalid input."""
    if not timestamp:
        return ""
    try:
        parsed = datetime.fromisoformat(timestamp.replace("Z", "+00:00"))
    except ValueError:
        logger.warning("Received an invalid timestamp: %s", timestamp)
        return ""
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone()
    return parsed.strftime("%H:%M")


@dataclass(frozen=True, slots=True)
class RenderedMessage:
    id: str
    text: str
    time: str
    alignment: Alignment


class MessageStreamView:
    """Presentation state for one inbox: partner list, messages, input buffer.

    The view never adds messages itself. It re-reads the controller's
    session on every change and keeps the scroll window pinned to the
    newest message whenever the list grows.
    """

    def __init__(
        self,
        controller: RoomSessionController,
        *,
        notifier: LogNotifier | None = None,
        height: int = 20,
        width: int = 72,
    ) -> None:
        self._controller = controller
        self._notifier = notifier
        self._height = height
        self._width = width
        self._input = ""
        self._partners: list[ConversationPartner] = []
        self._scroll_offset = 0
        self._seen_count = 0
        controller.subscribe(self._on_session_change)

    @property
    def input_buffer(self) -> str:
        return self._input

    @property
    def scroll_offset(self) -> int:
        return self._scroll_offset

    @property
    def partners(self) -> list[ConversationPartner]:
        return list(self._partners)

    def set_partners(self, partners: list[ConversationPartner]) -> None:
        self._partners = list(partners)

    def set_input(self, text: str) -> None:
        self._input = text

    def type(self, text: str) -> None:
        self._input += text

    def blur(self) -> None:
        """Focus loss keeps the draft; only submit() or Enter sends."""

    async def key(self, name: str) -> bool:
        if name == "Enter":
            return await self.submit()
        return False

    async def submit(self) -> bool:
        text = self._input
        if not text.strip():
            return False
        self._input = ""
        return await self._controller.send(text)

    def scroll_up(self, lines: int = 1) -> None:
        self._scroll_offset = max(0, self._scroll_offset - lines)

    def scroll_to_bottom(self) -> None:
        session = self._controller.session
        count = len(session.messages) if session else 0
        self._scroll_offset = max(0, count - self._height)

    def rendered_messages(self) -> list[RenderedMessage]:
        session = self._controller.session
        if session is None or session.is_loading_history:
            return []
        me = self._controller.user_id
        return [
            RenderedMessage(
                id=m.id,
                text=m.text,
                time=format_timestamp(m.timestamp),
                alignment=Alignment.RIGHT if me is not None and m.sender_id == me else Alignment.LEFT,
            )
            for m in session.messages
        ]

    def render(self) -> str:
        lines: list[str] = []
        if self._notifier is not None:
            for notice in self._notifier.drain():
                lines.append(f"[{notice.level}] {notice.title} {notice.detail}".rstrip())

        session = self._controller.session
        if session is None:
            lines.append(NO_SELECTION if self._partners else NO_CONVERSATIONS)
            return "\n".join(lines)

        lines.append(f"Chat with {session.partner.name}")
        lines.append("-" * self._width)
        if session.is_loading_history:
            lines.append(LOADING)
        else:
            if session.error:
                lines.append(f"Could not load conversation: {session.error}")
            window = self.rendered_messages()[self._scroll_offset:self._scroll_offset + self._height]
            for item in window:
                body = f"{item.text}  {item.time}".rstrip()
                if item.alignment is Alignment.RIGHT:
                    lines.append(body.rjust(self._width))
                else:
                    lines.append(body)
        for failed in session.failed_sends:
            lines.append(f"! not sent: {failed.text}".rjust(self._width))
        lines.append("-" * self._width)
        lines.append(f"> {self._input}")
        return "\n".join(lines)

    def _on_session_change(self, session: RoomSession | None) -> None:
        count = len(session.messages) if session else 0
        if count != self._seen_count:
            self.scroll_to_bottom()
        self._seen_count = count
