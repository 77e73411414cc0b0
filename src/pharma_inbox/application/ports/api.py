from __future__ import annotations

from typing import Protocol

from pharma_inbox.domain.entities.message import Message
from pharma_inbox.domain.entities.partner import ConversationPartner


class MessagingApi(Protocol):
    async def list_conversations(self) -> list[ConversationPartner]: ...

    async def resolve_room(self, partner_id: str) -> str: ...

    async def fetch_history(self, room_id: str) -> list[Message]: ...

    async def post_message(
        self,
        sender_id: str,
        receiver_id: str,
        room_id: str,
        text: str,
    ) -> None: ...
