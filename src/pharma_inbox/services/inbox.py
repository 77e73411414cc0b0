"""Composition root for one mounted inbox."""
from __future__ import annotations

from types import TracebackType
from typing import Self

from pharma_inbox.application.dto.credentials import Credentials
from pharma_inbox.application.exceptions import AppError
from pharma_inbox.application.ports.api import MessagingApi
from pharma_inbox.application.ports.relay import RelayFactory
from pharma_inbox.config import Settings, settings
from pharma_inbox.domain.entities.partner import ConversationPartner
from pharma_inbox.infrastructure.http.api_client import HttpMessagingApi
from pharma_inbox.infrastructure.notify.log_notifier import LogNotifier
from pharma_inbox.infrastructure.relay.socketio_client import SocketIORelayClient
from pharma_inbox.services.connection_manager import ConnectionManager
from pharma_inbox.services.message_stream import MessageStreamView
from pharma_inbox.services.room_session import RoomSessionController


class Inbox:
    """Owns the relay connection, the room controller and the view.

    ``async with Inbox(...)`` mounts the inbox (opens the relay connection
    and loads the partner list); leaving the block unmounts it.
    """

    def __init__(
        self,
        api: MessagingApi,
        relay_factory: RelayFactory,
        credentials: Credentials,
        *,
        relay_url: str,
        notifier: LogNotifier | None = None,
    ) -> None:
        self.credentials = credentials
        self.relay_url = relay_url
        self.notifier = notifier or LogNotifier()
        self.api = api
        self.connection = ConnectionManager(relay_factory, user_id=credentials.user_id)
        self.controller = RoomSessionController(
            api, self.connection, self.notifier, user_id=credentials.user_id,
        )
        self.view = MessageStreamView(self.controller, notifier=self.notifier)

    @classmethod
    def from_settings(cls, credentials: Credentials, config: Settings = settings) -> Self:
        api = HttpMessagingApi(config.API_URL, credentials, timeout=config.HTTP_TIMEOUT)

        def _relay() -> SocketIORelayClient:
            return SocketIORelayClient(
                token=credentials.token,
                reconnection=config.RELAY_RECONNECT,
                reconnection_attempts=config.RELAY_RECONNECT_ATTEMPTS,
                reconnection_delay=config.RELAY_RECONNECT_DELAY,
            )

        return cls(api, _relay, credentials, relay_url=config.RELAY_URL)

    async def __aenter__(self) -> Self:
        await self.connection.open(self.relay_url)
        await self.load_conversations()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.controller.close()
        await self.connection.close()
        if isinstance(self.api, HttpMessagingApi):
            await self.api.aclose()

    async def load_conversations(self) -> list[ConversationPartner]:
        try:
            partners = await self.api.list_conversations()
        except AppError as exc:
            self.notifier.error("Failed to fetch conversations", exc.detail)
            partners = []
        self.view.set_partners(partners)
        return partners

    async def open_conversation(self, partner: ConversationPartner) -> None:
        await self.controller.select_partner(partner)
