"""Room selection, live delivery and sending for the active conversation."""
from __future__ import annotations

import asyncio
import logging
from typing import Callable

from pharma_inbox.application.dto import events
from pharma_inbox.application.exceptions import AppError, ConflictError, NotConnectedError
from pharma_inbox.application.ports.api import MessagingApi
from pharma_inbox.application.ports.notifier import Notifier
from pharma_inbox.domain.entities.message import Message
from pharma_inbox.domain.entities.partner import ConversationPartner
from pharma_inbox.domain.entities.room_session import FailedSend, RoomSession
from pharma_inbox.domain.value_objects.enums import SessionState
from pharma_inbox.infrastructure.wire.schemas import RoomPayload
from pharma_inbox.services.connection_manager import ConnectionManager

logger = logging.getLogger(__name__)

SessionListener = Callable[[RoomSession | None], None]


class RoomSessionController:
    """Keeps exactly one room subscribed and one RoomSession on screen.

    Every ``select_partner`` call takes a new selection token. Work done for
    an older token is thrown away when it completes, so the last selection
    always wins. Leaving the old room and joining the new one happen under
    one lock together with the update of ``active_room_id``.
    """

    def __init__(
        self,
        api: MessagingApi,
        connection: ConnectionManager,
        notifier: Notifier,
        *,
        user_id: str | None,
    ) -> None:
        self._api = api
        self._connection = connection
        self._notifier = notifier
        self._user_id = user_id
        self._lock = asyncio.Lock()
        self._token = 0
        self._joined_room_id: str | None = None
        self._session: RoomSession | None = None
        self._state = SessionState.NO_ROOM
        self._listeners: list[SessionListener] = []

        connection.set_message_handler(self.receive_live)
        connection.set_reconnect_handler(self.rejoin)

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def session(self) -> RoomSession | None:
        return self._session

    @property
    def active_room_id(self) -> str | None:
        return self._joined_room_id

    @property
    def user_id(self) -> str | None:
        return self._user_id

    def subscribe(self, listener: SessionListener) -> None:
        self._listeners.append(listener)

    async def select_partner(self, partner: ConversationPartner) -> None:
        if self._state == SessionState.CLOSED:
            raise ConflictError("room session controller is closed")

        self._token += 1
        token = self._token
        session = RoomSession(partner=partner)
        self._session = session
        self._notify()

        async with self._lock:
            if not self._is_current(token):
                return
            await self._leave_joined_room()
            self._state = SessionState.JOINING

        try:
            room_id = await self._api.resolve_room(partner.id)
        except AppError as exc:
            self._fail(token, session, "Failed to get room ID", exc)
            return

        async with self._lock:
            if not self._is_current(token):
                logger.debug("Discarding stale room %s for partner %s", room_id, partner.id)
                return
            await self._leave_joined_room()
            await self._emit(events.JOIN_ROOM, room_id)
            self._joined_room_id = room_id
            session.room_id = room_id
            self._state = SessionState.ACTIVE
            logger.info("Joined room %s with partner %s", room_id, partner.id)

        try:
            history = await self._api.fetch_history(room_id)
        except AppError as exc:
            self._fail(token, session, "Failed to fetch messages", exc)
            return

        if not self._is_current(token):
            logger.debug("Discarding stale history for room %s", room_id)
            return
        session.messages = list(history)
        session.is_loading_history = False
        self._notify()

    def receive_live(self, message: Message) -> None:
        session = self._session
        if (
            session is None
            or self._joined_room_id is None
            or message.room_id != self._joined_room_id
            or session.room_id != self._joined_room_id
        ):
            logger.debug("Dropping message %s for inactive room %s", message.id, message.room_id)
            return
        session.messages.append(message)
        self._notify()

    async def send(self, text: str) -> bool:
        """Persist a message; it shows up only once the relay echoes it.

        Returns True when the backend accepted it.
        """
        text = text.strip()
        session = self._session
        if not text:
            return False
        if session is None or session.room_id is None or self._state != SessionState.ACTIVE:
            logger.debug("Send ignored: no active room")
            return False
        sender_id = self._user_id
        if not sender_id:
            logger.debug("Send ignored: sender identity unknown")
            return False
        return await self._post(session, sender_id, text, session.room_id, session.partner.id)

    async def retry_failed(self) -> int:
        """Re-post failed sends of the active session. Returns how many went through."""
        session = self._session
        sender_id = self._user_id
        if session is None or not session.failed_sends or not sender_id:
            return 0
        pending, session.failed_sends = session.failed_sends, []
        self._notify()
        sent = 0
        for failed in pending:
            if await self._post(session, sender_id, failed.text, failed.room_id, failed.receiver_id):
                sent += 1
        return sent

    async def rejoin(self) -> None:
        async with self._lock:
            if self._joined_room_id is None or self._state == SessionState.CLOSED:
                return
            logger.info("Re-joining room %s after reconnect", self._joined_room_id)
            await self._emit(events.JOIN_ROOM, self._joined_room_id)

    async def close(self) -> None:
        if self._state == SessionState.CLOSED:
            return
        self._token += 1
        async with self._lock:
            await self._leave_joined_room()
            self._joined_room_id = None
            self._state = SessionState.CLOSED
        self._session = None
        self._connection.set_message_handler(None)
        self._connection.set_reconnect_handler(None)

    def _is_current(self, token: int) -> bool:
        return token == self._token and self._state != SessionState.CLOSED

    async def _leave_joined_room(self) -> None:
        room_id = self._joined_room_id
        if room_id is None:
            return
        self._state = SessionState.LEAVING
        self._joined_room_id = None
        await self._emit(events.LEAVE_ROOM, room_id)
        logger.info("Left room %s", room_id)

    async def _post(
        self,
        session: RoomSession,
        sender_id: str,
        text: str,
        room_id: str,
        receiver_id: str,
    ) -> bool:
        try:
            await self._api.post_message(sender_id, receiver_id, room_id, text)
        except AppError as exc:
            session.failed_sends.append(
                FailedSend(text=text, room_id=room_id, receiver_id=receiver_id, error=exc.detail),
            )
            self._notifier.error("Message send failed", exc.detail)
            self._notify()
            return False
        return True

    def _fail(self, token: int, session: RoomSession, title: str, exc: AppError) -> None:
        if not self._is_current(token):
            logger.debug("Ignoring failure of superseded selection: %s", exc.detail)
            return
        logger.warning("%s for partner %s: %s", title, session.partner.id, exc.detail)
        session.messages = []
        session.is_loading_history = False
        session.error = exc.detail or title
        if session.room_id is None:
            self._state = SessionState.NO_ROOM
        self._notifier.error(title, exc.detail)
        self._notify()

    async def _emit(self, event: str, room_id: str) -> None:
        payload = RoomPayload(room_id=room_id).model_dump(by_alias=True)
        try:
            await self._connection.emit(event, payload)
        except NotConnectedError as exc:
            logger.warning("%s for room %s not sent: %s", event, room_id, exc.detail)

    def _notify(self) -> None:
        for listener in self._listeners:
            listener(self._session)
