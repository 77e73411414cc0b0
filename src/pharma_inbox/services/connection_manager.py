"""Lifecycle of the single relay connection owned by a mounted inbox."""
from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable

from pydantic import ValidationError as SchemaError

from pharma_inbox.application.dto import events
from pharma_inbox.application.exceptions import ConflictError, NotConnectedError, ValidationError
from pharma_inbox.application.ports.relay import RelayClient, RelayFactory
from pharma_inbox.domain.entities.message import Message
from pharma_inbox.infrastructure.wire.mappers import message_to_entity
from pharma_inbox.infrastructure.wire.schemas import MessageSchema

logger = logging.getLogger(__name__)

MessageHandler = Callable[[Message], None]
ReconnectHandler = Callable[[], Awaitable[None]]


class ConnectionManager:
    """Opens at most one relay connection and fans its messages to one consumer.

    The ``receiveMessage`` handler is registered exactly once per ``open()``
    and looks up the current consumer at call time, so swapping consumers
    never stacks listeners. Events from a connection that has been closed
    are ignored even if the transport still delivers them.
    """

    def __init__(self, relay_factory: RelayFactory, *, user_id: str | None = None) -> None:
        self._relay_factory = relay_factory
        self._user_id = user_id
        self._client: RelayClient | None = None
        self._message_handler: MessageHandler | None = None
        self._reconnect_handler: ReconnectHandler | None = None
        self._connect_count = 0

    @property
    def is_open(self) -> bool:
        return self._client is not None

    def set_message_handler(self, handler: MessageHandler | None) -> None:
        self._message_handler = handler

    def set_reconnect_handler(self, handler: ReconnectHandler | None) -> None:
        self._reconnect_handler = handler

    async def open(self, url: str) -> None:
        if not url or not url.strip():
            raise ValidationError("relay url must not be empty")
        if self._client is not None:
            raise ConflictError("relay connection already open")

        client = self._relay_factory()
        self._client = client
        self._connect_count = 0

        async def _on_connect() -> None:
            if self._client is not client:
                return
            self._connect_count += 1
            logger.info("Relay connected (attempt=%d)", self._connect_count)
            if self._user_id:
                await client.emit(events.REGISTER_USER, self._user_id)
            if self._connect_count > 1 and self._reconnect_handler is not None:
                await self._reconnect_handler()

        def _on_message(data: Any) -> None:
            if self._client is not client:
                logger.debug("Dropping relay message from closed connection")
                return
            self._dispatch(data)

        client.on("connect", _on_connect)
        client.on(events.RECEIVE_MESSAGE, _on_message)
        await client.connect(url.strip())

    async def close(self) -> None:
        client, self._client = self._client, None
        if client is None:
            return
        await client.disconnect()
        logger.info("Relay connection closed")

    async def emit(self, event: str, payload: Any) -> None:
        if self._client is None:
            raise NotConnectedError(f"cannot emit {event}: relay connection is closed")
        await self._client.emit(event, payload)

    def _dispatch(self, data: Any) -> None:
        try:
            message = message_to_entity(MessageSchema.model_validate(data))
        except SchemaError:
            logger.warning("Malformed relay message dropped: %r", data)
            return
        if self._message_handler is None:
            logger.debug("No message consumer, dropping %s", message.id)
            return
        try:
            self._message_handler(message)
        except Exception:
            logger.exception("Error handling relay message %s", message.id)
