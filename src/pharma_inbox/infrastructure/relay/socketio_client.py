"""python-socketio adapter for the RelayClient port."""
from __future__ import annotations

import asyncio
import logging
from typing import Any

import socketio
from socketio.exceptions import BadNamespaceError
from socketio.exceptions import ConnectionError as RelayConnectionError

from pharma_inbox.application.ports.relay import EventHandler

logger = logging.getLogger(__name__)


class SocketIORelayClient:
    """Wraps ``socketio.AsyncClient``.

    ``connect`` makes a single attempt and returns. When that attempt fails
    and reconnection is enabled, the retries run in a background task that
    ``disconnect`` cancels. Emits on a client that never connected (or
    dropped) are logged and discarded: the relay reports failure only as
    missing deliveries.
    """

    def __init__(
        self,
        *,
        token: str | None = None,
        reconnection: bool = True,
        reconnection_attempts: int = 0,
        reconnection_delay: float = 1.0,
    ) -> None:
        self._token = token
        self._retry = reconnection
        self._retry_attempts = reconnection_attempts
        self._retry_delay = reconnection_delay
        self._retry_task: asyncio.Task[None] | None = None
        self._sio = socketio.AsyncClient(
            reconnection=reconnection,
            reconnection_attempts=reconnection_attempts,
            reconnection_delay=reconnection_delay,
            logger=False,
        )

    @property
    def reconnecting(self) -> bool:
        return self._retry_task is not None and not self._retry_task.done()

    def on(self, event: str, handler: EventHandler) -> None:
        self._sio.on(event, handler)

    async def connect(self, url: str) -> None:
        auth = {"token": self._token} if self._token else None
        try:
            await self._sio.connect(url, auth=auth, retry=False)
        except RelayConnectionError as exc:
            logger.warning("Relay connection to %s failed: %s", url, exc)
            if self._retry:
                self._retry_task = asyncio.create_task(
                    self._retry_connect(url, auth), name="relay-reconnect",
                )

    async def emit(self, event: str, payload: Any) -> None:
        try:
            await self._sio.emit(event, payload)
        except BadNamespaceError:
            logger.warning("Relay not connected, dropping %s", event)

    async def disconnect(self) -> None:
        if self._retry_task:
            self._retry_task.cancel()
            try:
                await self._retry_task
            except asyncio.CancelledError:
                pass
            self._retry_task = None
        await self._sio.disconnect()

    async def _retry_connect(self, url: str, auth: dict[str, str] | None) -> None:
        attempt = 0
        while not self._retry_attempts or attempt < self._retry_attempts:
            attempt += 1
            await asyncio.sleep(self._retry_delay)
            try:
                await self._sio.connect(url, auth=auth, retry=False)
            except RelayConnectionError as exc:
                logger.debug("Relay retry %d to %s failed: %s", attempt, url, exc)
                continue
            logger.info("Relay connection to %s established after %d retries", url, attempt)
            return
        logger.warning("Giving up on relay %s after %d retries", url, attempt)
