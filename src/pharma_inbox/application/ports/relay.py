from __future__ import annotations

from typing import Any, Callable, Protocol

EventHandler = Callable[..., Any]


class RelayClient(Protocol):
    """One bidirectional connection to the message relay."""

    def on(self, event: str, handler: EventHandler) -> None: ...

    async def connect(self, url: str) -> None: ...

    async def emit(self, event: str, payload: Any) -> None: ...

    async def disconnect(self) -> None: ...


RelayFactory = Callable[[], RelayClient]
