from __future__ import annotations

from typing import Protocol


class Notifier(Protocol):
    """Transient, non-blocking user notifications (toasts)."""

    def error(self, title: str, detail: str = "") -> None: ...
