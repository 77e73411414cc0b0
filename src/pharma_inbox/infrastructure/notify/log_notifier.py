from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Notice:
    level: str
    title: str
    detail: str = ""


class LogNotifier:
    """Toasts go to the log and queue up until the renderer drains them."""

    def __init__(self, maxlen: int = 20) -> None:
        self._pending: deque[Notice] = deque(maxlen=maxlen)

    def error(self, title: str, detail: str = "") -> None:
        logger.warning("%s: %s", title, detail)
        self._pending.append(Notice("error", title, detail))

    def drain(self) -> list[Notice]:
        notices = list(self._pending)
        self._pending.clear()
        return notices
