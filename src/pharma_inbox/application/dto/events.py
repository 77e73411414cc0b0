from __future__ import annotations

from typing import Final

REGISTER_USER: Final = "registerUser"
JOIN_ROOM: Final = "joinRoom"
LEAVE_ROOM: Final = "leaveRoom"
RECEIVE_MESSAGE: Final = "receiveMessage"
