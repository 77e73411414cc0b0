from __future__ import annotations

from enum import StrEnum


class PartnerRole(StrEnum):
    COMPANY = "company"
    DISTRIBUTOR = "distributor"
    SHOPKEEPER = "shopkeeper"
    ADMIN = "admin"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, raw: str | None) -> PartnerRole:
        if raw and raw.lower() in cls.__members__.values():
            return cls(raw.lower())
        return cls.UNKNOWN


class SessionState(StrEnum):
    NO_ROOM = "no_room"
    JOINING = "joining"
    ACTIVE = "active"
    LEAVING = "leaving"
    CLOSED = "closed"


class Alignment(StrEnum):
    LEFT = "left"
    RIGHT = "right"
