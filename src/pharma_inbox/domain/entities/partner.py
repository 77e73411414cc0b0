from __future__ import annotations

from dataclasses import dataclass

from pharma_inbox.domain.value_objects.enums import PartnerRole


@dataclass(frozen=True, slots=True)
class ConversationPartner:
    """The other side of a room. Role only drives labels, never access."""

    id: str
    name: str
    role: PartnerRole = PartnerRole.UNKNOWN
