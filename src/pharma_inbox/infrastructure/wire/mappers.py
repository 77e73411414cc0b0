from __future__ import annotations

from pharma_inbox.domain.entities.message import Message
from pharma_inbox.domain.entities.partner import ConversationPartner
from pharma_inbox.domain.value_objects.enums import PartnerRole
from pharma_inbox.infrastructure.wire.schemas import MessageSchema, PartnerSchema


def message_to_entity(schema: MessageSchema) -> Message:
    return Message(
        id=schema.id,
        sender_id=schema.sender_id,
        receiver_id=schema.receiver_id,
        room_id=schema.room_id,
        text=schema.message,
        timestamp=schema.timestamp,
    )


def partner_to_entity(schema: PartnerSchema) -> ConversationPartner:
    return ConversationPartner(
        id=schema.id,
        name=schema.name,
        role=PartnerRole.parse(schema.role),
    )
