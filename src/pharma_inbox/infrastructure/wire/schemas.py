"""Wire shapes used by the PharmaCRM backend and relay."""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class MessageSchema(BaseModel):
    id: str = Field(alias="_id")
    sender_id: str = Field(alias="senderId")
    receiver_id: str = Field(alias="receiverId")
    room_id: str = Field(alias="roomId")
    message: str
    timestamp: str | None = None

    model_config = ConfigDict(populate_by_name=True, extra="ignore", coerce_numbers_to_str=True)


class PartnerSchema(BaseModel):
    id: str = Field(alias="_id")
    name: str = ""
    role: str | None = None

    model_config = ConfigDict(populate_by_name=True, extra="ignore", coerce_numbers_to_str=True)


class RoomResponse(BaseModel):
    room_id: str = Field(alias="roomId")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class SendMessageRequest(BaseModel):
    sender_id: str = Field(serialization_alias="senderId")
    receiver_id: str = Field(serialization_alias="receiverId")
    room_id: str = Field(serialization_alias="roomId")
    message: str


class RoomPayload(BaseModel):
    """Body of joinRoom / leaveRoom relay events."""

    room_id: str = Field(serialization_alias="roomId")
