"""httpx implementation of the MessagingApi port."""
from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import TypeAdapter
from pydantic import ValidationError as SchemaError

from pharma_inbox.application.dto.credentials import Credentials
from pharma_inbox.application.exceptions import ApiError, NotFoundError
from pharma_inbox.domain.entities.message import Message
from pharma_inbox.domain.entities.partner import ConversationPartner
from pharma_inbox.infrastructure.wire.mappers import message_to_entity, partner_to_entity
from pharma_inbox.infrastructure.wire.schemas import (
    MessageSchema,
    PartnerSchema,
    RoomResponse,
    SendMessageRequest,
)

logger = logging.getLogger(__name__)

_messages_adapter = TypeAdapter(list[MessageSchema])
_partners_adapter = TypeAdapter(list[PartnerSchema])


class HttpMessagingApi:
    """Talks to the PharmaCRM ``/messages`` REST resource.

    The underlying ``httpx.AsyncClient`` may be injected (tests pass one
    bound to an ASGI app); otherwise one is created from ``base_url`` and
    owned by this object.
    """

    def __init__(
        self,
        base_url: str,
        credentials: Credentials,
        *,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._credentials = credentials
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def list_conversations(self) -> list[ConversationPartner]:
        data = await self._request("GET", "/messages/conversations")
        return [partner_to_entity(p) for p in self._parse(_partners_adapter, data)]

    async def resolve_room(self, partner_id: str) -> str:
        data = await self._request("GET", f"/messages/room/{partner_id}")
        return self._parse(RoomResponse, data).room_id

    async def fetch_history(self, room_id: str) -> list[Message]:
        data = await self._request("GET", f"/messages/{room_id}")
        return [message_to_entity(m) for m in self._parse(_messages_adapter, data)]

    async def post_message(
        self,
        sender_id: str,
        receiver_id: str,
        room_id: str,
        text: str,
    ) -> None:
        body = SendMessageRequest(
            sender_id=sender_id,
            receiver_id=receiver_id,
            room_id=room_id,
            message=text,
        )
        await self._request("POST", "/messages", json=body.model_dump(by_alias=True))

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        headers = {"Authorization": self._credentials.authorization}
        try:
            resp = await self._client.request(method, path, headers=headers, **kwargs)
        except httpx.TimeoutException as exc:
            raise ApiError(f"{method} {path} timed out") from exc
        except httpx.HTTPError as exc:
            raise ApiError(f"{method} {path} failed: {exc}") from exc

        if resp.status_code == 404:
            raise NotFoundError(f"{method} {path} not found")
        if resp.is_error:
            logger.debug("API %s %s -> %d: %s", method, path, resp.status_code, resp.text)
            raise ApiError(f"{method} {path} returned {resp.status_code}", resp.status_code)

        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as exc:
            raise ApiError(f"{method} {path} returned invalid JSON") from exc

    @staticmethod
    def _parse(schema: Any, data: Any) -> Any:
        try:
            if isinstance(schema, TypeAdapter):
                return schema.validate_python(data)
            return schema.model_validate(data)
        except SchemaError as exc:
            raise ApiError(f"unexpected response shape: {exc.error_count()} error(s)") from exc
