"""Shared test fixtures."""
from __future__ import annotations

import asyncio
import inspect
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable

import pytest
import pytest_asyncio

from pharma_inbox.application.dto import events
from pharma_inbox.application.exceptions import ApiError
from pharma_inbox.domain.entities.message import Message
from pharma_inbox.domain.entities.partner import ConversationPartner
from pharma_inbox.domain.value_objects.enums import PartnerRole
from pharma_inbox.infrastructure.notify.log_notifier import LogNotifier
from pharma_inbox.services.connection_manager import ConnectionManager
from pharma_inbox.services.room_session import RoomSessionController

ME = "u-me"


def make_partner(partner_id: str = "p-1", name: str = "Acme Pharma", role: PartnerRole = PartnerRole.COMPANY) -> ConversationPartner:
    return ConversationPartner(id=partner_id, name=name, role=role)


def make_message(
    *,
    room_id: str,
    sender_id: str = "p-1",
    receiver_id: str = ME,
    text: str = "hello",
    timestamp: str | None = None,
) -> Message:
    return Message(
        id=uuid.uuid4().hex,
        sender_id=sender_id,
        receiver_id=receiver_id,
        room_id=room_id,
        text=text,
        timestamp=timestamp or datetime.now(timezone.utc).isoformat(),
    )


def canonical_room_id(first: str, second: str) -> str:
    """Room id the backend hands both participants, whoever asks first."""
    low, high = sorted((first, second))
    return f"{low}_{high}"


def to_wire(message: Message) -> dict[str, Any]:
    return {
        "_id": message.id,
        "senderId": message.sender_id,
        "receiverId": message.receiver_id,
        "roomId": message.room_id,
        "message": message.text,
        "timestamp": message.timestamp,
    }


async def settle(rounds: int = 10) -> None:
    for _ in range(rounds):
        await asyncio.sleep(0)


@dataclass
class FakeRelayHub:
    """Stands in for the relay server: fans messages out per room."""

    clients: list[FakeRelay] = field(default_factory=list)

    async def broadcast(self, room_id: str, payload: dict[str, Any]) -> None:
        for client in list(self.clients):
            if client.connected and room_id in client.rooms:
                await client.fire(events.RECEIVE_MESSAGE, payload)


@dataclass(eq=False)
class FakeRelay:
    hub: FakeRelayHub | None = None
    connected: bool = False
    url: str | None = None
    handlers: dict[str, Callable[..., Any]] = field(default_factory=dict)
    emitted: list[tuple[str, Any]] = field(default_factory=list)
    rooms: set[str] = field(default_factory=set)
    disconnect_calls: int = 0

    def on(self, event: str, handler: Callable[..., Any]) -> None:
        self.handlers[event] = handler

    async def connect(self, url: str) -> None:
        self.url = url
        self.connected = True
        if self.hub is not None and self not in self.hub.clients:
            self.hub.clients.append(self)
        await self.fire("connect")

    async def emit(self, event: str, payload: Any) -> None:
        self.emitted.append((event, payload))
        if event == events.JOIN_ROOM:
            self.rooms.add(payload["roomId"])
        elif event == events.LEAVE_ROOM:
            self.rooms.discard(payload["roomId"])

    async def disconnect(self) -> None:
        self.connected = False
        self.rooms.clear()
        self.disconnect_calls += 1

    async def fire(self, event: str, *args: Any) -> None:
        handler = self.handlers.get(event)
        if handler is None:
            return
        result = handler(*args)
        if inspect.isawaitable(result):
            await result

    def emitted_events(self, name: str) -> list[Any]:
        return [payload for event, payload in self.emitted if event == name]


@dataclass
class FakeBackend:
    """Message store shared by every user's FakeApi."""

    hub: FakeRelayHub = field(default_factory=FakeRelayHub)
    history: dict[str, list[Message]] = field(default_factory=dict)
    conversations: dict[str, list[ConversationPartner]] = field(default_factory=dict)

    async def store(self, sender_id: str, receiver_id: str, room_id: str, text: str) -> Message:
        message = make_message(room_id=room_id, sender_id=sender_id, receiver_id=receiver_id, text=text)
        self.history.setdefault(room_id, []).append(message)
        await self.hub.broadcast(room_id, to_wire(message))
        return message


@dataclass
class FakeApi:
    user_id: str = ME
    backend: FakeBackend = field(default_factory=FakeBackend)
    room_gates: dict[str, asyncio.Event] = field(default_factory=dict)
    history_gates: dict[str, asyncio.Event] = field(default_factory=dict)
    fail_rooms: set[str] = field(default_factory=set)
    fail_history: set[str] = field(default_factory=set)
    fail_post: bool = False
    fail_conversations: bool = False
    posted: list[tuple[str, str, str, str]] = field(default_factory=list)
    resolve_calls: list[str] = field(default_factory=list)

    def room_for(self, partner_id: str) -> str:
        return canonical_room_id(self.user_id, partner_id)

    async def list_conversations(self) -> list[ConversationPartner]:
        if self.fail_conversations:
            raise ApiError("GET /messages/conversations returned 500", 500)
        return list(self.backend.conversations.get(self.user_id, []))

    async def resolve_room(self, partner_id: str) -> str:
        self.resolve_calls.append(partner_id)
        gate = self.room_gates.get(partner_id)
        if gate is not None:
            await gate.wait()
        if partner_id in self.fail_rooms:
            raise ApiError("Failed to get room ID", 502)
        return self.room_for(partner_id)

    async def fetch_history(self, room_id: str) -> list[Message]:
        gate = self.history_gates.get(room_id)
        if gate is not None:
            await gate.wait()
        if room_id in self.fail_history:
            raise ApiError("Failed to fetch messages", 500)
        return list(self.backend.history.get(room_id, []))

    async def post_message(self, sender_id: str, receiver_id: str, room_id: str, text: str) -> None:
        self.posted.append((sender_id, receiver_id, room_id, text))
        if self.fail_post:
            raise ApiError("POST /messages returned 503", 503)
        await self.backend.store(sender_id, receiver_id, room_id, text)


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def api(backend: FakeBackend) -> FakeApi:
    return FakeApi(backend=backend)


@pytest.fixture
def relay(backend: FakeBackend) -> FakeRelay:
    return FakeRelay(hub=backend.hub)


@pytest.fixture
def notifier() -> LogNotifier:
    return LogNotifier()


@pytest_asyncio.fixture
async def connection(relay: FakeRelay):
    manager = ConnectionManager(lambda: relay, user_id=ME)
    await manager.open("http://relay.test")
    yield manager
    await manager.close()


@pytest.fixture
def controller(api: FakeApi, connection: ConnectionManager, notifier: LogNotifier) -> RoomSessionController:
    return RoomSessionController(api, connection, notifier, user_id=ME)
