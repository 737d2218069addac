import json
import pytest

from config.settings import SignalingSettings
from signaling import SignalingService


class FakeWebSocket:
    def __init__(self, fail_sends: bool = False):
        self.sent = []
        self.raw = []
        self.closed_with = None
        self.fail_sends = fail_sends

    async def send_text(self, data: str):
        if self.fail_sends:
            raise RuntimeError("connection reset")
        self.raw.append(data)
        self.sent.append(json.loads(data))

    async def close(self, code: int = 1000):
        self.closed_with = code


class Client:
    """A connection registered directly with a SignalingService"""

    def __init__(self, service: SignalingService):
        self.service = service
        self.websocket = FakeWebSocket()
        self.connection_id = service.connections.connect(self.websocket)

    async def send(self, event: str, fields: dict = None, **kwargs):
        message = {"type": event}
        message.update(fields or {})
        message.update(kwargs)
        await self.service.handle_message(self.connection_id, json.dumps(message))

    async def join(self, room_id: str, user_id: str, user_name: str = None):
        await self.send("join-room", roomId=room_id, userId=user_id, userName=user_name or user_id)

    async def disconnect(self):
        await self.service.handle_disconnect(self.connection_id)

    def received(self, event: str):
        return [message for message in self.websocket.sent if message["type"] == event]

    def events(self):
        return [message["type"] for message in self.websocket.sent]

    def clear(self):
        self.websocket.sent.clear()


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def service():
    return SignalingService()


@pytest.fixture
def strict_service():
    return SignalingService(settings=SignalingSettings(strict_mode=True))


@pytest.fixture
def connect(service):
    def _connect(target: SignalingService = None) -> Client:
        return Client(target or service)
    return _connect


@pytest.fixture
def fake_websocket():
    return FakeWebSocket
