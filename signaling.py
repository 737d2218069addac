from fastapi import WebSocket, WebSocketDisconnect
from pydantic import ValidationError
from typing import List, Optional, Tuple
import json
import logging

from config.settings import SignalingSettings
from connection_manager import ConnectionManager
from errors import InvalidMessage, NotFound, SignalingError
from models.schemas import (
    AcceptCall, EndCall, JoinRoom, LeaveRoom, RelayMessage, StartCall, ToggleMute, inbound_adapter,
)
from room_manager import Room, RoomRegistry, User

logger = logging.getLogger(__name__)

# (room id, event, data) waiting to be broadcast to a room
Outbound = Tuple[str, str, dict]


def parse_message(data: str):
    """Decode and validate one inbound frame, raising InvalidMessage on failure"""
    try:
        raw = json.loads(data)
    except json.JSONDecodeError as e:
        raise InvalidMessage(f"Message is not valid JSON: {e.msg}")
    except RecursionError:
        raise InvalidMessage("Message is nested too deeply")
    if not isinstance(raw, dict):
        raise InvalidMessage("Message must be a JSON object")

    event = raw.get("type")
    try:
        return inbound_adapter.validate_python(raw)
    except ValidationError as e:
        details = "; ".join(
            f"{'.'.join(str(part) for part in err['loc']) or 'message'}: {err['msg']}"
            for err in e.errors()
        )
        raise InvalidMessage(f"Invalid message: {details}", event=event if isinstance(event, str) else None)


class SignalingService:
    """Room membership, call state and relaying for one server instance"""

    def __init__(
        self,
        connections: Optional[ConnectionManager] = None,
        registry: Optional[RoomRegistry] = None,
        settings: Optional[SignalingSettings] = None,
    ):
        self.connections = connections or ConnectionManager()
        self.registry = registry or RoomRegistry()
        self.settings = settings or SignalingSettings()
        self.handlers = {
            "join-room": self.join_room,
            "leave-room": self.leave_room,
            "start-call": self.start_call,
            "accept-call": self.accept_call,
            "end-call": self.end_call,
            "toggle-mute": self.toggle_mute,
            "offer": self.relay,
            "answer": self.relay,
            "ice-candidate": self.relay,
        }

    async def handle_message(self, connection_id: str, data: str):
        try:
            message = parse_message(data)
            await self.handlers[message.type](connection_id, message)
        except SignalingError as e:
            logger.warning(f"Rejected message from connection {connection_id}: {e.message}")
            await self.connections.send_to(connection_id, "error", e.to_payload())

    def _missing(self, reason: str, event: str):
        if self.settings.strict_mode:
            raise NotFound(reason, event=event)
        logger.debug(f"Ignoring {event}: {reason}")

    async def join_room(self, connection_id: str, message: JoinRoom):
        logger.info(f"{message.userName} ({message.userId}) joining room {message.roomId}")
        self.connections.join_group(message.roomId, connection_id)

        room = self.registry.get_or_create_room(message.roomId)
        user = User(message.userId, message.userName, connection_id)
        room.add_member(user)
        users = room.members_list()

        await self.connections.broadcast(message.roomId, "user-joined", user.to_dict(), exclude=connection_id)
        await self.connections.send_to(connection_id, "room-users", {"users": users})

    async def start_call(self, connection_id: str, message: StartCall):
        room = self.registry.get_room(message.roomId)
        if room is None:
            return self._missing(f"Room {message.roomId} does not exist", message.type)

        logger.info(f"{message.userName} starting call in room {message.roomId}")
        room.start_call(message.userId)
        await self.connections.broadcast(message.roomId, "incoming-call", {
            "roomId": message.roomId,
            "creatorId": message.userId,
            "creatorName": message.userName,
        }, exclude=connection_id)

    async def accept_call(self, connection_id: str, message: AcceptCall):
        room = self.registry.get_room(message.roomId)
        if room is None:
            return self._missing(f"Room {message.roomId} does not exist", message.type)
        if room.creator_user_id is None:
            return self._missing(f"No call has been started in room {message.roomId}", message.type)
        creator = room.find_member_by_user_id(room.creator_user_id)
        if creator is None:
            return self._missing(f"Call creator {room.creator_user_id} left room {message.roomId}", message.type)

        logger.info(f"{message.userName} accepted call in room {message.roomId}")
        await self.connections.send_to(creator.connection_id, "call-accepted", {
            "userId": message.userId,
            "userName": message.userName,
        })

    async def end_call(self, connection_id: str, message: EndCall):
        room = self.registry.get_room(message.roomId)
        if room is None:
            return self._missing(f"Room {message.roomId} does not exist", message.type)

        logger.info(f"User {message.userId} ending call in room {message.roomId}")
        room.end_call()
        await self.connections.broadcast(message.roomId, "call-ended", {"userId": message.userId}, exclude=connection_id)

    async def toggle_mute(self, connection_id: str, message: ToggleMute):
        await self.connections.broadcast(message.roomId, "user-muted", {
            "userId": message.userId,
            "muted": message.muted,
        }, exclude=connection_id)

    async def relay(self, connection_id: str, message: RelayMessage):
        """Forward offer/answer/ice-candidate to the `to` connection only"""
        if self.settings.strict_mode:
            room = self.registry.get_room(message.roomId)
            if room is None or not room.has_member(message.to):
                raise NotFound(f"Connection {message.to} is not in room {message.roomId}", event=message.type)

        if message.to == connection_id:
            return self._missing(f"{message.type} addressed to its own sender {connection_id}", message.type)

        logger.debug(f"{message.type} from {connection_id} to {message.to}")
        await self.connections.send_to(message.to, message.type, {
            message.payload_field: message.payload,
            "from": connection_id,
            "userId": message.fromUserId,
            "userName": message.userName,
        })

    async def leave_room(self, connection_id: str, message: LeaveRoom):
        self.connections.leave_group(message.roomId, connection_id)
        room = self.registry.get_room(message.roomId)
        if room is None or not room.has_member(connection_id):
            return self._missing(f"Connection {connection_id} is not in room {message.roomId}", message.type)

        logger.info(f"Connection {connection_id} leaving room {message.roomId}")
        outbound = self._detach(connection_id, message.roomId, room)
        await self._broadcast_all(outbound, exclude=connection_id)

    async def handle_disconnect(self, connection_id: str):
        """Drop a closed connection from every room it was in"""
        logger.info(f"Connection {connection_id} disconnected")
        outbound: List[Outbound] = []
        for room_id, room in self.registry.rooms_for_connection(connection_id):
            outbound.extend(self._detach(connection_id, room_id, room))
        self.connections.disconnect(connection_id)
        await self._broadcast_all(outbound, exclude=connection_id)

    def _detach(self, connection_id: str, room_id: str, room: Room) -> List[Outbound]:
        user = room.remove_member(connection_id)
        outbound = [(room_id, "user-left", {"userId": user.user_id, "userName": user.user_name})]

        if self._creator_left(room, user):
            logger.info(f"Call creator {user.user_id} left room {room_id}, ending call")
            room.reset_call()
            outbound.append((room_id, "call-ended", {"userId": user.user_id}))

        self.registry.remove_if_empty(room_id)
        return outbound

    def _creator_left(self, room: Room, user: User) -> bool:
        return (
            self.settings.end_call_on_creator_leave
            and room.call_active
            and room.creator_user_id == user.user_id
            and room.find_member_by_user_id(user.user_id) is None
        )

    async def _broadcast_all(self, outbound: List[Outbound], exclude: str):
        for room_id, event, data in outbound:
            await self.connections.broadcast(room_id, event, data, exclude=exclude)

    def status(self) -> dict:
        return {
            "status": "ok",
            "rooms": len(self.registry),
            "connections": self.connections.connection_count,
        }

    async def close(self):
        await self.connections.close_all()
        self.registry.clear()


async def signaling_endpoint(websocket: WebSocket, service: SignalingService):
    await websocket.accept()
    connection_id = service.connections.connect(websocket)
    await service.connections.send_to(connection_id, "connected", {"connectionId": connection_id})

    try:
        while True:
            data = await websocket.receive_text()
            await service.handle_message(connection_id, data)
    except WebSocketDisconnect:
        logger.info(f"WebSocket closed by client for connection {connection_id}")
    except Exception as e:
        logger.error(f"WebSocket error for connection {connection_id}: {e}", exc_info=True)
        try:
            await websocket.close(code=1011)
        except Exception as close_error:
            logger.debug(f"Error closing WebSocket {connection_id}: {close_error}")
    finally:
        await service.handle_disconnect(connection_id)
