from typing import Dict, Iterator, List, Optional, Tuple
import logging

logger = logging.getLogger(__name__)


class User:
    def __init__(self, user_id: str, user_name: str, connection_id: str):
        self.user_id = user_id
        self.user_name = user_name
        self.connection_id = connection_id

    def to_dict(self) -> dict:
        return {
            "userId": self.user_id,
            "userName": self.user_name,
            "connectionId": self.connection_id,
        }

    def __repr__(self):
        return f"User(user_id={self.user_id!r}, connection_id={self.connection_id!r})"


class Room:
    def __init__(self, room_id: str):
        self.room_id = room_id
        self.members: Dict[str, User] = {}
        self.call_active = False
        self.creator_user_id: Optional[str] = None

    def add_member(self, user: User):
        # Same connection joining twice replaces its entry
        self.members[user.connection_id] = user

    def remove_member(self, connection_id: str) -> Optional[User]:
        return self.members.pop(connection_id, None)

    def has_member(self, connection_id: str) -> bool:
        return connection_id in self.members

    def members_list(self) -> List[dict]:
        return [user.to_dict() for user in self.members.values()]

    def find_member_by_user_id(self, user_id: str) -> Optional[User]:
        """First member whose userId matches; userIds are not guaranteed unique."""
        for user in self.members.values():
            if user.user_id == user_id:
                return user
        return None

    def start_call(self, creator_user_id: str):
        self.call_active = True
        self.creator_user_id = creator_user_id

    def end_call(self):
        self.call_active = False

    def reset_call(self):
        self.call_active = False
        self.creator_user_id = None

    def is_empty(self) -> bool:
        return not self.members


class RoomRegistry:
    """All live rooms, keyed by room id.

    Rooms are created on first join and deleted as soon as the last member
    leaves. Only the signaling handlers mutate it.
    """

    def __init__(self):
        self.rooms: Dict[str, Room] = {}

    def get_or_create_room(self, room_id: str) -> Room:
        room = self.rooms.get(room_id)
        if room is None:
            room = Room(room_id)
            self.rooms[room_id] = room
            logger.info(f"Created room {room_id}")
        return room

    def get_room(self, room_id: str) -> Optional[Room]:
        return self.rooms.get(room_id)

    def remove_if_empty(self, room_id: str) -> bool:
        room = self.rooms.get(room_id)
        if room is not None and room.is_empty():
            del self.rooms[room_id]
            logger.info(f"Deleted empty room {room_id}")
            return True
        return False

    def rooms_for_connection(self, connection_id: str) -> List[Tuple[str, Room]]:
        return [(room_id, room) for room_id, room in self.rooms.items() if room.has_member(connection_id)]

    def clear(self):
        self.rooms.clear()

    def __iter__(self) -> Iterator[Tuple[str, Room]]:
        return iter(list(self.rooms.items()))

    def __contains__(self, room_id: str) -> bool:
        return room_id in self.rooms

    def __len__(self) -> int:
        return len(self.rooms)
