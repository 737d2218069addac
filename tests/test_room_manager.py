from room_manager import Room, RoomRegistry, User


def test_get_or_create_room_returns_fresh_room():
    registry = RoomRegistry()

    room = registry.get_or_create_room("r1")

    assert "r1" in registry
    assert room.members == {}
    assert room.call_active is False
    assert room.creator_user_id is None
    assert registry.get_or_create_room("r1") is room
    assert len(registry) == 1


def test_remove_if_empty_only_deletes_empty_rooms():
    registry = RoomRegistry()
    room = registry.get_or_create_room("r1")
    room.add_member(User("u1", "Alice", "c1"))

    assert registry.remove_if_empty("r1") is False
    assert "r1" in registry

    room.remove_member("c1")
    assert registry.remove_if_empty("r1") is True
    assert "r1" not in registry
    # Idempotent
    assert registry.remove_if_empty("r1") is False
    assert registry.remove_if_empty("never-existed") is False


def test_add_member_replaces_entry_for_same_connection():
    room = Room("r1")
    room.add_member(User("u1", "Alice", "c1"))
    room.add_member(User("u1", "Alice B.", "c1"))

    assert room.members_list() == [{"userId": "u1", "userName": "Alice B.", "connectionId": "c1"}]


def test_find_member_by_user_id():
    room = Room("r1")
    room.add_member(User("u1", "Alice", "c1"))
    room.add_member(User("u2", "Bob", "c2"))

    assert room.find_member_by_user_id("u2").connection_id == "c2"
    assert room.find_member_by_user_id("u3") is None


def test_end_call_keeps_creator():
    room = Room("r1")
    room.start_call("u1")
    room.end_call()

    assert room.call_active is False
    assert room.creator_user_id == "u1"

    room.start_call("u1")
    room.reset_call()
    assert room.creator_user_id is None


def test_rooms_for_connection():
    registry = RoomRegistry()
    registry.get_or_create_room("r1").add_member(User("u1", "Alice", "c1"))
    registry.get_or_create_room("r2").add_member(User("u1", "Alice", "c1"))
    registry.get_or_create_room("r3").add_member(User("u2", "Bob", "c2"))

    assert sorted(room_id for room_id, _ in registry.rooms_for_connection("c1")) == ["r1", "r2"]
    assert registry.rooms_for_connection("c9") == []
