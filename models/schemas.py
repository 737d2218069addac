# models/schemas.py
from pydantic import AliasChoices, BaseModel, Field, StrictBool, TypeAdapter
from typing import Annotated, Any, ClassVar, List, Literal, Optional, Union

RoomId = Annotated[
    str,
    Field(min_length=1, validation_alias=AliasChoices("roomId", "roomKey")),
]
UserId = Annotated[str, Field(min_length=1)]


# Client -> server messages
class JoinRoom(BaseModel):
    type: Literal["join-room"]
    roomId: RoomId
    userName: str
    userId: UserId

class LeaveRoom(BaseModel):
    type: Literal["leave-room"]
    roomId: RoomId

class StartCall(BaseModel):
    type: Literal["start-call"]
    roomId: RoomId
    userName: str
    userId: UserId

class AcceptCall(BaseModel):
    type: Literal["accept-call"]
    roomId: RoomId
    userName: str
    userId: UserId

class EndCall(BaseModel):
    type: Literal["end-call"]
    roomId: RoomId
    userId: UserId

class ToggleMute(BaseModel):
    type: Literal["toggle-mute"]
    roomId: RoomId
    userId: UserId
    muted: StrictBool

class RelayMessage(BaseModel):
    """Negotiation message addressed to a single connection.

    The payload lives under the field named by `payload_field` and is
    passed through untouched.
    """
    payload_field: ClassVar[str]

    to: Annotated[str, Field(min_length=1)]
    roomId: RoomId
    fromUserId: Annotated[str, Field(validation_alias=AliasChoices("from", "fromUserId"))]
    userName: Optional[str] = None

    @property
    def payload(self) -> Any:
        return getattr(self, self.payload_field)

class Offer(RelayMessage):
    payload_field: ClassVar[str] = "offer"
    type: Literal["offer"]
    offer: Any

class Answer(RelayMessage):
    payload_field: ClassVar[str] = "answer"
    type: Literal["answer"]
    answer: Any

class IceCandidate(RelayMessage):
    payload_field: ClassVar[str] = "candidate"
    type: Literal["ice-candidate"]
    candidate: Any

InboundMessage = Annotated[
    Union[JoinRoom, LeaveRoom, StartCall, AcceptCall, EndCall, ToggleMute, Offer, Answer, IceCandidate],
    Field(discriminator="type"),
]
inbound_adapter = TypeAdapter(InboundMessage)


# HTTP responses
class StatusResponse(BaseModel):
    status: str
    rooms: int
    connections: int

class MemberInfo(BaseModel):
    userId: str
    userName: str
    connectionId: str

class RoomSummary(BaseModel):
    roomId: str
    memberCount: int
    callActive: bool
    creatorUserId: Optional[str] = None

class RoomDetail(RoomSummary):
    members: List[MemberInfo]
