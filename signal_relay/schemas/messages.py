"""
Signaling wire messages.

Every frame is a JSON object whose `type` field names the variant. The
variant set is closed. `decode_message` rejects unknown discriminants,
missing fields, connection ids that are not JSON integers, and non-JSON
text. It returns None instead of raising so the caller can drop the frame
silently.
"""

from typing import Annotated, Any, Literal, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictInt,
    TypeAdapter,
    ValidationError,
)

from signal_relay.constants import USER_NAME_TEMPLATE


class SignalingModel(BaseModel):  # type: ignore[misc]
    """
    Base class for signaling messages.

    Unknown fields are kept so that client extensions (e.g. `from_id` on an
    offer) survive a decode/encode cycle.
    """

    model_config = ConfigDict(extra="allow", frozen=True)

    def encode(self) -> str:
        """Serialize the message to a JSON text frame."""
        return self.model_dump_json()


class User(BaseModel):  # type: ignore[misc]
    id: StrictInt
    name: str

    @classmethod
    def for_connection(cls, connection_id: int) -> "User":
        return cls(
            id=connection_id, name=USER_NAME_TEMPLATE.format(id=connection_id)
        )


class Welcome(SignalingModel):
    type: Literal["Welcome"] = "Welcome"
    user_id: StrictInt


class UserList(SignalingModel):
    type: Literal["UserList"] = "UserList"
    users: list[User]


class PeerStateChange(SignalingModel):
    type: Literal["PeerStateChange"] = "PeerStateChange"
    from_id: StrictInt
    to_id: StrictInt
    state: str


class ConnectionRequest(SignalingModel):
    type: Literal["ConnectionRequest"] = "ConnectionRequest"
    to_id: StrictInt


class ConnectionResponse(SignalingModel):
    """
    Reply to a ConnectionRequest.

    `from_id` names the connection that sent the request, which is where
    the response is routed. `accepted` is optional; when present it is
    forwarded untouched.
    """

    type: Literal["ConnectionResponse"] = "ConnectionResponse"
    from_id: StrictInt
    accepted: bool | None = None


class RTCOffer(SignalingModel):
    type: Literal["RTCOffer"] = "RTCOffer"
    to_id: StrictInt
    offer: Any


class RTCAnswer(SignalingModel):
    type: Literal["RTCAnswer"] = "RTCAnswer"
    to_id: StrictInt
    answer: Any


class RTCCandidate(SignalingModel):
    type: Literal["RTCCandidate"] = "RTCCandidate"
    to_id: StrictInt
    candidate: Any


Message = Annotated[
    Union[
        Welcome,
        UserList,
        PeerStateChange,
        ConnectionRequest,
        ConnectionResponse,
        RTCOffer,
        RTCAnswer,
        RTCCandidate,
    ],
    Field(discriminator="type"),
]

# Messages only the server may originate
SERVER_ONLY_MESSAGES = (Welcome, UserList)

# Messages routed to the connection named by `to_id`
TARGETED_MESSAGES = (ConnectionRequest, RTCOffer, RTCAnswer, RTCCandidate)

message_adapter: TypeAdapter[Message] = TypeAdapter(Message)


def decode_message(text: str | bytes) -> Message | None:
    """
    Decode a text frame into a signaling message.

    Args:
        text: Raw frame payload (UTF-8 JSON).

    Returns:
        The decoded message, or None if the frame is not valid JSON, names
        an unknown variant, or lacks required fields.
    """
    try:
        return message_adapter.validate_json(text)
    except (ValidationError, ValueError):
        return None


def routing_target(message: Message) -> int | None:
    """
    Return the connection a client message must be delivered to.

    Args:
        message: A decoded inbound message.

    Returns:
        Target connection ID, or None for server-only messages.
    """
    if isinstance(message, (PeerStateChange, *TARGETED_MESSAGES)):
        return message.to_id
    if isinstance(message, ConnectionResponse):
        return message.from_id
    return None
