"""JSON-lines framing for the cross-process bridge.

One JSON object per line, discriminated by ``kind``:

* ``request``  — client → host, expects exactly one ``response`` with the same id
* ``fire``     — client → host, no reply
* ``response`` — host → client, success value or error message
* ``event``    — host → client, one payload on a subscription channel
"""

from __future__ import annotations

from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field, TypeAdapter, ValidationError
from pydantic_core import PydanticSerializationError

from lumina.bridge.errors import WireError


class RequestMessage(BaseModel):
    model_config = {"frozen": True}

    kind: Literal["request"] = "request"
    id: int
    channel: str
    payload: Any = None


class FireMessage(BaseModel):
    model_config = {"frozen": True}

    kind: Literal["fire"] = "fire"
    channel: str
    payload: Any = None


class ResponseMessage(BaseModel):
    """Reply to a request.

    ``error_type`` lets the client re-raise the matching bridge exception
    (``unknown_channel``, ``channel_kind``, ``unavailable``, ``remote``).
    """

    model_config = {"frozen": True}

    kind: Literal["response"] = "response"
    id: int
    ok: bool
    result: Any = None
    error: str | None = None
    error_type: str | None = None


class EventMessage(BaseModel):
    model_config = {"frozen": True}

    kind: Literal["event"] = "event"
    channel: str
    payload: Any = None


Message = Annotated[
    RequestMessage | FireMessage | ResponseMessage | EventMessage,
    Field(discriminator="kind"),
]

_ADAPTER: TypeAdapter[Message] = TypeAdapter(Message)


def encode(message: BaseModel) -> bytes:
    """Serialise one message as a newline-terminated JSON frame.

    Raises:
        WireError: If the payload is not JSON-serialisable.
    """
    try:
        return message.model_dump_json().encode("utf-8") + b"\n"
    except PydanticSerializationError as exc:
        msg = f"Cannot serialise {message.__class__.__name__}: {exc}"
        raise WireError(msg) from exc


def decode(frame: bytes | str) -> Message:
    """Parse one frame.

    Raises:
        WireError: If the frame is not a valid message.
    """
    try:
        return _ADAPTER.validate_json(frame)
    except ValidationError as exc:
        msg = f"Malformed bridge frame ({exc.error_count()} error(s))"
        raise WireError(msg) from exc
