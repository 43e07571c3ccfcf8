"""NIP-01 client/relay message envelopes.

Each envelope is a JSON array whose first element is a tag naming the variant.
Decoding dispatches on that tag only and is strict about arity and slot types.
"""

import json
from dataclasses import dataclass
from typing import ClassVar, Union

from .errors import UnknownMessageError, UnsignedEventError
from .models import HEX_32_PATTERN, Event, UnsignedEvent

MAX_SUBSCRIPTION_ID_LENGTH = 64


@dataclass(frozen=True)
class EventMessage:
    """["EVENT", <event>] or, relay to client, ["EVENT", <subscription id>, <event>]."""

    tag: ClassVar[str] = "EVENT"
    event: Event
    subscription_id: str | None = None


@dataclass(frozen=True)
class ReqMessage:
    """["REQ", <subscription id>, <filter>, ...] with at least one filter."""

    tag: ClassVar[str] = "REQ"
    subscription_id: str
    filters: tuple[dict, ...]


@dataclass(frozen=True)
class CloseMessage:
    """["CLOSE", <subscription id>]"""

    tag: ClassVar[str] = "CLOSE"
    subscription_id: str


@dataclass(frozen=True)
class EoseMessage:
    """["EOSE", <subscription id>]"""

    tag: ClassVar[str] = "EOSE"
    subscription_id: str


@dataclass(frozen=True)
class OkMessage:
    """["OK", <event id hex>, <accepted>, <message>]"""

    tag: ClassVar[str] = "OK"
    event_id: str
    accepted: bool
    message: str

    def __post_init__(self):
        """Store the event id in lowercase, as it appears on the wire."""
        if isinstance(self.event_id, str):
            object.__setattr__(self, "event_id", self.event_id.lower())


@dataclass(frozen=True)
class NoticeMessage:
    """["NOTICE", <message>]"""

    tag: ClassVar[str] = "NOTICE"
    message: str


Message = Union[EventMessage, ReqMessage, CloseMessage, EoseMessage, OkMessage, NoticeMessage]


def encode_message(message: Message) -> list:
    """Encode an envelope into its wire array.

    CONTRACT:
      Inputs:
        - message: one of the six envelope variants

      Outputs:
        - array: list whose first element is message.tag

      Invariants:
        - EVENT embeds the signed event mapping exactly as signed
        - REQ filters are passed through verbatim, in order
        - OK event id is emitted as lowercase hex

      Raises:
        - UnsignedEventError: EVENT carries an event without id and sig
        - UnknownMessageError: message is not an envelope variant, or its
          fields do not fit the variant's wire shape
    """
    if isinstance(message, EventMessage):
        event = _signed(message.event)
        if message.subscription_id is None:
            return [EventMessage.tag, event.to_dict()]
        return [EventMessage.tag, _subscription_id(message.subscription_id), event.to_dict()]

    if isinstance(message, ReqMessage):
        filters = _filters(list(message.filters))
        return [ReqMessage.tag, _subscription_id(message.subscription_id), *filters]

    if isinstance(message, (CloseMessage, EoseMessage)):
        return [message.tag, _subscription_id(message.subscription_id)]

    if isinstance(message, OkMessage):
        return [OkMessage.tag, _event_id(message.event_id), _boolean(message.accepted), _string(message.message)]

    if isinstance(message, NoticeMessage):
        return [NoticeMessage.tag, _string(message.message)]

    raise UnknownMessageError(f"not a message envelope: {type(message).__name__}")


def decode_message(data: list) -> Message:
    """Decode a wire array into an envelope.

    CONTRACT:
      Inputs:
        - data: JSON array (list) as received from the wire

      Outputs:
        - message: envelope variant selected by data[0]

      Invariants:
        - Dispatch is on the tag alone, never on payload shape
        - Arity must match the tag: EVENT 2 or 3, REQ at least 3, CLOSE 2,
          EOSE 2, OK 4, NOTICE 2
        - Subscription ids are non-empty strings of at most 64 characters

      Properties:
        - Round-trip: decode_message(encode_message(m)) == m

      Raises:
        - UnknownMessageError: not an array, unknown tag, wrong arity, or a slot
          of the wrong type
        - UnsignedEventError: EVENT payload lacks id or sig
        - InvalidEventError: EVENT payload is otherwise malformed
    """
    if not isinstance(data, (list, tuple)) or not data:
        raise UnknownMessageError("message must be a non-empty JSON array")

    tag = data[0]
    decoder = _DECODERS.get(tag) if isinstance(tag, str) else None
    if decoder is None:
        raise UnknownMessageError(f"unknown message tag: {tag!r}")

    return decoder(list(data[1:]))


def serialize_message(message: Message) -> str:
    """Encode an envelope as compact JSON text."""
    return json.dumps(encode_message(message), ensure_ascii=False, separators=(",", ":"))


def parse_message(text: str) -> Message:
    """Decode JSON text into an envelope."""
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise UnknownMessageError(f"message is not valid JSON: {e}") from None
    return decode_message(data)


def _decode_event(payload: list) -> EventMessage:
    if len(payload) == 1:
        return EventMessage(event=_event_payload(payload[0]))
    if len(payload) == 2:
        subscription_id = _subscription_id(payload[0])
        return EventMessage(event=_event_payload(payload[1]), subscription_id=subscription_id)
    raise _arity(EventMessage.tag, "1 or 2", len(payload))


def _decode_req(payload: list) -> ReqMessage:
    if len(payload) < 2:
        raise _arity(ReqMessage.tag, "at least 2", len(payload))
    return ReqMessage(subscription_id=_subscription_id(payload[0]), filters=tuple(_filters(payload[1:])))


def _decode_close(payload: list) -> CloseMessage:
    if len(payload) != 1:
        raise _arity(CloseMessage.tag, "1", len(payload))
    return CloseMessage(subscription_id=_subscription_id(payload[0]))


def _decode_eose(payload: list) -> EoseMessage:
    if len(payload) != 1:
        raise _arity(EoseMessage.tag, "1", len(payload))
    return EoseMessage(subscription_id=_subscription_id(payload[0]))


def _decode_ok(payload: list) -> OkMessage:
    if len(payload) != 3:
        raise _arity(OkMessage.tag, "3", len(payload))
    return OkMessage(event_id=_event_id(payload[0]), accepted=_boolean(payload[1]), message=_string(payload[2]))


def _decode_notice(payload: list) -> NoticeMessage:
    if len(payload) != 1:
        raise _arity(NoticeMessage.tag, "1", len(payload))
    return NoticeMessage(message=_string(payload[0]))


_DECODERS = {
    EventMessage.tag: _decode_event,
    ReqMessage.tag: _decode_req,
    CloseMessage.tag: _decode_close,
    EoseMessage.tag: _decode_eose,
    OkMessage.tag: _decode_ok,
    NoticeMessage.tag: _decode_notice,
}


def _arity(tag: str, expected: str, found: int) -> UnknownMessageError:
    return UnknownMessageError(f"{tag} message expects {expected} payload elements, got {found}")


def _signed(event) -> Event:
    if isinstance(event, UnsignedEvent):
        raise UnsignedEventError("cannot encode an unsigned event")
    if not isinstance(event, Event):
        raise UnknownMessageError(f"EVENT payload must be an Event, got {type(event).__name__}")
    if not event.id or not event.sig:
        raise UnsignedEventError("cannot encode an event without id and sig")
    return event


def _event_payload(value) -> Event:
    if not isinstance(value, dict):
        raise UnknownMessageError("EVENT payload must be a JSON object")
    return Event.from_dict(value)


def _subscription_id(value) -> str:
    if not isinstance(value, str) or not value:
        raise UnknownMessageError("subscription id must be a non-empty string")
    if len(value) > MAX_SUBSCRIPTION_ID_LENGTH:
        raise UnknownMessageError(f"subscription id must be at most {MAX_SUBSCRIPTION_ID_LENGTH} characters")
    return value


def _filters(values: list) -> list:
    if not values:
        raise UnknownMessageError("REQ message needs at least one filter")
    for value in values:
        if not isinstance(value, dict):
            raise UnknownMessageError("REQ filters must be JSON objects")
    return values


def _event_id(value) -> str:
    if not isinstance(value, str) or not HEX_32_PATTERN.fullmatch(value.lower()):
        raise UnknownMessageError("OK event id must be 64 hex characters")
    return value.lower()


def _boolean(value) -> bool:
    if not isinstance(value, bool):
        raise UnknownMessageError("OK accepted flag must be a boolean")
    return value


def _string(value) -> str:
    if not isinstance(value, str):
        raise UnknownMessageError("message text must be a string")
    return value
