"""Data models for nostr-core.

Fixed-field data classes representing events, key pairs, mnemonics and
NIP-19 pointers.
"""

import json
import re
from dataclasses import dataclass, field

from .errors import InvalidEventError, UnsignedEventError

HEX_32_PATTERN = re.compile(r"[0-9a-f]{64}")
HEX_64_PATTERN = re.compile(r"[0-9a-f]{128}")

EVENT_FIELDS = ("id", "pubkey", "created_at", "kind", "tags", "content", "sig")


@dataclass
class UnsignedEvent:
    """Event fields chosen by the author, before signing.

    pubkey, id and sig are omitted (signing provides them). created_at may be
    left as None, in which case signing stamps the current time.
    """

    kind: int
    content: str
    tags: list[list[str]] = field(default_factory=list)
    created_at: int | None = None

    def __post_init__(self):
        """Ensure mutable defaults are instance-specific."""
        if self.tags is None:
            self.tags = []

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        data = {"kind": self.kind, "content": self.content, "tags": self.tags}
        if self.created_at is not None:
            data["created_at"] = self.created_at
        return data


@dataclass(frozen=True)
class Event:
    """Signed event with all seven NIP-01 fields.

    Instances are only produced by signing an UnsignedEvent or by parsing a
    mapping that already carries id and sig. Hex fields are lowercase.
    """

    id: str
    pubkey: str
    created_at: int
    kind: int
    tags: list[list[str]]
    content: str
    sig: str

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization.

        Tags are copied; editing the returned mapping never touches the event.
        """
        return {
            "id": self.id,
            "pubkey": self.pubkey,
            "created_at": self.created_at,
            "kind": self.kind,
            "tags": [list(tag) for tag in self.tags],
            "content": self.content,
            "sig": self.sig,
        }

    def to_json(self) -> str:
        """Serialize as a compact JSON object with unescaped Unicode."""
        return json.dumps(self.to_dict(), ensure_ascii=False, separators=(",", ":"))

    @classmethod
    def from_dict(cls, data: dict) -> "Event":
        """Build a signed Event from its standalone JSON mapping.

        CONTRACT:
          Inputs:
            - data: mapping with keys id, pubkey, created_at, kind, tags, content, sig
              (key order is irrelevant)

          Outputs:
            - event: Event with lowercase hex fields

          Invariants:
            - Missing, null or empty id/sig means the event is unsigned
            - pubkey and id are 64 hex characters, sig is 128 hex characters
            - created_at and kind are non-negative integers (booleans rejected)
            - tags is a list of lists of strings, content is a string
            - Unknown keys are ignored

          Raises:
            - UnsignedEventError: id or sig missing
            - InvalidEventError: any other field missing or malformed
        """
        if not isinstance(data, dict):
            raise InvalidEventError(f"event must be a JSON object, got {type(data).__name__}")

        if not data.get("id") or not data.get("sig"):
            raise UnsignedEventError("event has no id or sig")

        missing = [name for name in EVENT_FIELDS if name not in data]
        if missing:
            raise InvalidEventError(f"event missing required field: {missing[0]}")

        event_id = _hex_field(data, "id", HEX_32_PATTERN, 64)
        pubkey = _hex_field(data, "pubkey", HEX_32_PATTERN, 64)
        sig = _hex_field(data, "sig", HEX_64_PATTERN, 128)

        created_at = _int_field(data, "created_at")
        kind = _int_field(data, "kind")

        tags = data["tags"]
        if not isinstance(tags, list) or not all(
            isinstance(tag, list) and all(isinstance(item, str) for item in tag) for tag in tags
        ):
            raise InvalidEventError("tags must be a list of lists of strings")

        content = data["content"]
        if not isinstance(content, str):
            raise InvalidEventError("content must be a string")

        return cls(
            id=event_id,
            pubkey=pubkey,
            created_at=created_at,
            kind=kind,
            tags=[list(tag) for tag in tags],
            content=content,
            sig=sig,
        )

    @classmethod
    def from_json(cls, text: str) -> "Event":
        """Parse a standalone JSON event."""
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise InvalidEventError(f"event is not valid JSON: {e}") from None
        return cls.from_dict(data)


@dataclass(frozen=True)
class KeyPair:
    """secp256k1 private scalar and its x-only public key (32 bytes each)."""

    secret: bytes = field(repr=False)
    public: bytes

    @property
    def secret_hex(self) -> str:
        return self.secret.hex()

    @property
    def public_hex(self) -> str:
        return self.public.hex()


@dataclass(frozen=True)
class Profile:
    """Public key plus relays where its events may be found (nprofile)."""

    pubkey: str
    relays: tuple[str, ...] = ()


@dataclass(frozen=True)
class EventPointer:
    """Event id plus relays where the event may be found (nevent)."""

    event_id: str
    relays: tuple[str, ...] = ()


@dataclass(frozen=True)
class Mnemonic:
    """Ordered BIP-39 word sequence."""

    words: tuple[str, ...]

    @property
    def phrase(self) -> str:
        return " ".join(self.words)

    def __str__(self) -> str:
        return self.phrase


def _hex_field(data: dict, name: str, pattern: re.Pattern, length: int) -> str:
    value = data[name]
    if not isinstance(value, str):
        raise InvalidEventError(f"{name} must be a hex string")
    value = value.lower()
    if not pattern.fullmatch(value):
        raise InvalidEventError(f"{name} must be {length} hex characters")
    return value


def _int_field(data: dict, name: str) -> int:
    value = data[name]
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise InvalidEventError(f"{name} must be a non-negative integer")
    return value
