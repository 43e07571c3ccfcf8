"""NIP-19 bech32 encoding of keys and event ids.

Bare 32-byte entities: npub (public key), nsec (secret key) and note (event
id). TLV entities: nprofile (public key plus relays) and nevent (event id plus
relays). A TLV record is one type byte, one length byte and that many value
bytes; type 0 carries the 32-byte key or id, type 1 a UTF-8 relay URL.
"""

from typing import Iterable

from bech32 import bech32_decode, bech32_encode, convertbits

from .errors import Nip19Error
from .models import EventPointer, Profile

NPUB_PREFIX = "npub"
NSEC_PREFIX = "nsec"
NOTE_PREFIX = "note"
NPROFILE_PREFIX = "nprofile"
NEVENT_PREFIX = "nevent"

TLV_SPECIAL = 0
TLV_RELAY = 1
MAX_TLV_LENGTH = 255

BECH32_CHARSET = frozenset("023456789acdefghjklmnpqrstuvwxyz")


def encode_npub(pubkey: str | bytes) -> str:
    """Encode a 32-byte x-only public key as npub1..."""
    return _encode(NPUB_PREFIX, pubkey)


def decode_npub(value: str) -> str:
    """Decode npub1... into a lowercase hex public key."""
    return _decode(NPUB_PREFIX, value)


def encode_nsec(secret: str | bytes) -> str:
    """Encode a 32-byte secret key as nsec1..."""
    return _encode(NSEC_PREFIX, secret)


def decode_nsec(value: str) -> str:
    """Decode nsec1... into a lowercase hex secret key."""
    return _decode(NSEC_PREFIX, value)


def encode_note(event_id: str | bytes) -> str:
    """Encode a 32-byte event id as note1..."""
    return _encode(NOTE_PREFIX, event_id)


def decode_note(value: str) -> str:
    """Decode note1... into a lowercase hex event id."""
    return _decode(NOTE_PREFIX, value)


def encode_nprofile(pubkey: str | bytes, relays: Iterable[str] = ()) -> str:
    """Encode a public key and relay hints as nprofile1..."""
    return _encode_tlv(NPROFILE_PREFIX, _to_bytes(pubkey, NPROFILE_PREFIX), relays)


def decode_nprofile(value: str) -> Profile:
    """Decode nprofile1... into a Profile.

    CONTRACT:
      Inputs:
        - value: bech32 string with the nprofile prefix

      Outputs:
        - profile: Profile with lowercase hex pubkey and relays in encoded order

      Invariants:
        - Exactly one type-0 record, 32 bytes long
        - Type-1 records are UTF-8 strings, zero or more
        - Records cover the payload exactly (no trailing bytes)

      Raises:
        - Nip19Error: bad checksum, wrong prefix, unknown record type,
          truncated record, missing or repeated key, or non-UTF-8 relay
    """
    special, relays = _decode_tlv(NPROFILE_PREFIX, value)
    return Profile(pubkey=special, relays=relays)


def encode_nevent(event_id: str | bytes, relays: Iterable[str] = ()) -> str:
    """Encode an event id and relay hints as nevent1..."""
    return _encode_tlv(NEVENT_PREFIX, _to_bytes(event_id, NEVENT_PREFIX), relays)


def decode_nevent(value: str) -> EventPointer:
    """Decode nevent1... into an EventPointer. Same record rules as nprofile."""
    special, relays = _decode_tlv(NEVENT_PREFIX, value)
    return EventPointer(event_id=special, relays=relays)


def validate_bech32_entity(value: str, prefix: str) -> None:
    """Validate the shape of a bech32 entity without decoding it.

    CONTRACT:
      Inputs:
        - value: candidate string, e.g. "npub1..."
        - prefix: expected human-readable part, e.g. "npub"

      Outputs:
        - None (raises on invalid)

      Invariants:
        - value has no whitespace
        - value starts with prefix + "1" and has data characters after it
        - data characters are in the bech32 alphabet (no 1, b, i, o)
        - value is all lowercase

      Properties:
        - Fail-fast: raises on the first violated rule
        - Structural only: the checksum is verified by decoding, not here

      Raises:
        - Nip19Error: value format is invalid
    """
    if not value or not isinstance(value, str):
        raise Nip19Error(f"{prefix} must be non-empty string")

    if any(c.isspace() for c in value):
        raise Nip19Error(f"{prefix} must not contain whitespace")

    separator = prefix + "1"
    if not value.startswith(separator):
        raise Nip19Error(f"expected '{separator}' prefix, got: {value[:10]}")

    data_part = value[len(separator):]
    if not data_part:
        raise Nip19Error(f"{prefix} has no data after prefix")

    for char in data_part:
        if char not in BECH32_CHARSET:
            raise Nip19Error(f"{prefix} contains invalid bech32 character: '{char}'")


def _encode(prefix: str, value: str | bytes) -> str:
    return _encode_bytes(prefix, _to_bytes(value, prefix))


def _encode_bytes(prefix: str, data: bytes) -> str:
    words = convertbits(data, 8, 5, True)
    return bech32_encode(prefix, words)


def _decode(prefix: str, value: str) -> str:
    data = _decode_bytes(prefix, value)
    if len(data) != 32:
        raise Nip19Error(f"{prefix} must carry 32 bytes")
    return data.hex()


def _decode_bytes(prefix: str, value: str) -> bytes:
    validate_bech32_entity(value, prefix)

    hrp, words = bech32_decode(value)
    if hrp is None or words is None:
        raise Nip19Error(f"invalid bech32 checksum or encoding for {prefix}")
    if hrp != prefix:
        raise Nip19Error(f"expected '{prefix}' entity, got '{hrp}'")

    data = convertbits(words, 5, 8, False)
    if data is None:
        raise Nip19Error(f"{prefix} has invalid padding")
    return bytes(data)


def _encode_tlv(prefix: str, special: bytes, relays: Iterable[str]) -> str:
    if isinstance(relays, str):
        raise Nip19Error(f"{prefix} relays must be a sequence of strings, not a string")

    data = bytearray([TLV_SPECIAL, len(special)])
    data += special
    for relay in relays:
        if not isinstance(relay, str):
            raise Nip19Error(f"{prefix} relay must be a string, got {type(relay).__name__}")
        encoded = relay.encode("utf-8")
        if len(encoded) > MAX_TLV_LENGTH:
            raise Nip19Error(f"{prefix} relay longer than {MAX_TLV_LENGTH} bytes")
        data += bytes([TLV_RELAY, len(encoded)])
        data += encoded
    return _encode_bytes(prefix, bytes(data))


def _decode_tlv(prefix: str, value: str) -> tuple[str, tuple[str, ...]]:
    data = _decode_bytes(prefix, value)

    special = None
    relays = []
    position = 0
    while position < len(data):
        if position + 2 > len(data):
            raise Nip19Error(f"{prefix} record at byte {position} has no length")
        record_type, length = data[position], data[position + 1]
        start = position + 2
        end = start + length
        if end > len(data):
            raise Nip19Error(f"{prefix} record at byte {position} is truncated")
        payload = data[start:end]

        if record_type == TLV_SPECIAL:
            if special is not None:
                raise Nip19Error(f"{prefix} has more than one type-0 record")
            if length != 32:
                raise Nip19Error(f"{prefix} type-0 record must be 32 bytes, got {length}")
            special = payload.hex()
        elif record_type == TLV_RELAY:
            try:
                relays.append(payload.decode("utf-8"))
            except UnicodeDecodeError:
                raise Nip19Error(f"{prefix} relay is not valid UTF-8") from None
        else:
            raise Nip19Error(f"{prefix} has unknown record type {record_type}")
        position = end

    if special is None:
        raise Nip19Error(f"{prefix} has no type-0 record")
    return special, tuple(relays)


def _to_bytes(value: str | bytes, prefix: str) -> bytes:
    if isinstance(value, (bytes, bytearray)):
        data = bytes(value)
    elif isinstance(value, str):
        try:
            data = bytes.fromhex(value)
        except ValueError:
            raise Nip19Error(f"{prefix} input must be valid hexadecimal") from None
    else:
        raise Nip19Error(f"{prefix} input must be hex string or bytes, got {type(value).__name__}")

    if len(data) != 32:
        raise Nip19Error(f"{prefix} input must be 32 bytes, got {len(data)}")
    return data
