"""NIP-01 canonical event serialization.

Deterministic byte encoding of an event's identity-relevant fields and the
SHA-256 identity hash computed from it.
"""

import hashlib
from typing import Iterable, Union

from .errors import EncodingError

Text = Union[str, bytes]

# Only quote, backslash and C0 controls are escaped; everything else is literal.
_ESCAPES = {code: f"\\u{code:04x}" for code in range(0x20)}
_ESCAPES.update(
    {
        ord('"'): '\\"',
        ord("\\"): "\\\\",
        ord("\n"): "\\n",
        ord("\r"): "\\r",
        ord("\t"): "\\t",
        ord("\b"): "\\b",
        ord("\f"): "\\f",
    }
)


def canonicalize(pubkey: Union[str, bytes], created_at: int, kind: int, tags: Iterable[Iterable[Text]], content: Text) -> bytes:
    """Serialize event fields into the canonical NIP-01 byte sequence.

    CONTRACT:
      Inputs:
        - pubkey: 32-byte x-only public key, as bytes or 64 hex characters (any case)
        - created_at: integer seconds since epoch
        - kind: integer event kind
        - tags: sequence of tags, each a sequence of strings (lists or tuples)
        - content: event content string (bytes are decoded as strict UTF-8)

      Outputs:
        - canonical: UTF-8 bytes of [0,"<pubkey hex>",<created_at>,<kind>,<tags>,"<content>"]

      Invariants:
        - No whitespace between tokens
        - Strings escape only '"', '\\' and characters below U+0020
          (\\n \\r \\t \\b \\f as short escapes, others as \\u00XX)
        - All other code points are emitted literally, never \\u-escaped
        - Integers are plain decimal
        - pubkey is always emitted as lowercase hex

      Properties:
        - Deterministic: logically equal inputs yield byte-identical output,
          regardless of bytes/hex pubkey, hex case, or list/tuple tags
        - Field order is fixed here, never taken from the caller

      Raises:
        - EncodingError: malformed UTF-8, lone surrogates, wrong pubkey length,
          non-integer numbers, or non-string tag items
    """
    parts = [
        "[0,",
        _encode_string(_pubkey_hex(pubkey)),
        ",",
        _encode_int(created_at, "created_at"),
        ",",
        _encode_int(kind, "kind"),
        ",",
        _encode_tags(tags),
        ",",
        _encode_string(_as_text(content, "content")),
        "]",
    ]
    return "".join(parts).encode("utf-8")


def compute_id(canonical: bytes) -> bytes:
    """Return the 32-byte SHA-256 identity hash of canonical event bytes.

    Raises:
        - EncodingError: canonical is not bytes or is not valid UTF-8
    """
    if not isinstance(canonical, (bytes, bytearray)):
        raise EncodingError(f"canonical event must be bytes, got {type(canonical).__name__}")
    try:
        bytes(canonical).decode("utf-8")
    except UnicodeDecodeError as e:
        raise EncodingError(f"canonical event is not valid UTF-8: {e}") from None
    return hashlib.sha256(canonical).digest()


def event_id(pubkey: Union[str, bytes], created_at: int, kind: int, tags: Iterable[Iterable[Text]], content: Text) -> str:
    """Canonicalize and hash event fields, returning the lowercase hex id."""
    return compute_id(canonicalize(pubkey, created_at, kind, tags, content)).hex()


def _pubkey_hex(pubkey: Union[str, bytes]) -> str:
    if isinstance(pubkey, (bytes, bytearray)):
        if len(pubkey) != 32:
            raise EncodingError(f"pubkey must be 32 bytes, got {len(pubkey)}")
        return bytes(pubkey).hex()

    if not isinstance(pubkey, str):
        raise EncodingError(f"pubkey must be bytes or hex string, got {type(pubkey).__name__}")

    if len(pubkey) != 64:
        raise EncodingError(f"pubkey must be 64 hex characters, got {len(pubkey)}")

    try:
        decoded = bytes.fromhex(pubkey)
    except ValueError:
        raise EncodingError("pubkey must be valid hexadecimal") from None
    if len(decoded) != 32:
        raise EncodingError("pubkey must be valid hexadecimal")
    return decoded.hex()


def _encode_int(value: int, name: str) -> str:
    # bool is an int subclass but would not round-trip as a number
    if isinstance(value, bool) or not isinstance(value, int):
        raise EncodingError(f"{name} must be an integer, got {type(value).__name__}")
    return str(value)


def _encode_tags(tags: Iterable[Iterable[Text]]) -> str:
    if isinstance(tags, (str, bytes)) or tags is None:
        raise EncodingError("tags must be a sequence of sequences of strings")

    encoded = []
    for tag in tags:
        if isinstance(tag, (str, bytes)) or not hasattr(tag, "__iter__"):
            raise EncodingError(f"each tag must be a sequence of strings, got {type(tag).__name__}")
        items = [_encode_string(_as_text(item, "tag item")) for item in tag]
        encoded.append("[" + ",".join(items) + "]")
    return "[" + ",".join(encoded) + "]"


def _as_text(value: Text, name: str) -> str:
    if isinstance(value, (bytes, bytearray)):
        try:
            return bytes(value).decode("utf-8")
        except UnicodeDecodeError as e:
            raise EncodingError(f"{name} is not valid UTF-8: {e}") from None

    if not isinstance(value, str):
        raise EncodingError(f"{name} must be a string, got {type(value).__name__}")

    try:
        value.encode("utf-8")
    except UnicodeEncodeError as e:
        raise EncodingError(f"{name} is not valid UTF-8: {e}") from None
    return value


def _encode_string(value: str) -> str:
    return '"' + value.translate(_ESCAPES) + '"'
