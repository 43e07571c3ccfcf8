"""NIP-01 event construction, signing and verification.

Builders for common event kinds, plus the one-way transition from an
UnsignedEvent to a signed Event.
"""

import json
import time
from typing import Union

from .canonical import canonicalize, compute_id
from .encryption import encrypt_direct_message
from .errors import VerificationError
from .keys import keypair_from_secret, parse_public_key
from .models import Event, UnsignedEvent
from .signature import sign, verify

KIND_SET_METADATA = 0
KIND_TEXT_NOTE = 1
KIND_RECOMMEND_RELAY = 2
KIND_CONTACT_LIST = 3
KIND_ENCRYPTED_DIRECT_MESSAGE = 4

KeyMaterial = Union[str, bytes]


def build_event(
    kind: int, content: str, tags: list[list[str]] | None = None, created_at: int | None = None
) -> UnsignedEvent:
    """Construct an unsigned event of any kind.

    Tags are copied so later changes to the caller's lists do not leak in.
    """
    copied = [list(tag) for tag in tags] if tags else []
    return UnsignedEvent(kind=kind, content=content, tags=copied, created_at=created_at)


def text_note(content: str, tags: list[list[str]] | None = None) -> UnsignedEvent:
    """Kind 1 short text note."""
    return build_event(KIND_TEXT_NOTE, content, tags)


def set_metadata(name: str, about: str, picture: str) -> UnsignedEvent:
    """Kind 0 profile metadata with a JSON object as content.

    Keys are emitted in the fixed order name, about, picture.
    """
    content = json.dumps({"name": name, "about": about, "picture": picture}, ensure_ascii=False, separators=(",", ":"))
    return build_event(KIND_SET_METADATA, content)


def recommend_relay(url: str) -> UnsignedEvent:
    """Kind 2 relay recommendation; content is the relay URL."""
    return build_event(KIND_RECOMMEND_RELAY, url)


def contact_list(contacts: list[tuple[str, str, str]]) -> UnsignedEvent:
    """Kind 3 contact list.

    CONTRACT:
      Inputs:
        - contacts: list of (pubkey_hex, relay_url, petname); relay_url and
          petname may be empty strings

      Outputs:
        - event: UnsignedEvent with one ["p", pubkey, relay, petname] tag per
          contact, in input order, and empty content

      Raises:
        - InvalidKeyError: a contact pubkey is not a valid x-only key
    """
    tags = []
    for pubkey, relay, petname in contacts:
        tags.append(["p", parse_public_key(pubkey).hex(), relay, petname])
    return build_event(KIND_CONTACT_LIST, "", tags)


def encrypted_direct_message(plaintext: str, sender_privkey: KeyMaterial, recipient_pubkey: KeyMaterial) -> UnsignedEvent:
    """Kind 4 encrypted direct message addressed with a ["p", recipient] tag.

    Content is the "<base64 ciphertext>?iv=<base64 iv>" payload.
    """
    recipient = parse_public_key(recipient_pubkey)
    content = encrypt_direct_message(plaintext, sender_privkey, recipient)
    return build_event(KIND_ENCRYPTED_DIRECT_MESSAGE, content, [["p", recipient.hex()]])


def with_subject(event: UnsignedEvent, subject: str | None) -> UnsignedEvent:
    """Return a copy of event with a ["subject", subject] tag appended.

    A None or empty subject returns an unchanged copy.
    """
    tags = [list(tag) for tag in event.tags]
    if subject:
        tags.append(["subject", subject])
    return UnsignedEvent(kind=event.kind, content=event.content, tags=tags, created_at=event.created_at)


def sign_event(event: UnsignedEvent, privkey: KeyMaterial) -> Event:
    """Sign an unsigned event, producing an immutable signed Event.

    CONTRACT:
      Inputs:
        - event: UnsignedEvent (created_at may be None)
        - privkey: 32-byte secret scalar (bytes or hex)

      Outputs:
        - signed: Event with pubkey, created_at, id and sig populated

      Invariants:
        - pubkey is the x-only public key of privkey
        - created_at is event.created_at, or the current time when None
        - id == compute_id(canonicalize(pubkey, created_at, kind, tags, content))
        - sig is the deterministic Schnorr signature over id

      Properties:
        - One-way: there is no operation turning an Event back into an UnsignedEvent
        - Verifiable: verify_event(sign_event(e, k)) is True

      Raises:
        - InvalidKeyError: privkey malformed or out of range
        - EncodingError: event fields cannot be canonically encoded
    """
    keypair = keypair_from_secret(privkey)
    created_at = event.created_at if event.created_at is not None else int(time.time())
    tags = [list(tag) for tag in event.tags]

    digest = compute_id(canonicalize(keypair.public, created_at, event.kind, tags, event.content))
    sig = sign(digest, keypair.secret)

    return Event(
        id=digest.hex(),
        pubkey=keypair.public_hex,
        created_at=created_at,
        kind=event.kind,
        tags=tags,
        content=event.content,
        sig=sig.hex(),
    )


def verify_event(event: Event) -> bool:
    """Check that a signed event's id and signature are both valid.

    CONTRACT:
      Inputs:
        - event: signed Event

      Outputs:
        - valid: True when the recomputed id equals event.id and event.sig is
          a valid signature by event.pubkey over it

      Properties:
        - Tamper-evident: changing pubkey, created_at, kind, tags or content
          changes the recomputed id, so verification returns False

      Raises:
        - VerificationError: id, pubkey or sig is structurally malformed
        - EncodingError: fields cannot be canonically encoded
    """
    claimed = _require_hex(event.id, 32, "event id")
    pubkey = _require_hex(event.pubkey, 32, "public key")
    sig = _require_hex(event.sig, 64, "signature")

    expected = compute_id(canonicalize(pubkey, event.created_at, event.kind, event.tags, event.content))
    if claimed != expected:
        return False

    return verify(expected, pubkey, sig)


def _require_hex(value: str, size: int, name: str) -> bytes:
    try:
        decoded = bytes.fromhex(value)
    except (TypeError, ValueError):
        raise VerificationError(f"{name} must be valid hexadecimal") from None
    if len(decoded) != size:
        raise VerificationError(f"{name} must be {size} bytes, got {len(decoded)}")
    return decoded
