"""CLI output formatting for structured JSON results.

Every formatter returns a single line without a trailing newline; the caller
prints it.
"""

import json

from .message import Message, serialize_message
from .models import Event, KeyPair, Mnemonic
from .nip19 import encode_npub, encode_nsec


def _dumps(value) -> str:
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"))


def format_event(event: Event) -> str:
    """Format a signed event as its standalone JSON object."""
    return event.to_json()


def format_message(message: Message) -> str:
    """Format a message envelope as its wire JSON array."""
    return serialize_message(message)


def format_filter(filter_: dict) -> str:
    """Format a subscription filter as JSON, preserving key order."""
    return _dumps(filter_)


def format_verification_result(event: Event, valid: bool) -> str:
    """Format the outcome of verifying an event.

    CONTRACT:
      Inputs:
        - event: the event that was checked
        - valid: result of verify_event

      Outputs:
        - json_string: {"id": ..., "pubkey": ..., "valid": true|false}

      Invariants:
        - Output is valid JSON on a single line
        - Keys are sorted for deterministic output
    """
    return json.dumps({"id": event.id, "pubkey": event.pubkey, "valid": valid}, sort_keys=True, separators=(",", ":"))


def format_keypair(keypair: KeyPair, bech32: bool = False) -> str:
    """Format a key pair as JSON.

    CONTRACT:
      Inputs:
        - keypair: KeyPair to print
        - bech32: emit nsec/npub instead of hex when True

      Outputs:
        - json_string: {"public_key": ..., "secret_key": ...}

      Invariants:
        - Both keys use the same encoding
        - Keys are sorted for deterministic output
    """
    if bech32:
        output = {"public_key": encode_npub(keypair.public), "secret_key": encode_nsec(keypair.secret)}
    else:
        output = {"public_key": keypair.public_hex, "secret_key": keypair.secret_hex}
    return json.dumps(output, sort_keys=True, separators=(",", ":"))


def format_public_key(keypair: KeyPair, bech32: bool = False) -> str:
    """Format only the public half of a key pair as a bare string."""
    return encode_npub(keypair.public) if bech32 else keypair.public_hex


def format_mnemonic(mnemonic: Mnemonic) -> str:
    """Format a mnemonic as its space-separated phrase."""
    return mnemonic.phrase
