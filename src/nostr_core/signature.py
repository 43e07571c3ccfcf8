"""BIP-340 Schnorr signatures over secp256k1.

Signs and verifies 32-byte event ids against x-only public keys.
"""

from typing import Union

from coincurve import PrivateKey, PublicKeyXOnly

from .errors import EncodingError, VerificationError
from .keys import parse_secret_key

# Fixed auxiliary randomness makes the BIP-340 nonce a function of key and message only.
DETERMINISTIC_AUX = bytes(32)

Bytesish = Union[str, bytes]


def sign(event_id: Bytesish, privkey: Bytesish) -> bytes:
    """Produce a 64-byte Schnorr signature over a 32-byte event id.

    CONTRACT:
      Inputs:
        - event_id: 32-byte message (bytes or 64 hex characters)
        - privkey: 32-byte secret scalar (bytes or 64 hex characters)

      Outputs:
        - sig: 64-byte BIP-340 signature (R.x || s)

      Invariants:
        - Public key follows the even-y convention (BIP-340)
        - Auxiliary randomness is 32 zero bytes

      Properties:
        - Deterministic: same id and key always yield the same signature
        - Verifiable: verify(event_id, pubkey(privkey), sig) is True

      Raises:
        - InvalidKeyError: privkey malformed or outside [1, n-1] (checked before signing)
        - EncodingError: event_id is not 32 bytes
    """
    secret = parse_secret_key(privkey)
    message = _to_bytes(event_id, 32, "event id", EncodingError)
    return PrivateKey(secret).sign_schnorr(message, DETERMINISTIC_AUX)


def verify(event_id: Bytesish, pubkey: Bytesish, sig: Bytesish) -> bool:
    """Check a Schnorr signature against an x-only public key.

    CONTRACT:
      Inputs:
        - event_id: 32-byte message (bytes or 64 hex characters)
        - pubkey: 32-byte x-only public key (bytes or 64 hex characters)
        - sig: 64-byte signature (bytes or 128 hex characters)

      Outputs:
        - valid: True if sig is a valid signature by pubkey over event_id

      Properties:
        - Pure: no side effects, same inputs always give the same answer
        - Total over well-formed inputs: a 32-byte pubkey that is not a curve
          point, or a signature that does not verify, returns False

      Raises:
        - VerificationError: an input has the wrong length or is not hex
    """
    message = _to_bytes(event_id, 32, "event id", VerificationError)
    key = _to_bytes(pubkey, 32, "public key", VerificationError)
    signature = _to_bytes(sig, 64, "signature", VerificationError)

    try:
        xonly = PublicKeyXOnly(key)
    except ValueError:
        return False

    return xonly.verify(signature, message)


def _to_bytes(value: Bytesish, size: int, name: str, error: type) -> bytes:
    if isinstance(value, str):
        if len(value) != size * 2:
            raise error(f"{name} must be {size * 2} hex characters, got {len(value)}")
        try:
            decoded = bytes.fromhex(value)
        except ValueError:
            raise error(f"{name} must be valid hexadecimal") from None
        if len(decoded) != size:
            raise error(f"{name} must be valid hexadecimal")
        return decoded

    if isinstance(value, (bytes, bytearray)):
        if len(value) != size:
            raise error(f"{name} must be {size} bytes, got {len(value)}")
        return bytes(value)

    raise error(f"{name} must be bytes or hex string, got {type(value).__name__}")
