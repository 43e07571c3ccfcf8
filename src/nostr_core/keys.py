"""secp256k1 key material.

Generation, parsing and validation of private scalars and x-only public keys.
"""

from typing import Union

from coincurve import PrivateKey, PublicKey

from .errors import InvalidKeyError
from .models import KeyPair

# secp256k1 group order
CURVE_ORDER = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141

KeyMaterial = Union[str, bytes]


def generate_keypair() -> KeyPair:
    """Generate a fresh key pair from the operating system's CSPRNG."""
    private_key = PrivateKey()
    return KeyPair(secret=private_key.secret, public=_xonly(private_key))


def keypair_from_secret(secret: KeyMaterial) -> KeyPair:
    """Build a key pair from a 32-byte secret given as bytes or hex."""
    secret_bytes = parse_secret_key(secret)
    return KeyPair(secret=secret_bytes, public=_xonly(PrivateKey(secret_bytes)))


def public_key_from_secret(secret: KeyMaterial) -> bytes:
    """Return the 32-byte x-only public key for a secret."""
    return keypair_from_secret(secret).public


def parse_secret_key(secret: KeyMaterial) -> bytes:
    """Validate a private scalar and return it as 32 bytes.

    CONTRACT:
      Inputs:
        - secret: 32 bytes, or 64 hex characters (any case)

      Outputs:
        - secret_bytes: 32-byte big-endian scalar

      Invariants:
        - Scalar lies in [1, CURVE_ORDER - 1]

      Raises:
        - InvalidKeyError: wrong type, length, non-hex, or out-of-range scalar
    """
    secret_bytes = _to_bytes(secret, "secret key")
    check_scalar(secret_bytes)
    return secret_bytes


def parse_public_key(pubkey: KeyMaterial) -> bytes:
    """Validate an x-only public key and return it as 32 bytes.

    The key must be the x-coordinate of a point on the curve.

    Raises:
        - InvalidKeyError: wrong type, length, non-hex, or not on the curve
    """
    pubkey_bytes = _to_bytes(pubkey, "public key")
    lift_x(pubkey_bytes)
    return pubkey_bytes


def check_scalar(secret: bytes) -> int:
    """Return the scalar as int, rejecting 0 and values >= CURVE_ORDER."""
    scalar = int.from_bytes(secret, "big")
    if not 1 <= scalar < CURVE_ORDER:
        raise InvalidKeyError("secret key scalar must be in range [1, curve order - 1]")
    return scalar


def lift_x(pubkey: bytes) -> PublicKey:
    """Return the curve point with even y for an x-only public key."""
    try:
        return PublicKey(b"\x02" + pubkey)
    except ValueError:
        raise InvalidKeyError("public key is not a valid curve point") from None


def _xonly(private_key: PrivateKey) -> bytes:
    # compressed SEC1 form is prefix byte + 32-byte x-coordinate
    return private_key.public_key.format(compressed=True)[1:]


def _to_bytes(value: KeyMaterial, name: str) -> bytes:
    if isinstance(value, str):
        if len(value) != 64:
            raise InvalidKeyError(f"{name} must be 64 hex characters, got {len(value)}")
        try:
            decoded = bytes.fromhex(value)
        except ValueError:
            raise InvalidKeyError(f"{name} must be valid hexadecimal") from None
        # fromhex skips whitespace, so a padded string can decode short
        if len(decoded) != 32:
            raise InvalidKeyError(f"{name} must be valid hexadecimal")
        return decoded

    if isinstance(value, (bytes, bytearray)):
        if len(value) != 32:
            raise InvalidKeyError(f"{name} must be 32 bytes, got {len(value)}")
        return bytes(value)

    raise InvalidKeyError(f"{name} must be bytes or hex string, got {type(value).__name__}")
