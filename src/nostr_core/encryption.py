"""NIP-04 direct-message encryption.

ECDH shared secrets and AES-256-CBC payloads of the form
base64(ciphertext) + "?iv=" + base64(iv).
"""

import base64
import binascii
import os
from typing import Union

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from .errors import EncodingError, FormatError, InvalidKeyError, PaddingError
from .keys import lift_x, parse_public_key, parse_secret_key

IV_MARKER = "?iv="
IV_SIZE = 16
BLOCK_SIZE_BITS = 128

KeyMaterial = Union[str, bytes]


def shared_secret(my_privkey: KeyMaterial, their_pubkey: KeyMaterial) -> bytes:
    """Compute the ECDH shared secret between two parties.

    CONTRACT:
      Inputs:
        - my_privkey: own 32-byte secret (bytes or hex)
        - their_pubkey: peer's 32-byte x-only public key (bytes or hex)

      Outputs:
        - secret: 32-byte x-coordinate of their_point * my_scalar

      Invariants:
        - Peer point is lifted with even y
        - The x-coordinate is used as-is, without hashing

      Properties:
        - Symmetric: shared_secret(a, B) == shared_secret(b, A)

      Raises:
        - InvalidKeyError: malformed secret or public key
    """
    secret = parse_secret_key(my_privkey)
    point = lift_x(parse_public_key(their_pubkey))
    return point.multiply(secret).format(compressed=True)[1:]


def encrypt(plaintext: str, secret: bytes, iv: bytes | None = None) -> str:
    """Encrypt a message with AES-256-CBC and PKCS#7 padding.

    CONTRACT:
      Inputs:
        - plaintext: message string (may be empty)
        - secret: 32-byte shared secret
        - iv: 16-byte initialization vector; a fresh random one when None

      Outputs:
        - payload: base64(ciphertext) + "?iv=" + base64(iv), standard alphabet with padding

      Properties:
        - Round-trip: decrypt(encrypt(m, s), s) == m
        - Randomized: two calls without iv produce different payloads

      Raises:
        - InvalidKeyError: secret is not 32 bytes
        - EncodingError: plaintext cannot be encoded as UTF-8
        - FormatError: iv is not 16 bytes
    """
    key = _check_secret(secret)
    if iv is None:
        iv = os.urandom(IV_SIZE)
    elif len(iv) != IV_SIZE:
        raise FormatError(f"iv must be {IV_SIZE} bytes, got {len(iv)}")

    try:
        data = plaintext.encode("utf-8")
    except UnicodeEncodeError as e:
        raise EncodingError(f"plaintext is not valid UTF-8: {e}") from None

    padder = padding.PKCS7(BLOCK_SIZE_BITS).padder()
    padded = padder.update(data) + padder.finalize()

    encryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).encryptor()
    ciphertext = encryptor.update(padded) + encryptor.finalize()

    return base64.b64encode(ciphertext).decode("ascii") + IV_MARKER + base64.b64encode(iv).decode("ascii")


def decrypt(payload: str, secret: bytes) -> str:
    """Decrypt a "<base64 ciphertext>?iv=<base64 iv>" payload.

    CONTRACT:
      Inputs:
        - payload: string produced by encrypt
        - secret: 32-byte shared secret

      Outputs:
        - plaintext: decrypted UTF-8 string

      Raises:
        - InvalidKeyError: secret is not 32 bytes
        - FormatError: missing or repeated "?iv=" marker, invalid base64, iv not
          16 bytes, ciphertext empty or not a multiple of 16 bytes, plaintext
          not UTF-8
        - PaddingError: PKCS#7 padding is invalid after decryption
    """
    key = _check_secret(secret)

    if not isinstance(payload, str):
        raise FormatError(f"payload must be a string, got {type(payload).__name__}")

    if payload.count(IV_MARKER) != 1:
        raise FormatError(f"payload must contain exactly one '{IV_MARKER}' marker")

    encoded_ciphertext, encoded_iv = payload.split(IV_MARKER)
    ciphertext = _b64decode(encoded_ciphertext, "ciphertext")
    iv = _b64decode(encoded_iv, "iv")

    if len(iv) != IV_SIZE:
        raise FormatError(f"iv must be {IV_SIZE} bytes, got {len(iv)}")

    if not ciphertext or len(ciphertext) % (BLOCK_SIZE_BITS // 8):
        raise FormatError(f"ciphertext length must be a positive multiple of 16, got {len(ciphertext)}")

    decryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).decryptor()
    padded = decryptor.update(ciphertext) + decryptor.finalize()

    unpadder = padding.PKCS7(BLOCK_SIZE_BITS).unpadder()
    try:
        data = unpadder.update(padded) + unpadder.finalize()
    except ValueError:
        raise PaddingError("invalid PKCS#7 padding") from None

    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise FormatError(f"plaintext is not valid UTF-8: {e}") from None


def encrypt_direct_message(plaintext: str, sender_privkey: KeyMaterial, recipient_pubkey: KeyMaterial) -> str:
    """Encrypt plaintext from sender to recipient."""
    return encrypt(plaintext, shared_secret(sender_privkey, recipient_pubkey))


def decrypt_direct_message(payload: str, my_privkey: KeyMaterial, their_pubkey: KeyMaterial) -> str:
    """Decrypt a payload exchanged with their_pubkey, from either side."""
    return decrypt(payload, shared_secret(my_privkey, their_pubkey))


def _check_secret(secret: bytes) -> bytes:
    if not isinstance(secret, (bytes, bytearray)) or len(secret) != 32:
        raise InvalidKeyError("shared secret must be 32 bytes")
    return bytes(secret)


def _b64decode(value: str, name: str) -> bytes:
    try:
        return base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError):
        raise FormatError(f"{name} is not valid base64") from None
