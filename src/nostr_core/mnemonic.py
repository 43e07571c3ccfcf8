"""BIP-39 mnemonic phrases.

Generation, checksum validation and seed stretching for NIP-06 key derivation.
"""

from typing import Union

from mnemonic import Mnemonic as Bip39

from .errors import ChecksumError
from .models import Mnemonic

ENTROPY_STRENGTHS = (128, 160, 192, 224, 256)

_wordlist = Bip39("english")

MnemonicLike = Union[Mnemonic, str]


def generate_mnemonic(entropy_bits: int = 128) -> Mnemonic:
    """Generate a fresh English mnemonic.

    CONTRACT:
      Inputs:
        - entropy_bits: one of 128, 160, 192, 224, 256

      Outputs:
        - mnemonic: 12, 15, 18, 21 or 24 words

      Invariants:
        - Entropy comes from the operating system's CSPRNG
        - Final word carries entropy_bits / 32 checksum bits from SHA-256(entropy)

      Properties:
        - Reversible: mnemonic_to_entropy(generate_mnemonic(n)) has n / 8 bytes

      Raises:
        - ValueError: entropy_bits is not a supported strength
    """
    if entropy_bits not in ENTROPY_STRENGTHS:
        raise ValueError(f"entropy_bits must be one of {ENTROPY_STRENGTHS}, got {entropy_bits}")
    return Mnemonic(words=tuple(_wordlist.generate(strength=entropy_bits).split(" ")))


def mnemonic_from_entropy(entropy: bytes) -> Mnemonic:
    """Map raw entropy (16-32 bytes, multiple of 4) onto wordlist entries."""
    if len(entropy) * 8 not in ENTROPY_STRENGTHS:
        raise ValueError(f"entropy must be one of {[s // 8 for s in ENTROPY_STRENGTHS]} bytes, got {len(entropy)}")
    return Mnemonic(words=tuple(_wordlist.to_mnemonic(bytes(entropy)).split(" ")))


def parse_mnemonic(mnemonic: MnemonicLike) -> Mnemonic:
    """Normalize and checksum-validate a caller-supplied mnemonic.

    Whitespace runs collapse to single spaces and words are lowercased.

    Raises:
        - ChecksumError: unknown word, unsupported word count or checksum mismatch
    """
    mnemonic_to_entropy(mnemonic)
    return Mnemonic(words=_words(mnemonic))


def mnemonic_to_entropy(mnemonic: MnemonicLike) -> bytes:
    """Recover the entropy encoded by a mnemonic, validating its checksum.

    Raises:
        - ChecksumError: unknown word, unsupported word count or checksum mismatch
    """
    words = _words(mnemonic)
    try:
        return bytes(_wordlist.to_entropy(list(words)))
    except LookupError as e:
        raise ChecksumError(f"mnemonic contains an unknown word: {e}") from None
    except ValueError as e:
        raise ChecksumError(f"invalid mnemonic: {e}") from None


def mnemonic_to_seed(mnemonic: MnemonicLike, passphrase: str = "") -> bytes:
    """Stretch a mnemonic into a 64-byte seed.

    CONTRACT:
      Inputs:
        - mnemonic: Mnemonic or phrase string
        - passphrase: optional extra secret (default "")

      Outputs:
        - seed: 64 bytes of PBKDF2-HMAC-SHA512 output

      Invariants:
        - 2048 iterations
        - password is the normalized phrase, salt is "mnemonic" + passphrase
        - Checksum is validated before stretching

      Properties:
        - Deterministic: same phrase and passphrase always give the same seed

      Raises:
        - ChecksumError: mnemonic fails validation
    """
    phrase = parse_mnemonic(mnemonic).phrase
    return bytes(Bip39.to_seed(phrase, passphrase=passphrase))


def _words(mnemonic: MnemonicLike) -> tuple[str, ...]:
    if isinstance(mnemonic, Mnemonic):
        return tuple(word.lower() for word in mnemonic.words)
    if not isinstance(mnemonic, str):
        raise ChecksumError(f"mnemonic must be a phrase string, got {type(mnemonic).__name__}")
    return tuple(word.lower() for word in mnemonic.split())
