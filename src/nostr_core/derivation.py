"""NIP-06 hierarchical key derivation.

Derives secp256k1 key pairs from a BIP-39 seed along m/44'/1237'/account'/0/index
using BIP-32 private child key derivation.
"""

import hashlib
import hmac
from typing import NamedTuple, Optional

from coincurve import PrivateKey

from .errors import DerivationError
from .keys import CURVE_ORDER, keypair_from_secret
from .mnemonic import MnemonicLike, mnemonic_to_seed
from .models import KeyPair

HARDENED = 0x80000000
NOSTR_COIN_TYPE = 1237
PURPOSE = 44
MASTER_HMAC_KEY = b"Bitcoin seed"

# Upper bound on consecutive invalid children tried at a single depth.
MAX_DERIVATION_ATTEMPTS = 16


class ExtendedKey(NamedTuple):
    """Private key plus chain code at one node of the derivation tree."""

    key: int
    chain_code: bytes


def derivation_path(account: int = 0, index: int = 0) -> list[int]:
    """Return the child indices of m/44'/1237'/account'/0/index."""
    for name, value in (("account", account), ("index", index)):
        if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value < HARDENED:
            raise DerivationError(f"{name} must be an integer in [0, 2^31), got {value!r}")
    return [PURPOSE + HARDENED, NOSTR_COIN_TYPE + HARDENED, account + HARDENED, 0, index]


def derive_keypair(seed: bytes, account: int = 0, index: int = 0) -> KeyPair:
    """Derive the NIP-06 key pair for an account and address index.

    CONTRACT:
      Inputs:
        - seed: 16-64 byte BIP-39 seed (normally 64 bytes from mnemonic_to_seed)
        - account: hardened account number, 0 <= account < 2^31
        - index: non-hardened address index, 0 <= index < 2^31

      Outputs:
        - keypair: KeyPair at m/44'/1237'/account'/0/index

      Invariants:
        - First three levels are hardened, last two are not
        - Each step is HMAC-SHA512(parent chain code, data) with
          k_child = (IL + k_parent) mod n

      Properties:
        - Deterministic: same seed, account and index yield the same key pair
        - Bounded retry: a step whose IL >= n or whose k_child == 0 moves on to
          the next index at that depth, at most MAX_DERIVATION_ATTEMPTS times

      Algorithm:
        1. Master key: I = HMAC-SHA512("Bitcoin seed", seed)
        2. For each path index, derive the child with derive_child
        3. Build KeyPair from the final private key

      Raises:
        - DerivationError: seed length invalid, master key invalid, path values
          out of range, or retry cap exhausted at some depth
    """
    if not isinstance(seed, (bytes, bytearray)) or not 16 <= len(seed) <= 64:
        raise DerivationError("seed must be between 16 and 64 bytes")

    node = master_key(bytes(seed))
    for child_index in derivation_path(account, index):
        node = derive_child(node, child_index)

    return keypair_from_secret(node.key.to_bytes(32, "big"))


def keypair_from_mnemonic(mnemonic: MnemonicLike, passphrase: str = "", account: int = 0, index: int = 0) -> KeyPair:
    """Validate a mnemonic, stretch it and derive the NIP-06 key pair."""
    return derive_keypair(mnemonic_to_seed(mnemonic, passphrase), account, index)


def master_key(seed: bytes) -> ExtendedKey:
    """Compute the BIP-32 master node for a seed."""
    digest = hmac.new(MASTER_HMAC_KEY, seed, hashlib.sha512).digest()
    key = int.from_bytes(digest[:32], "big")
    if not 0 < key < CURVE_ORDER:
        raise DerivationError("seed produces an invalid master key")
    return ExtendedKey(key=key, chain_code=digest[32:])


def derive_child(parent: ExtendedKey, index: int) -> ExtendedKey:
    """Derive a child node, skipping invalid indices as BIP-32 prescribes."""
    for attempt in range(MAX_DERIVATION_ATTEMPTS):
        candidate = index + attempt
        if (candidate ^ index) & HARDENED:
            break
        child = ckd_priv(parent, candidate)
        if child is not None:
            return child

    raise DerivationError(f"no valid child key found within {MAX_DERIVATION_ATTEMPTS} indices of {index}")


def ckd_priv(parent: ExtendedKey, index: int) -> Optional[ExtendedKey]:
    """Private parent key to private child key; None if the child is invalid."""
    if index & HARDENED:
        data = b"\x00" + parent.key.to_bytes(32, "big")
    else:
        data = PrivateKey(parent.key.to_bytes(32, "big")).public_key.format(compressed=True)

    digest = hmac.new(parent.chain_code, data + index.to_bytes(4, "big"), hashlib.sha512).digest()
    tweak = int.from_bytes(digest[:32], "big")
    if tweak >= CURVE_ORDER:
        return None

    key = (tweak + parent.key) % CURVE_ORDER
    if key == 0:
        return None

    return ExtendedKey(key=key, chain_code=digest[32:])
