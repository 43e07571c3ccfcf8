"""Key material loaded from environment variables.

Secrets are read from the process environment, which the CLI may populate
from a .env file first. Values are never echoed back in error messages.
"""

import os
from collections.abc import Mapping

from .derivation import keypair_from_mnemonic
from .errors import ConfigurationError, NostrCoreError
from .keys import keypair_from_secret
from .models import KeyPair
from .nip19 import decode_nsec

ENV_SECRET_KEY = "SECRET_KEY"  # 64 hex characters
ENV_NSEC = "NSEC"  # bech32 nsec1...
ENV_MNEMONIC = "MNEMONIC"  # BIP-39 phrase
ENV_MNEMONIC_PASSPHRASE = "MNEMONIC_PASSPHRASE"
ENV_MNEMONIC_ACCOUNT = "MNEMONIC_ACCOUNT"
ENV_MNEMONIC_INDEX = "MNEMONIC_INDEX"


def load_keypair(environ: Mapping[str, str] | None = None) -> KeyPair | None:
    """Load the signing key pair from the environment.

    CONTRACT:
      Inputs:
        - environ: mapping of environment variables (defaults to os.environ)

      Outputs:
        - keypair: KeyPair from the first configured source, or None when no
          source is configured

      Invariants:
        - Sources are tried in order: SECRET_KEY, NSEC, MNEMONIC
        - Empty values count as unset
        - MNEMONIC honors MNEMONIC_PASSPHRASE (default "") and
          MNEMONIC_ACCOUNT / MNEMONIC_INDEX (default 0)
        - Error messages name the variable, never its value

      Raises:
        - ConfigurationError: the selected source holds unusable key material
    """
    env = os.environ if environ is None else environ

    secret_hex = env.get(ENV_SECRET_KEY)
    if secret_hex:
        return _load(ENV_SECRET_KEY, keypair_from_secret, secret_hex.strip())

    nsec = env.get(ENV_NSEC)
    if nsec:
        return _load(ENV_NSEC, lambda value: keypair_from_secret(decode_nsec(value)), nsec.strip())

    phrase = env.get(ENV_MNEMONIC)
    if phrase:
        passphrase = env.get(ENV_MNEMONIC_PASSPHRASE) or ""
        account = _index(env, ENV_MNEMONIC_ACCOUNT)
        index = _index(env, ENV_MNEMONIC_INDEX)
        return _load(ENV_MNEMONIC, lambda value: keypair_from_mnemonic(value, passphrase, account, index), phrase)

    return None


def require_keypair(environ: Mapping[str, str] | None = None) -> KeyPair:
    """Load the signing key pair, failing when none is configured."""
    keypair = load_keypair(environ)
    if keypair is None:
        raise ConfigurationError(f"no signing key configured; set {ENV_SECRET_KEY}, {ENV_NSEC} or {ENV_MNEMONIC}")
    return keypair


def _load(name: str, loader, value: str) -> KeyPair:
    try:
        return loader(value)
    except NostrCoreError as e:
        raise ConfigurationError(f"{name} is invalid: {type(e).__name__}") from e


def _index(env: Mapping[str, str], name: str) -> int:
    raw = env.get(name)
    if not raw:
        return 0
    try:
        value = int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from None
    if not 0 <= value < 0x80000000:
        raise ConfigurationError(f"{name} must be in [0, 2^31), got {value}")
    return value
