"""Exception hierarchy for nostr-core.

Every failure raised by the core derives from NostrCoreError so callers can
catch the whole family at once. Errors are raised to the immediate caller;
nothing in the core logs or swallows them.
"""


class NostrCoreError(Exception):
    """Base class for all nostr-core errors."""


class EncodingError(NostrCoreError):
    """Event fields cannot be canonically encoded (malformed UTF-8, bad types)."""


class InvalidKeyError(NostrCoreError):
    """Key material is malformed or outside the valid scalar range."""


class VerificationError(NostrCoreError):
    """Signature, id or public key is structurally malformed.

    A well-formed signature that simply does not verify is not an error;
    verification returns False in that case.
    """


class ChecksumError(NostrCoreError):
    """Mnemonic phrase fails word lookup, length or checksum validation."""


class DerivationError(NostrCoreError):
    """Hierarchical key derivation could not produce a valid key."""


class FormatError(NostrCoreError):
    """Encrypted direct-message payload is malformed."""


class PaddingError(NostrCoreError):
    """Decrypted direct-message payload has invalid PKCS#7 padding."""


class UnknownMessageError(NostrCoreError):
    """Wire message has an unknown tag or does not match its tag's shape."""


class UnsignedEventError(NostrCoreError):
    """Operation requires a signed event but got one without id or sig."""


class InvalidEventError(NostrCoreError):
    """Event mapping is missing fields or holds values of the wrong type."""


class Nip19Error(NostrCoreError):
    """Bech32 entity has the wrong prefix, checksum or payload."""


class ConfigurationError(NostrCoreError):
    """Environment configuration holds unusable key material."""
