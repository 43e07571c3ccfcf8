"""nostr-core: events, keys, signatures, direct messages and wire envelopes for Nostr clients."""

__version__ = "0.1.0"
