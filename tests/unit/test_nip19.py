"""Property-based and unit tests for NIP-19 bech32 entities."""

import pytest
from bech32 import bech32_encode, convertbits
from hypothesis import given
from hypothesis import strategies as st

from nostr_core.errors import Nip19Error
from nostr_core.models import EventPointer, Profile
from nostr_core.nip19 import (
    decode_nevent,
    decode_note,
    decode_nprofile,
    decode_npub,
    decode_nsec,
    encode_nevent,
    encode_note,
    encode_nprofile,
    encode_npub,
    encode_nsec,
    validate_bech32_entity,
)

NPUB_HEX = "3bf0c63fcb93463407af97a5e5ee64fa883d107ef9e558472c4eb9aaaefa459d"
NPUB = "npub180cvv07tjdrrgpa0j7j7tmnyl2yr6yr7l8j4s3evf6u64th6gkwsyjh6w6"

NSEC_VECTORS = [
    ("0f1429676edf1ff8e5ca8202c8741cb695fc3ce24ec3adc0fcf234116f08f849", "nsec1pu2zjemwmu0l3ew2sgpvsaquk62lc08zfmp6ms8u7g6pzmcglpysymcg0m"),
    ("67dea2ed018072d675f5415ecfaed7d2597555e202d85b3d65ea4e58d2d92ffa", "nsec1vl029mgpspedva04g90vltkh6fvh240zqtv9k0t9af8935ke9laqsnlfe5"),
]  # fmt: skip

NPROFILE = (
    "nprofile1qqsrhuxx8l9ex335q7he0f09aej04zpazpl0ne2cgukyawd24mayt8gpp4mhxue69uhhytnc9e3k7mgpz4mhxue69uhkg6nzv9ejuumpv34kytnrdaksjlyr9p"
)
NPROFILE_RELAYS = ("wss://r.x.com", "wss://djbas.sadkb.com")

# The id is the ASCII text of a 32-character string, carried as 32 raw bytes
NEVENT_ID = b"6623d3fb9270903631ee00c9683be706".hex()
NEVENT = "nevent1qqsrvd3jxdjrxenz8yerwvpexqenvve3v4jnqvrr8ymrsvmzv5mnqdscemr6j"
NEVENT_WITH_RELAYS = (
    "nevent1qqsrvd3jxdjrxenz8yerwvpexqenvve3v4jnqvrr8ymrsvmzv5mnqdspz3mhxue69uhkcmmrv9kxsmmnwsargvpsxqq3gamnwvaz7tmvda3kzmrgdaehgw35xqcrzzl46w7"
)
NEVENT_RELAYS = ("wss://localhost:4000", "wss://localhost:4001")


class TestVectors:
    """Published hex/bech32 pairs."""

    def test_encode_npub(self):
        assert encode_npub(NPUB_HEX) == NPUB

    def test_decode_npub(self):
        assert decode_npub(NPUB) == NPUB_HEX

    @pytest.mark.parametrize("hex_key,nsec", NSEC_VECTORS)
    def test_encode_nsec(self, hex_key, nsec):
        assert encode_nsec(hex_key) == nsec

    @pytest.mark.parametrize("hex_key,nsec", NSEC_VECTORS)
    def test_decode_nsec(self, hex_key, nsec):
        assert decode_nsec(nsec) == hex_key


class TestRoundTrip:
    """Encode then decode returns the input."""

    @given(st.binary(min_size=32, max_size=32))
    def test_note(self, data):
        assert decode_note(encode_note(data)) == data.hex()

    @given(st.binary(min_size=32, max_size=32))
    def test_bytes_and_hex_agree(self, data):
        assert encode_npub(data) == encode_npub(data.hex())

    @given(st.binary(min_size=32, max_size=32))
    def test_prefix(self, data):
        assert encode_nsec(data).startswith("nsec1")


class TestDecodeErrors:
    """Invalid entities raise Nip19Error."""

    def test_wrong_prefix(self):
        with pytest.raises(Nip19Error, match="npub1"):
            decode_npub(NSEC_VECTORS[0][1])

    def test_bad_checksum(self):
        with pytest.raises(Nip19Error, match="checksum"):
            decode_nsec(NSEC_VECTORS[1][1][:-1] + "4")

    def test_invalid_character(self):
        with pytest.raises(Nip19Error, match="invalid bech32 character"):
            decode_npub(NPUB[:-1] + "b")

    def test_uppercase_rejected(self):
        with pytest.raises(Nip19Error):
            decode_npub(NPUB.upper())

    def test_whitespace_rejected(self):
        with pytest.raises(Nip19Error, match="whitespace"):
            decode_npub(NPUB + " ")

    def test_wrong_payload_length(self):
        short = encode_note(bytes(32))
        with pytest.raises(Nip19Error):
            decode_note(short[:-7])

    @pytest.mark.parametrize("value", ["", None, 5])
    def test_non_string(self, value):
        with pytest.raises(Nip19Error):
            decode_note(value)


class TestEncodeErrors:
    """Invalid inputs to encoders."""

    @pytest.mark.parametrize("value", [bytes(31), "ab" * 31, "zz" * 32, 12])
    def test_bad_input(self, value):
        with pytest.raises(Nip19Error):
            encode_npub(value)


class TestValidateEntity:
    """Structural checks without decoding."""

    def test_valid(self):
        validate_bech32_entity(NPUB, "npub")

    def test_prefix_only(self):
        with pytest.raises(Nip19Error, match="no data"):
            validate_bech32_entity("npub1", "npub")


def _raw_entity(prefix: str, data: bytes) -> str:
    """Bech32-encode arbitrary bytes, bypassing record validation."""
    return bech32_encode(prefix, convertbits(data, 8, 5, True))


class TestTlvVectors:
    """nprofile and nevent pairs with relay hints."""

    def test_encode_nprofile(self):
        assert encode_nprofile(NPUB_HEX, NPROFILE_RELAYS) == NPROFILE

    def test_decode_nprofile(self):
        assert decode_nprofile(NPROFILE) == Profile(pubkey=NPUB_HEX, relays=NPROFILE_RELAYS)

    def test_encode_nevent_without_relays(self):
        assert encode_nevent(NEVENT_ID) == NEVENT

    def test_decode_nevent_without_relays(self):
        assert decode_nevent(NEVENT) == EventPointer(event_id=NEVENT_ID)

    def test_encode_nevent_with_relays(self):
        assert encode_nevent(NEVENT_ID, list(NEVENT_RELAYS)) == NEVENT_WITH_RELAYS

    def test_decode_nevent_with_relays(self):
        assert decode_nevent(NEVENT_WITH_RELAYS) == EventPointer(event_id=NEVENT_ID, relays=NEVENT_RELAYS)

    def test_longer_than_ninety_characters(self):
        assert len(NPROFILE) > 90


class TestTlvRoundTrip:
    """Relays survive in order, including non-ASCII ones."""

    @given(
        st.binary(min_size=32, max_size=32),
        st.lists(st.text(max_size=60), max_size=4).map(tuple),
    )
    def test_nprofile(self, pubkey, relays):
        assert decode_nprofile(encode_nprofile(pubkey, relays)) == Profile(pubkey=pubkey.hex(), relays=relays)

    @given(
        st.binary(min_size=32, max_size=32),
        st.lists(st.text(max_size=60), max_size=4).map(tuple),
    )
    def test_nevent(self, event_id, relays):
        pointer = decode_nevent(encode_nevent(event_id.hex().upper(), relays))
        assert pointer == EventPointer(event_id=event_id.hex(), relays=relays)


class TestTlvErrors:
    """Malformed records raise Nip19Error."""

    KEY = bytes.fromhex(NPUB_HEX)

    @pytest.mark.parametrize(
        "data,match",
        [
            (b"", "no type-0"),
            (bytes([1, 3]) + b"wss", "no type-0"),
            (bytes([0, 31]) + KEY[:31], "32 bytes"),
            (bytes([0, 32]) + KEY + bytes([0, 32]) + KEY, "more than one"),
            (bytes([0, 32]) + KEY + bytes([2, 1, 0]), "unknown record type 2"),
            (bytes([0, 32]) + KEY + bytes([1, 9]) + b"wss", "truncated"),
            (bytes([0, 32]) + KEY + bytes([1]), "no length"),
            (bytes([0, 32]) + KEY + bytes([1, 2]) + b"\xff\xfe", "UTF-8"),
        ],
    )
    def test_malformed_records(self, data, match):
        with pytest.raises(Nip19Error, match=match):
            decode_nprofile(_raw_entity("nprofile", data))

    def test_wrong_prefix(self):
        with pytest.raises(Nip19Error, match="nevent1"):
            decode_nevent(NPROFILE)

    def test_bad_checksum(self):
        with pytest.raises(Nip19Error, match="checksum"):
            decode_nevent(NEVENT[:-1] + "q")

    def test_relay_too_long(self):
        with pytest.raises(Nip19Error, match="255 bytes"):
            encode_nprofile(NPUB_HEX, ["wss://" + "a" * 250])

    def test_relays_given_as_string(self):
        with pytest.raises(Nip19Error, match="not a string"):
            encode_nevent(NEVENT_ID, "wss://relay.example")

    def test_non_string_relay(self):
        with pytest.raises(Nip19Error, match="must be a string"):
            encode_nprofile(NPUB_HEX, [42])

    def test_bad_key(self):
        with pytest.raises(Nip19Error):
            encode_nprofile("ab" * 31)
