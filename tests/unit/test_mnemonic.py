"""Property-based and unit tests for BIP-39 mnemonics."""

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from nostr_core.errors import ChecksumError
from nostr_core.mnemonic import (
    ENTROPY_STRENGTHS,
    generate_mnemonic,
    mnemonic_from_entropy,
    mnemonic_to_entropy,
    mnemonic_to_seed,
    parse_mnemonic,
)
from nostr_core.models import Mnemonic

PHRASE = (
    "mule south voice warrior garage broken body dolphin rent pool liar father "
    "cost fire prosper scale aspect rack bomb essay ancient vault zero cherry"
)
ZERO_PHRASE = " ".join(["abandon"] * 11 + ["about"])
ZERO_SEED_TREZOR = (
    "c55257c360c07c72029aebc1b53c05ed0362ada38ead3e3e9efa3708e53495531"
    "f09a6987599d18264c1e1c92f2cf141630c7a3c4ab7c81b2f001698e7463b04"
)

# === Strategies ===


@st.composite
def entropies(draw):
    """Generate entropy of every supported strength."""
    size = draw(st.sampled_from(ENTROPY_STRENGTHS)) // 8
    return draw(st.binary(min_size=size, max_size=size))


class TestGenerateMnemonic:
    """Fresh mnemonics."""

    @pytest.mark.parametrize("bits,words", [(128, 12), (160, 15), (192, 18), (224, 21), (256, 24)])
    def test_word_count(self, bits, words):
        mnemonic = generate_mnemonic(bits)
        assert len(mnemonic.words) == words
        assert len(mnemonic_to_entropy(mnemonic)) == bits // 8

    def test_default_is_twelve_words(self):
        assert len(generate_mnemonic().words) == 12

    def test_unsupported_strength(self):
        with pytest.raises(ValueError, match="entropy_bits"):
            generate_mnemonic(100)


class TestEntropyRoundTrip:
    """Entropy to words and back."""

    @given(entropies())
    def test_round_trip(self, entropy):
        assert mnemonic_to_entropy(mnemonic_from_entropy(entropy)) == entropy

    def test_zero_entropy_phrase(self):
        assert mnemonic_from_entropy(bytes(16)).phrase == ZERO_PHRASE

    def test_bad_entropy_length(self):
        with pytest.raises(ValueError):
            mnemonic_from_entropy(bytes(15))


class TestParseMnemonic:
    """Normalization and checksum validation."""

    def test_known_phrase(self):
        mnemonic = parse_mnemonic(PHRASE)
        assert isinstance(mnemonic, Mnemonic)
        assert len(mnemonic.words) == 24
        assert str(mnemonic) == PHRASE

    def test_whitespace_and_case_normalized(self):
        messy = "  " + PHRASE.upper().replace(" ", " \t ") + "\n"
        assert parse_mnemonic(messy).phrase == PHRASE

    def test_checksum_mismatch(self):
        with pytest.raises(ChecksumError):
            parse_mnemonic(" ".join(["abandon"] * 12))

    def test_unknown_word(self):
        with pytest.raises(ChecksumError):
            parse_mnemonic(ZERO_PHRASE.replace("about", "notaword"))

    def test_wrong_word_count(self):
        with pytest.raises(ChecksumError):
            parse_mnemonic(" ".join(["abandon"] * 11))

    def test_non_string(self):
        with pytest.raises(ChecksumError):
            parse_mnemonic(12)


class TestMnemonicToSeed:
    """PBKDF2 seed stretching."""

    def test_reference_vector_with_passphrase(self):
        assert mnemonic_to_seed(ZERO_PHRASE, "TREZOR").hex() == ZERO_SEED_TREZOR

    def test_seed_is_64_bytes(self):
        assert len(mnemonic_to_seed(PHRASE)) == 64

    def test_passphrase_changes_seed(self):
        assert mnemonic_to_seed(PHRASE) != mnemonic_to_seed(PHRASE, "extra")

    @settings(max_examples=10)
    @given(entropies())
    def test_stable_across_calls(self, entropy):
        mnemonic = mnemonic_from_entropy(entropy)
        assert mnemonic_to_seed(mnemonic) == mnemonic_to_seed(mnemonic.phrase)

    def test_invalid_checksum_rejected(self):
        with pytest.raises(ChecksumError):
            mnemonic_to_seed(" ".join(["abandon"] * 12))
