"""Unit tests for subscription filter construction."""

import pytest
from hypothesis import given
from hypothesis import strategies as st

from nostr_core.filters import build_filter


class TestBuildFilter:
    """Key selection and ordering."""

    def test_empty(self):
        assert build_filter() == {}

    def test_all_keys_in_fixed_order(self):
        result = build_filter(
            limit=10,
            until=200,
            since=100,
            profiles=["pp"],
            events=["ee"],
            kinds=[1, 4],
            authors=["aa"],
            ids=["ii"],
        )
        assert list(result) == ["ids", "authors", "kinds", "#e", "#p", "since", "until", "limit"]
        assert result["#e"] == ["ee"]
        assert result["kinds"] == [1, 4]

    def test_empty_lists_omitted(self):
        assert build_filter(ids=[], authors=None, kinds=[0]) == {"kinds": [0]}

    def test_zero_bounds_kept(self):
        assert build_filter(since=0, limit=0) == {"since": 0, "limit": 0}

    def test_lists_copied(self):
        authors = ["aa"]
        result = build_filter(authors=authors)
        authors.append("bb")
        assert result["authors"] == ["aa"]

    @given(st.integers(min_value=0), st.integers(min_value=0))
    def test_since_until_order(self, since, until):
        if since > until:
            with pytest.raises(ValueError, match="since"):
                build_filter(since=since, until=until)
        else:
            assert build_filter(since=since, until=until) == {"since": since, "until": until}

    @pytest.mark.parametrize("name", ["since", "until", "limit"])
    def test_negative_rejected(self, name):
        with pytest.raises(ValueError, match=name):
            build_filter(**{name: -1})
