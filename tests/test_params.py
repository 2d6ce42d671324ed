"""Tests for redirect parameter parsing and locations."""

import pytest

from authflow.core.oidc.utils import UrlLocation, parse_query_string


class TestParseQueryString:
    """Tests for parse_query_string."""

    def test_simple_pairs(self) -> None:
        assert parse_query_string("?a=1&b=2") == {"a": "1", "b": "2"}

    def test_drops_empty_values(self) -> None:
        """Test a key with an empty value is not stored."""
        assert parse_query_string("?a=&b=2") == {"b": "2"}

    def test_drops_segments_without_equals(self) -> None:
        assert parse_query_string("?noequals&b=2") == {"b": "2"}

    def test_value_keeps_embedded_equals(self) -> None:
        assert parse_query_string("?a=x=y") == {"a": "x=y"}

    @pytest.mark.parametrize("raw", ["#a=1", "a=1", "?a=1", "&a=1", "  ?a=1  "])
    def test_strips_one_leading_delimiter(self, raw: str) -> None:
        assert parse_query_string(raw) == {"a": "1"}

    def test_strips_only_first_delimiter(self) -> None:
        """Test a doubled delimiter leaves the second as part of the key."""
        assert parse_query_string("##a=1") == {"#a": "1"}
        assert parse_query_string("?&a=1") == {"a": "1"}

    def test_percent_decoding(self) -> None:
        result = parse_query_string("#redirect%5Furi=http%3A%2F%2Flocalhost%2Fapp&scope=openid%20email")
        assert result == {"redirect_uri": "http://localhost/app", "scope": "openid email"}

    def test_plus_is_not_a_space(self) -> None:
        assert parse_query_string("a=b+c") == {"a": "b+c"}

    def test_last_occurrence_wins(self) -> None:
        assert parse_query_string("a=1&a=2") == {"a": "2"}

    def test_empty_and_garbage_input(self) -> None:
        assert parse_query_string("") == {}
        assert parse_query_string("#") == {}
        assert parse_query_string("&&&") == {}
        assert parse_query_string("=") == {}

    def test_empty_key_is_kept(self) -> None:
        """Test only the value is required to be non-empty."""
        assert parse_query_string("=x") == {"": "x"}

    def test_fresh_result_per_call(self) -> None:
        first = parse_query_string("a=1")
        first["b"] = "2"
        assert parse_query_string("a=1") == {"a": "1"}


class TestUrlLocation:
    """Tests for UrlLocation."""

    def test_search_and_hash(self) -> None:
        location = UrlLocation("http://localhost:8080/app/?x=1#id_token=abc&state=xyz")
        assert location.search == "?x=1"
        assert location.hash == "#id_token=abc&state=xyz"

    def test_missing_parts_are_empty(self) -> None:
        location = UrlLocation("http://localhost:8080/app/")
        assert location.search == ""
        assert location.hash == ""

    def test_assign_navigates(self) -> None:
        location = UrlLocation("http://localhost:8080/")
        location.assign("https://idp.example.com/authorize?state=abc")
        assert location.href == "https://idp.example.com/authorize?state=abc"
        assert location.search == "?state=abc"
