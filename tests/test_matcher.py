"""Tests for glob matching of resource IDs."""

import pytest

from oncall.catalog.matcher import matches


class TestWildcardPatterns:
    def test_prefix_pattern_matches(self) -> None:
        assert matches("ord-*", "ord-1234")

    def test_wildcard_matches_empty_suffix(self) -> None:
        assert matches("ord-*", "ord-")

    def test_anchored_at_start(self) -> None:
        assert not matches("ord-*", "xord-1234")

    def test_anchored_at_end(self) -> None:
        assert not matches("*-1234", "ord-1234x")

    def test_prefix_must_be_complete(self) -> None:
        assert not matches("ord-*", "ord1234")
        assert not matches("ord-*", "or")

    def test_star_alone_matches_anything(self) -> None:
        assert matches("*", "")
        assert matches("*", "anything-at-all")

    def test_wildcard_in_the_middle(self) -> None:
        assert matches("res-*-prod", "res-42-prod")
        assert not matches("res-*-prod", "res-42-staging")

    def test_multiple_wildcards(self) -> None:
        assert matches("*-eu-*", "cluster-eu-west")
        assert not matches("*-eu-*", "cluster-us-west")

    def test_wildcard_spans_newlines(self) -> None:
        assert matches("a*b", "a\nb")


class TestLiteralPatterns:
    @pytest.mark.parametrize(
        ("pattern", "resource_id", "expected"),
        [
            ("ord-1234", "ord-1234", True),
            ("ord-1234", "ord-12345", False),
            ("ord-1234", "ORD-1234", False),
            ("", "", True),
            ("", "x", False),
        ],
    )
    def test_literal_matches_only_itself(self, pattern: str, resource_id: str, expected: bool) -> None:
        assert matches(pattern, resource_id) is expected

    def test_regex_metacharacters_are_literal(self) -> None:
        assert matches("v1.0-*", "v1.0-abc")
        assert not matches("v1.0-*", "v1x0-abc")
        assert matches("a+b", "a+b")
        assert not matches("a+b", "aab")
        assert matches("[x]", "[x]")
        assert not matches("[x]", "x")

    def test_question_mark_is_not_a_wildcard(self) -> None:
        assert not matches("ord-?", "ord-1")
        assert matches("ord-?", "ord-?")
