"""Unit tests for rendering queries back to text."""

from __future__ import annotations

import pytest

from beads_query.query import (
    AndNode,
    ContainsNode,
    NotNode,
    OrNode,
    Query,
    format_query,
    parse_query,
)


def _text(value: str) -> ContainsNode:
    return ContainsNode(field=None, value=value)


class TestFormatting:
    def test_empty(self) -> None:
        assert format_query(Query.EMPTY) == ""

    def test_comparison(self) -> None:
        assert format_query(parse_query("pri:1")) == "priority:1"

    def test_canonical_field_names_and_keywords(self) -> None:
        assert format_query(parse_query("type:bug or tags:ui")) == "type:bug OR label:ui"

    def test_implicit_and_made_explicit(self) -> None:
        assert format_query(parse_query("a b")) == "a AND b"

    def test_or_under_and_is_parenthesized(self) -> None:
        assert format_query(parse_query("(a or b) c")) == "(a OR b) AND c"

    def test_not_over_group(self) -> None:
        assert format_query(parse_query("not (a b)")) == "NOT (a AND b)"

    def test_right_nested_and(self) -> None:
        query = Query(filter=AndNode(_text("a"), AndNode(_text("b"), _text("c"))))
        assert format_query(query) == "a AND (b AND c)"

    def test_quotes_when_needed(self) -> None:
        query = Query(filter=OrNode(_text("two words"), NotNode(_text("and"))))
        assert format_query(query) == '"two words" OR NOT "and"'

    def test_escapes_quotes(self) -> None:
        assert format_query(Query(filter=_text('say "hi"'))) == r'"say \"hi\""'

    def test_sort_clause(self) -> None:
        query = parse_query("status:open sort by: pri, updated_at desc")
        assert format_query(query) == "status:open sort by: priority asc, updated desc"

    def test_field_wildcard(self) -> None:
        assert format_query(parse_query("title:crash*")) == "title:*crash*"

    def test_long_chains(self) -> None:
        words = [f"w{n}" for n in range(3000)]
        assert format_query(parse_query(" ".join(words))) == " AND ".join(words)
        assert format_query(parse_query(" or ".join(words))) == " OR ".join(words)

    def test_left_nested_chain_keeps_groups(self) -> None:
        query = parse_query("(a or b) c (d or e) f")
        assert format_query(query) == "(a OR b) AND c AND (d OR e) AND f"


class TestRoundTrip:
    @pytest.mark.parametrize(
        "text",
        [
            "login",
            '"two words" 404',
            "status:open,in_progress priority:0..1",
            "not (label:frontend or label:7) assignee:null",
            'title:unassigned notes:"null" description:"today"',
            "created:2024-01-01..this-week due:tomorrow",
            'updated:"2024-01-31T10:00:00+00:00"',
            "estimated:-5..30 or repo:core",
            "title:*crash* desc:*oauth*",
            "a or b or (c d) or not not e",
            "sort by: priority, updated desc",
            '"sort" "by" x sort by: label desc',
        ],
    )
    def test_reparse_gives_equal_query(self, text: str) -> None:
        query = parse_query(text)
        assert parse_query(format_query(query)) == query
