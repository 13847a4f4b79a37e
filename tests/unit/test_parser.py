"""Unit tests for the query parser."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from beads_query.exceptions import (
    LexError,
    QueryParseError,
    UnknownFieldError,
    ValueCoercionError,
)
from beads_query.query import (
    NULL,
    AndNode,
    ContainsNode,
    EqualsNode,
    HasNode,
    InNode,
    IntValue,
    Lexer,
    NotNode,
    OrNode,
    Query,
    QueryField,
    RangeNode,
    RelativeDate,
    RelativeDateSpec,
    SortDirection,
    SortDirective,
    StringValue,
    TimestampValue,
    parse,
    parse_query,
    tokenize,
)


def _filter(text: str):
    return parse_query(text).filter


def _text(value: str) -> ContainsNode:
    return ContainsNode(field=None, value=value)


def _parse_error(text: str) -> QueryParseError:
    result = parse(tokenize(text).unwrap())
    assert result.is_err()
    return result.error


# ---------------------------------------------------------------------------
# Empty and bare terms
# ---------------------------------------------------------------------------


class TestEmptyQuery:
    def test_empty_string(self) -> None:
        query = parse_query("")
        assert query == Query.EMPTY
        assert query.filter is None
        assert query.sort == ()
        assert query.matches_all()

    def test_whitespace(self) -> None:
        assert parse_query("   ") == Query.EMPTY

    def test_parse_returns_ok(self) -> None:
        result = parse(tokenize("status:open").unwrap())
        assert result.is_ok()

    def test_parse_without_eof_token(self) -> None:
        tokens = tokenize("login").unwrap()[:-1]
        assert parse(tokens).unwrap().filter == _text("login")


class TestTextTerms:
    def test_bare_word(self) -> None:
        assert _filter("login") == _text("login")

    def test_quoted_phrase(self) -> None:
        assert _filter('"two words"') == _text("two words")

    def test_number_is_text(self) -> None:
        assert _filter("404") == _text("404")

    def test_adjacent_words_are_anded(self) -> None:
        assert _filter("login crash") == AndNode(_text("login"), _text("crash"))

    def test_keyword_in_quotes_is_text(self) -> None:
        assert _filter('"and"') == _text("and")


# ---------------------------------------------------------------------------
# Field comparisons
# ---------------------------------------------------------------------------


class TestComparisons:
    def test_equals_string(self) -> None:
        assert _filter("status:open") == EqualsNode(QueryField.STATUS, StringValue("open"))

    def test_equals_integer(self) -> None:
        assert _filter("priority:1") == EqualsNode(QueryField.PRIORITY, IntValue(1))

    def test_alias(self) -> None:
        assert _filter("pri:1") == _filter("priority:1")

    def test_quoted_number_coerced_to_integer(self) -> None:
        assert _filter('pri:"2"') == EqualsNode(QueryField.PRIORITY, IntValue(2))

    def test_integer_on_text_field_is_string(self) -> None:
        assert _filter("title:42") == EqualsNode(QueryField.TITLE, StringValue("42"))

    @pytest.mark.parametrize("text", ["status:OPEN", "status:open", "status:Open", "STATUS:open"])
    def test_case_insensitive(self, text: str) -> None:
        assert _filter(text) == EqualsNode(QueryField.STATUS, StringValue("open"))

    def test_in_list(self) -> None:
        assert _filter("status:open,in_progress") == InNode(
            QueryField.STATUS, (StringValue("open"), StringValue("in_progress"))
        )

    def test_range(self) -> None:
        assert _filter("priority:0..2") == RangeNode(QueryField.PRIORITY, IntValue(0), IntValue(2))

    def test_negative_range_bound(self) -> None:
        assert _filter("estimated:-5..5") == RangeNode(
            QueryField.ESTIMATED_MINUTES, IntValue(-5), IntValue(5)
        )

    def test_list_field_single_value_is_has(self) -> None:
        assert _filter("label:frontend") == HasNode(QueryField.LABELS, StringValue("frontend"))

    def test_list_field_multiple_values_is_in(self) -> None:
        assert _filter("tags:a,b") == InNode(QueryField.LABELS, (StringValue("a"), StringValue("b")))

    def test_desc_keyword_as_field_alias(self) -> None:
        assert _filter("desc:oauth") == EqualsNode(QueryField.DESCRIPTION, StringValue("oauth"))

    def test_desc_alias_after_implicit_and(self) -> None:
        assert _filter("login desc:oauth") == AndNode(
            _text("login"), EqualsNode(QueryField.DESCRIPTION, StringValue("oauth"))
        )

    def test_keyword_as_value(self) -> None:
        assert _filter("title:desc") == EqualsNode(QueryField.TITLE, StringValue("desc"))


class TestSpecialValues:
    @pytest.mark.parametrize("text", ["assignee:null", "assignee:NONE", "assignee:unassigned"])
    def test_null(self, text: str) -> None:
        assert _filter(text) == EqualsNode(QueryField.ASSIGNEE, NULL)

    def test_unassigned_is_plain_text_on_non_nullable_field(self) -> None:
        assert _filter("title:unassigned") == EqualsNode(QueryField.TITLE, StringValue("unassigned"))

    def test_quoted_null_is_a_string(self) -> None:
        assert _filter('assignee:"null"') == EqualsNode(QueryField.ASSIGNEE, StringValue("null"))

    def test_null_on_list_field(self) -> None:
        assert _filter("label:none") == HasNode(QueryField.LABELS, NULL)

    @pytest.mark.parametrize(
        ("text", "spec"),
        [
            ("created:today", RelativeDateSpec.TODAY),
            ("updated:this_week", RelativeDateSpec.THIS_WEEK),
            ("due:Next-Month", RelativeDateSpec.NEXT_MONTH),
        ],
    )
    def test_relative_dates(self, text: str, spec: RelativeDateSpec) -> None:
        node = _filter(text)
        assert isinstance(node, EqualsNode)
        assert node.value == RelativeDate(spec)

    def test_date_literal(self) -> None:
        assert _filter("created:2024-01-31") == EqualsNode(
            QueryField.CREATED_AT,
            TimestampValue(datetime(2024, 1, 31, tzinfo=UTC), date_only=True),
        )

    def test_quoted_datetime_literal(self) -> None:
        node = _filter('updated:"2024-01-31T10:00:00Z"')
        assert node == EqualsNode(
            QueryField.UPDATED_AT, TimestampValue(datetime(2024, 1, 31, 10, tzinfo=UTC))
        )

    def test_date_range(self) -> None:
        node = _filter("created:2024-01-01..this-month")
        assert isinstance(node, RangeNode)
        assert node.min == TimestampValue(datetime(2024, 1, 1, tzinfo=UTC), date_only=True)
        assert node.max == RelativeDate(RelativeDateSpec.THIS_MONTH)


class TestWildcards:
    @pytest.mark.parametrize("text", ["title:*crash*", "title:*crash", "title:crash*"])
    def test_field_contains(self, text: str) -> None:
        assert _filter(text) == ContainsNode(field=QueryField.TITLE, value="crash")

    def test_quoted_wildcard_value(self) -> None:
        assert _filter('notes:*"two words"*') == ContainsNode(QueryField.NOTES, "two words")

    def test_non_text_field_rejected(self) -> None:
        error = _parse_error("priority:*1*")
        assert "only supported for text fields" in str(error)
        assert "'priority'" in str(error)
        assert error.position == 9

    def test_star_without_value(self) -> None:
        error = _parse_error("title:*")
        assert "Expected value after '*'" in str(error)

    @pytest.mark.parametrize("word", ["null", "none", "NULL"])
    def test_null_words_are_plain_text(self, word: str) -> None:
        assert _filter(f"title:{word}*") == ContainsNode(QueryField.TITLE, word)
        assert _filter(f"title:*{word}") == ContainsNode(QueryField.TITLE, word)

    def test_unassigned_is_plain_text(self) -> None:
        assert _filter("assignee:unassigned*") == ContainsNode(QueryField.ASSIGNEE, "unassigned")

    def test_relative_date_word_is_plain_text(self) -> None:
        assert _filter("notes:today*") == ContainsNode(QueryField.NOTES, "today")

    def test_number_keeps_its_spelling(self) -> None:
        assert _filter("title:007*") == ContainsNode(QueryField.TITLE, "007")


# ---------------------------------------------------------------------------
# Boolean structure
# ---------------------------------------------------------------------------


class TestPrecedence:
    def test_not_binds_tighter_than_and(self) -> None:
        assert _filter("NOT a AND b") == AndNode(NotNode(_text("a")), _text("b"))

    def test_and_binds_tighter_than_or(self) -> None:
        assert _filter("a AND b OR c") == OrNode(AndNode(_text("a"), _text("b")), _text("c"))

    def test_implicit_and_binds_tighter_than_or(self) -> None:
        assert _filter("a or b c") == OrNode(_text("a"), AndNode(_text("b"), _text("c")))

    def test_parentheses_override(self) -> None:
        assert _filter("a AND (b OR c)") == AndNode(_text("a"), OrNode(_text("b"), _text("c")))
        assert _filter("NOT (a AND b)") == NotNode(AndNode(_text("a"), _text("b")))

    def test_left_associative(self) -> None:
        assert _filter("a or b or c") == OrNode(OrNode(_text("a"), _text("b")), _text("c"))

    def test_repeated_not(self) -> None:
        assert _filter("not not a") == NotNode(NotNode(_text("a")))

    def test_keywords_case_insensitive(self) -> None:
        assert _filter("a or b") == _filter("a OR b")

    def test_scenario(self) -> None:
        node = _filter("(status:open OR status:in_progress) AND priority:0..1")
        assert node == AndNode(
            OrNode(
                EqualsNode(QueryField.STATUS, StringValue("open")),
                EqualsNode(QueryField.STATUS, StringValue("in_progress")),
            ),
            RangeNode(QueryField.PRIORITY, IntValue(0), IntValue(1)),
        )


class TestSortClause:
    def test_sort_only(self) -> None:
        query = parse_query("sort by: priority")
        assert query.filter is None
        assert query.sort == (SortDirective(QueryField.PRIORITY, SortDirection.ASC),)
        assert query.has_sort()
        assert not query.has_filter()

    def test_filter_and_multiple_keys(self) -> None:
        query = parse_query("status:open sort by: priority asc, updated desc")
        assert query.filter == EqualsNode(QueryField.STATUS, StringValue("open"))
        assert query.sort == (
            SortDirective(QueryField.PRIORITY, SortDirection.ASC),
            SortDirective(QueryField.UPDATED_AT, SortDirection.DESC),
        )

    def test_desc_alias_as_sort_field(self) -> None:
        query = parse_query("sort by: desc desc")
        assert query.sort == (SortDirective(QueryField.DESCRIPTION, SortDirection.DESC),)

    def test_sort_direction_from_string(self) -> None:
        assert SortDirection.from_string("Descending") is SortDirection.DESC
        assert SortDirection.from_string("asc") is SortDirection.ASC
        assert SortDirection.from_string("up") is None


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class TestErrors:
    def test_unknown_field_suggests(self) -> None:
        error = _parse_error("priorit:0")
        assert isinstance(error, UnknownFieldError)
        assert error.suggestions == ["priority"]
        assert "priority" in str(error)
        assert error.position == 0

    def test_unknown_field_without_suggestions(self) -> None:
        error = _parse_error("zzz:1")
        assert isinstance(error, UnknownFieldError)
        assert str(error) == "Unknown field 'zzz'."

    def test_unknown_sort_field(self) -> None:
        assert isinstance(_parse_error("sort by: colour"), UnknownFieldError)

    def test_missing_value(self) -> None:
        error = _parse_error("status:")
        assert str(error) == "Expected value after ':' at position 6, got end of input"
        assert error.position == 7

    def test_missing_range_end(self) -> None:
        error = _parse_error("priority:1..")
        assert "Expected value after '..'" in str(error)

    def test_unclosed_group(self) -> None:
        error = _parse_error("(a or b")
        assert str(error) == (
            "Missing ')' to close group opened at position 0, got end of input"
        )

    def test_unexpected_closing_paren(self) -> None:
        error = _parse_error("a )")
        assert str(error) == "Unexpected token ')' at position 2"
        assert error.position == 2

    def test_sort_by_without_colon(self) -> None:
        error = _parse_error("sort by priority")
        assert str(error) == "Expected ':' after 'sort by', got 'priority'"

    def test_sort_by_non_field(self) -> None:
        error = _parse_error("sort by: 5")
        assert str(error) == "Expected field name at position 9, got '5'"

    def test_sort_clause_must_be_last(self) -> None:
        error = _parse_error("status:open sort by: priority status:closed")
        assert str(error) == "Unexpected token 'status' at position 30"

    def test_dangling_operator(self) -> None:
        error = _parse_error("a or")
        assert str(error) == "Expected expression at position 4, got end of input"

    def test_leading_operator(self) -> None:
        error = _parse_error("and a")
        assert error.position == 0

    def test_value_coercion(self) -> None:
        error = _parse_error("priority:high")
        assert isinstance(error, ValueCoercionError)
        assert error.field == "priority"
        assert error.position == 9
        assert str(error).startswith("Cannot use value 'high' for field 'priority'")

    def test_string_on_timestamp_field(self) -> None:
        error = _parse_error("created:soon")
        assert isinstance(error, ValueCoercionError)
        assert "timestamp" in str(error)

    def test_first_error_wins(self) -> None:
        error = _parse_error("priorit:0 zzz:1")
        assert isinstance(error, UnknownFieldError)
        assert error.name == "priorit"

    def test_error_tokens_fail_parse(self) -> None:
        result = parse(Lexer("a & b").scan())
        assert result.is_err()
        assert result.error.position == 2

    def test_parse_query_raises_lex_error(self) -> None:
        with pytest.raises(LexError):
            parse_query('title:"open')

    def test_parse_query_raises_parse_error(self) -> None:
        with pytest.raises(UnknownFieldError):
            parse_query("priorit:0")

    def test_sort_clause_inside_group(self) -> None:
        error = _parse_error("(a sort by: id")
        assert "Missing ')' to close group opened at position 0" in str(error)
        assert error.position == 3

    def test_desc_without_colon(self) -> None:
        error = _parse_error("login desc")
        assert str(error) == "Unexpected token 'desc' at position 6"

    def test_lone_keyword_field(self) -> None:
        error = _parse_error("asc")
        assert str(error) == "Expected expression at position 0, got 'asc'"

    def test_bad_list_value_position(self) -> None:
        error = _parse_error("priority:1,high,2")
        assert isinstance(error, ValueCoercionError)
        assert error.position == 11


class TestNesting:
    def test_deep_not_chain(self) -> None:
        result = parse(tokenize("NOT " * 3000 + "t").unwrap())
        assert result.is_err()
        assert "nested too deeply" in str(result.error)

    def test_deep_groups(self) -> None:
        error = _parse_error("(" * 3000 + "t" + ")" * 3000)
        assert "nested too deeply" in str(error)
        assert error.position == 64

    def test_moderate_nesting_is_fine(self) -> None:
        text = "(" * 20 + "not " * 20 + "t" + ")" * 20
        node = _filter(text)
        for _ in range(20):
            assert isinstance(node, NotNode)
            node = node.child
        assert node == _text("t")

    def test_sibling_groups_do_not_add_up(self) -> None:
        text = " ".join(["(not a)"] * 200)
        assert parse(tokenize(text).unwrap()).is_ok()

    def test_long_flat_chain(self) -> None:
        node = _filter(" ".join(["t"] * 3000))
        depth = 0
        while isinstance(node, AndNode):
            assert node.right == _text("t")
            node = node.left
            depth += 1
        assert depth == 2999
