"""Parse lexer tokens into a Query AST.

The grammar lives in ``grammar.lark`` and is parsed LALR(1) by lark. The
lexer in :mod:`beads_query.query.lexer` stays in charge of scanning: its
tokens are fed to lark through :class:`_TokenStream`, so every error
keeps the character position of the token that caused it.

AST nodes are built by :class:`_QueryTransformer` while lark reduces,
which means field and value errors surface in source order, interleaved
with syntax errors.
"""

from __future__ import annotations

import functools
import logging
from collections.abc import Iterator
from dataclasses import dataclass
from importlib import resources
from typing import Any

from lark import Lark, Transformer, UnexpectedInput, UnexpectedToken
from lark import Token as LarkToken
from lark.lexer import Lexer as LarkLexer

from beads_query.exceptions import QueryError, QueryParseError, UnknownFieldError, ValueCoercionError
from beads_query.query.ast_nodes import (
    AndNode,
    ContainsNode,
    EqualsNode,
    HasNode,
    InNode,
    NotNode,
    OrNode,
    Query,
    QueryNode,
    RangeNode,
    SortDirection,
    SortDirective,
)
from beads_query.query.dates import parse_timestamp_literal
from beads_query.query.fields import FieldType, QueryField
from beads_query.query.result import Err, Ok, Result
from beads_query.query.tokens import Token, TokenType
from beads_query.query.values import (
    NULL,
    IntValue,
    QueryValue,
    RelativeDate,
    RelativeDateSpec,
    StringValue,
    coerce_to_field_type,
)

logger = logging.getLogger(__name__)

MAX_SUGGESTIONS = 3

# Deepest allowed stack of open groups and NOT prefixes.
MAX_NESTING_DEPTH = 64

# Identifier values meaning "no value".
_NULL_WORDS = frozenset({"null", "none"})

# Grammar terminal for each token type that differs from the type's name.
# Punctuation and keywords are "_" terminals so lark drops them from the tree.
_TERMINALS: dict[TokenType, str] = {
    TokenType.COLON: "_COLON",
    TokenType.COMMA: "_COMMA",
    TokenType.DOT_DOT: "_DOT_DOT",
    TokenType.LEFT_PAREN: "_LPAREN",
    TokenType.RIGHT_PAREN: "_RPAREN",
    TokenType.AND: "_AND",
    TokenType.OR: "_OR",
    TokenType.NOT: "_NOT",
    TokenType.SORT_BY: "_SORT_BY",
    TokenType.EOF: "_EOF",
}


def _load_grammar() -> str:
    """Load the Lark grammar from the package resources."""
    return resources.files("beads_query.query").joinpath("grammar.lark").read_text()


class _TokenStream(LarkLexer):
    """Hand our own tokens to lark.

    Each lark token carries the original :class:`Token` as its value.
    """

    def __init__(self, lexer_conf: Any) -> None:
        pass

    def lex(self, data: list[Token]) -> Iterator[LarkToken]:
        for token in data:
            yield LarkToken(
                _TERMINALS.get(token.type, token.type.name), token, start_pos=token.position
            )


@dataclass(frozen=True)
class _ValueExpr:
    """Right-hand side of ``field:...`` before coercion."""

    kind: str
    tokens: tuple[Token, ...]
    star: Token | None = None


def _text_of(token: Token) -> str:
    if token.type is TokenType.STRING:
        return token.literal
    return token.lexeme


def _resolve_field(token: Token) -> QueryField:
    field = QueryField.from_string(token.lexeme)
    if field is None:
        suggestions = QueryField.get_suggestions(token.lexeme, MAX_SUGGESTIONS)
        raise UnknownFieldError(token.lexeme, suggestions, token.position)
    return field


def _literal(token: Token, field: QueryField) -> QueryValue:
    if token.type is TokenType.NUMBER:
        return IntValue(token.literal)

    text = _text_of(token)
    if field.field_type.is_timestamp:
        timestamp = parse_timestamp_literal(text)
        if timestamp is not None:
            return timestamp

    if token.type is TokenType.STRING:
        return StringValue(text)

    lowered = text.lower()
    if lowered in _NULL_WORDS:
        return NULL
    if lowered == "unassigned" and field.field_type is FieldType.STRING_NULLABLE:
        return NULL
    spec = RelativeDateSpec.from_string(lowered)
    if spec is not None:
        return RelativeDate(spec)
    return StringValue(text)


def _coerce(token: Token, field: QueryField) -> QueryValue:
    result = coerce_to_field_type(_literal(token, field), field)
    if result.is_err():
        error = result.error
        reason = error.reason if isinstance(error, ValueCoercionError) else str(error)
        raise ValueCoercionError(field.field_name, token.lexeme, reason, token.position)
    return result.value


class _QueryTransformer(Transformer):
    """Build AST nodes from lark reductions.

    Terminal children are lark tokens wrapping our :class:`Token`.
    """

    def start(self, items: list[Any]) -> Query:
        node: QueryNode | None = None
        sort: tuple[SortDirective, ...] = ()
        for item in items:
            if isinstance(item, tuple):
                sort = item
            else:
                node = item
        return Query(filter=node, sort=sort)

    def or_expr(self, items: list[QueryNode]) -> QueryNode:
        return functools.reduce(OrNode, items)

    def and_expr(self, items: list[QueryNode]) -> QueryNode:
        return functools.reduce(AndNode, items)

    def negation(self, items: list[QueryNode]) -> QueryNode:
        return NotNode(items[0])

    def text(self, items: list[LarkToken]) -> QueryNode:
        return ContainsNode(field=None, value=_text_of(items[0].value))

    def field(self, items: list[LarkToken]) -> QueryField:
        return _resolve_field(items[0].value)

    def value(self, items: list[LarkToken]) -> Token:
        return items[0].value

    def single_value(self, items: list[Token]) -> _ValueExpr:
        return _ValueExpr("single", tuple(items))

    def range_value(self, items: list[Token]) -> _ValueExpr:
        return _ValueExpr("range", tuple(items))

    def list_value(self, items: list[Token]) -> _ValueExpr:
        return _ValueExpr("list", tuple(items))

    def wildcard_value(self, items: list[Any]) -> _ValueExpr:
        stars = [item.value for item in items if isinstance(item, LarkToken)]
        values = tuple(item for item in items if isinstance(item, Token))
        return _ValueExpr("wildcard", values, star=stars[0])

    def comparison(self, items: list[Any]) -> QueryNode:
        field: QueryField = items[0]
        expr: _ValueExpr = items[1]

        if expr.kind == "wildcard":
            # ``field:*text*``, ``field:*text`` or ``field:text*``
            if not field.field_type.is_text:
                raise QueryParseError(
                    f"Wildcard search is only supported for text fields, not '{field.field_name}'",
                    expr.star.position,
                )
            return ContainsNode(field=field, value=_text_of(expr.tokens[0]))

        values = tuple(_coerce(token, field) for token in expr.tokens)
        if expr.kind == "range":
            return RangeNode(field, values[0], values[1])
        if expr.kind == "list":
            return InNode(field, values)
        if field.field_type is FieldType.STRING_LIST:
            return HasNode(field, values[0])
        return EqualsNode(field, values[0])

    def sort_clause(self, items: list[SortDirective]) -> tuple[SortDirective, ...]:
        return tuple(items)

    def sort_key(self, items: list[Any]) -> SortDirective:
        direction = items[1] if len(items) > 1 else SortDirection.ASC
        return SortDirective(items[0], direction)

    def direction(self, items: list[LarkToken]) -> SortDirection:
        if items[0].value.type is TokenType.DESC:
            return SortDirection.DESC
        return SortDirection.ASC


_GRAMMAR_TEXT = _load_grammar()

_parser = Lark(
    _GRAMMAR_TEXT,
    parser="lalr",
    lexer=_TokenStream,
    transformer=_QueryTransformer(),
)


# ---------------------------------------------------------------------------
# Error reporting
# ---------------------------------------------------------------------------


def _describe(token: Token) -> str:
    if token.type is TokenType.EOF:
        return "end of input"
    return f"'{token.lexeme}'"


def _unclosed_group(tokens: list[Token]) -> Token | None:
    """Innermost ``(`` in ``tokens`` without a matching ``)``."""
    opened: list[Token] = []
    for token in tokens:
        if token.type is TokenType.LEFT_PAREN:
            opened.append(token)
        elif token.type is TokenType.RIGHT_PAREN and opened:
            opened.pop()
    return opened[-1] if opened else None


def _syntax_error(tokens: list[Token], index: int, expected: set[str]) -> QueryParseError:
    """Describe why ``tokens[index]`` cannot continue the query."""
    token = tokens[index]
    prev = tokens[index - 1] if index > 0 else None
    unexpected = QueryParseError(
        f"Unexpected token '{token.lexeme}' at position {token.position}", token.position
    )

    if any(t.type is TokenType.SORT_BY for t in tokens[:index]):
        if prev is not None and prev.type is TokenType.SORT_BY:
            return QueryParseError(
                f"Expected ':' after 'sort by', got {_describe(token)}", token.position
            )
        if prev is not None and prev.type in (TokenType.COLON, TokenType.COMMA):
            return QueryParseError(
                f"Expected field name at position {token.position}, got {_describe(token)}",
                token.position,
            )
        return unexpected

    # ``asc``/``desc`` not followed by ':' was never a field
    if prev is not None and prev.type in (TokenType.ASC, TokenType.DESC) and expected == {"_COLON"}:
        return _syntax_error(tokens, index - 1, set())

    after_star = (
        prev is not None
        and prev.type is TokenType.STAR
        and index >= 2
        and tokens[index - 2].type is TokenType.COLON
    )
    if prev is not None and (
        prev.type in (TokenType.COLON, TokenType.DOT_DOT, TokenType.COMMA) or after_star
    ):
        return QueryParseError(
            f"Expected value after '{prev.lexeme}' at position {prev.position}, "
            f"got {_describe(token)}",
            token.position,
        )

    if prev is None or prev.type in (
        TokenType.AND,
        TokenType.OR,
        TokenType.NOT,
        TokenType.LEFT_PAREN,
    ):
        return QueryParseError(
            f"Expected expression at position {token.position}, got {_describe(token)}",
            token.position,
        )

    group = _unclosed_group(tokens[:index])
    if group is not None:
        return QueryParseError(
            f"Missing ')' to close group opened at position {group.position}, "
            f"got {_describe(token)}",
            token.position,
        )

    return unexpected


def _nesting_error(tokens: list[Token]) -> QueryParseError | None:
    """Reject queries whose groups and NOT prefixes nest too deeply."""
    groups: list[int] = []
    depth = 0
    nots = 0
    for token in tokens:
        if token.type is TokenType.NOT:
            nots += 1
        elif token.type is TokenType.LEFT_PAREN:
            groups.append(nots + 1)
            depth += nots + 1
            nots = 0
        else:
            if token.type is TokenType.RIGHT_PAREN and groups:
                depth -= groups.pop()
            nots = 0
        if depth + nots > MAX_NESTING_DEPTH:
            return QueryParseError(
                f"Query nested too deeply (more than {MAX_NESTING_DEPTH} levels) "
                f"at position {token.position}",
                token.position,
            )
    return None


def _parse_error(tokens: list[Token], error: UnexpectedInput) -> QueryParseError:
    index = len(tokens) - 1
    expected: set[str] = set()
    if isinstance(error, UnexpectedToken):
        expected = set(error.expected)
        offending = error.token.value
        for i, token in enumerate(tokens):
            if token is offending:
                index = i
                break
    return _syntax_error(tokens, index, expected)


def parse(tokens: list[Token]) -> Result[Query]:
    """Parse a token list into a Query.

    The parser does not recover from errors: the first error aborts
    parsing and is returned as ``Err``.

    Args:
        tokens: Tokens from :func:`beads_query.query.lexer.tokenize`.

    Returns:
        ``Ok`` with the parsed Query, or ``Err`` with the first
        QueryParseError (unknown field, bad value, missing value, unclosed
        group, unexpected token or too deep nesting).
    """
    if not tokens or tokens[-1].type is not TokenType.EOF:
        end = tokens[-1].position + len(tokens[-1].lexeme) if tokens else 0
        tokens = [*tokens, Token(TokenType.EOF, "", end)]

    try:
        for token in tokens:
            if token.type is TokenType.ERROR:
                raise QueryParseError(token.literal or "Invalid token", token.position)

        if len(tokens) == 1:
            return Ok(Query.EMPTY)

        nesting = _nesting_error(tokens)
        if nesting is not None:
            raise nesting

        try:
            query = _parser.parse(tokens)
        except UnexpectedInput as e:
            raise _parse_error(tokens, e) from None
    except QueryError as e:
        logger.debug("Parse error at %s: %s", e.position, e.message)
        return Err(e)

    logger.debug(
        "Parsed query: filter=%s, sort=%d directives",
        query.filter is not None,
        len(query.sort),
    )
    return Ok(query)
