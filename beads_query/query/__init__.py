"""Query language: lexer, parser, AST and evaluator.

Typical use::

    query = parse_query("status:open label:frontend sort by: priority asc")
    issues = filter_records(issues, query)
"""

from beads_query.exceptions import QueryError
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
    QueryNodeVisitor,
    RangeNode,
    SortDirection,
    SortDirective,
)
from beads_query.query.evaluator import QueryEvaluator, filter_records
from beads_query.query.fields import TEXT_SEARCHABLE, FieldType, QueryField
from beads_query.query.formatter import format_query
from beads_query.query.lexer import Lexer, tokenize
from beads_query.query.parser import parse
from beads_query.query.result import Err, Ok, Result
from beads_query.query.tokens import Token, TokenType
from beads_query.query.values import (
    NULL,
    IntValue,
    NullValue,
    QueryValue,
    RelativeDate,
    RelativeDateSpec,
    StringValue,
    TimestampValue,
)


def parse_query(text: str) -> Query:
    """Tokenize and parse ``text`` in one step.

    Raises:
        QueryError: The first lexical or parse error (LexError,
            QueryParseError or one of its subclasses).
    """
    tokens = tokenize(text).unwrap()
    return parse(tokens).unwrap()


__all__ = [
    "NULL",
    "TEXT_SEARCHABLE",
    "AndNode",
    "ContainsNode",
    "EqualsNode",
    "Err",
    "FieldType",
    "HasNode",
    "InNode",
    "IntValue",
    "Lexer",
    "NotNode",
    "NullValue",
    "Ok",
    "OrNode",
    "Query",
    "QueryError",
    "QueryEvaluator",
    "QueryField",
    "QueryNode",
    "QueryNodeVisitor",
    "QueryValue",
    "RangeNode",
    "RelativeDate",
    "RelativeDateSpec",
    "Result",
    "SortDirection",
    "SortDirective",
    "StringValue",
    "TimestampValue",
    "Token",
    "TokenType",
    "filter_records",
    "format_query",
    "parse",
    "parse_query",
    "tokenize",
]
