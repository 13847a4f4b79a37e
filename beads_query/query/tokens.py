"""Token types produced by the query lexer."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class TokenType(Enum):
    """All token types of the query language.

    The value of each member is the description used in error messages.
    """

    # Literals
    IDENTIFIER = "identifier"
    STRING = "string"
    NUMBER = "number"

    # Operators
    COLON = "':'"
    COMMA = "','"
    DOT_DOT = "'..'"
    STAR = "'*'"

    # Grouping
    LEFT_PAREN = "'('"
    RIGHT_PAREN = "')'"
    LEFT_BRACE = "'{'"
    RIGHT_BRACE = "'}'"

    # Keywords
    AND = "'and'"
    OR = "'or'"
    NOT = "'not'"
    SORT_BY = "'sort by'"
    ASC = "'asc'"
    DESC = "'desc'"

    # Special
    EOF = "end of input"
    ERROR = "error"

    def __str__(self) -> str:
        return self.value


# Single-word keywords, matched case-insensitively. "sort by" is handled
# separately because it spans two words.
KEYWORDS: dict[str, TokenType] = {
    "and": TokenType.AND,
    "or": TokenType.OR,
    "not": TokenType.NOT,
    "asc": TokenType.ASC,
    "desc": TokenType.DESC,
}


@dataclass(frozen=True)
class Token:
    """A single lexical unit of a query.

    Example for ``status:open AND priority:0``::

        Token(IDENTIFIER, "status", 0)
        Token(COLON, ":", 6)
        Token(IDENTIFIER, "open", 7)
        Token(AND, "AND", 12)
        Token(IDENTIFIER, "priority", 16)
        Token(COLON, ":", 24)
        Token(NUMBER, "0", 25, literal=0)
        Token(EOF, "", 26)

    Attributes:
        type: The token type.
        lexeme: Raw source text of the token.
        position: 0-indexed character offset of the first character.
        literal: Decoded value for STRING (str) and NUMBER (int) tokens,
            the error message for ERROR tokens, otherwise None.
    """

    type: TokenType
    lexeme: str
    position: int
    literal: Any = None
