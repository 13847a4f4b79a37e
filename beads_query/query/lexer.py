"""Lexical analysis of query strings."""

from __future__ import annotations

import logging

from beads_query.exceptions import LexError
from beads_query.query.result import Err, Ok, Result
from beads_query.query.tokens import KEYWORDS, Token, TokenType

logger = logging.getLogger(__name__)

_PUNCTUATION: dict[str, TokenType] = {
    ":": TokenType.COLON,
    ",": TokenType.COMMA,
    "*": TokenType.STAR,
    "(": TokenType.LEFT_PAREN,
    ")": TokenType.RIGHT_PAREN,
    "}": TokenType.RIGHT_BRACE,
}


def _is_word_char(c: str) -> bool:
    return c.isalnum() or c == "_" or c == "-"


def _is_number(text: str) -> bool:
    digits = text[1:] if text.startswith("-") else text
    return digits.isdigit() and digits.isascii()


class Lexer:
    """Convert a query string into a position-tagged token stream.

    Handles identifiers (``status``, ``merge-request``), quoted strings
    (``"two words"``), braced strings (``{two words}``), integers
    (``42``, ``-5``), the punctuation ``: , .. * ( ) }`` and the keywords
    ``and``, ``or``, ``not``, ``sort by``, ``asc`` and ``desc``.

    Unrecognized input becomes an ERROR token instead of an exception so
    that callers doing highlighting still get the whole stream.
    """

    def __init__(self, source: str) -> None:
        self.source = source
        self._start = 0
        self._current = 0
        self._tokens: list[Token] = []

    def scan(self) -> list[Token]:
        """Scan the whole input, including ERROR tokens, ending with EOF."""
        self._start = 0
        self._current = 0
        self._tokens = []
        while not self._at_end():
            self._start = self._current
            if not self._scan_token():
                break
        self._tokens.append(Token(TokenType.EOF, "", len(self.source)))
        return self._tokens

    def tokenize(self) -> Result[list[Token]]:
        """Scan the input and fail on the first ERROR token."""
        tokens = self.scan()
        for token in tokens:
            if token.type is TokenType.ERROR:
                logger.debug("Lexer error at %d: %s", token.position, token.literal)
                return Err(LexError(token.literal, token.position))
        logger.debug("Tokenized %r into %d tokens", self.source, len(tokens))
        return Ok(tokens)

    # ------------------------------------------------------------------

    def _scan_token(self) -> bool:
        """Scan one token. Returns False when scanning must stop."""
        c = self._advance()

        if c.isspace():
            return True
        if c in _PUNCTUATION:
            self._add(_PUNCTUATION[c])
            return True
        if c == '"':
            return self._quoted_string()
        if c == "{":
            return self._braced_string()
        if c == ".":
            if self._match("."):
                self._add(TokenType.DOT_DOT)
            else:
                self._error(f"Unexpected character '.' at position {self._start}")
            return True
        if c == "-":
            if self._peek().isdigit():
                self._word()
            else:
                self._error(f"Expected digit after '-' at position {self._start}")
            return True
        if _is_word_char(c):
            self._word()
            return True

        self._error(f"Unexpected character '{c}' at position {self._start}")
        return True

    def _word(self) -> None:
        while _is_word_char(self._peek()):
            self._advance()

        text = self.source[self._start : self._current]
        if _is_number(text):
            self._add(TokenType.NUMBER, int(text))
            return

        lowered = text.lower()
        if lowered == "sort" and self._match_following_word("by"):
            self._add(TokenType.SORT_BY)
            return
        self._add(KEYWORDS.get(lowered, TokenType.IDENTIFIER))

    def _quoted_string(self) -> bool:
        chars: list[str] = []
        while not self._at_end() and self._peek() != '"':
            c = self._advance()
            if c == "\\" and self._peek() in ('"', "\\"):
                c = self._advance()
            chars.append(c)

        if self._at_end():
            self._error(f"Unterminated string at position {self._start}")
            return False

        self._advance()
        self._add(TokenType.STRING, "".join(chars))
        return True

    def _braced_string(self) -> bool:
        value_start = self._current
        while not self._at_end() and self._peek() != "}":
            self._advance()

        if self._at_end():
            self._error(f"Unterminated braced string at position {self._start}")
            return False

        value = self.source[value_start : self._current]
        self._advance()
        self._add(TokenType.STRING, value)
        return True

    def _match_following_word(self, word: str) -> bool:
        """Consume whitespace and ``word`` if they follow; otherwise rewind."""
        saved = self._current
        while not self._at_end() and self._peek().isspace():
            self._advance()
        end = self._current + len(word)
        candidate = self.source[self._current : end]
        if candidate.lower() == word and (end >= len(self.source) or not _is_word_char(self.source[end])):
            self._current = end
            return True
        self._current = saved
        return False

    def _advance(self) -> str:
        c = self.source[self._current]
        self._current += 1
        return c

    def _peek(self) -> str:
        return "" if self._at_end() else self.source[self._current]

    def _match(self, expected: str) -> bool:
        if self._peek() != expected:
            return False
        self._current += 1
        return True

    def _at_end(self) -> bool:
        return self._current >= len(self.source)

    def _add(self, type_: TokenType, literal: object = None) -> None:
        lexeme = self.source[self._start : self._current]
        self._tokens.append(Token(type_, lexeme, self._start, literal))

    def _error(self, message: str) -> None:
        lexeme = self.source[self._start : self._current]
        self._tokens.append(Token(TokenType.ERROR, lexeme, self._start, message))


def tokenize(text: str) -> Result[list[Token]]:
    """Tokenize a query string.

    Args:
        text: The raw query text.

    Returns:
        ``Ok`` with the token list (terminated by a single EOF token), or
        ``Err`` with a LexError positioned at the first bad character.
    """
    return Lexer(text).tokenize()
