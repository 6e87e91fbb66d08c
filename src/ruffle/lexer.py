"""Lexer for the Ruffle programming language.

A forward scan over in-memory source text. Iterating a ``Lexer`` yields
tokens lazily and always ends with a single EOF token. ``?`` and ``!``
are emitted as one-character tokens everywhere; giving them meaning is
left to the parser.
"""

from __future__ import annotations

from collections.abc import Iterator

from ruffle.errors import (
    Diagnostics,
    InvalidCharacter,
    InvalidInteger,
    UnterminatedComment,
    UnterminatedLiteral,
)
from ruffle.source import Span, rows_cols_index
from ruffle.tokens import KEYWORDS, OPERATORS, Token, TokenKind

_DIGITS = frozenset("0123456789")
_IDENT_START = frozenset("abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ_")
_IDENT_CHARS = _IDENT_START | _DIGITS
_WHITESPACE = frozenset(" \t\n\r\f\v")

_I32_MAX = 2**31 - 1

_ESCAPES = {'n': '\n', 'r': '\r', 't': '\t', '\\': '\\', '"': '"', '0': '\0'}


class Lexer:
    """Tokenizes Ruffle source code."""

    def __init__(
        self,
        source: str,
        filename: str = "<stdin>",
        offset: int = 0,
        diagnostics: Diagnostics | None = None,
    ) -> None:
        self.source = source
        self.filename = filename
        self.diagnostics = diagnostics if diagnostics is not None else Diagnostics()
        self.pos = 0
        self.line = 1
        self.col = 1
        self.restart(offset)

    def restart(self, offset: int) -> None:
        """Move the scan cursor to a character offset."""
        offset = max(0, min(offset, len(self.source)))
        self.pos = offset
        self.line, self.col = rows_cols_index(self.source, offset)

    def __iter__(self) -> Iterator[Token]:
        while True:
            tok = self.next_token()
            yield tok
            if tok.kind == TokenKind.EOF:
                return

    def tokens_from(self, offset: int) -> Iterator[Token]:
        """Resynchronization scan starting at ``offset``."""
        self.restart(offset)
        return iter(self)

    def lex(self) -> list[Token]:
        """Tokenize the rest of the source and return the token list."""
        return list(self)

    def next_token(self) -> Token:
        """Scan and return the next complete token."""
        while True:
            self._skip_trivia()
            if self.pos >= len(self.source):
                span = Span(self.filename, self.line, self.col, self.line, self.col,
                            self.pos, self.pos)
                return Token(TokenKind.EOF, "", span)
            tok = self._lex_one()
            if tok is not None:
                return tok

    # ── Helpers ───────────────────────────────────────────────────

    def _peek(self, offset: int = 0) -> str:
        idx = self.pos + offset
        if idx < len(self.source):
            return self.source[idx]
        return '\0'

    def _advance(self) -> str:
        ch = self.source[self.pos]
        self.pos += 1
        if ch == '\n':
            self.line += 1
            self.col = 1
        else:
            self.col += 1
        return ch

    def _mark(self) -> tuple[int, int, int]:
        return self.pos, self.line, self.col

    def _span_from(self, mark: tuple[int, int, int]) -> Span:
        start_pos, start_line, start_col = mark
        end_col = self.col - 1 if self.col > 1 else 1
        return Span(self.filename, start_line, start_col, self.line, end_col,
                    start_pos, self.pos)

    def _token(self, kind: TokenKind, value: str, mark: tuple[int, int, int]) -> Token:
        return Token(kind, value, self._span_from(mark))

    # ── Trivia ────────────────────────────────────────────────────

    def _skip_trivia(self) -> None:
        """Skip whitespace, line comments and block comments."""
        while self.pos < len(self.source):
            ch = self.source[self.pos]
            if ch in _WHITESPACE:
                self._advance()
            elif ch == '/' and self._peek(1) == '/':
                while self.pos < len(self.source) and self.source[self.pos] != '\n':
                    self._advance()
            elif ch == '/' and self._peek(1) == '*':
                self._skip_block_comment()
            else:
                return

    def _skip_block_comment(self) -> None:
        mark = self._mark()
        self._advance()
        self._advance()
        while self.pos < len(self.source):
            if self.source[self.pos] == '*' and self._peek(1) == '/':
                self._advance()
                self._advance()
                return
            self._advance()
        self.diagnostics.report(UnterminatedComment(self._span_from(mark)))

    # ── Tokens ────────────────────────────────────────────────────

    def _lex_one(self) -> Token | None:
        ch = self.source[self.pos]
        if ch == '"':
            return self._lex_string()
        if ch in _DIGITS:
            return self._lex_number()
        if ch in _IDENT_START:
            return self._lex_identifier()
        for text, kind in OPERATORS:
            if self.source.startswith(text, self.pos):
                mark = self._mark()
                for _ in text:
                    self._advance()
                return self._token(kind, text, mark)
        self._invalid_character()
        return None

    def _lex_string(self) -> Token | None:
        mark = self._mark()
        self._advance()  # opening "
        text: list[str] = []
        while self.pos < len(self.source):
            ch = self.source[self.pos]
            if ch == '"':
                self._advance()
                return self._token(TokenKind.STRING_LIT, ''.join(text), mark)
            if ch == '\n':
                break
            if ch == '\\':
                text.append(self._lex_escape_sequence())
            else:
                text.append(self._advance())
        # Resume at the end of the line; the newline itself is whitespace.
        self.diagnostics.report(UnterminatedLiteral(self._span_from(mark)))
        return None

    def _lex_escape_sequence(self) -> str:
        self._advance()  # backslash
        if self.pos >= len(self.source) or self.source[self.pos] == '\n':
            return '\\'
        ch = self._advance()
        if ch in _ESCAPES:
            return _ESCAPES[ch]
        return '\\' + ch

    def _lex_number(self) -> Token | None:
        mark = self._mark()
        text: list[str] = []
        while self.pos < len(self.source) and self.source[self.pos] in _DIGITS:
            text.append(self._advance())

        if self._peek() == '.' and self._peek(1) in _DIGITS:
            text.append(self._advance())  # .
            while self.pos < len(self.source) and self.source[self.pos] in _DIGITS:
                text.append(self._advance())
            return self._token(TokenKind.FLOAT_LIT, ''.join(text), mark)

        literal = ''.join(text)
        if _overflows_i32(literal):
            self.diagnostics.report(
                InvalidInteger(literal, "overflow", self._span_from(mark))
            )
            return None
        return self._token(TokenKind.INTEGER_LIT, literal, mark)

    def _lex_identifier(self) -> Token:
        mark = self._mark()
        text: list[str] = []
        while self.pos < len(self.source) and self.source[self.pos] in _IDENT_CHARS:
            text.append(self._advance())
        word = ''.join(text)
        kind = KEYWORDS.get(word, TokenKind.IDENTIFIER)
        return self._token(kind, word, mark)

    def _invalid_character(self) -> None:
        mark = self._mark()
        ch = self._advance()
        self.diagnostics.report(InvalidCharacter(ch, self._span_from(mark)))
        # Resynchronize at the next whitespace boundary.
        while self.pos < len(self.source) and self.source[self.pos] not in _WHITESPACE:
            self._advance()


def _overflows_i32(digits: str) -> bool:
    significant = digits.lstrip('0')
    if len(significant) > len(str(_I32_MAX)):
        return True
    return int(significant or '0') > _I32_MAX
