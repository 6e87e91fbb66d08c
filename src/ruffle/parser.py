"""Recursive-descent parser for Ruffle type expressions.

Called by the declaration scanner wherever a type annotation is expected.
Grammar, tightest first::

    type          := '!' atom union_tail
                   | optional_type ( '!' atom union_tail )?
    union_tail    := '?'*
    optional_type := atom '?'*
    atom          := identifier | '(' type ')'

A ``?`` written after an error union applies to the whole union, so
``i32!Error?`` is ``(i32!Error)?``. A second bare ``!`` after a complete
union is rejected instead of being given an associativity; nesting an
error type must be spelled with parentheses, as in ``T!(E!F)``.
Parentheses nest at most ``MAX_NESTING`` levels deep.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from ruffle.ast_nodes import (
    UNIT_NAME,
    ErrorUnionType,
    GroupedType,
    NamedType,
    OptionalType,
    TypeExpr,
)
from ruffle.errors import (
    AmbiguousErrorChain,
    CompileError,
    Diagnostics,
    NestingTooDeep,
    ParseError,
    UnclosedParenthesis,
    UnexpectedToken,
)
from ruffle.formatter import format_type_expr
from ruffle.lexer import Lexer
from ruffle.source import Span
from ruffle.tokens import Token, TokenKind

TYPE_START: frozenset[TokenKind] = frozenset({
    TokenKind.IDENTIFIER,
    TokenKind.LPAREN,
    TokenKind.BANG,
})

_ATOM_START: frozenset[TokenKind] = frozenset({
    TokenKind.IDENTIFIER,
    TokenKind.LPAREN,
})

_GROUP_CONTINUE: frozenset[TokenKind] = frozenset({
    TokenKind.RPAREN,
    TokenKind.QUESTION,
    TokenKind.BANG,
})

MAX_NESTING = 128


class TokenCursor:
    """Buffered one-token-lookahead view over a (possibly lazy) token stream.

    Every token pulled from the stream is kept, so a cursor can be reset
    to any earlier mark.
    """

    def __init__(self, tokens: Iterable[Token]) -> None:
        self._stream = iter(tokens)
        self._buffer: list[Token] = []
        self.pos = 0

    def _fill(self, idx: int) -> None:
        while len(self._buffer) <= idx:
            tok = next(self._stream, None)
            if tok is None:
                return
            self._buffer.append(tok)

    def peek(self, offset: int = 0) -> Token:
        idx = self.pos + offset
        self._fill(idx)
        if idx < len(self._buffer):
            return self._buffer[idx]
        if not self._buffer:
            raise ValueError("empty token stream")
        return self._buffer[-1]  # EOF

    def current(self) -> Token:
        return self.peek()

    def at(self, kind: TokenKind) -> bool:
        return self.current().kind == kind

    def at_any(self, *kinds: TokenKind) -> bool:
        return self.current().kind in kinds

    def advance(self) -> Token:
        tok = self.current()
        if tok.kind != TokenKind.EOF:
            self.pos += 1
        return tok

    def mark(self) -> int:
        return self.pos

    def reset(self, mark: int) -> None:
        self.pos = mark

    def remaining(self) -> Iterator[Token]:
        """Yield the tokens not yet consumed, through EOF, without advancing."""
        idx = self.pos
        while True:
            self._fill(idx)
            if idx >= len(self._buffer):
                return
            tok = self._buffer[idx]
            yield tok
            if tok.kind == TokenKind.EOF:
                return
            idx += 1


class TypeParser:
    """Parses one type expression from a token cursor."""

    def __init__(self, cursor: TokenCursor) -> None:
        self.cursor = cursor
        self.depth = 0

    def parse_type(self) -> TypeExpr:
        cur = self.cursor
        tok = cur.current()
        if tok.kind not in TYPE_START:
            raise UnexpectedToken(TYPE_START, tok)

        if tok.kind == TokenKind.BANG:
            bang = cur.advance()
            ok = NamedType(UNIT_NAME, bang.span)
            err = self._parse_atom()
            return self._finish_union(ok, err, bang.span, implicit_ok=True)

        ok = self._parse_optional()
        if not cur.at(TokenKind.BANG):
            return ok
        cur.advance()
        err = self._parse_atom()
        return self._finish_union(ok, err, ok.span, implicit_ok=False)

    def _finish_union(
        self, ok: TypeExpr, err: TypeExpr, start: Span, *, implicit_ok: bool,
    ) -> TypeExpr:
        union = ErrorUnionType(ok, err, start.to(err.span), implicit_ok)
        node = self._wrap_optionals(union, start)
        if self.cursor.at(TokenKind.BANG):
            raise AmbiguousErrorChain(self.cursor.current().span, self._nested_chain(node))
        return node

    def _nested_chain(self, node: TypeExpr) -> str | None:
        """Spell ``T!E!F`` at the cursor as ``T!(E!F)``, without consuming it."""
        cur = self.cursor
        mark = cur.mark()
        try:
            cur.advance()  # !
            tail = self._parse_optional()
        except ParseError:
            return None
        finally:
            cur.reset(mark)
        optionals = 0
        while isinstance(node, OptionalType):
            node = node.inner
            optionals += 1
        inner = ErrorUnionType(node.err, tail, node.err.span.to(tail.span))
        nested: TypeExpr = ErrorUnionType(node.ok, inner, node.span.to(tail.span), node.implicit_ok)
        for _ in range(optionals):
            nested = OptionalType(nested, nested.span)
        return format_type_expr(nested)

    def _parse_optional(self) -> TypeExpr:
        atom = self._parse_atom()
        return self._wrap_optionals(atom, atom.span)

    def _wrap_optionals(self, node: TypeExpr, start: Span) -> TypeExpr:
        while self.cursor.at(TokenKind.QUESTION):
            q = self.cursor.advance()
            node = OptionalType(node, start.to(q.span))
        return node

    def _parse_atom(self) -> TypeExpr:
        cur = self.cursor
        tok = cur.current()
        if tok.kind == TokenKind.IDENTIFIER:
            cur.advance()
            return NamedType(tok.value, tok.span)
        if tok.kind == TokenKind.LPAREN:
            open_tok = cur.advance()
            if self.depth >= MAX_NESTING:
                raise NestingTooDeep(open_tok.span, MAX_NESTING)
            self.depth += 1
            try:
                inner = self.parse_type()
            finally:
                self.depth -= 1
            found = cur.current()
            if found.kind == TokenKind.RPAREN:
                close = cur.advance()
                return GroupedType(inner, open_tok.span.to(close.span))
            if found.kind in _ATOM_START:
                raise UnexpectedToken(_GROUP_CONTINUE, found)
            raise UnclosedParenthesis(open_tok.span.to(found.span), found)
        raise UnexpectedToken(_ATOM_START, tok)


def parse_type(tokens: TokenCursor | Iterable[Token]) -> tuple[TypeExpr, TokenCursor]:
    """Parse one type; return it with the cursor positioned after it.

    Raises a ``ParseError`` subclass when the tokens do not form a type.
    """
    cursor = tokens if isinstance(tokens, TokenCursor) else TokenCursor(tokens)
    expr = TypeParser(cursor).parse_type()
    return expr, cursor


def parse_type_source(text: str, filename: str = "<type>") -> TypeExpr:
    """Lex and parse ``text`` as exactly one type expression."""
    diagnostics = Diagnostics()
    tokens = Lexer(text, filename, diagnostics=diagnostics).lex()
    if diagnostics.has_errors():
        raise CompileError(diagnostics.errors)
    expr, cursor = parse_type(tokens)
    if not cursor.at(TokenKind.EOF):
        raise UnexpectedToken(frozenset({TokenKind.EOF}), cursor.current())
    return expr
