"""Declaration scanner: finds user types and type annotation sites.

This is deliberately shallow. It understands the declaration skeleton
(``struct``/``enum``/``class``/``impl`` headers, ``fn`` signatures,
``let``/``const``/``static`` bindings and record fields) and steps over
everything else token by token. Each annotation is handed to the type
parser; when that fails, the error is recorded and scanning resumes at the
next statement boundary.
"""

from __future__ import annotations

from collections.abc import Iterable

from ruffle.ast_nodes import (
    DeclKind,
    ModuleOutline,
    SiteKind,
    TypeAnnotation,
    TypeDecl,
)
from ruffle.errors import Diagnostics, ParseError, UnexpectedToken
from ruffle.lexer import Lexer
from ruffle.parser import TYPE_START, TokenCursor, parse_type
from ruffle.tokens import Token, TokenKind

_RECORD_KINDS = {
    TokenKind.STRUCT: DeclKind.STRUCT,
    TokenKind.CLASS: DeclKind.CLASS,
    TokenKind.ENUM: DeclKind.ENUM,
}

_BINDING_SITES = {
    TokenKind.LET: SiteKind.LET,
    TokenKind.CONST: SiteKind.CONST,
    TokenKind.STATIC: SiteKind.STATIC,
}

# Where scanning resumes after a malformed annotation.
_BOUNDARIES = frozenset({
    TokenKind.SEMI,
    TokenKind.COMMA,
    TokenKind.LBRACE,
    TokenKind.RBRACE,
    TokenKind.FN,
    TokenKind.LET,
    TokenKind.CONST,
    TokenKind.STATIC,
    TokenKind.STRUCT,
    TokenKind.ENUM,
    TokenKind.CLASS,
    TokenKind.IMPL,
    TokenKind.EOF,
})

_PARAM_BOUNDARIES = _BOUNDARIES | {TokenKind.RPAREN}

_IDENT = frozenset({TokenKind.IDENTIFIER})
_PARAM_START = frozenset({TokenKind.IDENTIFIER, TokenKind.SELF, TokenKind.RPAREN})


class DeclarationScanner:
    """Builds a ModuleOutline from one unit's token stream."""

    def __init__(
        self,
        tokens: Iterable[Token],
        filename: str = "<stdin>",
        diagnostics: Diagnostics | None = None,
    ) -> None:
        self.cursor = tokens if isinstance(tokens, TokenCursor) else TokenCursor(tokens)
        self.filename = filename
        self.diagnostics = diagnostics if diagnostics is not None else Diagnostics()
        self.declarations: list[TypeDecl] = []
        self.annotations: list[TypeAnnotation] = []

    def scan(self) -> ModuleOutline:
        cur = self.cursor
        while not cur.at(TokenKind.EOF):
            self._scan_item(owner="")
        return ModuleOutline(self.filename, self.declarations, self.annotations)

    # ── Recovery ─────────────────────────────────────────────────

    def _report(self, err: ParseError, stop: frozenset[TokenKind] = _BOUNDARIES) -> None:
        self.diagnostics.report(err)
        self._synchronize(stop)

    def _synchronize(self, stop: frozenset[TokenKind] = _BOUNDARIES) -> None:
        """Skip tokens until a statement boundary (not consumed)."""
        while not self.cursor.at_any(*stop):
            self.cursor.advance()

    def _expect_name(self) -> Token | None:
        tok = self.cursor.current()
        if tok.kind == TokenKind.IDENTIFIER:
            return self.cursor.advance()
        self._report(UnexpectedToken(_IDENT, tok))
        return None

    # ── Items ────────────────────────────────────────────────────

    def _scan_item(self, owner: str) -> None:
        kind = self.cursor.current().kind
        if kind in _RECORD_KINDS:
            self._scan_type_decl()
        elif kind == TokenKind.FN:
            self._scan_function(owner)
        elif kind in _BINDING_SITES:
            self._scan_binding(owner)
        elif kind == TokenKind.IMPL:
            self._scan_impl()
        else:
            self.cursor.advance()

    def _annotate(
        self,
        site: SiteKind,
        owner: str,
        name: str,
        stop: frozenset[TokenKind] = _BOUNDARIES,
    ) -> bool:
        """Parse the type at the cursor and record it."""
        try:
            expr, _ = parse_type(self.cursor)
        except ParseError as err:
            self._report(err, stop)
            return False
        self.annotations.append(TypeAnnotation(site, owner, name, expr))
        return True

    def _scan_type_decl(self) -> None:
        cur = self.cursor
        kw = cur.advance()
        decl_kind = _RECORD_KINDS[kw.kind]
        name_tok = self._expect_name()
        if name_tok is None:
            return

        parent = None
        if decl_kind == DeclKind.CLASS and cur.at(TokenKind.COLON):
            cur.advance()
            parent_tok = self._expect_name()
            if parent_tok is None:
                return
            parent = parent_tok.value

        self.declarations.append(
            TypeDecl(name_tok.value, decl_kind, kw.span.to(name_tok.span), parent)
        )
        if not cur.at(TokenKind.LBRACE):
            return
        if decl_kind == DeclKind.ENUM:
            self._skip_braces()
        else:
            self._scan_record_body(name_tok.value)

    def _scan_record_body(self, record: str) -> None:
        cur = self.cursor
        cur.advance()  # {
        while not cur.at_any(TokenKind.RBRACE, TokenKind.EOF):
            if cur.at(TokenKind.FN):
                self._scan_function(record)
            elif cur.at(TokenKind.IDENTIFIER) and cur.peek(1).kind == TokenKind.COLON:
                field = cur.advance().value
                cur.advance()  # :
                self._annotate(SiteKind.FIELD, record, field)
            elif cur.at(TokenKind.LBRACE):
                self._skip_braces()
            else:
                cur.advance()
        if cur.at(TokenKind.RBRACE):
            cur.advance()

    def _scan_impl(self) -> None:
        cur = self.cursor
        cur.advance()  # impl
        target = ""
        while not cur.at_any(TokenKind.LBRACE, TokenKind.SEMI, TokenKind.EOF):
            tok = cur.advance()
            if tok.kind == TokenKind.IDENTIFIER:
                target = tok.value  # `impl Trait for Type` names the type last
        if cur.at(TokenKind.LBRACE):
            self._scan_block(target)

    def _scan_function(self, owner: str) -> None:
        cur = self.cursor
        cur.advance()  # fn
        name_tok = self._expect_name()
        if name_tok is None:
            return
        qualified = f"{owner}::{name_tok.value}" if owner else name_tok.value

        if not cur.at(TokenKind.LPAREN):
            self._report(UnexpectedToken(frozenset({TokenKind.LPAREN}), cur.current()))
            return
        cur.advance()
        if not self._scan_params(qualified):
            return

        if cur.at(TokenKind.ARROW):
            cur.advance()
            self._annotate(SiteKind.RETURN, qualified, name_tok.value)
        elif cur.at_any(*TYPE_START):
            self._annotate(SiteKind.RETURN, qualified, name_tok.value)

        if cur.at(TokenKind.LBRACE):
            self._scan_block(qualified)

    def _scan_params(self, function: str) -> bool:
        """Scan ``name: Type`` pairs through the closing paren.

        Returns False when recovery left the cursor outside the list.
        """
        cur = self.cursor
        while not cur.at_any(TokenKind.RPAREN, TokenKind.EOF):
            if cur.at_any(TokenKind.SELF, TokenKind.COMMA):
                cur.advance()
                continue
            if cur.at(TokenKind.IDENTIFIER) and cur.peek(1).kind == TokenKind.COLON:
                param = cur.advance().value
                cur.advance()  # :
                if self._annotate(SiteKind.PARAM, function, param, _PARAM_BOUNDARIES):
                    continue
            elif cur.at(TokenKind.IDENTIFIER):
                cur.advance()
                self._report(
                    UnexpectedToken(frozenset({TokenKind.COLON}), cur.current()),
                    _PARAM_BOUNDARIES,
                )
            else:
                self._report(
                    UnexpectedToken(_PARAM_START, cur.current()),
                    _PARAM_BOUNDARIES,
                )
            if not cur.at_any(TokenKind.COMMA, TokenKind.RPAREN):
                return False
        if cur.at(TokenKind.RPAREN):
            cur.advance()
            return True
        return False

    def _scan_binding(self, owner: str) -> None:
        cur = self.cursor
        kw = cur.advance()
        name_tok = self._expect_name()
        if name_tok is None:
            return
        if cur.at(TokenKind.COLON):
            cur.advance()
            self._annotate(_BINDING_SITES[kw.kind], owner, name_tok.value)

    # ── Bodies ───────────────────────────────────────────────────

    def _scan_block(self, owner: str) -> None:
        """Scan a brace-delimited body for nested declarations and bindings."""
        cur = self.cursor
        cur.advance()  # {
        depth = 1
        while not cur.at(TokenKind.EOF):
            tok = cur.current()
            if tok.kind == TokenKind.LBRACE:
                depth += 1
                cur.advance()
            elif tok.kind == TokenKind.RBRACE:
                depth -= 1
                cur.advance()
                if depth == 0:
                    return
            else:
                self._scan_item(owner)

    def _skip_braces(self) -> None:
        cur = self.cursor
        cur.advance()  # {
        depth = 1
        while not cur.at(TokenKind.EOF):
            tok = cur.advance()
            if tok.kind == TokenKind.LBRACE:
                depth += 1
            elif tok.kind == TokenKind.RBRACE:
                depth -= 1
                if depth == 0:
                    return


def scan_module(
    source: str, filename: str = "<stdin>", diagnostics: Diagnostics | None = None,
) -> ModuleOutline:
    """Lex and scan one translation unit."""
    diagnostics = diagnostics if diagnostics is not None else Diagnostics()
    lexer = Lexer(source, filename, diagnostics=diagnostics)
    return DeclarationScanner(lexer, filename, diagnostics).scan()
