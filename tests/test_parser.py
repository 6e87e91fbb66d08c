"""Tests for the Ruffle type-expression parser."""

from __future__ import annotations

import pytest

from ruffle.ast_nodes import (
    UNIT_NAME,
    ErrorUnionType,
    GroupedType,
    NamedType,
    OptionalType,
    strip_groups,
    unwrap_groups,
)
from ruffle.errors import (
    AmbiguousErrorChain,
    CompileError,
    DiagnosticRenderer,
    NestingTooDeep,
    UnclosedParenthesis,
    UnexpectedToken,
)
from ruffle.formatter import dump_type_expr
from ruffle.lexer import Lexer
from ruffle.parser import MAX_NESTING, TokenCursor, parse_type
from ruffle.tokens import TokenKind
from tests.helpers import parse


def dump(text: str) -> str:
    return dump_type_expr(parse(text))


class TestAtoms:
    def test_named(self):
        expr = parse("i32")
        assert isinstance(expr, NamedType)
        assert expr.name == "i32"

    def test_user_type(self):
        assert dump("Config") == "Named(Config)"

    def test_grouped(self):
        expr = parse("(i32)")
        assert isinstance(expr, GroupedType)
        assert unwrap_groups(expr) == expr.inner

    def test_nested_groups(self):
        assert dump("((i32))") == "Grouped(Grouped(Named(i32)))"


class TestOptional:
    def test_optional(self):
        assert dump("i32?") == "Optional(Named(i32))"

    def test_double_optional_is_kept_raw(self):
        assert dump("i32??") == "Optional(Optional(Named(i32)))"

    def test_grouped_optional(self):
        assert dump("(i32?)?") == "Optional(Grouped(Optional(Named(i32))))"


class TestErrorUnion:
    def test_simple_union(self):
        expr = parse("i32!Error")
        assert isinstance(expr, ErrorUnionType)
        assert expr.ok == NamedType("i32", expr.ok.span)
        assert expr.err.name == "Error"
        assert not expr.implicit_ok

    def test_optional_ok_arm(self):
        assert dump("i32?!Error") == "ErrorUnion(Optional(Named(i32)), Named(Error))"

    def test_trailing_optional_scopes_over_union(self):
        assert dump("i32!Error?") == "Optional(ErrorUnion(Named(i32), Named(Error)))"

    def test_trailing_optionals_stack(self):
        assert dump("i32!Error??") == (
            "Optional(Optional(ErrorUnion(Named(i32), Named(Error))))"
        )

    def test_optional_error_arm_needs_parens(self):
        assert dump("i32!(Error?)") == (
            "ErrorUnion(Named(i32), Grouped(Optional(Named(Error))))"
        )

    def test_grouped_optional_error_arm(self):
        assert dump("i32!(Error?)?") == (
            "Optional(ErrorUnion(Named(i32), Grouped(Optional(Named(Error)))))"
        )

    def test_bare_bang_has_unit_ok_arm(self):
        expr = parse("!Error")
        assert isinstance(expr, ErrorUnionType)
        assert expr.implicit_ok
        assert expr.ok.name == UNIT_NAME
        assert expr.err.name == "Error"

    def test_bare_bang_optional(self):
        expr = parse("!Error?")
        assert isinstance(expr, OptionalType)
        assert expr.inner.implicit_ok

    def test_union_ok_arm_in_parens(self):
        assert dump("(i32!E)!F") == (
            "ErrorUnion(Grouped(ErrorUnion(Named(i32), Named(E))), Named(F))"
        )


class TestAssociativityBoundary:
    def test_bare_chain_is_rejected(self):
        with pytest.raises(AmbiguousErrorChain) as exc:
            parse("i32!Error!Error")
        assert exc.value.code == "E201"
        assert exc.value.span.start_col == 10

    def test_chain_after_trailing_optional_is_rejected(self):
        with pytest.raises(AmbiguousErrorChain):
            parse("i32!Error?!Error")

    def test_bare_bang_chain_is_rejected(self):
        with pytest.raises(AmbiguousErrorChain):
            parse("!E!F")

    def test_chain_suggests_nested_form(self):
        with pytest.raises(AmbiguousErrorChain) as exc:
            parse("i32!E!F")
        assert exc.value.nested == "i32!(E!F)"
        diag = exc.value.to_diagnostic()
        assert [s.replacement for s in diag.suggestions] == ["i32!(E!F)"]
        assert "try: i32!(E!F)" in DiagnosticRenderer(color=False).render(diag)

    def test_suggestion_keeps_trailing_optional(self):
        with pytest.raises(AmbiguousErrorChain) as exc:
            parse("i32!Error?!Io")
        assert exc.value.nested == "i32!(Error!Io)?"

    def test_bare_bang_suggestion(self):
        with pytest.raises(AmbiguousErrorChain) as exc:
            parse("!E!F")
        assert exc.value.nested == "!(E!F)"

    def test_incomplete_chain_gets_generic_suggestion(self):
        with pytest.raises(AmbiguousErrorChain) as exc:
            parse("i32!E!")
        assert exc.value.nested is None
        assert exc.value.to_diagnostic().suggestions[0].replacement == "T!(E!F)"

    def test_parenthesized_chain_parses(self):
        expr = parse("i32!(Error!Error)")
        assert dump_type_expr(strip_groups(expr)) == (
            "ErrorUnion(Named(i32), ErrorUnion(Named(Error), Named(Error)))"
        )


class TestBossCase:
    def test_unparenthesized_boss_fails_at_second_bang(self):
        with pytest.raises(AmbiguousErrorChain) as exc:
            parse("i32!(Error?)!(Error?!Error)?")
        span = exc.value.span
        assert (span.start_line, span.start_col) == (1, 13)

    def test_fully_parenthesized_boss_parses(self):
        assert dump("i32!((Error?)!(Error?!Error))?") == (
            "Optional(ErrorUnion(Named(i32), Grouped(ErrorUnion("
            "Grouped(Optional(Named(Error))), "
            "Grouped(ErrorUnion(Optional(Named(Error)), Named(Error)))))))"
        )


class TestParseErrors:
    def test_unclosed_parenthesis(self):
        with pytest.raises(UnclosedParenthesis) as exc:
            parse("(i32")
        assert exc.value.code == "E202"
        assert exc.value.span.start_col == 1

    def test_unclosed_parenthesis_before_separator(self):
        with pytest.raises(UnclosedParenthesis):
            parse("i32!(Error,")

    def test_missing_operator_inside_group(self):
        with pytest.raises(UnexpectedToken) as exc:
            parse("(i32 Error)")
        assert TokenKind.RPAREN in exc.value.expected

    def test_missing_error_arm(self):
        with pytest.raises(UnexpectedToken) as exc:
            parse("i32!")
        assert exc.value.found.kind == TokenKind.EOF
        assert exc.value.code == "E200"

    def test_double_bang(self):
        with pytest.raises(UnexpectedToken):
            parse("!!E")

    def test_cannot_start_with_question(self):
        with pytest.raises(UnexpectedToken):
            parse("?i32")

    def test_empty_input(self):
        with pytest.raises(UnexpectedToken):
            parse("")

    def test_trailing_tokens(self):
        with pytest.raises(UnexpectedToken) as exc:
            parse("i32 Error")
        assert exc.value.expected == frozenset({TokenKind.EOF})

    def test_lex_errors_surface_as_compile_error(self):
        with pytest.raises(CompileError) as exc:
            parse("i32@")
        assert exc.value.diagnostics[0].code == "E100"

    def test_message_names_found_token(self):
        with pytest.raises(UnexpectedToken) as exc:
            parse("i32!;")
        assert "';'" in exc.value.message


class TestSpans:
    def test_union_span(self):
        expr = parse("i32!Error")
        assert (expr.span.start_col, expr.span.end_col) == (1, 9)

    def test_optional_span_covers_question(self):
        expr = parse("i32!Error?")
        assert (expr.span.start_col, expr.span.end_col) == (1, 10)

    def test_group_span_covers_parens(self):
        expr = parse("i32!(E)")
        assert (expr.err.span.start_col, expr.err.span.end_col) == (5, 7)


class TestTokenCursor:
    def test_parse_leaves_remaining_tokens(self):
        expr, cursor = parse_type(Lexer("i32!E, x").lex())
        assert isinstance(expr, ErrorUnionType)
        assert [t.kind for t in cursor.remaining()] == [
            TokenKind.COMMA, TokenKind.IDENTIFIER, TokenKind.EOF,
        ]
        # remaining() does not consume
        assert cursor.at(TokenKind.COMMA)

    def test_parses_from_lazy_stream(self):
        expr, cursor = parse_type(iter(Lexer("str? = x")))
        assert isinstance(expr, OptionalType)
        assert cursor.at(TokenKind.ASSIGN)

    def test_cursor_is_reused(self):
        cursor = TokenCursor(Lexer("i32, str").lex())
        first, _ = parse_type(cursor)
        cursor.advance()  # ,
        second, _ = parse_type(cursor)
        assert (first.name, second.name) == ("i32", "str")
        assert cursor.at(TokenKind.EOF)

    def test_advance_stops_at_eof(self):
        cursor = TokenCursor(Lexer("a").lex())
        cursor.advance()
        cursor.advance()
        assert cursor.at(TokenKind.EOF)

    def test_mark_and_reset(self):
        cursor = TokenCursor(Lexer("a b").lex())
        mark = cursor.mark()
        cursor.advance()
        cursor.reset(mark)
        assert cursor.current().value == "a"


class TestNestingLimit:
    def test_limit_depth_parses(self):
        text = "(" * MAX_NESTING + "i32" + ")" * MAX_NESTING
        inner = unwrap_groups(parse(text))
        assert isinstance(inner, NamedType)
        assert inner.name == "i32"

    def test_past_limit_is_a_parse_error(self):
        text = "(" * (MAX_NESTING + 1) + "i32" + ")" * (MAX_NESTING + 1)
        with pytest.raises(NestingTooDeep) as exc:
            parse(text)
        assert exc.value.code == "E203"
        assert exc.value.span.start_col == MAX_NESTING + 1

    def test_deep_error_arms_hit_limit(self):
        text = "i32!(" * 400 + "E" + ")" * 400
        with pytest.raises(NestingTooDeep):
            parse(text)

    def test_deep_siblings_are_fine(self):
        group = "(" * 100 + "E" + ")" * 100
        expr = parse(f"{group}!{group}")
        assert isinstance(expr, ErrorUnionType)
