"""Tests for type normalization into canonical types."""

from __future__ import annotations

import pytest

from ruffle.errors import Diagnostics, OptionalError, Severity, UnknownType
from ruffle.normalizer import TypeNormalizer, normalize, to_type_expr
from ruffle.types import CanonicalType
from tests.helpers import canon, parse, symbols_with


def normalize_with_diags(text: str, *declared: str) -> tuple[CanonicalType, Diagnostics]:
    diags = Diagnostics()
    ty = TypeNormalizer(symbols_with(*declared), diags).normalize(parse(text))
    return ty, diags


class TestBasicForms:
    def test_named(self):
        assert canon("i32") == CanonicalType("i32")

    def test_optional(self):
        assert canon("str?") == CanonicalType("str", optional=True)

    def test_parens_are_transparent(self):
        assert canon("((i32))?") == canon("i32?")

    def test_error_union(self):
        ty = canon("i32!Error", "Error")
        assert ty == CanonicalType("i32", error=CanonicalType("Error"))
        assert ty.is_error_union

    def test_plain_type_is_not_error_union(self):
        assert not canon("bool").is_error_union

    def test_optional_union(self):
        assert canon("i32!Error?", "Error") == CanonicalType(
            "i32", optional=True, error=CanonicalType("Error"),
        )

    def test_implicit_unit_ok_arm(self):
        assert canon("!Error", "Error") == CanonicalType(
            "unit", error=CanonicalType("Error"),
        )


class TestFlattening:
    def test_optional_ok_arm_matches_optional_union(self):
        assert canon("(i32?)!Error", "Error") == canon("i32!Error?", "Error")
        assert canon("i32?!Error", "Error") == canon("(i32!Error)?", "Error")

    def test_left_nested_union_reassociates(self):
        assert canon("(i32!E)!F", "E", "F") == canon("i32!(E!F)", "E", "F")

    def test_error_chain(self):
        ty = canon("i32!(E!(F!G))", "E", "F", "G")
        assert ty.error_chain() == ["E", "F", "G"]

    def test_optional_union_as_ok_arm(self):
        assert canon("(i32!E)?!F", "E", "F") == CanonicalType(
            "i32", optional=True,
            error=CanonicalType("E", error=CanonicalType("F")),
        )


class TestRedundantOptional:
    def test_double_optional_warns_once(self):
        ty, diags = normalize_with_diags("i32??")
        assert ty == CanonicalType("i32", optional=True)
        assert len(diags) == 1
        assert diags.codes() == ["W300"]
        assert list(diags)[0].severity == Severity.WARNING
        assert not diags.has_errors()

    def test_each_redundant_optional_warns(self):
        _, diags = normalize_with_diags("i32???")
        assert diags.codes() == ["W300", "W300"]

    def test_warning_points_at_redundant_question(self):
        _, diags = normalize_with_diags("i32??")
        span = diags.warnings[0].span
        assert (span.start_col, span.end_col) == (5, 5)

    def test_optional_union_made_optional_again(self):
        ty, diags = normalize_with_diags("(i32?)!E?", "E")
        assert ty == CanonicalType("i32", optional=True, error=CanonicalType("E"))
        assert diags.codes() == ["W300"]

    def test_single_optional_is_silent(self):
        _, diags = normalize_with_diags("i32?")
        assert not diags


class TestOptionalError:
    def test_optional_error_arm_rejected(self):
        with pytest.raises(OptionalError) as exc:
            canon("i32!(Error?)", "Error")
        assert exc.value.code == "E301"
        assert exc.value.span.start_col == 5

    def test_optional_nested_union_rejected(self):
        with pytest.raises(OptionalError):
            canon("i32!(E!F?)", "E", "F")

    def test_optional_ok_inside_error_arm_rejected(self):
        with pytest.raises(OptionalError):
            canon("i32!(E?!F)", "E", "F")

    def test_boss_case_parenthesized(self):
        with pytest.raises(OptionalError) as exc:
            canon("i32!((Error?)!(Error?!Error))?", "Error")
        assert exc.value.span.start_col == 15


class TestUnknownType:
    def test_unknown_type(self):
        with pytest.raises(UnknownType) as exc:
            canon("Frobnicator?")
        assert exc.value.name == "Frobnicator"
        assert exc.value.code == "E300"
        assert "Frobnicator" in exc.value.message

    def test_declared_type_resolves(self):
        assert canon("Frobnicator?", "Frobnicator") == CanonicalType(
            "Frobnicator", optional=True,
        )

    def test_unknown_error_arm(self):
        with pytest.raises(UnknownType) as exc:
            canon("i32!Nope")
        assert exc.value.name == "Nope"

    def test_all_builtins_resolve(self):
        for name in ("unit", "bool", "char", "str", "i8", "u64", "f32", "f64"):
            assert canon(name).base == name


class TestIdempotence:
    @pytest.mark.parametrize("text", [
        "i32",
        "i32?",
        "i32!E",
        "i32!E?",
        "!E",
        "!E?",
        "i32!(E!F)",
        "(i32!E)!F",
        "(i32?)!(E!(F!E))",
    ])
    def test_normalize_is_fixed_point(self, text):
        symbols = symbols_with("E", "F")
        ty = normalize(parse(text), symbols)
        assert normalize(to_type_expr(ty), symbols) == ty

    def test_same_tree_same_result(self):
        expr = parse("(i32?)!E")
        symbols = symbols_with("E")
        assert normalize(expr, symbols) == normalize(expr, symbols)
