"""Shared test helpers for the Ruffle front-end test suite."""

from __future__ import annotations

from ruffle.ast_nodes import TypeExpr
from ruffle.frontend import UnitResult, compile_unit
from ruffle.normalizer import normalize
from ruffle.parser import parse_type_source
from ruffle.source import Span
from ruffle.symbols import SymbolTable
from ruffle.types import CanonicalType, TypeKind


def parse(text: str) -> TypeExpr:
    """Parse a single type expression from text."""
    return parse_type_source(text, "<test>")


def symbols_with(*names: str) -> SymbolTable:
    """Builtins plus the given user types, frozen."""
    table = SymbolTable.with_builtins()
    for name in names:
        table.define_type(name, TypeKind.ENUM, Span("<test>", 0, 0, 0, 0))
    return table.freeze()


def canon(text: str, *declared: str) -> CanonicalType:
    """Parse and normalize ``text`` against builtins plus ``declared``."""
    return normalize(parse(text), symbols_with(*declared))


def check(source: str) -> UnitResult:
    """Run source through the front end, asserting no errors."""
    result = compile_unit(source, "<test>")
    errors = result.diagnostics.errors
    assert not errors, f"Unexpected errors: {[f'{d.code}: {d.message}' for d in errors]}"
    return result


def check_fails(source: str, error_code: str) -> list:
    """Run source through the front end, asserting the given error code appears."""
    result = compile_unit(source, "<test>")
    matching = [d for d in result.diagnostics if d.code == error_code]
    assert matching, (
        f"Expected error {error_code} but got: "
        f"{[f'{d.code}: {d.message}' for d in result.diagnostics] or 'no diagnostics'}"
    )
    return matching


def check_warns(source: str, warning_code: str) -> list:
    """Run source through the front end, asserting the given warning code appears."""
    result = compile_unit(source, "<test>")
    matching = [d for d in result.diagnostics.warnings if d.code == warning_code]
    assert matching, (
        f"Expected warning {warning_code} but got: "
        f"{[f'{d.code}: {d.message}' for d in result.diagnostics] or 'no diagnostics'}"
    )
    return matching
