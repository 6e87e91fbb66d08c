"""Normalization of raw type expressions into canonical types.

Rules:

- parentheses are transparent;
- a ``?`` on an already optional type is redundant: it is dropped with a
  W300 warning;
- the error arm of a union must not be optional (E301);
- an error arm that is itself a union stays nested in the ``error`` slot;
- an ok arm that is itself a union is re-associated to the right, so
  ``(T!E)!F`` and ``T!(E!F)`` share one canonical form. Likewise
  ``(T?)!E`` and ``(T!E)?`` both become ``{T, optional, error: E}``;
- every named leaf must resolve in the symbol table (E300).

The pass never performs I/O and the same tree always yields the same
canonical type.
"""

from __future__ import annotations

from dataclasses import replace

from ruffle.ast_nodes import (
    UNIT_NAME,
    ErrorUnionType,
    GroupedType,
    NamedType,
    OptionalType,
    TypeExpr,
)
from ruffle.errors import Diagnostics, OptionalError, UnknownType
from ruffle.source import Span
from ruffle.symbols import SymbolTable
from ruffle.types import CanonicalType

_SYNTHETIC = Span("<canonical>", 0, 0, 0, 0)


class TypeNormalizer:
    """Rewrites TypeExpr trees into CanonicalType values."""

    def __init__(self, symbols: SymbolTable, diagnostics: Diagnostics | None = None) -> None:
        self.symbols = symbols
        self.diagnostics = diagnostics if diagnostics is not None else Diagnostics()

    def normalize(self, expr: TypeExpr) -> CanonicalType:
        """Normalize ``expr``; raises ``SemanticError`` on invalid types."""
        if isinstance(expr, GroupedType):
            return self.normalize(expr.inner)
        if isinstance(expr, NamedType):
            if self.symbols.resolve(expr.name) is None:
                raise UnknownType(expr.name, expr.span)
            return CanonicalType(expr.name)
        if isinstance(expr, OptionalType):
            return self._normalize_optional(expr)
        if isinstance(expr, ErrorUnionType):
            return self._normalize_union(expr)
        raise TypeError(f"not a type expression: {expr!r}")

    def _normalize_optional(self, expr: OptionalType) -> CanonicalType:
        inner = self.normalize(expr.inner)
        if inner.optional:
            self.diagnostics.warning("W300", "redundant optional", _last_char(expr.span))
            return inner
        return replace(inner, optional=True)

    def _normalize_union(self, expr: ErrorUnionType) -> CanonicalType:
        if expr.implicit_ok:
            ok = CanonicalType(UNIT_NAME)
        else:
            ok = self.normalize(expr.ok)
        err = self.normalize(expr.err)
        if err.optional:
            raise OptionalError(expr.err.span)
        return replace(ok, error=_append_error(ok.error, err))


def _append_error(chain: CanonicalType | None, err: CanonicalType) -> CanonicalType:
    if chain is None:
        return err
    return replace(chain, error=_append_error(chain.error, err))


def _last_char(span: Span) -> Span:
    return Span(span.file, span.end_line, span.end_col, span.end_line, span.end_col,
                max(span.start_offset, span.end_offset - 1), span.end_offset)


def normalize(
    expr: TypeExpr, symbols: SymbolTable, diagnostics: Diagnostics | None = None,
) -> CanonicalType:
    return TypeNormalizer(symbols, diagnostics).normalize(expr)


def to_type_expr(ty: CanonicalType, span: Span = _SYNTHETIC) -> TypeExpr:
    """Build a TypeExpr that normalizes back to ``ty``."""
    node: TypeExpr = NamedType(ty.base, span)
    if ty.error is not None:
        node = ErrorUnionType(node, to_type_expr(ty.error, span), span,
                              implicit_ok=ty.base == UNIT_NAME)
    if ty.optional:
        node = OptionalType(node, span)
    return node
