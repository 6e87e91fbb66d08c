"""Pretty-printing of type expressions and canonical types back to source.

``format_type`` output re-parses and re-normalizes to the same canonical
type. ``format_type_expr`` keeps the parentheses the author wrote and adds
only those needed for the text to parse back into the same tree.
"""

from __future__ import annotations

from ruffle.ast_nodes import (
    UNIT_NAME,
    ErrorUnionType,
    GroupedType,
    NamedType,
    OptionalType,
    TypeExpr,
)
from ruffle.types import CanonicalType


def format_type(ty: CanonicalType) -> str:
    text = _format_union(ty)
    if ty.optional:
        text += "?"
    return text


def _format_union(ty: CanonicalType) -> str:
    if ty.error is None:
        return ty.base
    ok = "" if ty.base == UNIT_NAME else ty.base
    return f"{ok}!{_format_error(ty.error)}"


def _format_error(err: CanonicalType) -> str:
    # Nested unions in the error slot are always written out explicitly.
    if err.error is None:
        return err.base
    return f"({_format_union(err)})"


def format_type_expr(expr: TypeExpr) -> str:
    if isinstance(expr, NamedType):
        return expr.name
    if isinstance(expr, GroupedType):
        return f"({format_type_expr(expr.inner)})"
    if isinstance(expr, OptionalType):
        return f"{format_type_expr(expr.inner)}?"
    if isinstance(expr, ErrorUnionType):
        ok = "" if expr.implicit_ok else _operand(expr.ok, ok_arm=True)
        return f"{ok}!{_operand(expr.err, ok_arm=False)}"
    raise TypeError(f"not a type expression: {expr!r}")


def _operand(expr: TypeExpr, *, ok_arm: bool) -> str:
    text = format_type_expr(expr)
    if isinstance(expr, ErrorUnionType):
        return f"({text})"
    if not ok_arm and isinstance(expr, OptionalType):
        return f"({text})"
    if ok_arm and isinstance(expr, OptionalType) and _ends_in_union(expr):
        return f"({text})"
    return text


def _ends_in_union(expr: TypeExpr) -> bool:
    while isinstance(expr, OptionalType):
        expr = expr.inner
    return isinstance(expr, ErrorUnionType)


def dump_type_expr(expr: TypeExpr) -> str:
    """Constructor-style rendering of a raw tree, e.g. ``Optional(Named(i32))``."""
    if isinstance(expr, NamedType):
        return f"Named({expr.name})"
    if isinstance(expr, GroupedType):
        return f"Grouped({dump_type_expr(expr.inner)})"
    if isinstance(expr, OptionalType):
        return f"Optional({dump_type_expr(expr.inner)})"
    if isinstance(expr, ErrorUnionType):
        return f"ErrorUnion({dump_type_expr(expr.ok)}, {dump_type_expr(expr.err)})"
    raise TypeError(f"not a type expression: {expr!r}")
