"""Syntax trees for Ruffle type expressions and the declarations around them."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union

from ruffle.source import Span

UNIT_NAME = "unit"

# ── Type expressions ─────────────────────────────────────────────


@dataclass(frozen=True)
class NamedType:
    name: str
    span: Span


@dataclass(frozen=True)
class OptionalType:
    inner: TypeExpr
    span: Span


@dataclass(frozen=True)
class ErrorUnionType:
    ok: TypeExpr
    err: TypeExpr
    span: Span
    implicit_ok: bool = False  # bare `!E`; ok is the synthesized unit type


@dataclass(frozen=True)
class GroupedType:
    inner: TypeExpr
    span: Span


TypeExpr = Union[NamedType, OptionalType, ErrorUnionType, GroupedType]


def unwrap_groups(expr: TypeExpr) -> TypeExpr:
    """Strip any number of enclosing parentheses."""
    while isinstance(expr, GroupedType):
        expr = expr.inner
    return expr


def strip_groups(expr: TypeExpr) -> TypeExpr:
    """Rebuild ``expr`` with every GroupedType removed, at any depth."""
    expr = unwrap_groups(expr)
    if isinstance(expr, OptionalType):
        return OptionalType(strip_groups(expr.inner), expr.span)
    if isinstance(expr, ErrorUnionType):
        return ErrorUnionType(strip_groups(expr.ok), strip_groups(expr.err),
                              expr.span, expr.implicit_ok)
    return expr


# ── Declarations ─────────────────────────────────────────────────


class DeclKind(Enum):
    STRUCT = "struct"
    ENUM = "enum"
    CLASS = "class"


@dataclass(frozen=True)
class TypeDecl:
    """A user type declared with ``struct``, ``enum`` or ``class``."""

    name: str
    kind: DeclKind
    span: Span
    parent: str | None = None  # class inheritance, recorded only


class SiteKind(Enum):
    RETURN = "return"
    PARAM = "param"
    LET = "let"
    CONST = "const"
    STATIC = "static"
    FIELD = "field"


@dataclass(frozen=True)
class TypeAnnotation:
    """One place in the source where a type is written."""

    site: SiteKind
    owner: str  # enclosing function/type name, or the bound name
    name: str
    expr: TypeExpr

    @property
    def span(self) -> Span:
        return self.expr.span


@dataclass
class ModuleOutline:
    """Declarations and annotation sites of one translation unit."""

    filename: str
    declarations: list[TypeDecl]
    annotations: list[TypeAnnotation]
