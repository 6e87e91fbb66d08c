"""Resolved type representations for the Ruffle type system.

These are distinct from AST TypeExpr nodes (which are syntactic).
Canonical types are produced by the normalizer.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto


class TypeKind(Enum):
    BUILTIN = auto()
    STRUCT = auto()
    ENUM = auto()
    CLASS = auto()


@dataclass(frozen=True)
class CanonicalType:
    """Flattened descriptor of a normalized type.

    ``optional`` is set at most once. ``error`` is itself fully
    normalized and never optional; a nested error union stays nested
    in that slot.
    """

    base: str
    optional: bool = False
    error: CanonicalType | None = None

    @property
    def is_error_union(self) -> bool:
        return self.error is not None

    def error_chain(self) -> list[str]:
        """Base names of the error arms, outermost first."""
        chain: list[str] = []
        err = self.error
        while err is not None:
            chain.append(err.base)
            err = err.error
        return chain


@dataclass(frozen=True)
class ErrorType:
    """Poison type that stands in for an annotation that failed to check."""
    pass


Type = CanonicalType | ErrorType


ERROR_TY = ErrorType()

BUILTIN_TYPES: tuple[str, ...] = (
    "unit", "bool", "char", "str",
    "i8", "i16", "i32", "i64",
    "u8", "u16", "u32", "u64",
    "f32", "f64",
)


def type_name(ty: Type) -> str:
    """Human-readable name for diagnostics."""
    if isinstance(ty, ErrorType):
        return "<error>"
    from ruffle.formatter import format_type

    return format_type(ty)
