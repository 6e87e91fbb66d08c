"""Global type symbol table for one compilation invocation.

Filled by the declaration pass, then frozen and shared read-only by every
translation unit's normalizer.
"""

from __future__ import annotations

from dataclasses import dataclass

from ruffle.source import Span
from ruffle.types import BUILTIN_TYPES, TypeKind

_BUILTIN_SPAN = Span("<builtin>", 0, 0, 0, 0)


@dataclass(frozen=True)
class TypeSymbol:
    name: str
    kind: TypeKind
    span: Span


class SymbolTable:
    """Type registry keyed by name."""

    def __init__(self) -> None:
        self._types: dict[str, TypeSymbol] = {}
        self._frozen = False

    @classmethod
    def with_builtins(cls) -> SymbolTable:
        table = cls()
        for name in BUILTIN_TYPES:
            table.define_type(name, TypeKind.BUILTIN, _BUILTIN_SPAN)
        return table

    @property
    def frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> SymbolTable:
        """Seal the table; later definitions raise."""
        self._frozen = True
        return self

    def define_type(self, name: str, kind: TypeKind, span: Span) -> TypeSymbol | None:
        """Register a type. Returns the existing symbol if ``name`` is taken."""
        if self._frozen:
            raise RuntimeError(f"cannot define type {name!r}: symbol table is frozen")
        existing = self._types.get(name)
        if existing is not None:
            return existing
        self._types[name] = TypeSymbol(name, kind, span)
        return None

    def resolve(self, name: str) -> TypeKind | None:
        sym = self._types.get(name)
        return sym.kind if sym is not None else None

    def lookup(self, name: str) -> TypeSymbol | None:
        return self._types.get(name)

    def user_types(self) -> list[TypeSymbol]:
        return [s for s in self._types.values() if s.kind != TypeKind.BUILTIN]

    def __contains__(self, name: str) -> bool:
        return name in self._types
