"""Two-pass semantic check of a unit's type annotations.

Pass 1: register the unit's declared types in the symbol table.
Pass 2: normalize every annotation. A failing annotation is reported and
replaced by the poison ``ERROR_TY`` so later stages see no cascade.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from ruffle.ast_nodes import DeclKind, ModuleOutline, TypeAnnotation
from ruffle.errors import Diagnostics, DuplicateType, SemanticError
from ruffle.normalizer import TypeNormalizer
from ruffle.symbols import SymbolTable
from ruffle.types import ERROR_TY, Type, TypeKind

logger = logging.getLogger(__name__)

DECL_TYPE_KINDS = {
    DeclKind.STRUCT: TypeKind.STRUCT,
    DeclKind.ENUM: TypeKind.ENUM,
    DeclKind.CLASS: TypeKind.CLASS,
}


@dataclass(frozen=True)
class CheckedAnnotation:
    annotation: TypeAnnotation
    type: Type


class Checker:
    """Semantic analyzer for the annotations of a single unit."""

    def __init__(
        self, symbols: SymbolTable | None = None, diagnostics: Diagnostics | None = None,
    ) -> None:
        self.symbols = symbols if symbols is not None else SymbolTable.with_builtins()
        self.diagnostics = diagnostics if diagnostics is not None else Diagnostics()

    def register(self, outline: ModuleOutline) -> None:
        """Define each declared type; duplicates report E302."""
        for decl in outline.declarations:
            existing = self.symbols.define_type(decl.name, DECL_TYPE_KINDS[decl.kind], decl.span)
            if existing is not None:
                self.diagnostics.report(DuplicateType(decl.name, decl.span, existing.span))

    def check(self, outline: ModuleOutline) -> list[CheckedAnnotation]:
        """Normalize every annotation of ``outline``. Raises nothing."""
        normalizer = TypeNormalizer(self.symbols, self.diagnostics)
        checked: list[CheckedAnnotation] = []
        for annotation in outline.annotations:
            try:
                ty: Type = normalizer.normalize(annotation.expr)
            except SemanticError as err:
                self.diagnostics.report(err)
                ty = ERROR_TY
            checked.append(CheckedAnnotation(annotation, ty))
        logger.debug("%s: checked %d annotation(s)", outline.filename, len(checked))
        return checked

    def has_errors(self) -> bool:
        return self.diagnostics.has_errors()
