"""Front-end driver: lex, scan, declare, then normalize translation units.

All declarations of every unit are registered in one symbol table before
any annotation is normalized. After that the table is frozen and units are
checked independently, each with its own lexer, scanner, checker and
diagnostic sink.
"""

from __future__ import annotations

import concurrent.futures
import logging
from collections.abc import Sequence
from dataclasses import dataclass

from ruffle.ast_nodes import ModuleOutline
from ruffle.checker import CheckedAnnotation, Checker
from ruffle.declarations import scan_module
from ruffle.errors import Diagnostics
from ruffle.source import SourceFile
from ruffle.symbols import SymbolTable

logger = logging.getLogger(__name__)


@dataclass
class UnitResult:
    filename: str
    outline: ModuleOutline
    annotations: list[CheckedAnnotation]
    diagnostics: Diagnostics

    @property
    def ok(self) -> bool:
        return not self.diagnostics.has_errors()


def compile_unit(
    source: str, filename: str = "<stdin>", symbols: SymbolTable | None = None,
) -> UnitResult:
    """Run one unit through the front end.

    Without ``symbols`` the unit's own declarations (plus built-ins) form
    the table; with it, the given frozen table is used as-is.
    """
    diagnostics = Diagnostics()
    outline = scan_module(source, filename, diagnostics)
    if symbols is None:
        symbols = SymbolTable.with_builtins()
        checker = Checker(symbols, diagnostics)
        checker.register(outline)
        symbols.freeze()
    else:
        checker = Checker(symbols, diagnostics)
    annotations = checker.check(outline)
    return UnitResult(filename, outline, annotations, diagnostics)


def compile_units(units: Sequence[SourceFile], jobs: int = 1) -> list[UnitResult]:
    """Check several units against one shared symbol table.

    Results are returned in input order.
    """
    symbols = SymbolTable.with_builtins()
    scanned: list[tuple[SourceFile, ModuleOutline, Diagnostics]] = []

    # Pass 1: declarations of every unit, sequentially.
    for unit in units:
        diagnostics = Diagnostics()
        outline = scan_module(unit.text, unit.name, diagnostics)
        Checker(symbols, diagnostics).register(outline)
        scanned.append((unit, outline, diagnostics))
    symbols.freeze()
    logger.debug("declared %d user type(s) across %d unit(s)",
                 len(symbols.user_types()), len(units))

    def check(item: tuple[SourceFile, ModuleOutline, Diagnostics]) -> UnitResult:
        unit, outline, diagnostics = item
        annotations = Checker(symbols, diagnostics).check(outline)
        return UnitResult(unit.name, outline, annotations, diagnostics)

    # Pass 2: normalization, one worker per unit.
    if jobs <= 1 or len(scanned) <= 1:
        return [check(item) for item in scanned]
    with concurrent.futures.ThreadPoolExecutor(max_workers=jobs) as pool:
        return list(pool.map(check, scanned))
