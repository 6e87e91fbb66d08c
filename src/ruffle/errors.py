"""Diagnostics, the front end's error taxonomy, and Rust-style rendering."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ruffle.source import Span
    from ruffle.tokens import Token, TokenKind


class Severity(Enum):
    ERROR = "error"
    WARNING = "warning"
    NOTE = "note"


# ANSI color codes
_COLORS = {
    Severity.ERROR: "\033[1;31m",    # bold red
    Severity.WARNING: "\033[1;33m",  # bold yellow
    Severity.NOTE: "\033[1;36m",     # bold cyan
}
_BOLD = "\033[1m"
_BLUE = "\033[1;34m"
_RESET = "\033[0m"


@dataclass(frozen=True)
class DiagnosticLabel:
    """Points to a specific source location."""

    span: Span
    message: str
    style: str = "primary"  # "primary" or "secondary"


@dataclass(frozen=True)
class Suggestion:
    """A suggested fix."""

    message: str
    replacement: str


@dataclass(frozen=True)
class Diagnostic:
    """A single diagnostic message with labels, notes and suggestions."""

    severity: Severity
    code: str
    message: str
    labels: tuple[DiagnosticLabel, ...] = ()
    suggestions: tuple[Suggestion, ...] = ()
    notes: tuple[str, ...] = ()

    @property
    def span(self) -> Span | None:
        """The primary span, if any."""
        return self.labels[0].span if self.labels else None


class Diagnostics:
    """Append-only diagnostic sink for one translation unit."""

    def __init__(self) -> None:
        self._records: list[Diagnostic] = []

    def append(self, diag: Diagnostic) -> None:
        self._records.append(diag)

    def report(self, err: FrontendError) -> Diagnostic:
        diag = err.to_diagnostic()
        self._records.append(diag)
        return diag

    def error(self, code: str, message: str, span: Span) -> None:
        self._records.append(Diagnostic(
            severity=Severity.ERROR,
            code=code,
            message=message,
            labels=(DiagnosticLabel(span=span, message=""),),
        ))

    def warning(self, code: str, message: str, span: Span) -> None:
        self._records.append(Diagnostic(
            severity=Severity.WARNING,
            code=code,
            message=message,
            labels=(DiagnosticLabel(span=span, message=""),),
        ))

    def has_errors(self) -> bool:
        return any(d.severity == Severity.ERROR for d in self._records)

    @property
    def errors(self) -> list[Diagnostic]:
        return [d for d in self._records if d.severity == Severity.ERROR]

    @property
    def warnings(self) -> list[Diagnostic]:
        return [d for d in self._records if d.severity == Severity.WARNING]

    def codes(self) -> list[str]:
        return [d.code for d in self._records]

    def __iter__(self) -> Iterator[Diagnostic]:
        return iter(list(self._records))

    def __len__(self) -> int:
        return len(self._records)

    def __bool__(self) -> bool:
        return bool(self._records)


# ── Error taxonomy ────────────────────────────────────────────────


class FrontendError(Exception):
    """Base for every recoverable lexing, parsing or semantic error."""

    code = "E000"

    def __init__(
        self,
        message: str,
        span: Span,
        *,
        notes: tuple[str, ...] = (),
        suggestions: tuple[Suggestion, ...] = (),
    ) -> None:
        super().__init__(message)
        self.message = message
        self.span = span
        self.notes = notes
        self.suggestions = suggestions

    def to_diagnostic(self) -> Diagnostic:
        return Diagnostic(
            severity=Severity.ERROR,
            code=self.code,
            message=self.message,
            labels=(DiagnosticLabel(span=self.span, message=self.label()),),
            suggestions=self.suggestions,
            notes=self.notes,
        )

    def label(self) -> str:
        return ""


class LexError(FrontendError):
    pass


class InvalidCharacter(LexError):
    code = "E100"

    def __init__(self, ch: str, span: Span) -> None:
        super().__init__(f"unexpected character: {ch!r}", span)
        self.char = ch


class UnterminatedLiteral(LexError):
    code = "E101"

    def __init__(self, span: Span) -> None:
        super().__init__("unterminated string literal", span)


class InvalidInteger(LexError):
    code = "E102"

    def __init__(self, text: str, reason: str, span: Span) -> None:
        shown = text if len(text) <= 24 else f"{text[:12]}...{text[-4:]} ({len(text)} digits)"
        super().__init__(f"invalid integer {shown}: {reason}", span)
        self.text = text
        self.reason = reason


class UnterminatedComment(LexError):
    code = "E103"

    def __init__(self, span: Span) -> None:
        super().__init__("unterminated block comment", span)


class ParseError(FrontendError):
    pass


class UnexpectedToken(ParseError):
    code = "E200"

    def __init__(self, expected: frozenset[TokenKind], found: Token) -> None:
        from ruffle.tokens import VALUED_KINDS, describe

        names = sorted(describe(k) for k in expected)
        wanted = names[0] if len(names) == 1 else "one of " + ", ".join(names)
        shown = describe(found.kind)
        if found.kind in VALUED_KINDS:
            shown = f"{shown} {found.value!r}"
        super().__init__(f"expected {wanted}, found {shown}", found.span)
        self.expected = expected
        self.found = found

    def label(self) -> str:
        return "cannot start or continue a type here"


class AmbiguousErrorChain(ParseError):
    code = "E201"

    def __init__(self, span: Span, nested: str | None = None) -> None:
        super().__init__(
            "chained error union needs parentheses",
            span,
            suggestions=(Suggestion("nest the error type explicitly", nested or "T!(E!F)"),),
        )
        self.nested = nested

    def label(self) -> str:
        return "second `!` in an unparenthesized chain"


class UnclosedParenthesis(ParseError):
    code = "E202"

    def __init__(self, span: Span, found: Token) -> None:
        from ruffle.tokens import describe

        super().__init__(f"unclosed parenthesis, found {describe(found.kind)}", span)
        self.found = found

    def label(self) -> str:
        return "this `(` is never closed"


class NestingTooDeep(ParseError):
    code = "E203"

    def __init__(self, span: Span, limit: int) -> None:
        super().__init__(
            f"type is nested more than {limit} parentheses deep", span,
        )
        self.limit = limit

    def label(self) -> str:
        return "nesting limit reached here"


class SemanticError(FrontendError):
    pass


class UnknownType(SemanticError):
    code = "E300"

    def __init__(self, name: str, span: Span) -> None:
        super().__init__(f"unknown type `{name}`", span)
        self.name = name


class OptionalError(SemanticError):
    code = "E301"

    def __init__(self, span: Span) -> None:
        super().__init__(
            "error type cannot be optional",
            span,
            notes=("an error arm must name a concrete type or another error union",),
        )


class DuplicateType(SemanticError):
    code = "E302"

    def __init__(self, name: str, span: Span, first: Span) -> None:
        super().__init__(f"type `{name}` is declared more than once", span)
        self.name = name
        self.first = first

    def to_diagnostic(self) -> Diagnostic:
        return Diagnostic(
            severity=Severity.ERROR,
            code=self.code,
            message=self.message,
            labels=(
                DiagnosticLabel(span=self.span, message="redeclared here"),
                DiagnosticLabel(span=self.first, message="first declared here",
                                style="secondary"),
            ),
        )


# ── Rendering ─────────────────────────────────────────────────────


class DiagnosticRenderer:
    """Renders diagnostics in Rust-style format with colors."""

    def __init__(self, *, color: bool = True, sources: dict[str, str] | None = None) -> None:
        self.color = color
        self._file_cache: dict[str, list[str]] = {}
        for name, text in (sources or {}).items():
            self.add_source(name, text)

    def add_source(self, name: str, text: str) -> None:
        """Register in-memory text so rendering never re-reads the file."""
        self._file_cache[name] = text.splitlines()

    def _c(self, code: str) -> str:
        return code if self.color else ""

    def _get_source_line(self, filename: str, line_num: int) -> str | None:
        """Load and cache source file, return the 1-indexed line."""
        if filename not in self._file_cache:
            try:
                path = Path(filename)
                if path.is_file():
                    self._file_cache[filename] = path.read_text().splitlines()
                else:
                    self._file_cache[filename] = []
            except OSError:
                self._file_cache[filename] = []
        lines = self._file_cache[filename]
        if 1 <= line_num <= len(lines):
            return lines[line_num - 1]
        return None

    def render(self, diag: Diagnostic) -> str:
        lines: list[str] = []
        sev = diag.severity
        color = _COLORS[sev]

        # Header: error[E201]: message
        lines.append(
            f"{self._c(color)}{sev.value}[{diag.code}]{self._c(_RESET)}"
            f"{self._c(_BOLD)}: {diag.message}{self._c(_RESET)}"
        )

        for label in diag.labels:
            span = label.span
            loc = f"{span.file}:{span.start_line}:{span.start_col}"
            lines.append(
                f"  {self._c(_BLUE)}-->{self._c(_RESET)} {loc}"
            )
            gutter = f"{span.start_line:>4}"
            lines.append(f"  {self._c(_BLUE)}   |{self._c(_RESET)}")

            source_line = self._get_source_line(span.file, span.start_line)
            if source_line is not None:
                lines.append(
                    f"  {self._c(_BLUE)}{gutter} |{self._c(_RESET)} {source_line}"
                )

            if span.start_line == span.end_line:
                caret_len = max(1, span.end_col - span.start_col + 1)
                padding = " " * (span.start_col - 1)
                mark = "^" if label.style == "primary" else "-"
                lines.append(
                    f"  {self._c(_BLUE)}   |{self._c(_RESET)} "
                    f"{padding}{self._c(color)}{mark * caret_len}{self._c(_RESET)}"
                )
            elif source_line is None:
                lines.append(
                    f"  {self._c(_BLUE)}{gutter} |{self._c(_RESET)}"
                )

            if label.message:
                lines.append(
                    f"  {self._c(_BLUE)}   |{self._c(_RESET)}   "
                    f"{self._c(color)}{label.message}{self._c(_RESET)}"
                )

        for note in diag.notes:
            lines.append(f"  {self._c(_BLUE)}={self._c(_RESET)} note: {note}")

        for suggestion in diag.suggestions:
            lines.append(
                f"  {self._c(_BLUE)}try:{self._c(_RESET)} {suggestion.replacement}"
            )

        return "\n".join(lines)


class CompileError(Exception):
    """Batch compilation error carrying multiple diagnostics."""

    def __init__(self, diagnostics: list[Diagnostic]) -> None:
        self.diagnostics = diagnostics
        messages = [d.message for d in diagnostics]
        super().__init__(f"{len(diagnostics)} error(s): {'; '.join(messages)}")
