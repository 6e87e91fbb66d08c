"""Source text representation and span tracking for diagnostics."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class Span:
    """A range within a translation unit.

    Lines and columns are 1-indexed and ``end_col`` is inclusive.
    Offsets are 0-indexed, half-open character offsets into the text.
    """

    file: str
    start_line: int
    start_col: int
    end_line: int
    end_col: int
    start_offset: int = 0
    end_offset: int = 0

    def __str__(self) -> str:
        return f"{self.file}:{self.start_line}:{self.start_col}"

    def to(self, other: Span) -> Span:
        """Span covering from the start of self to the end of other."""
        return Span(
            self.file,
            self.start_line, self.start_col,
            other.end_line, other.end_col,
            self.start_offset, other.end_offset,
        )


def rows_cols_index(text: str, index: int) -> tuple[int, int]:
    """Return the 1-indexed (line, col) of a character offset.

    Offsets past the end clamp to the position after the last character.
    """
    line = 1
    col = 1
    for i, ch in enumerate(text):
        if i == index:
            break
        if ch == '\n':
            line += 1
            col = 1
        else:
            col += 1
    return line, col


class SourceFile:
    """The in-memory text of one translation unit."""

    def __init__(self, name: str, text: str) -> None:
        self.name = name
        self.text = text
        self.lines = text.splitlines()

    @classmethod
    def read(cls, path: Path) -> SourceFile:
        return cls(str(path), path.read_text(encoding="utf-8"))

    def line_at(self, n: int) -> str:
        """Return the 1-indexed line, or empty string if out of range."""
        if 1 <= n <= len(self.lines):
            return self.lines[n - 1]
        return ""

    def span_text(self, span: Span) -> str:
        """Extract the text covered by a span."""
        if span.end_offset > span.start_offset:
            return self.text[span.start_offset:span.end_offset]
        if span.start_line == span.end_line:
            line = self.line_at(span.start_line)
            return line[span.start_col - 1 : span.end_col]
        parts = []
        for ln in range(span.start_line, span.end_line + 1):
            line = self.line_at(ln)
            if ln == span.start_line:
                parts.append(line[span.start_col - 1 :])
            elif ln == span.end_line:
                parts.append(line[: span.end_col])
            else:
                parts.append(line)
        return "\n".join(parts)
