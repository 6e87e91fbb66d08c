"""Ruffle Language Server: pygls-based LSP for .rf files.

Provides diagnostics, hover with canonical types, type-name completion
and document symbols via stdio transport.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from lsprotocol import types as lsp
from pygls.lsp.server import LanguageServer

from ruffle import __version__
from ruffle.ast_nodes import DeclKind, TypeAnnotation, TypeDecl
from ruffle.checker import CheckedAnnotation
from ruffle.errors import Diagnostic, Severity
from ruffle.formatter import format_type_expr
from ruffle.frontend import UnitResult, compile_unit
from ruffle.source import Span
from ruffle.types import BUILTIN_TYPES, type_name

logger = logging.getLogger(__name__)

# ── Conversion helpers ────────────────────────────────────────────

_SEVERITY_MAP = {
    Severity.ERROR: lsp.DiagnosticSeverity.Error,
    Severity.WARNING: lsp.DiagnosticSeverity.Warning,
    Severity.NOTE: lsp.DiagnosticSeverity.Information,
}

_DECL_KIND_MAP = {
    DeclKind.STRUCT: lsp.SymbolKind.Struct,
    DeclKind.ENUM: lsp.SymbolKind.Enum,
    DeclKind.CLASS: lsp.SymbolKind.Class,
}

_DECL_COMPLETION_KIND = {
    DeclKind.STRUCT: lsp.CompletionItemKind.Struct,
    DeclKind.ENUM: lsp.CompletionItemKind.Enum,
    DeclKind.CLASS: lsp.CompletionItemKind.Class,
}


def span_to_range(span: Span) -> lsp.Range:
    """Convert a 1-indexed Ruffle Span to a 0-indexed LSP Range."""
    return lsp.Range(
        start=lsp.Position(line=max(span.start_line - 1, 0),
                           character=max(span.start_col - 1, 0)),
        end=lsp.Position(line=max(span.end_line - 1, 0), character=span.end_col),
    )


def _contains(span: Span, line: int, character: int) -> bool:
    """Whether the 0-indexed LSP position falls inside ``span``."""
    ln, col = line + 1, character + 1
    if ln < span.start_line or ln > span.end_line:
        return False
    if ln == span.start_line and col < span.start_col:
        return False
    if ln == span.end_line and col > span.end_col:
        return False
    return True


# ── Per-document state ────────────────────────────────────────────


@dataclass
class DocumentState:
    """Cached analysis results for a single open document."""

    source: str = ""
    result: UnitResult | None = None
    diagnostics: list[lsp.Diagnostic] = field(default_factory=list)


# ── Server ────────────────────────────────────────────────────────

server = LanguageServer(
    "ruffle-lsp", __version__,
    text_document_sync_kind=lsp.TextDocumentSyncKind.Full,
)
_state: dict[str, DocumentState] = {}


def _compile_diag(d: Diagnostic) -> lsp.Diagnostic:
    """Convert a ruffle Diagnostic to an LSP Diagnostic."""
    span_range = lsp.Range(start=lsp.Position(0, 0), end=lsp.Position(0, 0))
    if d.span is not None:
        span_range = span_to_range(d.span)
    message = f"[{d.code}] {d.message}"
    if d.notes:
        message += "\n" + "\n".join(f"note: {n}" for n in d.notes)
    for s in d.suggestions:
        message += f"\n{s.message}: {s.replacement}"
    return lsp.Diagnostic(
        range=span_range,
        severity=_SEVERITY_MAP.get(d.severity, lsp.DiagnosticSeverity.Error),
        source="ruffle",
        code=d.code,
        message=message,
    )


def _analyze(uri: str, source: str) -> DocumentState:
    """Run the front end over one document, cache results, return state."""
    ds = DocumentState(source=source)
    result = compile_unit(source, uri)
    ds.result = result
    ds.diagnostics = [_compile_diag(d) for d in result.diagnostics]
    logger.debug("%s: %d diagnostic(s)", uri, len(ds.diagnostics))
    _state[uri] = ds
    return ds


def _annotation_at(ds: DocumentState, line: int, character: int) -> CheckedAnnotation | None:
    if ds.result is None:
        return None
    for checked in ds.result.annotations:
        if _contains(checked.annotation.span, line, character):
            return checked
    return None


def _decl_at(ds: DocumentState, line: int, character: int) -> TypeDecl | None:
    if ds.result is None:
        return None
    for decl in ds.result.outline.declarations:
        if _contains(decl.span, line, character):
            return decl
    return None


def _annotation_hover(ann: TypeAnnotation, ty: str) -> str:
    written = format_type_expr(ann.expr)
    text = f"**{ann.site.value}** `{ann.name}` : `{written}`"
    if ty != written:
        text += f"\n\ncanonical: `{ty}`"
    return text


# ── LSP Feature Handlers ─────────────────────────────────────────


@server.feature(lsp.TEXT_DOCUMENT_DID_OPEN)
def did_open(params: lsp.DidOpenTextDocumentParams) -> None:
    uri = params.text_document.uri
    ds = _analyze(uri, params.text_document.text)
    server.text_document_publish_diagnostics(lsp.PublishDiagnosticsParams(
        uri=uri,
        diagnostics=ds.diagnostics,
    ))


@server.feature(lsp.TEXT_DOCUMENT_DID_CHANGE)
def did_change(params: lsp.DidChangeTextDocumentParams) -> None:
    uri = params.text_document.uri
    # Full sync: take last content change
    source = params.content_changes[-1].text if params.content_changes else ""
    ds = _analyze(uri, source)
    server.text_document_publish_diagnostics(lsp.PublishDiagnosticsParams(
        uri=uri,
        diagnostics=ds.diagnostics,
    ))


@server.feature(lsp.TEXT_DOCUMENT_DID_CLOSE)
def did_close(params: lsp.DidCloseTextDocumentParams) -> None:
    _state.pop(params.text_document.uri, None)


@server.feature(lsp.TEXT_DOCUMENT_HOVER)
def hover(params: lsp.HoverParams) -> lsp.Hover | None:
    ds = _state.get(params.text_document.uri)
    if ds is None:
        return None
    line, character = params.position.line, params.position.character

    checked = _annotation_at(ds, line, character)
    if checked is not None:
        content = _annotation_hover(checked.annotation, type_name(checked.type))
        return lsp.Hover(
            contents=lsp.MarkupContent(kind=lsp.MarkupKind.Markdown, value=content),
            range=span_to_range(checked.annotation.span),
        )

    decl = _decl_at(ds, line, character)
    if decl is not None:
        content = f"**{decl.kind.value}** `{decl.name}`"
        if decl.parent:
            content += f" : `{decl.parent}`"
        return lsp.Hover(
            contents=lsp.MarkupContent(kind=lsp.MarkupKind.Markdown, value=content),
            range=span_to_range(decl.span),
        )
    return None


@server.feature(
    lsp.TEXT_DOCUMENT_COMPLETION,
    lsp.CompletionOptions(trigger_characters=[":", "!", "("]),
)
def completion(params: lsp.CompletionParams) -> lsp.CompletionList:
    ds = _state.get(params.text_document.uri)
    items: list[lsp.CompletionItem] = []

    for name in BUILTIN_TYPES:
        items.append(lsp.CompletionItem(
            label=name,
            kind=lsp.CompletionItemKind.TypeParameter,
            detail="builtin",
        ))

    if ds is not None and ds.result is not None:
        for decl in ds.result.outline.declarations:
            items.append(lsp.CompletionItem(
                label=decl.name,
                kind=_DECL_COMPLETION_KIND[decl.kind],
                detail=decl.kind.value,
            ))

    return lsp.CompletionList(is_incomplete=False, items=items)


@server.feature(lsp.TEXT_DOCUMENT_DOCUMENT_SYMBOL)
def document_symbol(params: lsp.DocumentSymbolParams) -> list[lsp.DocumentSymbol]:
    ds = _state.get(params.text_document.uri)
    if ds is None or ds.result is None:
        return []
    return [_decl_to_symbol(decl) for decl in ds.result.outline.declarations]


def _decl_to_symbol(decl: TypeDecl) -> lsp.DocumentSymbol:
    """Convert a type declaration to an LSP DocumentSymbol."""
    return lsp.DocumentSymbol(
        name=decl.name,
        kind=_DECL_KIND_MAP[decl.kind],
        range=span_to_range(decl.span),
        selection_range=span_to_range(decl.span),
        detail=f"{decl.kind.value} : {decl.parent}" if decl.parent else decl.kind.value,
    )


# ── Entry point ──────────────────────────────────────────────────


def main() -> None:
    """Start the Ruffle language server on stdio."""
    server.start_io()
