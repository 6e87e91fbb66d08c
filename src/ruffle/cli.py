"""Ruffle compiler CLI."""

from __future__ import annotations

import logging
from pathlib import Path

import click

from ruffle import __version__
from ruffle.config import CONFIG_NAME, find_config, load_config
from ruffle.errors import (
    CompileError,
    Diagnostic,
    DiagnosticRenderer,
    Diagnostics,
    FrontendError,
)
from ruffle.formatter import dump_type_expr, format_type, format_type_expr
from ruffle.frontend import compile_unit, compile_units
from ruffle.lexer import Lexer
from ruffle.normalizer import normalize
from ruffle.parser import parse_type_source
from ruffle.project import scaffold
from ruffle.source import SourceFile, Span
from ruffle.symbols import SymbolTable
from ruffle.types import TypeKind, type_name

logger = logging.getLogger(__name__)


def _echo_diagnostics(renderer: DiagnosticRenderer, diagnostics: list[Diagnostic]) -> None:
    for diag in diagnostics:
        click.echo(renderer.render(diag), err=True)


@click.group()
@click.version_option(__version__, prog_name="ruffle")
@click.option("-v", "--verbose", is_flag=True, help="Log front-end progress to stderr.")
def main(verbose: bool) -> None:
    """The Ruffle compiler front end."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(levelname)s %(name)s: %(message)s",
        )


@main.command()
@click.argument("name")
def new(name: str) -> None:
    """Create a new Ruffle project."""
    try:
        project_dir = scaffold(name)
        click.echo(f"created project '{name}' at {project_dir}")
    except FileExistsError as e:
        click.echo(f"error: {e}", err=True)
        raise SystemExit(1)


@main.command()
@click.argument("path", default=".", type=click.Path(exists=True))
def check(path: str) -> None:
    """Check every type annotation in a Ruffle project."""
    try:
        config_path = find_config(Path(path))
    except FileNotFoundError:
        click.echo(f"error: no {CONFIG_NAME} found", err=True)
        raise SystemExit(1)
    config = load_config(config_path)
    project_dir = config_path.parent
    click.echo(f"checking {config.package.name}...")

    src_dir = project_dir / config.build.source_dir
    if not src_dir.is_dir():
        src_dir = project_dir  # fallback to project root

    rf_files = sorted(src_dir.rglob("*.rf"))
    if not rf_files:
        click.echo("warning: no .rf files found", err=True)
        return

    units = [SourceFile.read(p) for p in rf_files]
    logger.debug("checking %d unit(s) with %d job(s)", len(units), config.build.jobs)
    results = compile_units(units, jobs=config.build.jobs)

    renderer = DiagnosticRenderer(
        color=config.diagnostics.color,
        sources={u.name: u.text for u in units},
    )
    errors = warnings = 0
    for result in results:
        _echo_diagnostics(renderer, list(result.diagnostics))
        errors += len(result.diagnostics.errors)
        warnings += len(result.diagnostics.warnings)

    if errors or (warnings and config.diagnostics.deny_warnings):
        click.echo(
            f"check failed: {errors} error(s), {warnings} warning(s)", err=True,
        )
        raise SystemExit(1)
    click.echo(f"checked {config.package.name}: no errors, {warnings} warning(s)")


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
def tokens(file: str) -> None:
    """Dump the token stream of a Ruffle source file."""
    source = SourceFile.read(Path(file))
    diagnostics = Diagnostics()
    for tok in Lexer(source.text, source.name, diagnostics=diagnostics):
        span = tok.span
        click.echo(f"{span.start_line}:{span.start_col} {tok.kind.name} {tok.value!r}")

    renderer = DiagnosticRenderer(color=True, sources={source.name: source.text})
    _echo_diagnostics(renderer, list(diagnostics))
    if diagnostics.has_errors():
        raise SystemExit(1)


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
def types(file: str) -> None:
    """List every type annotation in a file with its canonical type."""
    source = SourceFile.read(Path(file))
    result = compile_unit(source.text, source.name)
    for checked in result.annotations:
        ann = checked.annotation
        span = ann.span
        where = f"{ann.owner}.{ann.name}" if ann.owner and ann.owner != ann.name else ann.name
        click.echo(
            f"{span.start_line}:{span.start_col} {ann.site.value} {where}: "
            f"{format_type_expr(ann.expr)} => {type_name(checked.type)}"
        )

    renderer = DiagnosticRenderer(color=True, sources={source.name: source.text})
    _echo_diagnostics(renderer, list(result.diagnostics))
    if not result.ok:
        raise SystemExit(1)


@main.command(name="type")
@click.argument("text")
@click.option("--declare", "-d", multiple=True, metavar="NAME",
              help="Declare a user type before normalizing (repeatable).")
def type_cmd(text: str, declare: tuple[str, ...]) -> None:
    """Parse and normalize a single type expression."""
    filename = "<type>"
    renderer = DiagnosticRenderer(color=True, sources={filename: text})

    symbols = SymbolTable.with_builtins()
    for name in declare:
        symbols.define_type(name, TypeKind.STRUCT, Span("<cli>", 0, 0, 0, 0))
    symbols.freeze()

    try:
        expr = parse_type_source(text, filename)
    except CompileError as e:
        _echo_diagnostics(renderer, e.diagnostics)
        raise SystemExit(1)
    except FrontendError as e:
        _echo_diagnostics(renderer, [e.to_diagnostic()])
        raise SystemExit(1)
    click.echo(f"raw:       {dump_type_expr(expr)}")

    diagnostics = Diagnostics()
    try:
        canonical = normalize(expr, symbols, diagnostics)
    except FrontendError as e:
        _echo_diagnostics(renderer, [*diagnostics, e.to_diagnostic()])
        raise SystemExit(1)
    _echo_diagnostics(renderer, list(diagnostics))
    click.echo(f"canonical: {format_type(canonical)}")


@main.command()
def lsp() -> None:
    """Start the Ruffle language server."""
    from ruffle.lsp import main as lsp_main

    lsp_main()
