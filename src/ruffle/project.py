"""Project scaffolding for `ruffle new`."""

from __future__ import annotations

from pathlib import Path

_RUFFLE_TOML_TEMPLATE = """\
[package]
name = "{name}"
version = "0.1.0"
authors = []

[build]
source_dir = "src"
jobs = 1

[diagnostics]
color = true
deny_warnings = false
"""

_MAIN_RF_TEMPLATE = """\
// Hello from Ruffle!
enum Error {
    NotFound,
    Denied,
}

struct Config {
    port: u16?,
    host: str,
}

fn load(path: str) -> Config!Error {
}

fn lookup(key: str) i32!Error? {
}

fn main() !Error {
    let config: Config!Error = load("ruffle.conf");
}
"""

_GITIGNORE = """\
build/
__pycache__/
"""


def scaffold(name: str, parent: Path | None = None) -> Path:
    """Create a new Ruffle project directory. Returns the project path."""
    base = parent or Path.cwd()
    project_dir = base / name

    if project_dir.exists():
        raise FileExistsError(f"Directory '{name}' already exists")

    src_dir = project_dir / "src"
    src_dir.mkdir(parents=True)

    (project_dir / "ruffle.toml").write_text(_RUFFLE_TOML_TEMPLATE.format(name=name))
    (src_dir / "main.rf").write_text(_MAIN_RF_TEMPLATE)
    (project_dir / ".gitignore").write_text(_GITIGNORE)

    return project_dir
