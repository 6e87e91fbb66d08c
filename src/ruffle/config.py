"""TOML config loading for ruffle.toml."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path

CONFIG_NAME = "ruffle.toml"


@dataclass
class PackageConfig:
    name: str = "untitled"
    version: str = "0.0.0"
    authors: list[str] = field(default_factory=list)


@dataclass
class BuildConfig:
    source_dir: str = "src"
    jobs: int = 1


@dataclass
class DiagnosticsConfig:
    color: bool = True
    deny_warnings: bool = False


@dataclass
class RuffleConfig:
    package: PackageConfig = field(default_factory=PackageConfig)
    build: BuildConfig = field(default_factory=BuildConfig)
    diagnostics: DiagnosticsConfig = field(default_factory=DiagnosticsConfig)


def find_config(start_path: Path | None = None) -> Path:
    """Walk up directories to find ruffle.toml. Raises FileNotFoundError."""
    path = (start_path or Path.cwd()).resolve()
    if path.is_file():
        path = path.parent
    while True:
        candidate = path / CONFIG_NAME
        if candidate.exists():
            return candidate
        parent = path.parent
        if parent == path:
            raise FileNotFoundError(f"No {CONFIG_NAME} found in any parent directory")
        path = parent


def load_config(path: Path) -> RuffleConfig:
    """Parse a ruffle.toml file into a RuffleConfig."""
    with open(path, "rb") as f:
        data = tomllib.load(f)

    config = RuffleConfig()

    if "package" in data:
        pkg = data["package"]
        config.package = PackageConfig(
            name=pkg.get("name", "untitled"),
            version=pkg.get("version", "0.0.0"),
            authors=pkg.get("authors", []),
        )

    if "build" in data:
        bld = data["build"]
        config.build = BuildConfig(
            source_dir=bld.get("source_dir", "src"),
            jobs=max(1, int(bld.get("jobs", 1))),
        )

    if "diagnostics" in data:
        dgn = data["diagnostics"]
        config.diagnostics = DiagnosticsConfig(
            color=dgn.get("color", True),
            deny_warnings=dgn.get("deny_warnings", False),
        )

    return config
