"""Typer CLI for extracting and collecting web assets.

Provides:
- Global options (--config, -v/-vv, --version)
- ``extract``: reproduce an artifact's resource folder in the cache directory
- ``collect``: list the bytes a production bundle would include
- ``update-url``: rewrite a marker line inside an extracted file
- ``settings``: print the effective settings

Example:
    $ webjars extract com.acme:shop:1.0 org.webjars:ui:2.1 -r ui-2.1.jar --dev
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from . import __version__
from .api import copy_resources_for_dev_or_test, copy_resources_for_production, update_url_in_file
from .config import WebJarSettings, load_settings
from .errors import ConfigError, WebJarError
from .logging_config import setup_logging
from .models import ApplicationModel, ArtifactIdentity, ResourceArtifact
from .overrides import BrandingLookup, DirectoryBrandingLookup

__all__ = ["app", "CliContext", "get_context", "main"]

_console = Console()
_err_console = Console(stderr=True)

_DEFAULT_ROOT_FOLDER = "META-INF/resources/"


class CliContext:
    """Shared state for commands: settings and console."""

    def __init__(self, config: Optional[Path] = None, verbosity: int = 0) -> None:
        self.config = config
        self.verbosity = verbosity
        self.console = _console
        self.settings: WebJarSettings = load_settings(config)
        logging_config = self.settings.logging.model_copy()
        if verbosity >= 2:
            logging_config.level = "DEBUG"
        elif verbosity == 1:
            logging_config.level = "INFO"
        setup_logging(logging_config)


app = typer.Typer(
    name="webjars",
    help="Extract branded web assets from resource artifacts",
    no_args_is_help=True,
)

_context: Optional[CliContext] = None


def get_context() -> CliContext:
    """Return the current CLI context.

    Raises:
        RuntimeError: If the callback has not initialised the context.
    """

    if _context is None:
        raise RuntimeError("CLI context not initialized")
    return _context


def _fail(message: str, code: int) -> typer.Exit:
    _err_console.print(message, style="red", markup=False, soft_wrap=True)
    return typer.Exit(code)


def _parse_identity(coordinates: str) -> ArtifactIdentity:
    try:
        return ArtifactIdentity.parse(coordinates)
    except ConfigError as exc:
        raise _fail(str(exc), 2) from exc


def _bundled(bundled_dir: Optional[Path]) -> Optional[BrandingLookup]:
    return DirectoryBrandingLookup(bundled_dir) if bundled_dir is not None else None


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"webjars {__version__}")
        raise typer.Exit(0)


@app.callback(invoke_without_command=False)
def main(
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        envvar="WEBJARS_CONFIG",
        help="Path to a YAML settings file",
    ),
    verbosity: int = typer.Option(
        0,
        "--verbose",
        "-v",
        count=True,
        help="Increase verbosity (-v for INFO, -vv for DEBUG)",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version and exit",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """Web asset extraction with branding overrides."""

    global _context

    try:
        _context = CliContext(config=config, verbosity=verbosity)
    except ConfigError as exc:
        raise _fail(str(exc), 2) from exc


@app.command()
def extract(
    consumer: str = typer.Argument(..., help="Consumer coordinates group:name:version"),
    artifact: str = typer.Argument(..., help="Resource artifact coordinates group:name:version"),
    content_roots: List[Path] = typer.Option(
        ..., "--content-root", "-r", help="Archive or expanded directory (repeatable)"
    ),
    root_folder: str = typer.Option(
        _DEFAULT_ROOT_FOLDER, "--root-folder", help="Folder inside the artifact to reproduce"
    ),
    override_paths: List[Path] = typer.Option(
        [], "--override-path", "-o", help="Application root searched for branding overrides"
    ),
    bundled_dir: Optional[Path] = typer.Option(
        None, "--bundled-dir", help="Directory used as the bundled branding namespace"
    ),
    dev: bool = typer.Option(
        True, "--dev/--no-dev", help="Development mode reuses caches of stable versions"
    ),
) -> None:
    """Extract ROOT_FOLDER of ARTIFACT into the CONSUMER cache directory."""

    ctx = get_context()
    application = ApplicationModel(_parse_identity(consumer), paths=tuple(override_paths))
    resource = ResourceArtifact(_parse_identity(artifact), tuple(content_roots))
    try:
        path = copy_resources_for_dev_or_test(
            application,
            dev,
            resource,
            root_folder,
            settings=ctx.settings,
            bundled=_bundled(bundled_dir),
        )
    except WebJarError as exc:
        raise _fail(f"Error: {exc}", 1) from exc
    typer.echo(str(path))


@app.command()
def collect(
    artifact: str = typer.Argument(..., help="Resource artifact coordinates group:name:version"),
    content_roots: List[Path] = typer.Option(
        ..., "--content-root", "-r", help="Archive file (repeatable)"
    ),
    root_folder: str = typer.Option(
        _DEFAULT_ROOT_FOLDER, "--root-folder", help="Folder inside the artifact to collect"
    ),
    consumer: str = typer.Option(
        "local:application:0", "--consumer", help="Consumer coordinates group:name:version"
    ),
    override_paths: List[Path] = typer.Option(
        [], "--override-path", "-o", help="Application root searched for branding overrides"
    ),
    bundled_dir: Optional[Path] = typer.Option(
        None, "--bundled-dir", help="Directory used as the bundled branding namespace"
    ),
    as_json: bool = typer.Option(False, "--json", help="Emit JSON instead of a table"),
) -> None:
    """List the files a production bundle would contain for ARTIFACT."""

    ctx = get_context()
    application = ApplicationModel(_parse_identity(consumer), paths=tuple(override_paths))
    resource = ResourceArtifact(_parse_identity(artifact), tuple(content_roots))
    try:
        collected = copy_resources_for_production(
            application,
            resource,
            root_folder,
            settings=ctx.settings,
            bundled=_bundled(bundled_dir),
        )
    except WebJarError as exc:
        raise _fail(f"Error: {exc}", 1) from exc

    if as_json:
        typer.echo(json.dumps({path: len(data) for path, data in sorted(collected.items())}))
        return
    table = Table(title=f"{resource.identity.coordinates} ({len(collected)} files)")
    table.add_column("Path")
    table.add_column("Bytes", justify="right")
    for path, data in sorted(collected.items()):
        table.add_row(path, str(len(data)))
    ctx.console.print(table)


@app.command("update-url")
def update_url_cmd(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, help="File to rewrite"),
    new_path: str = typer.Argument(..., help="Value substituted into --format"),
    marker: str = typer.Option(..., "--marker", "-m", help="Stripped line prefix to match"),
    line_format: str = typer.Option(..., "--format", "-f", help="Replacement line, e.g. 'url: %s'"),
) -> None:
    """Rewrite the first line of FILE starting with MARKER."""

    ctx = get_context()
    try:
        changed = update_url_in_file(file, new_path, marker, line_format)
    except (OSError, UnicodeDecodeError, TypeError, ValueError) as exc:
        raise _fail(f"Error: {exc}", 1) from exc
    ctx.console.print("updated" if changed else "unchanged")


@app.command("settings")
def settings_cmd() -> None:
    """Print the effective settings as JSON."""

    ctx = get_context()
    typer.echo(ctx.settings.model_dump_json(indent=2))
