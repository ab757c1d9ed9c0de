"""
sfcforge command line interface.

Commands:
- build: compile every component into a self-registering module
- i18n: export the localization sections of all components as language files
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from sfcforge import __version__
from sfcforge.core.config import BuildConfig, load_config
from sfcforge.core.environment import BuildMode
from sfcforge.core.errors import ConfigError, ExternalCompilerError
from sfcforge.core.results import BuildResult, ExportResult
from sfcforge.pipeline import BuildPass, export_languages

app = typer.Typer(
    help="sfcforge - build-time compiler for single-file UI components",
    no_args_is_help=True,
)

console = Console()

ProjectOption = Annotated[
    Path,
    typer.Option("--project", "-p", help="Project directory holding sfcforge.toml"),
]
ComponentsOption = Annotated[
    Path | None,
    typer.Option("--components", "-c", help="Component directory (overrides sfcforge.toml)"),
]
VerboseOption = Annotated[bool, typer.Option("--verbose", help="Show debug logging")]


def version_callback(value: bool) -> None:
    if value:
        typer.echo(f"sfcforge {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit",
        ),
    ] = None,
) -> None:
    """sfcforge CLI main callback for global options."""
    pass


def _setup_logging(verbose: bool) -> None:
    log_level = "DEBUG" if verbose else os.getenv("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _load(project_dir: Path, components: Path | None) -> BuildConfig:
    try:
        config = load_config(project_dir)
    except ConfigError as e:
        typer.echo(f"Configuration error: {e}", err=True)
        raise typer.Exit(code=1)
    if components is not None:
        config.build.components_dir = str(components)
    return config


def _print_build(result: BuildResult, mode: BuildMode) -> None:
    if not result.components:
        for warning in result.warnings:
            console.print(f"[yellow]{escape(warning)}[/yellow]")
        return

    table = Table(title=f"Components ({mode.value})")
    table.add_column("Component")
    table.add_column("State")
    table.add_column("Outputs")
    table.add_column("Error", overflow="fold")

    for component in result.components:
        outputs = ", ".join(f"{path.name} ({outcome.value})" for path, outcome in component.outputs.items())
        state = component.state.value
        table.add_row(
            component.name,
            f"[green]{state}[/green]" if component.success else f"[red]{state}[/red]",
            outputs,
            escape(component.error or ""),
        )

    console.print(table)
    for warning in result.warnings:
        console.print(f"[yellow]{escape(warning)}[/yellow]")

    built = len(result.components) - len(result.failed)
    console.print(
        f"{built}/{len(result.components)} component(s) built, "
        f"{len(result.files_written)} file(s) written"
    )


def _print_export(result: ExportResult) -> None:
    for name, error in result.errors.items():
        console.print(f"[red]{escape(name)}[/red]: {escape(error)}")
    if not result.success:
        console.print("[red]Language files not written[/red]")
        return

    console.print(f"Locales: {', '.join(result.locales) or '(none)'}")
    for path, outcome in result.outputs.items():
        console.print(f"  {escape(str(path))} ({outcome.value})")


@app.command(name="build")
def build_command(
    project_dir: ProjectOption = Path("."),
    mode: Annotated[
        BuildMode | None,
        typer.Option("--mode", "-m", help="Build mode (overrides SFCFORGE_MODE and sfcforge.toml)"),
    ] = None,
    components: ComponentsOption = None,
    timeout: Annotated[
        float | None,
        typer.Option("--timeout", help="Template compiler timeout in seconds"),
    ] = None,
    workers: Annotated[
        int | None,
        typer.Option("--workers", "-j", min=1, help="Parallel component workers"),
    ] = None,
    verbose: VerboseOption = False,
) -> None:
    """
    Compile all components into modules.

    Examples:
        sfcforge build                      # Mode from SFCFORGE_MODE or sfcforge.toml
        sfcforge build --mode release       # Precompile templates with node
        sfcforge build -c website/vue -j 8  # Custom component directory
    """
    _setup_logging(verbose)
    project_path = project_dir.resolve()
    config = _load(project_path, components)
    if timeout is not None:
        config.compiler.timeout = timeout
    if workers is not None:
        config.build.workers = workers

    build_pass = BuildPass(project_path, config, mode=mode)
    try:
        result = build_pass.run()
    except ExternalCompilerError as e:
        typer.echo(f"Template compilation failed: {e}", err=True)
        raise typer.Exit(code=1)

    _print_build(result, build_pass.mode)
    if not result.success:
        raise typer.Exit(code=1)


@app.command(name="i18n")
def i18n_command(
    project_dir: ProjectOption = Path("."),
    components: ComponentsOption = None,
    verbose: VerboseOption = False,
) -> None:
    """
    Export the <i18n> sections of all components as language files.

    Writes languages.json and language_<code>.json to the JSON directory and,
    unless disabled, languages.js to the JS directory.
    """
    _setup_logging(verbose)
    project_path = project_dir.resolve()
    config = _load(project_path, components)

    result = export_languages(project_path, config)
    _print_export(result)
    if not result.success:
        raise typer.Exit(code=1)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
