"""Thin CLI wrapper for apidocs_builder.

This module provides the command-line interface using Typer.
All business logic is delegated to core modules.
"""

import json
import logging
import sys
from pathlib import Path
from typing import Annotated, Any

import typer
from rich.console import Console
from rich.logging import RichHandler

from apidocs_builder import __version__
from apidocs_builder.config import Settings, get_settings, print_settings_json
from apidocs_builder.generation.specs import (
    SpecDescriptor,
    SpecsFileError,
    UnknownSpecError,
    resolve_specs,
)
from apidocs_builder.types import ALL_TARGET

app = typer.Typer(
    name="apidocs",
    help="API Docs Builder - cache-aware API reference generation and site builds",
    no_args_is_help=True,
)
console = Console()
err_console = Console(stderr=True)


def setup_logging(level: str) -> None:
    """Route library logging through Rich on stderr."""
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"apidocs-builder version {__version__}")
        raise typer.Exit()


def _print_json(data: Any) -> None:
    console.print(json.dumps(data, indent=2), soft_wrap=True, markup=False)


def _load_specs(
    settings: Settings,
    specs_file: Path | None,
) -> dict[str, SpecDescriptor]:
    try:
        return resolve_specs(settings.docs_dir, specs_file or settings.specs_file)
    except SpecsFileError as e:
        err_console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1) from None


SpecsFileOption = Annotated[
    Path | None,
    typer.Option("--specs-file", help="YAML/JSON file declaring the OpenAPI specs"),
]


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging"),
    ] = False,
) -> None:
    """API Docs Builder - cache-aware API reference generation and site builds."""
    setup_logging("DEBUG" if verbose else get_settings().log_level)


@app.command()
def config(
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON"),
    ] = False,
) -> None:
    """Show effective configuration."""
    settings = get_settings()
    if json_output:
        console.print(print_settings_json(settings), soft_wrap=True, markup=False)
    else:
        specs_file_display = (
            str(settings.specs_file) if settings.specs_file else "(built-in specs)"
        )
        console.print("[bold]Effective Configuration:[/bold]")
        console.print()
        console.print("[bold]Paths:[/bold]")
        console.print(f"  Docs directory:      {settings.docs_dir}")
        console.print(f"  Cache file:          {settings.cache_path}")
        console.print(f"  Specs file:          {specs_file_display}")
        console.print()
        console.print("[bold]Operational:[/bold]")
        console.print(f"  npm command:         {settings.npm_command}")
        console.print(f"  Log level:           {settings.log_level}")
        console.print(f"  Skip API docs:       {settings.skip_api_docs}")
        console.print(f"  Force API docs:      {settings.force_api_docs}")


@app.command()
def generate(
    target: Annotated[
        str,
        typer.Argument(help="Spec to generate: all, stable, experimental, ..."),
    ] = ALL_TARGET,
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Regenerate even if specs are unchanged"),
    ] = False,
    parallel: Annotated[
        bool,
        typer.Option("--parallel", help="Generate multiple specs in parallel"),
    ] = False,
    specs_file: SpecsFileOption = None,
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON"),
    ] = False,
) -> None:
    """Generate API reference docs, skipping specs whose hash is unchanged."""
    from apidocs_builder.generation.service import generate_api_docs
    from apidocs_builder.types import RunRequest

    settings = get_settings()
    specs = _load_specs(settings, specs_file)
    request = RunRequest(
        target=target,
        force=force or settings.force_api_docs,
        parallel=parallel,
    )

    try:
        # keep stdout a single JSON document
        report = generate_api_docs(
            request,
            settings,
            specs,
            generator_stdout=sys.stderr if json_output else None,
        )
    except UnknownSpecError as e:
        err_console.print(f"[red]Unknown target: {e.name}[/red]")
        err_console.print(f"Valid targets: {', '.join(e.valid_targets)}")
        raise typer.Exit(code=1) from None

    if json_output:
        _print_json(report.to_dict())
    elif not report.results:
        console.print(
            "[green]All API docs are up to date.[/green] Nothing to generate."
        )
        console.print("Use --force to regenerate anyway.")
    else:
        console.print()
        console.print("[bold]Generation Results:[/bold]")
        for r in report.results:
            if r.success:
                console.print(f"  [green]✓ {r.spec_name}[/green] ({r.duration:.1f}s)")
            else:
                console.print(f"  [red]✗ {r.spec_name}[/red]")
                if r.error_message:
                    console.print(f"      Error: {r.error_message}")
        for name in report.skipped:
            console.print(f"  [blue]- {name} (unchanged)[/blue]")
        console.print(f"Total time: {report.duration:.1f}s")

    if not report.success:
        raise typer.Exit(code=1)


@app.command()
def build(
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Force regeneration of API docs"),
    ] = False,
    parallel: Annotated[
        bool,
        typer.Option("--parallel", help="Generate API docs in parallel"),
    ] = False,
    skip_api: Annotated[
        bool,
        typer.Option("--skip-api", help="Skip API docs generation entirely"),
    ] = False,
    serve: Annotated[
        bool,
        typer.Option("--serve", help="Start a local server after building"),
    ] = False,
    specs_file: SpecsFileOption = None,
) -> None:
    """Build the documentation site with cached API docs generation."""
    from apidocs_builder.site.pipeline import BuildOptions, BuildStepError, build_site

    settings = get_settings()
    options = BuildOptions.from_settings(
        settings,
        force=force,
        parallel=parallel,
        skip_api=skip_api,
        serve=serve,
    )
    specs = None if options.skip_api else _load_specs(settings, specs_file)

    console.print("[bold]Documentation Builder[/bold]")
    try:
        report = build_site(options, settings, specs)
    except BuildStepError as e:
        err_console.print(f"[red]Build failed at step '{e.step.value}': {e}[/red]")
        raise typer.Exit(code=e.exit_code) from None
    except UnknownSpecError as e:
        err_console.print(f"[red]{e}[/red]")
        raise typer.Exit(code=1) from None

    console.print("[green]Build complete![/green]")
    console.print(f"Output: {report.output_dir}")


@app.command()
def status(
    specs_file: SpecsFileOption = None,
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON"),
    ] = False,
) -> None:
    """Show cached hashes and whether each spec would regenerate."""
    from apidocs_builder.generation.cache import GenerationCache
    from apidocs_builder.generation.service import check_specs

    settings = get_settings()
    specs = _load_specs(settings, specs_file)
    cache = GenerationCache.load(settings.cache_path)
    decisions = check_specs(ALL_TARGET, specs, cache)

    rows = []
    for d in decisions:
        entry = cache.get(d.spec_name)
        rows.append(
            {
                "spec": d.spec_name,
                "spec_path": str(specs[d.spec_name].spec_path),
                "output_dir": str(specs[d.spec_name].output_dir),
                "cached_hash": entry.hash if entry else None,
                "generated_at": entry.to_json_dict()["generatedAt"] if entry else None,
                "current_hash": d.current_hash,
                "regenerate": d.regenerate,
                "reason": d.reason.value,
            }
        )

    if json_output:
        _print_json(rows)
        return

    console.print(f"[bold]API docs status ({settings.cache_path}):[/bold]")
    console.print()
    for row in rows:
        marker = "[yellow]stale[/yellow]" if row["regenerate"] else "[green]ok[/green]"
        console.print(f"  {row['spec']}: {marker} ({row['reason']})")
        console.print(f"    Spec: {row['spec_path']}")
        console.print(f"    Output: {row['output_dir']}")
        if row["cached_hash"]:
            console.print(f"    Cached hash: {row['cached_hash'][:16]}")
            console.print(f"    Generated at: {row['generated_at']}")
        else:
            console.print("    Cached hash: (none)")
