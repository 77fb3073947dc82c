"""CLI command implementations"""

import logging
from typing import Annotated, Optional

import typer

from mdsite.config import Settings, load_config
from mdsite.core.builder import build_site, compose_site
from mdsite.core.compose import format_date
from mdsite.errors import BuildFailed


def _fail(msg: str, cause: Exception = None) -> None:
    """Print a user-friendly error to stderr and exit 1."""
    typer.echo(f"Error: {msg}", err=True)
    if cause:
        typer.echo(f"  {cause}", err=True)
    raise typer.Exit(1)


def _settings(overrides: dict = None) -> Settings:
    """Load config with standard CLI error handling."""
    try:
        return load_config(overrides=overrides)
    except ValueError as e:
        _fail(str(e))


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.ERROR,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _report_failure(e: BuildFailed) -> None:
    """Print every collected build error, then exit 1."""
    for error in e.errors:
        typer.echo(f"  {error}", err=True)
    _fail(str(e))


def _echo_warnings(warnings: list) -> None:
    for warning in warnings:
        typer.echo(f"Warning: {warning}", err=True)


SourceOpt = Annotated[Optional[str], typer.Option("--source", help="Content source root")]
StrictOpt = Annotated[Optional[bool], typer.Option("--strict/--no-strict", help="Treat broken internal links as fatal")]
VerboseOpt = Annotated[bool, typer.Option("--verbose", "-v", help="Log each build step")]


def build_cmd(
    source: SourceOpt = None,
    out: Annotated[Optional[str], typer.Option("--out-dir", help="Output root")] = None,
    excerpt: Annotated[Optional[int], typer.Option("--excerpt-length", help="Excerpt length in characters")] = None,
    workers: Annotated[Optional[int], typer.Option("--workers", help="Thread pool size; 0 = cpu count")] = None,
    strict: StrictOpt = None,
    verbose: VerboseOpt = False,
    ):
    """Render the content tree and write the site to the output root."""
    _configure_logging(verbose)
    settings = _settings(overrides={
        "source_root": source, "output_root": out,
        "excerpt_length": excerpt, "workers": workers, "strict_links": strict,
    })
    try:
        result = build_site(settings)
    except BuildFailed as e:
        _report_failure(e)
    except OSError as e:
        _fail("Build failed", e)
    _echo_warnings(result.warnings)
    for rel in result.written:
        typer.echo(f"  {rel}")
    typer.echo(f"Built {len(result.written)} page(s) to {result.output_root}/")


def check_cmd(
    source: SourceOpt = None,
    strict: StrictOpt = None,
    verbose: VerboseOpt = False,
    ):
    """Run the whole pipeline without writing anything and report problems."""
    _configure_logging(verbose)
    settings = _settings(overrides={"source_root": source, "strict_links": strict})
    try:
        output = compose_site(settings)
    except BuildFailed as e:
        _report_failure(e)
    except OSError as e:
        _fail("Check failed", e)
    _echo_warnings(output.warnings)
    typer.echo(f"OK - {len(output.files)} page(s), {len(output.warnings)} warning(s)")


def list_cmd(
    source: SourceOpt = None,
    ):
    """List each collection and its entries in published order."""
    settings = _settings(overrides={"source_root": source})
    try:
        output = compose_site(settings)
    except BuildFailed as e:
        _report_failure(e)
    except OSError as e:
        _fail("List failed", e)
    if not output.collections:
        typer.echo("No collections configured.")
        raise typer.Exit(1)
    for name, collection in output.collections.items():
        typer.echo(f"{name} ({len(collection)})")
        for entry in collection:
            date = format_date(entry.date) or "----------"
            typer.echo(f"  {date}  {entry.route}  {entry.title or ''}".rstrip())
