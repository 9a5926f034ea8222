"""crapcov CLI - crapcov command."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any

import click
import structlog

from crapcov import __version__
from crapcov.config.loader import load_config
from crapcov.config.models import CrapcovConfig
from crapcov.core.errors import CrapcovError
from crapcov.core.logging import configure_logging, set_run_id
from crapcov.orchestrator import build_provider, score_units
from crapcov.units import dump_risk_entries, load_code_units

log = structlog.get_logger(__name__)

_PATH = click.Path(path_type=str)


_COVERAGE_OPTIONS = (
    click.option("--xcresult", type=_PATH, help="Path to .xcresult bundle for coverage data"),
    click.option("--profdata", type=_PATH, help="Path to .profdata file for LLVM coverage"),
    click.option("--binary", type=_PATH, help="Path to binary for LLVM coverage"),
    click.option("--xccov-json", type=_PATH, help="Pre-exported xccov JSON report"),
    click.option("--llvm-cov-json", type=_PATH, help="Pre-exported llvm-cov JSON export"),
    click.option("--timeout", type=float, help="Coverage export timeout in seconds"),
    click.option(
        "--config-dir",
        type=click.Path(exists=True, file_okay=False, path_type=Path),
        default=None,
        help="Directory containing .crapcov.yml (default: current directory)",
    ),
)


def coverage_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Attach the shared coverage-source options."""
    for option in reversed(_COVERAGE_OPTIONS):
        func = option(func)
    return func


def _load(ctx: click.Context, options: dict[str, Any]) -> CrapcovConfig:
    """Resolve config from CLI flags, env and .crapcov.yml, then set up logging."""
    overrides = {
        "xcresult": options.pop("xcresult"),
        "profdata": options.pop("profdata"),
        "binary": options.pop("binary"),
        "xccov_json": options.pop("xccov_json"),
        "llvm_cov_json": options.pop("llvm_cov_json"),
        "export_timeout_sec": options.pop("timeout"),
    }
    coverage = {k: v for k, v in overrides.items() if v is not None}
    kwargs: dict[str, Any] = {"coverage": coverage} if coverage else {}
    config = load_config(options.pop("config_dir"), **kwargs)

    if not ctx.obj.get("verbose"):
        configure_logging(config=config.logging)
    set_run_id()
    return config


def _fail(error: CrapcovError) -> click.ClickException:
    message = str(error)
    output = error.details.get("output")
    if output:
        message = f"{message}\n{output}"
    return click.ClickException(message)


@click.group()
@click.version_option(version=__version__, prog_name="crapcov")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """crapcov - CRAP risk scores from complexity and test coverage."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    configure_logging(level="DEBUG" if verbose else "WARNING")


@cli.command("score")
@click.argument("units", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@coverage_options
@click.pass_context
def score_command(ctx: click.Context, units: Path, **options: Any) -> None:
    """Score code units against measured coverage.

    UNITS is a JSON array of {name, file, start_line, end_line, complexity}.
    Prints risk entries as JSON, in input order.
    """
    try:
        config = _load(ctx, options)
        code_units = load_code_units(units)
        provider = build_provider(config.coverage)
        entries = score_units(code_units, provider)
    except CrapcovError as e:
        log.error("score_failed", error=e.error_name, **e.details)
        raise _fail(e) from e

    click.echo(dump_risk_entries(entries))


@cli.command("query")
@click.argument("file", type=str)
@click.argument("start_line", type=click.IntRange(min=1))
@click.argument("end_line", type=click.IntRange(min=1))
@coverage_options
@click.pass_context
def query_command(
    ctx: click.Context,
    file: str,
    start_line: int,
    end_line: int,
    **options: Any,
) -> None:
    """Show coverage of FILE between START_LINE and END_LINE (inclusive)."""
    try:
        config = _load(ctx, options)
        provider = build_provider(config.coverage)
    except CrapcovError as e:
        log.error("query_failed", error=e.error_name, **e.details)
        raise _fail(e) from e

    if provider is None:
        raise click.UsageError("No coverage source configured.")

    cov = provider.coverage(file, start_line, end_line)
    if cov is None:
        click.echo("no data")
    else:
        click.echo(f"{cov:.1f}%")


if __name__ == "__main__":
    cli()
