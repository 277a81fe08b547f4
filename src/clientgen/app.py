"""Typer application and CLI entry point for clientgen.

Commands:

* ``clientgen generate MODEL`` -- emit a client module (stdout or ``-o``);
* ``clientgen validate MODEL`` -- list model issues without emitting;
* ``clientgen inspect MODEL`` -- summarise what a model declares.

``MODEL`` is a file path, an ``http(s)://`` URL or ``-`` for stdin.

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. :class:`~clientgen.exceptions.ClientgenError` ends the
process with the error's exit code; anything else is written to a crash log
under the data directory.
"""

from __future__ import annotations

import logging
import signal
import sys
import traceback
from collections import Counter
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from clientgen import __version__
from clientgen.exit_codes import EXIT_GENERIC_FAILURE, EXIT_MODEL_DEFINITION_ERROR
from clientgen.models import ModelRegistry

app = typer.Typer(
    name="clientgen",
    help="Generate typed asynchronous API clients from declarative models.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

_log_handler: Optional[logging.Handler] = None


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"clientgen {__version__}")
        raise typer.Exit()


def _configure_logging(quiet: bool, verbose: bool, no_color: bool) -> None:
    """Send ``clientgen.*`` log records to stderr through Rich."""
    global _log_handler
    logger = logging.getLogger("clientgen")
    if _log_handler is not None:
        logger.removeHandler(_log_handler)

    _log_handler = RichHandler(
        console=Console(stderr=True, no_color=no_color),
        show_time=False,
        show_path=False,
    )
    logger.addHandler(_log_handler)
    logger.propagate = False
    if verbose:
        logger.setLevel(logging.DEBUG)
    elif quiet:
        logger.setLevel(logging.ERROR)
    else:
        logger.setLevel(logging.WARNING)


@app.callback()
def main_callback(
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress non-essential output."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug output."),
) -> None:
    """Initialise the global :class:`~clientgen.output.OutputManager` and logging."""
    from clientgen.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.JSON if json_output else OutputFormat.AUTO
    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))
    _configure_logging(quiet, verbose, no_color)


# ------------------------------------------------------------------ #
# Commands
# ------------------------------------------------------------------ #


def _load_registry(model: str) -> ModelRegistry:
    from clientgen.output import debug
    from clientgen.registry import load_model, registry_from_document, validate_model_version

    debug(f"Loading model from {model}")
    document = load_model(model)
    version = validate_model_version(document)
    debug(f"Model format version {version}")
    return registry_from_document(document)


@app.command("generate")
def generate_command(
    model: str = typer.Argument(..., help="Model document: file path, URL or '-' for stdin."),
    output_file: Optional[Path] = typer.Option(
        None, "-o", "--output", help="Write the module here instead of stdout."
    ),
    client_name: Optional[str] = typer.Option(
        None, "--client-name", help="Name of the emitted client class."
    ),
    runtime_module: Optional[str] = typer.Option(
        None, "--runtime-module", help="Module the emitted code imports its runtime from."
    ),
    target: Optional[str] = typer.Option(None, "--target", "-t", help="Emission backend."),
    base_type: Optional[str] = typer.Option(
        None, "--base-type", help="Common base class of entities."
    ),
    strict: Optional[bool] = typer.Option(
        None, "--strict/--no-strict", help="Abort on model errors instead of warning."
    ),
) -> None:
    """Generate a client module from MODEL."""
    from clientgen.config import resolve_config, write_output
    from clientgen.generator.driver import generate
    from clientgen.output import print_code, success

    config = resolve_config(
        cli_client_name=client_name,
        cli_runtime_module=runtime_module,
        cli_target=target,
        cli_base_type=base_type,
        cli_strict=strict,
    )
    registry = _load_registry(model)
    result = generate(registry, config)

    if output_file is None:
        print_code(result.code)
        return
    write_output(output_file, result.code)
    success(
        f"Wrote {config.client_name} with {len(result.unit.client.methods)} operation(s) "
        f"to {output_file}"
    )


@app.command("validate")
def validate_command(
    model: str = typer.Argument(..., help="Model document: file path, URL or '-' for stdin."),
) -> None:
    """Report model issues; exits non-zero when any is an error."""
    from clientgen.output import print_table, success
    from clientgen.registry import validate_registry

    registry = _load_registry(model)
    issues = validate_registry(registry)
    if not issues:
        success("No issues found.")
        return

    rows = [[i.severity.value, i.subject, i.message] for i in issues]
    print_table(["Severity", "Subject", "Message"], rows, title="Model issues")
    if any(i.is_error for i in issues):
        raise typer.Exit(code=EXIT_MODEL_DEFINITION_ERROR)


@app.command("inspect")
def inspect_command(
    model: str = typer.Argument(..., help="Model document: file path, URL or '-' for stdin."),
) -> None:
    """Summarise the declarations of MODEL."""
    from clientgen.output import print_mapping

    registry = _load_registry(model)
    summary: dict[str, Any] = {
        "enumerations": len(registry.enumerations),
        "entities": len(registry.entities),
        "wrappers": len(registry.wrappers),
        "methods": len(registry.methods),
    }
    by_type = Counter(m.method_type.value for m in registry.methods)
    for method_type in sorted(by_type):
        summary[f"methods.{method_type}"] = by_type[method_type]
    print_mapping(summary, title="Model summary")


# ------------------------------------------------------------------ #
# Entry point
# ------------------------------------------------------------------ #


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write the current traceback to the data directory and return its path."""
    from clientgen.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(traceback.format_exc())
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``clientgen`` console script.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from clientgen.exceptions import ClientgenError
        from clientgen.output import error

        if isinstance(exc, ClientgenError):
            error(str(exc))
            sys.exit(exc.exit_code)
        else:
            log_path = _write_crash_log(exc)
            error(f"Unexpected error. Debug log: {log_path}")
            sys.exit(EXIT_GENERIC_FAILURE)
