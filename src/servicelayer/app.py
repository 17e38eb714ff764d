"""Typer application and CLI entry point for servicelayer.

This module wires the top-level Typer application and registers the
built-in sub-commands (``call``, ``cache``, ``config``).

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. Unhandled exceptions are written to a crash log under
the data directory.

See Also:
    :mod:`servicelayer.config`: Configuration resolution.
    :mod:`servicelayer.output`: Output and logging initialised in :func:`main_callback`.
"""

from __future__ import annotations

import sys
import traceback
from datetime import datetime

import typer

from servicelayer import __version__
from servicelayer.commands.cache import cache_app
from servicelayer.commands.call import call_command
from servicelayer.commands.config import config_app
from servicelayer.exit_codes import EXIT_GENERIC_FAILURE

app = typer.Typer(
    name="servicelayer",
    help="Dispatch API requests with response caching and outcome classification.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

app.command("call")(call_command)
app.add_typer(cache_app, name="cache", help="Response cache management.")
app.add_typer(config_app, name="config", help="Configuration management.")


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"servicelayer {__version__}")
        raise typer.Exit()


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
    plain_output: bool = typer.Option(False, "--plain", help="Plain text output."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress non-essential output."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug output."),
) -> None:
    """Root callback executed before every sub-command.

    Initialises the global :class:`~servicelayer.output.OutputManager` from
    CLI flags and routes the ``servicelayer`` logger to stderr.
    """
    from servicelayer.output import OutputFormat, OutputManager, set_output, setup_logging

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    output = OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose)
    set_output(output)
    setup_logging(output)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path."""
    from servicelayer.config import get_data_dir

    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = get_data_dir() / f"crash-{timestamp}.log"
    log_path.write_text(
        "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
        encoding="utf-8",
    )
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``servicelayer`` console script.

    Unhandled :class:`~servicelayer.exceptions.ServiceLayerError` instances
    cause a clean exit with the error's ``exit_code``. All other exceptions
    produce a crash log and a generic failure exit.
    """
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from servicelayer.exceptions import ServiceLayerError
        from servicelayer.output import error

        if isinstance(exc, ServiceLayerError):
            error(str(exc))
            sys.exit(exc.exit_code)
        log_path = _write_crash_log(exc)
        error(f"Unexpected error. Debug log: {log_path}")
        sys.exit(EXIT_GENERIC_FAILURE)
