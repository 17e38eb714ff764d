"""Config commands -- view and modify the dispatcher configuration.

Provides the ``servicelayer config`` sub-command group for reading and
updating the config file (:class:`~servicelayer.models.DispatcherConfig`).
"""

from __future__ import annotations

import typer

from servicelayer.exceptions import ConfigError
from servicelayer.output import error, format_response, info, success

config_app = typer.Typer(no_args_is_help=True)


@config_app.command("show")
def config_show() -> None:
    """Show the effective configuration (file, environment and defaults).

    Example::

        servicelayer config show --json
    """
    from servicelayer.config import config_path, resolve_config

    try:
        config = resolve_config()
    except ConfigError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code)
    info(f"Config file: {config_path()}")
    format_response(config.model_dump(mode="json"))


@config_app.command("path")
def config_path_command() -> None:
    """Print the path of the config file."""
    from servicelayer.config import config_path

    format_response(str(config_path()))


@config_app.command("set")
def config_set(
    key: str = typer.Argument(help="Config key (dot notation, e.g. 'cache.enabled')."),
    value: str = typer.Argument(help="Value to set ('null' clears optional values)."),
) -> None:
    """Set a configuration value.

    Example::

        servicelayer config set base_url https://api.example.com
        servicelayer config set timeout 5
        servicelayer config set cache.enabled true
    """
    from servicelayer.config import load_config, save_config, set_config_value

    try:
        config = set_config_value(load_config(), key, value)
    except ConfigError as exc:
        error(str(exc))
        raise typer.Exit(code=2)
    save_config(config)
    success(f"Set {key} = {value}")
