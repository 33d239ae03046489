"""Config commands -- view and modify import settings.

Provides the ``specport config`` sub-command group for reading, updating,
and resetting the user's settings file
(:class:`~specport.models.ImportSettings`). Settings control depth caps for
example synthesis, the fetch timeout, and TLS verification.
"""

from __future__ import annotations

import typer

from specport.output import error, format_response, info, success


config_app = typer.Typer(no_args_is_help=True)


@config_app.command("show")
def config_show() -> None:
    """Show the stored settings.

    Prints the config directory to stderr and the settings to stdout.
    Environment overrides are not applied here.

    Example::

        specport config show
        specport config show --json
    """
    from specport.config import get_config_dir, load_settings

    settings = load_settings()
    info(f"Config directory: {get_config_dir()}")
    format_response(settings.model_dump(mode="json"))


@config_app.command("set")
def config_set(
    key: str = typer.Argument(help="Setting name, e.g. 'body_max_depth'."),
    value: str = typer.Argument(help="Value to set."),
) -> None:
    """Set a configuration value.

    The value is coerced to the field's type and validated against
    :class:`~specport.models.ImportSettings` before saving.

    Raises:
        typer.Exit: With code 2 if the key is unknown or the value invalid.

    Example::

        specport config set body_max_depth 6
        specport config set verify_ssl false
        specport config set fetch_timeout 30
    """
    from specport.config import load_settings, save_settings
    from specport.models import ImportSettings

    data = load_settings().model_dump(mode="json")
    if key not in data:
        error(f"Unknown config key: {key}")
        raise typer.Exit(code=2)

    current = data[key]
    if isinstance(current, bool):
        coerced: object = value.lower() in ("true", "1", "yes")
    elif isinstance(current, (int, float)):
        try:
            coerced = type(current)(value)
        except ValueError:
            error(f"Expected {type(current).__name__} for {key}, got: {value}")
            raise typer.Exit(code=2) from None
    else:
        coerced = value

    data[key] = coerced
    try:
        new_settings = ImportSettings.model_validate(data)
    except Exception as exc:
        error(f"Validation error: {exc}")
        raise typer.Exit(code=2) from None

    save_settings(new_settings)
    success(f"Set {key} = {coerced}")


@config_app.command("reset")
def config_reset(
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation."),
) -> None:
    """Reset settings to defaults.

    Asks for confirmation unless ``--yes`` is given.

    Example::

        specport config reset --yes
    """
    from specport.config import save_settings
    from specport.models import ImportSettings

    if not yes:
        confirmed = typer.confirm("Reset all settings to defaults?")
        if not confirmed:
            info("Cancelled.")
            raise typer.Exit()

    save_settings(ImportSettings())
    success("Settings reset to defaults.")
