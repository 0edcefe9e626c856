"""settings: inspect and change stored timer settings."""

from __future__ import annotations

import click

from wavetimer.commands._base import WtGroup
from wavetimer.commands._context import AppContext
from wavetimer.domain.messages import DURATION_KEY, VOLUME_KEY
from wavetimer.services.result import ServiceResult

_KEYS = {"duration": DURATION_KEY, "volume": VOLUME_KEY}


@click.group(
    cls=WtGroup,
    examples="""\
  wavetimer settings show
  wavetimer settings set duration 90
  wavetimer --json settings set volume 0.5""",
)
def settings() -> None:
    """Show or change the stored timer settings."""


@settings.command()
@click.pass_obj
def show(app: AppContext) -> None:
    """Print the effective duration and volume."""
    session = app.session()
    if app.store_error:
        click.echo(f"WARNING: {app.store_error}; showing defaults", err=True)
    try:
        app.emit(session.load_settings())
    finally:
        app.close()


@settings.command(name="set")
@click.argument("key", type=click.Choice(sorted(_KEYS)))
@click.argument("value")
@click.pass_obj
def set_cmd(app: AppContext, key: str, value: str) -> None:
    """Store a new duration (seconds) or volume (0-1)."""
    try:
        parsed: int | float = int(value) if key == "duration" else float(value)
    except ValueError:
        app.emit(
            ServiceResult.failure("update_setting", "INVALID_SETTING", f"Not a number: {value}")
        )
        return
    session = app.session()
    try:
        if app.store_error:
            app.emit(ServiceResult.failure("update_setting", "STORE_UNAVAILABLE", app.store_error))
        result = session.update_setting(_KEYS[key], parsed)
    finally:
        app.close()
    if result.ok and result.warnings:
        # Persisting is the whole point of this command.
        app.emit(ServiceResult.failure("update_setting", "STORE_UNAVAILABLE", result.warnings[0]))
    app.emit(result)
