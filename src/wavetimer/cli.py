"""Root CLI group for wavetimer with global flags and command registration."""

from __future__ import annotations

import click

from wavetimer import __version__
from wavetimer.commands import register_commands
from wavetimer.commands._context import AppContext
from wavetimer.config.settings import ConfigFileError, WavetimerSettings


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="wavetimer")
@click.option("--json", "json_output", is_flag=True, help="Structured JSON output.")
@click.option("-v", "--verbose", is_flag=True, help="Debug logging.")
@click.option("--log-json", is_flag=True, help="Structured JSON log output to stderr.")
@click.option("-c", "--config", "config_path", default=None, help="Override config file path.")
@click.pass_context
def cli(
    ctx: click.Context,
    json_output: bool,
    verbose: bool,
    log_json: bool,
    config_path: str | None,
) -> None:
    """wavetimer: hands-free interval timer."""
    try:
        settings = WavetimerSettings.from_cli(
            config_path=config_path,
            json_output=json_output,
            verbose=verbose,
            log_json=log_json,
        )
    except ConfigFileError as exc:
        raise click.ClickException(str(exc)) from exc
    ctx.obj = AppContext(settings)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


register_commands(cli)
