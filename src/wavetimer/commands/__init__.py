"""Subcommand modules for wavetimer.

register_commands() imports lazily so ``wavetimer --help`` stays fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register the ``run`` command and the ``settings`` group."""
    from wavetimer.commands.run import run
    from wavetimer.commands.settings_cmd import settings

    cli.add_command(run)
    cli.add_command(settings)
