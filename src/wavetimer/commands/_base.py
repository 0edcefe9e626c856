"""Click command classes taking an ``examples=`` text.

Commands built with these classes grow an ``--examples`` flag that prints
the text and exits, so ``--help`` can stay to a few lines.
"""

from __future__ import annotations

from typing import Any

import click


class _ExamplesMixin:
    examples: str | None = None

    def _examples_option(self) -> click.Option:
        examples = self.examples

        def show(ctx: click.Context, _param: click.Parameter, value: bool) -> None:
            if value:
                click.echo(f"Examples for '{ctx.command_path}':\n\n{examples}")
                ctx.exit(0)

        return click.Option(
            ["--examples"],
            is_flag=True,
            expose_value=False,
            is_eager=True,
            callback=show,
            help="Show usage examples and exit.",
        )

    def get_params(self, ctx: click.Context) -> list[click.Parameter]:
        params: list[click.Parameter] = super().get_params(ctx)  # type: ignore[misc]
        if self.examples:
            params = [*params, self._examples_option()]
        return params


class WtCommand(_ExamplesMixin, click.Command):
    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        self.examples = examples
        super().__init__(*args, **kwargs)


class WtGroup(_ExamplesMixin, click.Group):
    """Group whose ``@group.command()`` subcommands are :class:`WtCommand`."""

    command_class = WtCommand

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        self.examples = examples
        super().__init__(*args, **kwargs)
