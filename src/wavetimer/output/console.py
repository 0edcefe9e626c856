"""Rich Console factory and theme for wavetimer output.

Consoles render into a StringIO buffer so formatters return plain
strings. Without a terminal (tests, pipes) Rich drops the colour codes.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

WAVETIMER_THEME = Theme(
    {
        "wt.ok": "bold green",
        "wt.error": "bold red",
        "wt.warning": "bold yellow",
        "wt.op": "bold cyan",
        "wt.key": "dim",
        "wt.running": "bold green",
        "wt.ready": "bold blue",
        "wt.near": "red",
        "wt.far": "green",
    }
)


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    return Console(
        file=StringIO(),
        theme=WAVETIMER_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 100,
    )


def get_output(console: Console) -> str:
    """Extract rendered text from a StringIO-backed Console."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()
