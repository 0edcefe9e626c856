"""run: start the background timer and follow it from the terminal."""

from __future__ import annotations

import threading
from pathlib import Path

import click

from wavetimer.commands._base import WtCommand
from wavetimer.commands._context import AppContext
from wavetimer.domain.messages import DURATION_KEY, VOLUME_KEY, Snapshot
from wavetimer.output.formatters import format_result, format_snapshot
from wavetimer.services.background import BackgroundService
from wavetimer.services.result import ServiceResult
from wavetimer.services.ui import UiSession

_QUIT_WORDS = frozenset({"stop", "quit", "exit"})


@click.command(
    cls=WtCommand,
    examples="""\
  # Read near/far lines from a FIFO fed by a sensor bridge
  mkfifo /tmp/prox && wavetimer run --sensor-file /tmp/prox

  # Play a custom alarm sound
  wavetimer run --asset ~/sounds/bell.wav

  # While running, type on stdin:
  #   duration 90   volume 0.5   start   quit""",
)
@click.option(
    "--sensor-file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="File or FIFO with one near/far reading per line.",
)
@click.option("--asset", default=None, help="Alarm sound file.")
@click.pass_obj
def run(app: AppContext, sensor_file: Path | None, asset: str | None) -> None:
    """Start the timer service and show its state until 'quit'."""
    json_output = app.settings.json_output
    service = BackgroundService(app.background_options(sensor_path=sensor_file, asset=asset))
    session = app.session(service)
    if app.store_error:
        click.echo(f"WARNING: {app.store_error}", err=True)
    _report(session.load_settings(), json_output)

    def show(snapshot: Snapshot) -> None:
        click.echo(format_snapshot(snapshot, json_output=json_output))

    listener = threading.Thread(
        target=session.listen,
        kwargs={"on_snapshot": show},
        name="wavetimer-listener",
        daemon=True,
    )
    try:
        session.start_service()
        listener.start()
        for line in click.get_text_stream("stdin"):
            words = line.split()
            if not words:
                continue
            if words[0].lower() in _QUIT_WORDS:
                break
            _report(_dispatch(session, words), json_output)
    finally:
        session.close()
        session.stop_service()
        app.close()


def _dispatch(session: UiSession, words: list[str]) -> ServiceResult:
    command, args = words[0].lower(), words[1:]
    if command == "start":
        return session.start_timer()
    if command in ("duration", "volume") and len(args) == 1:
        key = DURATION_KEY if command == "duration" else VOLUME_KEY
        try:
            value: int | float = int(args[0]) if command == "duration" else float(args[0])
        except ValueError:
            return ServiceResult.failure("update_setting", "INVALID_SETTING", f"Not a number: {args[0]}")
        return session.update_setting(key, value)
    return ServiceResult.failure(
        "command",
        "UNKNOWN_COMMAND",
        f"Unknown command {' '.join(words)!r}; use duration N, volume V, start, quit",
    )


def _report(result: ServiceResult, json_output: bool) -> None:
    """Interactive feedback: errors and warnings only, never exits."""
    if not result.ok:
        click.echo(format_result(result, json_output=json_output), err=True)
        return
    for warning in result.warnings:
        click.echo(f"WARNING: {warning}", err=True)
