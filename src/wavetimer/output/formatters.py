"""Human and JSON rendering of ServiceResults and timer snapshots."""

from __future__ import annotations

import json as _json
from typing import TYPE_CHECKING

from rich.text import Text

from wavetimer.domain.messages import encode
from wavetimer.domain.timefmt import format_time, status_hint
from wavetimer.output.console import create_console, get_output

if TYPE_CHECKING:
    from wavetimer.domain.messages import Snapshot
    from wavetimer.services.result import ServiceResult


def format_result(result: ServiceResult, *, json_output: bool = False) -> str:
    """Format a ServiceResult for display."""
    if json_output:
        return result.model_dump_json(indent=2)
    console = create_console()
    if result.ok:
        console.print(Text("OK", style="wt.ok"), Text(result.op, style="wt.op"))
        for key, value in result.data.items():
            console.print(Text(f"  {key}:", style="wt.key"), str(value))
        for warning in result.warnings:
            console.print(Text("WARNING", style="wt.warning"), warning)
    else:
        message = result.error.message if result.error else "Unknown error"
        console.print(Text("ERROR", style="wt.error"), Text(result.op, style="wt.op"), message)
    return get_output(console).rstrip("\n")


def format_snapshot(snapshot: Snapshot, *, json_output: bool = False) -> str:
    """One status line per snapshot, e.g. ``RUNNING  00:42  near  Wave to reset``."""
    if json_output:
        return _json.dumps(encode(snapshot), separators=(",", ":"))
    console = create_console()
    line = Text()
    if snapshot.is_running:
        line.append("RUNNING", style="wt.running")
    else:
        line.append("READY  ", style="wt.ready")
    line.append(f"  {format_time(snapshot.remaining_seconds)}  ")
    line.append("near" if snapshot.is_near else "far ", style="wt.near" if snapshot.is_near else "wt.far")
    line.append(f"  {status_hint(snapshot)}", style="wt.key")
    console.print(line)
    return get_output(console).rstrip("\n")
