"""MM:SS formatting and the status lines shown on the service notification."""

from __future__ import annotations

from wavetimer.domain.messages import Snapshot


def format_time(seconds: int) -> str:
    """Zero-padded ``MM:SS``. Minutes keep counting past 59 (no hour field).

    Examples:
        >>> format_time(65)
        '01:05'
        >>> format_time(3600)
        '60:00'
    """
    seconds = max(0, seconds)
    minutes, secs = divmod(seconds, 60)
    return f"{minutes:02d}:{secs:02d}"


def status_text(snapshot: Snapshot) -> str:
    if snapshot.is_running:
        return f"Timer Running: {format_time(snapshot.remaining_seconds)}"
    return f"Timer Ready. Duration: {format_time(snapshot.remaining_seconds)}"


def status_hint(snapshot: Snapshot) -> str:
    return "Wave to reset" if snapshot.is_running else "Wave to start"
