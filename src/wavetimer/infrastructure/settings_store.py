"""Key -> JSON document settings store with merge-on-write.

``get`` returns ``{}`` for an unknown user; ``merge_set`` shallow-merges
the given fields into the stored document. Any database or decoding
failure is raised as :class:`SettingsStoreError` so callers can report it
without crashing.
"""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from sqlalchemy import insert, select, update
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from wavetimer.domain.types import TimerConfig
from wavetimer.infrastructure.database import init_database, user_settings

logger = logging.getLogger(__name__)


class SettingsStoreError(Exception):
    """The settings store could not be read or written."""


class SettingsStore:
    """Settings documents in SQLite, one row per user key."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    @classmethod
    def open(cls, db_path: Path) -> SettingsStore:
        db_path = db_path.expanduser()
        try:
            return cls(init_database(db_path))
        except (SQLAlchemyError, OSError) as exc:
            msg = f"Cannot open settings database {db_path}: {exc}"
            raise SettingsStoreError(msg) from exc

    def get(self, user_key: str) -> dict[str, Any]:
        try:
            with self._engine.connect() as conn:
                raw = conn.execute(
                    select(user_settings.c.payload).where(user_settings.c.user_key == user_key)
                ).scalar_one_or_none()
        except SQLAlchemyError as exc:
            msg = f"Failed to read settings: {exc}"
            raise SettingsStoreError(msg) from exc
        if raw is None:
            return {}
        return _decode(raw)

    def merge_set(self, user_key: str, fields: dict[str, Any]) -> dict[str, Any]:
        """Merge *fields* into the user's document. Returns the merged document."""
        try:
            with self._engine.begin() as conn:
                raw = conn.execute(
                    select(user_settings.c.payload).where(user_settings.c.user_key == user_key)
                ).scalar_one_or_none()
                document = {} if raw is None else _decode(raw)
                document.update(fields)
                values = {
                    "payload": json.dumps(document),
                    "modified": datetime.now(UTC).isoformat(),
                }
                if raw is None:
                    conn.execute(insert(user_settings).values(user_key=user_key, **values))
                else:
                    conn.execute(
                        update(user_settings)
                        .where(user_settings.c.user_key == user_key)
                        .values(**values)
                    )
        except (SQLAlchemyError, TypeError) as exc:
            msg = f"Failed to save settings: {exc}"
            raise SettingsStoreError(msg) from exc
        logger.debug("Merged settings for %s: %s", user_key, sorted(fields))
        return document

    def close(self) -> None:
        self._engine.dispose()


def _decode(raw: str) -> dict[str, Any]:
    try:
        document = json.loads(raw)
    except json.JSONDecodeError as exc:
        msg = f"Corrupt settings document: {exc}"
        raise SettingsStoreError(msg) from exc
    if not isinstance(document, dict):
        msg = "Corrupt settings document: not an object"
        raise SettingsStoreError(msg)
    return document


def load_timer_config(
    store: SettingsStore, user_key: str, defaults: TimerConfig | None = None
) -> TimerConfig:
    """Read the user's timer settings, falling back to *defaults* field by field."""
    return TimerConfig.from_document(store.get(user_key), base=defaults)
