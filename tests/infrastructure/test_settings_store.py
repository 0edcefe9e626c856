"""Tests for the SQLite settings store."""

from __future__ import annotations

from pathlib import Path

import pytest
from sqlalchemy import update

from wavetimer.domain.types import TimerConfig
from wavetimer.infrastructure.database import user_settings
from wavetimer.infrastructure.settings_store import (
    SettingsStore,
    SettingsStoreError,
    load_timer_config,
)


class TestGetAndMerge:
    def test_unknown_user_is_empty(self, store: SettingsStore) -> None:
        assert store.get("nobody") == {}

    def test_merge_creates_document(self, store: SettingsStore) -> None:
        store.merge_set("u1", {"durationSeconds": 90})
        assert store.get("u1") == {"durationSeconds": 90}

    def test_merge_keeps_other_fields(self, store: SettingsStore) -> None:
        store.merge_set("u1", {"durationSeconds": 90, "theme": "blue"})
        merged = store.merge_set("u1", {"volume": 0.3})
        assert merged == {"durationSeconds": 90, "theme": "blue", "volume": 0.3}
        assert store.get("u1") == merged

    def test_users_are_isolated(self, store: SettingsStore) -> None:
        store.merge_set("a", {"volume": 0.1})
        store.merge_set("b", {"volume": 0.9})
        assert store.get("a") == {"volume": 0.1}

    def test_persists_across_reopen(self, tmp_path: Path) -> None:
        path = tmp_path / "nested" / "settings.db"
        first = SettingsStore.open(path)
        first.merge_set("u", {"volume": 0.25})
        first.close()
        second = SettingsStore.open(path)
        try:
            assert second.get("u") == {"volume": 0.25}
        finally:
            second.close()


class TestFailures:
    def test_corrupt_document(self, store: SettingsStore) -> None:
        store.merge_set("u", {"volume": 0.5})
        with store._engine.begin() as conn:
            conn.execute(update(user_settings).values(payload="{not json"))
        with pytest.raises(SettingsStoreError):
            store.get("u")

    def test_unserializable_value(self, store: SettingsStore) -> None:
        with pytest.raises(SettingsStoreError):
            store.merge_set("u", {"volume": object()})

    def test_unopenable_path(self, tmp_path: Path) -> None:
        blocker = tmp_path / "file"
        blocker.write_text("x")
        with pytest.raises(SettingsStoreError):
            SettingsStore.open(blocker / "settings.db")


class TestLoadTimerConfig:
    def test_defaults_when_absent(self, store: SettingsStore) -> None:
        assert load_timer_config(store, "u") == TimerConfig()

    def test_reads_stored_values(self, store: SettingsStore) -> None:
        store.merge_set("u", {"durationSeconds": 30, "volume": 0.5})
        assert load_timer_config(store, "u") == TimerConfig(duration_seconds=30, volume=0.5)

    def test_invalid_stored_values_fall_back(self, store: SettingsStore) -> None:
        store.merge_set("u", {"durationSeconds": -1, "volume": 0.5})
        assert load_timer_config(store, "u") == TimerConfig(volume=0.5)

    def test_gaps_filled_from_given_defaults(self, store: SettingsStore) -> None:
        store.merge_set("u", {"volume": 0.5, "durationSeconds": "soon"})
        defaults = TimerConfig(duration_seconds=90, volume=0.9)
        assert load_timer_config(store, "u", defaults) == TimerConfig(
            duration_seconds=90, volume=0.5
        )
