"""Tests for the message union and its wire codec."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from wavetimer.domain.messages import (
    DurationChanged,
    ServiceCommand,
    Snapshot,
    VolumeChanged,
    decode_inbound,
    decode_snapshot,
    encode,
    setting_update,
)

BASE = Snapshot(remaining_seconds=60, is_running=False, is_near=False)


class TestEncode:
    def test_snapshot_wire_shape(self) -> None:
        snap = Snapshot(remaining_seconds=42, is_running=True, is_near=True)
        assert encode(snap) == {"remainingTime": 42, "isTimerRunning": True, "isNear": True}

    def test_setting_updates_carry_one_key(self) -> None:
        assert encode(DurationChanged(duration_seconds=90)) == {"durationSeconds": 90}
        assert encode(VolumeChanged(volume=0.5)) == {"volume": 0.5}

    def test_service_command(self) -> None:
        assert encode(ServiceCommand(command="stop")) == {"command": "stop"}


class TestDecodeInbound:
    def test_duration(self) -> None:
        assert decode_inbound({"durationSeconds": 90}) == [DurationChanged(duration_seconds=90)]

    def test_legacy_duration_key(self) -> None:
        assert decode_inbound({"timerDuration": 30}) == [DurationChanged(duration_seconds=30)]

    def test_volume_accepts_int(self) -> None:
        assert decode_inbound({"volume": 1}) == [VolumeChanged(volume=1.0)]

    def test_command(self) -> None:
        assert decode_inbound({"command": "start"}) == [ServiceCommand(command="start")]

    @pytest.mark.parametrize(
        "payload",
        [
            {"durationSeconds": "90"},
            {"durationSeconds": True},
            {"durationSeconds": 0},
            {"durationSeconds": 12.5},
            {"volume": 1.5},
            {"volume": -0.1},
            {"volume": False},
            {"volume": "loud"},
            {"command": "explode"},
            {"theme": "blue"},
            {},
        ],
    )
    def test_bad_fields_are_dropped(self, payload: dict) -> None:
        assert decode_inbound(payload) == []

    def test_field_by_field(self) -> None:
        payload = {"durationSeconds": 45, "volume": "bad", "unknown": 1}
        assert decode_inbound(payload) == [DurationChanged(duration_seconds=45)]

    @pytest.mark.parametrize("payload", [None, 42, "durationSeconds", [("volume", 0.5)]])
    def test_non_mapping_ignored(self, payload: object) -> None:
        assert decode_inbound(payload) == []


class TestDecodeSnapshot:
    def test_full_snapshot(self) -> None:
        payload = {"remainingTime": 12, "isTimerRunning": True, "isNear": True}
        assert decode_snapshot(payload, BASE) == Snapshot(
            remaining_seconds=12, is_running=True, is_near=True
        )

    def test_missing_fields_keep_previous(self) -> None:
        snap = decode_snapshot({"isNear": True}, BASE)
        assert snap == Snapshot(remaining_seconds=60, is_running=False, is_near=True)

    def test_mistyped_fields_keep_previous(self) -> None:
        payload = {"remainingTime": "12", "isTimerRunning": 1, "isNear": True}
        snap = decode_snapshot(payload, BASE)
        assert snap is not None
        assert snap.remaining_seconds == 60
        assert snap.is_running is False
        assert snap.is_near is True

    @pytest.mark.parametrize("payload", [None, 5, {}, {"other": 1}, {"remainingTime": -1}])
    def test_unusable_payload(self, payload: object) -> None:
        assert decode_snapshot(payload, BASE) is None


class TestSettingUpdate:
    def test_valid(self) -> None:
        assert setting_update("volume", 0.3) == VolumeChanged(volume=0.3)

    @pytest.mark.parametrize(
        ("key", "value"),
        [("volume", 2.0), ("durationSeconds", -5), ("command", "stop"), ("theme", "x")],
    )
    def test_invalid(self, key: str, value: object) -> None:
        with pytest.raises(ValueError):
            setting_update(key, value)


class TestModels:
    def test_frozen(self) -> None:
        with pytest.raises(ValidationError):
            BASE.remaining_seconds = 3  # type: ignore[misc]

    def test_snapshot_requires_all_fields(self) -> None:
        with pytest.raises(ValidationError):
            Snapshot(remaining_seconds=3, is_running=True)  # type: ignore[call-arg]
