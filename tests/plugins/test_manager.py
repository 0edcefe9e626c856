"""Tests for PluginManager: registration, hook relay and fault-tolerant notify."""

from __future__ import annotations

import pluggy
import pytest

from wavetimer.plugins.manager import PluginManager

hookimpl = pluggy.HookimplMarker("wavetimer")


class _AlarmCounter:
    def __init__(self) -> None:
        self.volumes: list[float] = []

    @hookimpl
    def timer_alarm(self, volume: float) -> None:
        self.volumes.append(volume)


class _BrokenPlugin:
    @hookimpl
    def timer_alarm(self, volume: float) -> None:
        raise RuntimeError("speaker unplugged")


class TestPluginManager:
    def test_hook_relay_accessible(self):
        pm = PluginManager()
        assert hasattr(pm.hook, "timer_status")
        assert hasattr(pm.hook, "timer_alarm")
        assert hasattr(pm.hook, "timer_service_cleared")

    def test_register_plugin(self):
        pm = PluginManager()
        pm.register_plugin(_AlarmCounter(), name="counter")
        assert "counter" in pm.list_plugin_names()

    def test_register_plugin_default_name(self):
        pm = PluginManager()
        pm.register_plugin(_AlarmCounter())
        assert "_AlarmCounter" in pm.list_plugin_names()

    def test_unregister_plugin(self):
        pm = PluginManager()
        plugin = _AlarmCounter()
        pm.register_plugin(plugin, name="counter")
        pm.unregister(plugin)
        assert "counter" not in pm.list_plugin_names()

    def test_discover_with_no_entry_points(self, monkeypatch: pytest.MonkeyPatch):
        pm = PluginManager()
        monkeypatch.setattr(pm._pm, "load_setuptools_entrypoints", lambda group: 0)
        assert pm.discover_and_load() == []

    def test_entry_point_classes_are_instantiated(self, monkeypatch: pytest.MonkeyPatch):
        pm = PluginManager()

        def load(group: str) -> int:
            pm._pm.register(_AlarmCounter, name="counter")
            return 1

        monkeypatch.setattr(pm._pm, "load_setuptools_entrypoints", load)
        assert pm.discover_and_load() == ["counter"]
        (plugin,) = pm._pm.get_plugins()
        assert isinstance(plugin, _AlarmCounter)


class TestNotify:
    def test_dispatches_to_plugins(self):
        pm = PluginManager()
        counter = _AlarmCounter()
        pm.register_plugin(counter)
        assert pm.notify("timer_alarm", volume=0.5) is True
        assert counter.volumes == [0.5]

    def test_plugin_failure_is_warning(self, caplog: pytest.LogCaptureFixture):
        pm = PluginManager()
        pm.register_plugin(_BrokenPlugin())
        with caplog.at_level("WARNING", logger="wavetimer.plugins.manager"):
            assert pm.notify("timer_alarm", volume=0.5) is False
        assert "timer_alarm" in caplog.text

    def test_unknown_hook_is_noop(self):
        assert PluginManager().notify("no_such_hook") is True
