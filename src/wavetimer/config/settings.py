"""WavetimerSettings: CLI flags, ``WAVETIMER_*`` env vars and wavetimer.toml.

Sources, first match wins:

1. keyword arguments (the root CLI flags)
2. environment, ``WAVETIMER_TIMER__VOLUME=0.5`` style for nested sections
3. the TOML file chosen by :meth:`WavetimerSettings.from_cli`
4. defaults from :mod:`wavetimer.config.models`
"""

from __future__ import annotations

import tomllib
from contextvars import ContextVar
from pathlib import Path
from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, TomlConfigSettingsSource

from wavetimer.config.discovery import find_config
from wavetimer.config.models import AudioSection, SensorSection, StoreSection, TimerSection

# TOML file for the settings object currently being built.
_active_toml: ContextVar[Path | None] = ContextVar("wavetimer_active_toml", default=None)


class ConfigFileError(Exception):
    """wavetimer.toml exists but is not valid TOML."""


class WavetimerSettings(BaseSettings):
    """Resolved configuration for one CLI invocation. Immutable."""

    model_config = {
        "frozen": True,
        "env_prefix": "WAVETIMER_",
        "env_nested_delimiter": "__",
    }

    config_path: Path | None = None

    json_output: bool = False
    verbose: bool = False
    log_json: bool = False

    timer: TimerSection = Field(default_factory=TimerSection)
    audio: AudioSection = Field(default_factory=AudioSection)
    sensor: SensorSection = Field(default_factory=SensorSection)
    store: StoreSection = Field(default_factory=StoreSection)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        sources: list[PydanticBaseSettingsSource] = [init_settings, env_settings]
        toml_path = _active_toml.get()
        if toml_path is not None:
            sources.append(TomlConfigSettingsSource(settings_cls, toml_file=toml_path))
        return tuple(sources)

    @classmethod
    def from_cli(
        cls,
        *,
        config_path: str | None = None,
        start_dir: Path | None = None,
        **cli_flags: Any,
    ) -> WavetimerSettings:
        """Build settings for a CLI run.

        An explicit *config_path* that does not exist means "no file";
        without one, wavetimer.toml is searched for upwards from
        *start_dir* (default: cwd).

        Raises:
            ConfigFileError: The chosen TOML file cannot be parsed.
        """
        if config_path:
            candidate = Path(config_path).expanduser()
            toml_path = candidate if candidate.is_file() else None
        else:
            toml_path = find_config(start_dir)

        token = _active_toml.set(toml_path)
        try:
            return cls(config_path=toml_path, **cli_flags)
        except tomllib.TOMLDecodeError as exc:
            msg = f"Invalid TOML in {toml_path}: {exc}"
            raise ConfigFileError(msg) from exc
        finally:
            _active_toml.reset(token)
