"""Unified settings — init kwargs, env vars, and TOML config in one object.

Priority chain (highest to lowest):
  1. Init kwargs  — explicit overrides passed to :meth:`WorkchainSettings.load`
  2. Env vars     — ``WORKCHAIN_*`` prefix
  3. TOML file    — ``workchain.toml`` or ``[tool.workchain]`` found via walk-up
  4. Code defaults

Uses Pydantic Settings v2 with a custom :class:`TomlSettingsSource` that
reuses the walk-up discovery from :mod:`workchain.config.discovery`.
"""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Any, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from workchain.config.discovery import find_config, load_table

SinkKind = Literal["console", "structlog", "null"]


class TomlSettingsSource(PydanticBaseSettingsSource):
    """Read settings from a discovered TOML file."""

    def __init__(self, settings_cls: type[BaseSettings], toml_path: Path | None) -> None:
        super().__init__(settings_cls)
        self._data: dict[str, Any] = load_table(toml_path)

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        """Return ``(value, field_name, value_is_complex)``."""
        val = self._data.get(field_name)
        return val, field_name, False

    def __call__(self) -> dict[str, Any]:
        return {k: v for k, v in self._data.items() if k in self.settings_cls.model_fields}


# Thread-local storage for TOML path during construction.
_tls = threading.local()


class WorkchainSettings(BaseSettings):
    """Process-wide knobs for diagnostics.

    Attributes:
        sink: Which diagnostic sink :func:`workchain.diagnostics.get_sink`
            builds by default.
        preview_length: Characters kept from each input value's ``repr``
            when a unit invocation is logged.
        verbose: Let the structlog backend emit DEBUG output.
        log_json: Render structlog output as JSON lines.
        config_path: The TOML file the settings were read from, if any.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "WORKCHAIN_",
    }

    sink: SinkKind = "console"
    preview_length: int = Field(default=50, ge=1)
    verbose: bool = False
    log_json: bool = False
    config_path: Path | None = None

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Insert TOML source between env vars and defaults."""
        toml_path = getattr(_tls, "toml_path", None)
        return (
            init_settings,
            env_settings,
            TomlSettingsSource(settings_cls, toml_path),
        )

    @classmethod
    def load(
        cls,
        *,
        config_path: Path | str | None = None,
        start: Path | None = None,
        **overrides: Any,
    ) -> WorkchainSettings:
        """Construct settings, discovering a TOML file unless *config_path* is given."""
        toml_path: Path | None
        if config_path:
            p = Path(config_path)
            toml_path = p if p.is_file() else None
        else:
            toml_path = find_config(start)

        _tls.toml_path = toml_path
        try:
            return cls(config_path=toml_path, **overrides)
        finally:
            _tls.toml_path = None


_settings: WorkchainSettings | None = None
_settings_lock = threading.Lock()


def get_settings() -> WorkchainSettings:
    """Return the cached process-wide settings, loading them on first use."""
    global _settings
    with _settings_lock:
        if _settings is None:
            _settings = WorkchainSettings.load()
        return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next :func:`get_settings` reloads them."""
    global _settings
    with _settings_lock:
        _settings = None
