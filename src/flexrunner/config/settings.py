"""Unified settings — CLI flags, env vars, and TOML config in one object.

Priority chain (highest to lowest):
  1. Init kwargs  — CLI flags passed by Click
  2. Env vars     — ``FLEXRUNNER_*`` prefix
  3. TOML file    — ``flexrunner.toml`` discovered via walk-up
  4. Code defaults — baked into the section models
"""

from __future__ import annotations

import threading
import tomllib
from pathlib import Path
from typing import Any

import click
from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from flexrunner.config.discovery import find_config
from flexrunner.config.models import FeedbackConfig, RouteConfig, StorageConfig, ZonesConfig


class TomlSettingsSource(PydanticBaseSettingsSource):
    """Read settings from a ``flexrunner.toml`` file."""

    def __init__(self, settings_cls: type[BaseSettings], toml_path: Path | None) -> None:
        super().__init__(settings_cls)
        self._data: dict[str, Any] = {}
        if toml_path and toml_path.is_file():
            try:
                self._data = tomllib.loads(toml_path.read_text(encoding="utf-8"))
            except tomllib.TOMLDecodeError as exc:
                msg = f"Invalid TOML in {toml_path}: {exc}"
                raise click.ClickException(msg) from exc

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        val = self._data.get(field_name)
        return val, field_name, field_name in self._data

    def __call__(self) -> dict[str, Any]:
        return self._data


# TOML path handed from from_cli() to settings_customise_sources().
_tls = threading.local()


class FlexSettings(BaseSettings):
    """Unified, frozen settings for the flexrunner CLI.

    Attributes:
        data_root: Directory holding ``.flexrunner/`` (parent of
            ``flexrunner.toml``, or the cwd if no config was found).
        config_path: The TOML file in effect, if any.
        ephemeral: Keep all data in memory; nothing touches disk.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "FLEXRUNNER_",
        "env_nested_delimiter": "__",
    }

    data_root: Path = Field(default_factory=Path.cwd)
    config_path: Path | None = None

    # --- CLI flags ---
    json_output: bool = False
    quiet: bool = False
    verbose: bool = False
    log_json: bool = False
    ephemeral: bool = False

    # --- TOML sections ---
    storage: StorageConfig = Field(default_factory=StorageConfig)
    route: RouteConfig = Field(default_factory=RouteConfig)
    feedback: FeedbackConfig = Field(default_factory=FeedbackConfig)
    zones: ZonesConfig = Field(default_factory=ZonesConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Insert the TOML source between env vars and defaults."""
        return (
            init_settings,
            env_settings,
            TomlSettingsSource(settings_cls, getattr(_tls, "toml_path", None)),
        )

    @classmethod
    def from_cli(
        cls,
        *,
        config_path: str | None = None,
        data_root: Path | None = None,
        **cli_flags: Any,
    ) -> FlexSettings:
        """Construct settings from a CLI invocation.

        Finds ``flexrunner.toml`` (or uses *config_path*), derives
        *data_root* from its location, and applies CLI flags on top.
        """
        toml_path: Path | None = None
        if config_path:
            p = Path(config_path)
            if p.is_file():
                toml_path = p
        else:
            toml_path = find_config(data_root)

        resolved_root = data_root
        if resolved_root is None:
            resolved_root = toml_path.parent if toml_path else Path.cwd()

        _tls.toml_path = toml_path
        try:
            # Unset flags stay out of the init kwargs so FLEXRUNNER_* env vars apply.
            flags = {name: value for name, value in cli_flags.items() if value}
            return cls(data_root=resolved_root, config_path=toml_path, **flags)
        finally:
            _tls.toml_path = None
