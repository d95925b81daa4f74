"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, flexrunner.toml only contains
overrides. An empty (or absent) file is a valid configuration.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, model_validator

from flexrunner.domain.types import DEFAULT_PACKAGE_RANGE, MAX_PACKAGE_RANGE


class StorageConfig(BaseModel):
    """[storage] section."""

    model_config = {"frozen": True}

    key_version: str = "v10"
    quota_bytes: int | None = Field(default=None, gt=0)


class RouteConfig(BaseModel):
    """[route] section."""

    model_config = {"frozen": True}

    default_range: int = Field(default=DEFAULT_PACKAGE_RANGE, ge=1, le=MAX_PACKAGE_RANGE)
    max_range: int = Field(default=MAX_PACKAGE_RANGE, ge=1, le=MAX_PACKAGE_RANGE)
    range_presets: tuple[int, ...] = (20, 35, 50)

    @model_validator(mode="after")
    def _within_max(self) -> RouteConfig:
        if self.default_range > self.max_range:
            msg = "default_range must not exceed max_range"
            raise ValueError(msg)
        if any(not 1 <= preset <= self.max_range for preset in self.range_presets):
            msg = f"range_presets must lie within 1-{self.max_range}"
            raise ValueError(msg)
        return self


class FeedbackConfig(BaseModel):
    """[feedback] section."""

    model_config = {"frozen": True}

    enabled: bool = True
    bell: bool = False


class ZonesConfig(BaseModel):
    """[zones] section — display-name overrides keyed by zone id."""

    model_config = {"frozen": True}

    labels: dict[str, str] = Field(default_factory=dict)

