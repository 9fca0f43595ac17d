"""
Centralized settings for wikiconvert.

:class:`ConverterSettings` is the single validated source for service
URLs, dispatcher channel pacing, surface timings and the accepted
classification labels. Values come from ``WIKICONVERT_*`` environment
variables or a ``.env`` file; nested models use ``__`` as delimiter
(``WIKICONVERT_TIMINGS__DIALOG_TIMEOUT=8``).

Tags:
    wikiconvert, configuration, settings, pydantic, caching, validation

Doc-Types:
    api-reference
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

if TYPE_CHECKING:
    from wikiconvert.execution.rate_limit import ChannelConfig

WIKIPEDIA_CHANNEL = "wikipedia"
MUSICBRAINZ_CHANNEL = "musicbrainz"

DEFAULT_CANONICAL_LABEL = "Wikidata / Wikidata page for"
# The relationship type list is not consistent about which half comes first
DEFAULT_ACCEPTED_LABELS = [
    "Wikidata / Wikidata page for",
    "Wikidata page for / Wikidata",
]


class ChannelSettings(BaseModel):
    """Pacing budget of one rate-constrained service channel."""

    interval: float = Field(default=1.0, ge=0.0, description="Minimum seconds between calls per lane")
    lanes: int = Field(default=1, ge=1, description="Parallel lanes, chosen round-robin")


class ConversionTimings(BaseModel):
    """Deadlines and settle delays (seconds) used against the edit surface."""

    dialog_timeout: float = Field(default=5.0, ge=0.0)
    control_timeout: float = Field(default=2.0, ge=0.0)
    recovery_timeout: float = Field(default=2.0, ge=0.0)
    pending_marker_grace: float = Field(default=1.0, ge=0.0)

    dialog_settle: float = Field(default=0.1, ge=0.0)
    selector_settle: float = Field(default=0.05, ge=0.0)
    search_settle: float = Field(default=0.3, ge=0.0)
    commit_settle: float = Field(default=0.1, ge=0.0)
    close_settle: float = Field(default=0.3, ge=0.0)
    recovery_click_settle: float = Field(default=0.2, ge=0.0)
    recovery_settle: float = Field(default=1.0, ge=0.0)
    removal_settle: float = Field(default=0.3, ge=0.0)
    pre_submit_delay: float = Field(default=0.5, ge=0.0)

    @classmethod
    def immediate(cls) -> ConversionTimings:
        """Zero settle delays with short deadlines (tests, dry runs)."""
        return cls(
            dialog_timeout=0.5,
            control_timeout=0.5,
            recovery_timeout=0.2,
            pending_marker_grace=0.0,
            dialog_settle=0.0,
            selector_settle=0.0,
            search_settle=0.0,
            commit_settle=0.0,
            close_settle=0.0,
            recovery_click_settle=0.0,
            recovery_settle=0.0,
            removal_settle=0.0,
            pre_submit_delay=0.0,
        )


def _default_channels() -> dict[str, ChannelSettings]:
    return {
        WIKIPEDIA_CHANNEL: ChannelSettings(interval=1.0, lanes=1),
        # https://musicbrainz.org/doc/MusicBrainz_API/Rate_Limiting
        MUSICBRAINZ_CHANNEL: ChannelSettings(interval=1.0, lanes=1),
    }


class ConverterSettings(BaseSettings):
    """wikiconvert centralized configuration."""

    model_config = SettingsConfigDict(
        env_prefix="WIKICONVERT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_nested_delimiter="__",
    )

    # ── Logging ──────────────────────────────────────────────────
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="console", description="console | json")

    # ── HTTP ─────────────────────────────────────────────────────
    user_agent: str = Field(default="wikiconvert/0.1 ( https://github.com/wikiconvert/wikiconvert )")
    http_timeout: float = Field(default=10.0, gt=0.0)

    # ── Services ─────────────────────────────────────────────────
    wikidata_base_url: str = Field(default="https://www.wikidata.org/wiki/")
    musicbrainz_api_url: str = Field(default="https://musicbrainz.org/ws/2")

    # ── Rate limiting ────────────────────────────────────────────
    channels: dict[str, ChannelSettings] = Field(default_factory=_default_channels)

    # ── Surface timings ──────────────────────────────────────────
    timings: ConversionTimings = Field(default_factory=ConversionTimings)

    # ── Classification ───────────────────────────────────────────
    canonical_label: str = Field(default=DEFAULT_CANONICAL_LABEL)
    accepted_labels: list[str] = Field(default_factory=lambda: list(DEFAULT_ACCEPTED_LABELS))

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        value = value.upper()
        if value not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level {value!r}")
        return value

    @field_validator("log_format")
    @classmethod
    def _known_format(cls, value: str) -> str:
        value = value.lower()
        if value not in {"console", "json"}:
            raise ValueError(f"unknown log format {value!r}")
        return value

    @model_validator(mode="after")
    def _fill_defaults(self) -> ConverterSettings:
        # Overriding one channel from the environment must not drop the others
        for name, default in _default_channels().items():
            self.channels.setdefault(name, default)
        if self.canonical_label not in self.accepted_labels:
            self.accepted_labels.insert(0, self.canonical_label)
        return self

    def channel_configs(self) -> dict[str, ChannelConfig]:
        """Channel settings as dispatcher :class:`ChannelConfig` objects."""
        from wikiconvert.execution.rate_limit import ChannelConfig

        return {
            name: ChannelConfig(interval=channel.interval, lanes=channel.lanes)
            for name, channel in self.channels.items()
        }


# ── Settings factory with caching ────────────────────────────────────────

_settings_cache: dict[str, ConverterSettings] = {}


def get_settings(*, _force_reload: bool = False) -> ConverterSettings:
    """Load, validate, and cache a :class:`ConverterSettings` instance."""
    if not _force_reload and "default" in _settings_cache:
        return _settings_cache["default"]
    settings = ConverterSettings()
    _settings_cache["default"] = settings
    return settings


def clear_settings_cache() -> None:
    """Clear the settings cache (primarily for testing)."""
    _settings_cache.clear()
