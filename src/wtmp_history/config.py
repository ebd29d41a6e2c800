"""Configuration models with Pydantic v2 validation.

Two layers live here:

- :class:`LastOptions` — every knob of a single history pass (filters,
  limit, display modes).  Mutually exclusive display flags are rejected at
  construction time so a conflicting run aborts before any record is read.
- :class:`AppConfig` — site defaults loaded from a YAML file by
  :class:`ConfigLoader` (store location, rotation age, display defaults).

Example
-------
>>> options = LastOptions(legacy=True, limit=5)
>>> options.login_width
16
>>> options.logout_width
5
"""
from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import BaseModel, Field, model_validator

from wtmp_history.timefmt import TimeFormat, TimeStyle

# (flag, flag, option letters used in the error message)
_CONFLICTS: tuple[tuple[str, str, str], ...] = (
    ("hostlast", "nohostname", "-a and -R"),
    ("dns", "nohostname", "-d and -R"),
    ("ip", "nohostname", "-i and -R"),
    ("dns", "ip", "-d and -i"),
)

NAME_WIDTH: int = 8
HOST_WIDTH: int = 16


class LastOptions(BaseModel):
    """Options for one session-history pass.

    Time fields are microseconds since the epoch; ``0`` means unset.
    """

    since: int = Field(default=0, ge=0)
    until: int = Field(default=0, ge=0)
    present: int = Field(default=0, ge=0)
    match: list[str] = Field(default_factory=list)
    limit: int = Field(default=0, ge=0)
    unique: bool = Field(default=False)
    open_only: bool = Field(default=False)
    legacy: bool = Field(default=False)
    json_output: bool = Field(default=False)
    compact: bool = Field(default=False)
    fulltimes: bool = Field(default=False)
    time_format: TimeFormat | None = Field(default=None)
    fullnames: bool = Field(default=False)
    hostlast: bool = Field(default=False)
    nohostname: bool = Field(default=False)
    show_service: bool = Field(default=False)
    dns: bool = Field(default=False)
    ip: bool = Field(default=False)
    system: bool = Field(default=False)

    @model_validator(mode="after")
    def reject_conflicts(self) -> LastOptions:
        for first, second, letters in _CONFLICTS:
            if getattr(self, first) and getattr(self, second):
                raise ValueError(f"The options {letters} cannot be used together.")
        return self

    # ------------------------------------------------------------------
    # Time window
    # ------------------------------------------------------------------

    @property
    def window_is_empty(self) -> bool:
        """``True`` when the time filters cannot match any record."""
        if self.present:
            if self.since and self.present < self.since:
                return True
            if self.until and self.present > self.until:
                return True
        return bool(self.since and self.until and self.since > self.until)

    @property
    def effective_until(self) -> int:
        """``until`` clamped to the probe instant when both are set."""
        if self.present and self.until:
            return self.present
        return self.until

    # ------------------------------------------------------------------
    # Display layout
    # ------------------------------------------------------------------

    @property
    def compact_display(self) -> bool:
        return self.compact and not self.fulltimes

    @property
    def row_format(self) -> TimeFormat:
        if self.time_format is not None:
            return self.time_format
        if self.fulltimes:
            return TimeFormat.FULL
        if self.compact:
            return TimeFormat.COMPACT
        return TimeFormat.SHORT

    @property
    def login_style(self) -> TimeStyle:
        return self.row_format.login_style

    @property
    def login_width(self) -> int:
        return self.row_format.login_width

    @property
    def logout_style(self) -> TimeStyle:
        return self.row_format.logout_style

    @property
    def logout_width(self) -> int:
        return 0 if self.compact_display else self.row_format.logout_width

    @property
    def footer_style(self) -> TimeStyle:
        if self.time_format is not None:
            return self.time_format.login_style
        if self.compact:
            return TimeStyle.COMPACT
        return TimeStyle.CTIME


def invocation_defaults(prog_name: str) -> dict[str, bool]:
    """Return option defaults implied by the name the tool was invoked as.

    ``last`` selects legacy precision, ``lastlog`` legacy precision plus one
    entry per user, ``wlastlog`` one entry per user.
    """
    match Path(prog_name).name:
        case "last":
            return {"legacy": True}
        case "lastlog":
            return {"legacy": True, "unique": True}
        case "wlastlog":
            return {"unique": True}
    return {}


class StoreConfig(BaseModel):
    """Location and retention of the event log."""

    model_config = {"extra": "allow"}

    path: Path = Field(default=Path("/var/lib/wtmp-history/wtmp.jsonl"))
    rotate_days: int = Field(default=60, ge=1)


class LastDefaults(BaseModel):
    """Site-wide display defaults for the ``last`` command."""

    model_config = {"extra": "allow"}

    time_format: TimeFormat | None = Field(default=None)
    legacy: bool = Field(default=False)
    compact: bool = Field(default=False)


class AppConfig(BaseModel):
    """Top-level configuration schema.

    All sections are optional and fall back to defaults.
    """

    model_config = {"extra": "allow"}

    version: str = Field(default="1")
    store: StoreConfig = Field(default_factory=StoreConfig)
    last: LastDefaults = Field(default_factory=LastDefaults)


class ConfigLoader:
    """Loads and validates YAML configuration.

    Example
    -------
    >>> loader = ConfigLoader()
    >>> config = loader.load_string("store:\\n  rotate_days: 30\\n")
    >>> config.store.rotate_days
    30
    """

    def load(self, config_path: Path) -> AppConfig:
        """Load and validate a YAML configuration file.

        Raises
        ------
        FileNotFoundError:
            When the config file does not exist.
        ValueError:
            When the YAML content fails Pydantic validation.
        """
        if not config_path.exists():
            raise FileNotFoundError(f"Configuration not found: {config_path}")

        with config_path.open("r", encoding="utf-8") as fh:
            raw: dict[str, object] = yaml.safe_load(fh) or {}

        return AppConfig.model_validate(raw)

    def load_string(self, yaml_content: str) -> AppConfig:
        """Load and validate a YAML string directly."""
        raw: dict[str, object] = yaml.safe_load(yaml_content) or {}
        return AppConfig.model_validate(raw)

    def load_or_defaults(self, config_path: Path) -> AppConfig:
        """Load *config_path* if it exists, otherwise return defaults."""
        return self.load(config_path) if config_path.exists() else self.defaults()

    def defaults(self) -> AppConfig:
        """Return a configuration with all defaults applied."""
        return AppConfig()
