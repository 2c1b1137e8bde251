"""Persistent settings, read from ~/.netwatch (TOML) or ~/.nload."""

from __future__ import annotations

import re
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import tomli_w

from netwatch.cli import Args, DataUnit, TrafficUnit
from netwatch.errors import ConfigError

_MODERN_NAME = ".netwatch"
_LEGACY_NAME = ".nload"

_U32_MAX = (1 << 32) - 1
_U64_MAX = (1 << 64) - 1
_UINT_RE = re.compile(r"\+?[0-9]+")


def _default_diagnostic_targets() -> list[str]:
    return ["1.1.1.1", "8.8.8.8"]


def _default_dns_domains() -> list[str]:
    return ["cloudflare.com", "google.com"]


# (attribute, file key, kind, required)
_FIELDS: tuple[tuple[str, str, str, bool], ...] = (
    ("average_window", "AverageWindow", "u32", True),
    ("max_incoming", "BarMaxIn", "u64", True),
    ("max_outgoing", "BarMaxOut", "u64", True),
    ("data_format", "DataFormat", "str", True),
    ("devices", "Devices", "str", True),
    ("multiple_devices", "MultipleDevices", "bool", True),
    ("refresh_interval", "RefreshInterval", "u64", True),
    ("high_performance", "HighPerformance", "bool", False),
    ("traffic_format", "TrafficFormat", "str", True),
    ("diagnostic_targets", "DiagnosticTargets", "list", False),
    ("dns_domains", "DNSDomains", "list", False),
)


def _check(key: str, value: Any, kind: str) -> Any:
    if kind in ("u32", "u64"):
        limit = _U32_MAX if kind == "u32" else _U64_MAX
        if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= limit:
            raise ConfigError(f"{key} must be an unsigned integer not above {limit}")
    elif kind == "str":
        if not isinstance(value, str):
            raise ConfigError(f"{key} must be a string")
    elif kind == "bool":
        if not isinstance(value, bool):
            raise ConfigError(f"{key} must be a boolean")
    elif not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigError(f"{key} must be a list of strings")
    return list(value) if kind == "list" else value


def _parse_uint(text: str, limit: int, fallback: int) -> int:
    if _UINT_RE.fullmatch(text):
        value = int(text)
        if value <= limit:
            return value
    return fallback


def _home(home: str | Path | None) -> Path | None:
    if home is not None:
        return Path(home)
    try:
        return Path.home()
    except RuntimeError:
        return None


@dataclass
class Config:
    """User settings for the monitor."""

    average_window: int = 300
    max_incoming: int = 0
    max_outgoing: int = 0
    data_format: str = "M"
    devices: str = "all"
    multiple_devices: bool = False
    refresh_interval: int = 1000
    high_performance: bool = False
    traffic_format: str = "k"
    diagnostic_targets: list[str] = field(default_factory=_default_diagnostic_targets)
    dns_domains: list[str] = field(default_factory=_default_dns_domains)

    @classmethod
    def load(cls, home: str | Path | None = None) -> Config:
        """Load ``~/.netwatch``, else ``~/.nload``, else return the defaults."""
        base = _home(home)
        if base is None:
            return cls()
        modern = base / _MODERN_NAME
        legacy = base / _LEGACY_NAME
        if modern.exists():
            return cls.from_toml(modern.read_text(encoding="utf-8"))
        if legacy.exists():
            return cls.from_nload(legacy.read_text(encoding="utf-8"))
        return cls()

    def save(self, home: str | Path | None = None) -> None:
        """Write the settings as TOML to ``~/.netwatch``."""
        base = _home(home)
        if base is None:
            return
        (base / _MODERN_NAME).write_text(self.to_toml(), encoding="utf-8")

    @classmethod
    def from_toml(cls, text: str) -> Config:
        """Parse settings from TOML text; raise ConfigError when invalid."""
        try:
            data = tomllib.loads(text)
        except tomllib.TOMLDecodeError as exc:
            raise ConfigError(str(exc)) from exc
        values: dict[str, Any] = {}
        for attr, key, kind, required in _FIELDS:
            if key not in data:
                if required:
                    raise ConfigError(f"missing field `{key}`")
                continue
            values[attr] = _check(key, data[key], kind)
        return cls(**values)

    def to_toml(self) -> str:
        """Serialise the settings as TOML text."""
        return tomli_w.dumps({key: getattr(self, attr) for attr, key, _, _ in _FIELDS})

    @classmethod
    def from_nload(cls, text: str) -> Config:
        """Parse settings written in the nload ``Key="Value"`` format."""
        config = cls()
        for raw_line in text.splitlines():
            line = raw_line.strip()
            if not line or line.startswith("#"):
                continue
            key, sep, value = line.partition("=")
            if not sep:
                continue
            key = key.strip()
            value = value.strip().strip('"')
            match key:
                case "AverageWindow":
                    config.average_window = _parse_uint(value, _U32_MAX, 300)
                case "BarMaxIn":
                    config.max_incoming = _parse_uint(value, _U64_MAX, 0)
                case "BarMaxOut":
                    config.max_outgoing = _parse_uint(value, _U64_MAX, 0)
                case "DataFormat":
                    config.data_format = value
                case "Devices":
                    config.devices = value
                case "MultipleDevices":
                    config.multiple_devices = value == "true"
                case "RefreshInterval":
                    config.refresh_interval = _parse_uint(value, _U64_MAX, 500)
                case "TrafficFormat":
                    config.traffic_format = value
        return config

    def apply_args(self, args: Args) -> None:
        """Override the settings with command-line options."""
        self.average_window = args.average_window
        self.max_incoming = args.max_incoming
        self.max_outgoing = args.max_outgoing
        self.refresh_interval = args.refresh_interval
        self.high_performance = args.high_performance
        self.traffic_format = args.traffic_unit.value
        self.data_format = args.data_unit.value
        self.multiple_devices = args.multiple_devices

    def traffic_unit(self) -> TrafficUnit:
        """The configured rate unit, kilobits if the setting is unknown."""
        return TrafficUnit.from_string(self.traffic_format) or TrafficUnit.KILO_BIT

    def data_unit(self) -> DataUnit:
        """The configured total unit, megabytes if the setting is unknown."""
        return DataUnit.from_string(self.data_format) or DataUnit.MEGA_BYTE