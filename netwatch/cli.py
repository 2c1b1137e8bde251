"""Command-line arguments and traffic unit selection."""

from __future__ import annotations

import argparse
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum

_VERSION = "0.2.0"


class TrafficUnit(Enum):
    """Unit in which traffic rates or data totals are shown."""

    HUMAN_BIT = "h"
    HUMAN_BYTE = "H"
    BIT = "b"
    BYTE = "B"
    KILO_BIT = "k"
    KILO_BYTE = "K"
    MEGA_BIT = "m"
    MEGA_BYTE = "M"
    GIGA_BIT = "g"
    GIGA_BYTE = "G"

    def next(self) -> TrafficUnit:
        """Return the following unit, wrapping round after the last."""
        members = list(TrafficUnit)
        return members[(members.index(self) + 1) % len(members)]

    @classmethod
    def from_string(cls, s: str) -> TrafficUnit | None:
        """Return the unit named by its one-letter code, or None."""
        try:
            return cls(s)
        except ValueError:
            return None

    def __str__(self) -> str:
        return self.value


DataUnit = TrafficUnit


@dataclass
class Args:
    """Parsed command-line options."""

    devices: list[str] = field(default_factory=list)
    list_interfaces: bool = False
    average_window: int = 300
    max_incoming: int = 0
    max_outgoing: int = 0
    refresh_interval: int = 1000
    high_performance: bool = False
    traffic_unit: TrafficUnit = TrafficUnit.KILO_BIT
    data_unit: TrafficUnit = TrafficUnit.MEGA_BYTE
    multiple_devices: bool = False
    log_file: str | None = None
    test: bool = False
    debug_dashboard: bool = False
    show_comparison: bool = False
    show_overview: bool = False
    force_terminal: bool = False
    sre_terminal: bool = False


def _unsigned(bits: int):
    limit = (1 << bits) - 1

    def convert(text: str) -> int:
        digits = text[1:] if text.startswith("+") else text
        if not digits.isascii() or not digits.isdigit():
            raise argparse.ArgumentTypeError(f"invalid unsigned integer: {text!r}")
        value = int(digits)
        if value > limit:
            raise argparse.ArgumentTypeError(f"{text} is larger than {limit}")
        return value

    return convert


def _unit(text: str) -> TrafficUnit:
    unit = TrafficUnit.from_string(text)
    if unit is None:
        choices = ", ".join(u.value for u in TrafficUnit)
        raise argparse.ArgumentTypeError(f"invalid unit {text!r} (choose from {choices})")
    return unit


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the netwatch command."""
    parser = argparse.ArgumentParser(
        prog="netwatch", description="A modern network traffic monitor"
    )
    parser.add_argument("-V", "--version", action="version", version=f"netwatch {_VERSION}")
    parser.add_argument(
        "devices", nargs="*", help="Network devices to monitor (default: auto-detect all)"
    )
    parser.add_argument(
        "-l", "--list", dest="list_interfaces", action="store_true",
        help="List available network interfaces and exit",
    )
    parser.add_argument(
        "-a", "--average", dest="average_window", type=_unsigned(32), default=300,
        help="Average window in seconds",
    )
    parser.add_argument(
        "-i", "--incoming", dest="max_incoming", type=_unsigned(64), default=0,
        help="Max incoming bandwidth scaling (kBit/s, 0 = auto)",
    )
    parser.add_argument(
        "-o", "--outgoing", dest="max_outgoing", type=_unsigned(64), default=0,
        help="Max outgoing bandwidth scaling (kBit/s, 0 = auto)",
    )
    parser.add_argument(
        "-t", "--interval", dest="refresh_interval", type=_unsigned(64), default=1000,
        help="Refresh interval in milliseconds",
    )
    parser.add_argument(
        "--high-perf", dest="high_performance", action="store_true",
        help="Enable high performance mode (slower updates, less CPU)",
    )
    parser.add_argument(
        "-u", "--unit", dest="traffic_unit", type=_unit, default=TrafficUnit.KILO_BIT,
        help="Traffic unit format (h, H, b, B, k, K, m, M, g, G)",
    )
    parser.add_argument(
        "-U", "--data-unit", dest="data_unit", type=_unit, default=TrafficUnit.MEGA_BYTE,
        help="Data unit format (same as -u but for totals)",
    )
    parser.add_argument(
        "-m", "--multiple", dest="multiple_devices", action="store_true",
        help="Show multiple devices without graphs",
    )
    parser.add_argument("-f", "--file", dest="log_file", help="Log traffic data to file")
    parser.add_argument(
        "--test", action="store_true", help="Print statistics once and exit"
    )
    parser.add_argument(
        "--debug-dashboard", action="store_true", help="Show dashboard data without TUI"
    )
    parser.add_argument(
        "--show-comparison", action="store_true",
        help="Show before/after comparison of dashboard enhancements",
    )
    parser.add_argument(
        "--show-overview", action="store_true", help="Show overview panel data in text mode"
    )
    parser.add_argument(
        "--force-terminal", action="store_true", help="Force terminal mode (bypass TUI)"
    )
    parser.add_argument(
        "--sre-terminal", action="store_true", help="Force SRE forensics terminal mode"
    )
    return parser


def parse_args(argv: Sequence[str] | None = None) -> Args:
    """Parse ``argv`` (default: ``sys.argv[1:]``) into an :class:`Args`."""
    namespace = build_parser().parse_args(argv)
    return Args(**vars(namespace))