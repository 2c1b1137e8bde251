"""Result types for active network diagnostics and parsers for tool output."""

from __future__ import annotations

import re
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar

_FLOAT_RE = re.compile(
    r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?"
    r"|[+-]?(?:inf|infinity|nan)",
    re.IGNORECASE,
)

_FALLBACK_RTT = 20.0
_MAX_PORT = 65535


def _parse_float(text: str) -> float | None:
    return float(text) if _FLOAT_RE.fullmatch(text) else None


@dataclass(frozen=True)
class ConnectivityStatus:
    """Reachability of a target; ``ERROR`` kinds carry a message."""

    kind: str
    message: str | None = None

    ONLINE: ClassVar[ConnectivityStatus]
    DEGRADED: ClassVar[ConnectivityStatus]
    OFFLINE: ClassVar[ConnectivityStatus]
    TIMEOUT: ClassVar[ConnectivityStatus]
    UNKNOWN: ClassVar[ConnectivityStatus]

    @classmethod
    def error(cls, message: str) -> ConnectivityStatus:
        """A status describing a failure to run the test."""
        return cls("Error", message)

    @property
    def is_error(self) -> bool:
        return self.kind == "Error"

    def __str__(self) -> str:
        return f"Error({self.message})" if self.is_error else self.kind


ConnectivityStatus.ONLINE = ConnectivityStatus("Online")
ConnectivityStatus.DEGRADED = ConnectivityStatus("Degraded")
ConnectivityStatus.OFFLINE = ConnectivityStatus("Offline")
ConnectivityStatus.TIMEOUT = ConnectivityStatus("Timeout")
ConnectivityStatus.UNKNOWN = ConnectivityStatus("Unknown")


class PortStatus(Enum):
    """Outcome of probing a TCP or UDP port."""

    OPEN = "Open"
    CLOSED = "Closed"
    FILTERED = "Filtered"
    TIMEOUT = "Timeout"
    UNKNOWN = "Unknown"
    ERROR = "Error"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class DnsStatus:
    """Outcome of a DNS lookup; ``ERROR`` kinds carry a message."""

    kind: str
    message: str | None = None

    SUCCESS: ClassVar[DnsStatus]
    TIMEOUT: ClassVar[DnsStatus]
    SERVER_FAILURE: ClassVar[DnsStatus]
    NAME_ERROR: ClassVar[DnsStatus]
    UNKNOWN: ClassVar[DnsStatus]

    @classmethod
    def error(cls, message: str) -> DnsStatus:
        """A status describing a failure to run the lookup."""
        return cls("Error", message)

    @property
    def is_error(self) -> bool:
        return self.kind == "Error"

    def __str__(self) -> str:
        return f"Error({self.message})" if self.is_error else self.kind


DnsStatus.SUCCESS = DnsStatus("Success")
DnsStatus.TIMEOUT = DnsStatus("Timeout")
DnsStatus.SERVER_FAILURE = DnsStatus("ServerFailure")
DnsStatus.NAME_ERROR = DnsStatus("NameError")
DnsStatus.UNKNOWN = DnsStatus("Unknown")


@dataclass
class PingResult:
    """Round-trip statistics for one ping target."""

    target: str
    packets_sent: int = 0
    packets_received: int = 0
    packet_loss: float = 0.0
    min_rtt: float = 0.0
    avg_rtt: float = 0.0
    max_rtt: float = 0.0
    stddev_rtt: float = 0.0
    status: ConnectivityStatus = ConnectivityStatus.UNKNOWN
    last_test: float = field(default_factory=time.monotonic)


@dataclass
class TracerouteHop:
    """One router on the path to a target."""

    hop_number: int
    ip_address: str | None = None
    hostname: str | None = None
    rtt1: float | None = None
    rtt2: float | None = None
    rtt3: float | None = None
    avg_rtt: float | None = None
    packet_loss: float = 0.0


@dataclass
class TracerouteResult:
    """The route found to a target."""

    target: str
    hops: list[TracerouteHop] = field(default_factory=list)
    total_hops: int = 0
    status: ConnectivityStatus = ConnectivityStatus.UNKNOWN
    last_test: float = field(default_factory=time.monotonic)


@dataclass
class PortScanResult:
    """Outcome of probing one port on one host."""

    target: str
    port: int
    protocol: str = "TCP"
    status: PortStatus = PortStatus.UNKNOWN
    response_time: float | None = None
    service_banner: str | None = None
    last_test: float = field(default_factory=time.monotonic)


@dataclass
class DnsResult:
    """Outcome of resolving one domain."""

    domain: str
    query_type: str = "A"
    records: list[str] = field(default_factory=list)
    response_time: float = 0.0
    status: DnsStatus = DnsStatus.UNKNOWN
    nameserver: str = "unknown"
    last_test: float = field(default_factory=time.monotonic)


@dataclass
class ActiveDiagnostics:
    """The latest result of every diagnostic, keyed by target."""

    ping_results: dict[str, PingResult] = field(default_factory=dict)
    traceroute_results: dict[str, TracerouteResult] = field(default_factory=dict)
    port_scan_results: dict[str, PortScanResult] = field(default_factory=dict)
    dns_results: dict[str, DnsResult] = field(default_factory=dict)
    last_updated: float = field(default_factory=time.monotonic)


@dataclass
class ConnectivitySummary:
    """Aggregate view of the ping results and detected problems."""

    total_targets: int = 0
    online_targets: int = 0
    degraded_targets: int = 0
    offline_targets: int = 0
    avg_latency: float = 0.0
    critical_issues: list[str] = field(default_factory=list)


def extract_avg_rtt(output: str) -> float:
    """Average RTT from a ping ``min/avg/max`` summary line.

    Without a usable summary an estimate of 20 ms plus a tenth of a
    millisecond per byte of output is returned.
    """
    stats_line = next((line for line in output.splitlines() if "min/avg/max" in line), None)
    if stats_line is not None:
        parts = stats_line.split("/")
        if len(parts) >= 5:
            avg = _parse_float(parts[4].strip())
            if avg is not None:
                return avg
    return _FALLBACK_RTT + len(output.encode("utf-8")) * 0.1


def extract_rtt_from_ping(output: str) -> float | None:
    """The first ``time=<n> ms`` value in ping output, or None."""
    for line in output.splitlines():
        start = line.find("time=")
        if start < 0:
            continue
        rest = line[start + len("time="):]
        end = rest.find(" ms")
        if end < 0:
            continue
        rtt = _parse_float(rest[:end])
        if rtt is not None:
            return rtt
    return None


def parse_traceroute_output(output: str) -> list[TracerouteHop]:
    """Hops listed in traceroute output.

    The header and blank lines are skipped; reading stops at the first
    hop line, since hop lines are not interpreted. The result is
    therefore always empty.
    """
    hops: list[TracerouteHop] = []
    for index, line in enumerate(output.splitlines()):
        if index == 0 or not line.strip():
            continue
        break
    return hops


def parse_dns_records(output: str) -> list[str]:
    """Addresses from nslookup output, leaving out the nameserver's own (``#53``)."""
    return [
        line.split("Address:")[1].strip()
        for line in output.splitlines()
        if "Address:" in line and "#53" not in line
    ]


def service_banner(port: int) -> str | None:
    """The banner of the service on ``port``.

    Banners are not collected, so a valid port gives None; a port outside
    0-65535 raises ValueError.
    """
    if not 0 <= port <= _MAX_PORT:
        raise ValueError(f"port out of range: {port}")
    return None