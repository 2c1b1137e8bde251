"""Live view of the system's sockets, gathered from ss, /proc, netstat or lsof."""

from __future__ import annotations

import subprocess
import sys
from collections import Counter
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from pathlib import Path

from netwatch.connection_parsing import (
    ConnectionState,
    IPAddress,
    NetworkConnection,
    Protocol,
    parse_lsof_output,
    parse_netstat_output,
    parse_proc_connections,
    parse_ss_output,
)
from netwatch.errors import NetwatchError, ParseError

Runner = Callable[[Sequence[str]], subprocess.CompletedProcess]

_TOP_LIMIT = 10

_PROC_TABLES = {
    Protocol.TCP: "tcp",
    Protocol.TCP6: "tcp6",
    Protocol.UDP: "udp",
    Protocol.UDP6: "udp6",
}

_NETSTAT_FLAGS = {
    Protocol.TCP: "tcp",
    Protocol.TCP6: "tcp6",
    Protocol.UDP: "udp",
    Protocol.UDP6: "udp6",
}

_LSOF_FLAGS = {
    Protocol.TCP: "TCP",
    Protocol.TCP6: "TCP",
    Protocol.UDP: "UDP",
    Protocol.UDP6: "UDP",
}


def _run_command(args: Sequence[str]) -> subprocess.CompletedProcess:
    return subprocess.run(
        list(args),
        capture_output=True,
        text=True,
        encoding="utf-8",
        errors="replace",
        check=False,
    )


def _sort_key(conn: NetworkConnection) -> tuple[int, float]:
    rtt = conn.socket_info.rtt
    if rtt is not None:
        return 0, rtt
    return 1, -(conn.bytes_sent + conn.bytes_received)


def sort_connections(connections: Iterable[NetworkConnection]) -> list[NetworkConnection]:
    """Order sockets by RTT (lowest first); those without RTT follow, busiest first."""
    return sorted(connections, key=_sort_key)


@dataclass
class ConnectionStats:
    """Counts of sockets by state and protocol."""

    total: int = 0
    established: int = 0
    listening: int = 0
    time_wait: int = 0
    other: int = 0
    tcp: int = 0
    udp: int = 0


class ConnectionMonitor:
    """Collects the current socket table and summarises it."""

    def __init__(
        self,
        proc_root: str | Path = "/proc",
        runner: Runner | None = None,
        platform: str | None = None,
    ) -> None:
        self._proc_root = Path(proc_root)
        self._run = runner or _run_command
        self._platform = platform if platform is not None else sys.platform
        self._connections: list[NetworkConnection] = []
        self._process_cache: dict[int, str] = {}

    def update(self) -> None:
        """Replace the socket table with a fresh reading."""
        self._connections = []
        if self._platform == "darwin":
            self._read_tables(Protocol.TCP, Protocol.TCP6, Protocol.UDP, Protocol.UDP6)
            try:
                self._update_process_info()
            except OSError:
                pass
        elif not self._read_ss():
            self._read_tables(Protocol.TCP, Protocol.TCP6, Protocol.UDP, Protocol.UDP6)
            self._update_process_info()
        self._connections = sort_connections(self._connections)

    def connections(self) -> list[NetworkConnection]:
        """The sockets found by the last update, best first."""
        return list(self._connections)

    def connection_stats(self) -> ConnectionStats:
        """Count the sockets by state and protocol."""
        stats = ConnectionStats()
        for conn in self._connections:
            if conn.state is ConnectionState.ESTABLISHED:
                stats.established += 1
            elif conn.state is ConnectionState.LISTEN:
                stats.listening += 1
            elif conn.state is ConnectionState.TIME_WAIT:
                stats.time_wait += 1
            else:
                stats.other += 1
            if conn.protocol in (Protocol.TCP, Protocol.TCP6):
                stats.tcp += 1
            else:
                stats.udp += 1
            stats.total += 1
        return stats

    def top_processes(self) -> list[tuple[str, int]]:
        """The ten processes holding the most sockets, with their counts."""
        counts = Counter(
            conn.process_name for conn in self._connections if conn.process_name is not None
        )
        return counts.most_common(_TOP_LIMIT)

    def remote_hosts(self) -> list[tuple[IPAddress, int]]:
        """The ten remote hosts with the most established connections."""
        counts = Counter(
            conn.remote_addr[0]
            for conn in self._connections
            if conn.state is ConnectionState.ESTABLISHED
        )
        return counts.most_common(_TOP_LIMIT)

    def _read_ss(self) -> bool:
        try:
            result = self._run(["ss", "-tupln", "-i", "-e", "-p"])
        except OSError:
            return False
        if result.returncode != 0:
            return False
        try:
            parsed = parse_ss_output(result.stdout)
        except NetwatchError:
            return False
        self._connections.extend(parsed)
        return True

    def _read_tables(self, *protocols: Protocol) -> None:
        for protocol in protocols:
            path = self._proc_root / "net" / _PROC_TABLES[protocol]
            try:
                content = path.read_text(encoding="utf-8", errors="replace")
            except OSError:
                self._read_from_netstat(protocol)
                continue
            self._connections.extend(parse_proc_connections(content, protocol))

    def _read_from_netstat(self, protocol: Protocol) -> None:
        try:
            result = self._run(["netstat", "-n", "-p", _NETSTAT_FLAGS[protocol]])
        except OSError:
            self._read_from_lsof(protocol)
            return
        self._connections.extend(parse_netstat_output(result.stdout, protocol))

    def _read_from_lsof(self, protocol: Protocol) -> None:
        try:
            result = self._run(["lsof", "-i", _LSOF_FLAGS[protocol], "-n"])
        except OSError:
            return
        self._connections.extend(parse_lsof_output(result.stdout, protocol))

    def _update_process_info(self) -> None:
        names: dict[int, str] = {}
        try:
            entries = list(self._proc_root.iterdir())
        except OSError:
            entries = []
        for entry in entries:
            if not (entry.name.isascii() and entry.name.isdigit()):
                continue
            try:
                comm = (entry / "comm").read_text(encoding="utf-8", errors="replace")
            except OSError:
                continue
            names[int(entry.name)] = comm.strip()
        for conn in self._connections:
            if conn.pid is not None:
                conn.process_name = names.get(conn.pid)
        self._process_cache = names


__all__ = [
    "ConnectionMonitor",
    "ConnectionStats",
    "ParseError",
    "sort_connections",
]