"""Parsers for socket listings from /proc, ss, netstat and lsof."""

from __future__ import annotations

import ipaddress
import math
import re
from dataclasses import dataclass, field
from enum import Enum

from netwatch.errors import ParseError

IPAddress = ipaddress.IPv4Address | ipaddress.IPv6Address
SocketAddr = tuple[IPAddress, int]

_UNSPECIFIED: SocketAddr = (ipaddress.IPv4Address("0.0.0.0"), 0)
_U64_MAX = (1 << 64) - 1

_DEC_RE = re.compile(r"\+?[0-9]+")
_HEX_RE = re.compile(r"\+?[0-9a-fA-F]+")
_HEX32_RE = re.compile(r"[0-9a-fA-F]{32}")
_FLOAT_RE = re.compile(
    r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?"
    r"|[+-]?(?:inf|infinity|nan)",
    re.IGNORECASE,
)


class ConnectionState(Enum):
    """State of a socket, named as netstat names it."""

    ESTABLISHED = "ESTABLISHED"
    LISTEN = "LISTEN"
    SYN_SENT = "SYN_SENT"
    SYN_RECEIVED = "SYN_RECV"
    FIN_WAIT1 = "FIN_WAIT1"
    FIN_WAIT2 = "FIN_WAIT2"
    TIME_WAIT = "TIME_WAIT"
    CLOSE = "CLOSE"
    CLOSE_WAIT = "CLOSE_WAIT"
    LAST_ACK = "LAST_ACK"
    CLOSING = "CLOSING"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def from_proc_code(cls, code: str) -> ConnectionState:
        """Map a /proc/net state code such as ``"01"`` to a state."""
        return _PROC_CODES.get(code, cls.UNKNOWN)

    def color(self) -> str:
        """The colour name used to display this state."""
        return _STATE_COLORS[self]

    def __str__(self) -> str:
        return self.value


_PROC_CODES = {
    "01": ConnectionState.ESTABLISHED,
    "02": ConnectionState.SYN_SENT,
    "03": ConnectionState.SYN_RECEIVED,
    "04": ConnectionState.FIN_WAIT1,
    "05": ConnectionState.FIN_WAIT2,
    "06": ConnectionState.TIME_WAIT,
    "07": ConnectionState.CLOSE,
    "08": ConnectionState.CLOSE_WAIT,
    "09": ConnectionState.LAST_ACK,
    "0A": ConnectionState.LISTEN,
    "10": ConnectionState.LISTEN,
    "0B": ConnectionState.CLOSING,
    "11": ConnectionState.CLOSING,
}

_STATE_COLORS = {
    ConnectionState.ESTABLISHED: "green",
    ConnectionState.LISTEN: "blue",
    ConnectionState.SYN_SENT: "yellow",
    ConnectionState.SYN_RECEIVED: "yellow",
    ConnectionState.FIN_WAIT1: "red",
    ConnectionState.FIN_WAIT2: "red",
    ConnectionState.TIME_WAIT: "red",
    ConnectionState.CLOSE_WAIT: "red",
    ConnectionState.LAST_ACK: "red",
    ConnectionState.CLOSING: "red",
    ConnectionState.CLOSE: "gray",
    ConnectionState.UNKNOWN: "magenta",
}

_SS_STATES = {
    "ESTAB": ConnectionState.ESTABLISHED,
    "LISTEN": ConnectionState.LISTEN,
    "SYN-SENT": ConnectionState.SYN_SENT,
    "SYN-RECV": ConnectionState.SYN_RECEIVED,
    "FIN-WAIT-1": ConnectionState.FIN_WAIT1,
    "FIN-WAIT-2": ConnectionState.FIN_WAIT2,
    "TIME-WAIT": ConnectionState.TIME_WAIT,
    "CLOSE": ConnectionState.CLOSE,
    "CLOSE-WAIT": ConnectionState.CLOSE_WAIT,
    "LAST-ACK": ConnectionState.LAST_ACK,
    "CLOSING": ConnectionState.CLOSING,
}

_NETSTAT_STATES = {
    "ESTABLISHED": ConnectionState.ESTABLISHED,
    "LISTEN": ConnectionState.LISTEN,
    "TIME_WAIT": ConnectionState.TIME_WAIT,
    "CLOSE_WAIT": ConnectionState.CLOSE_WAIT,
    "FIN_WAIT_1": ConnectionState.FIN_WAIT1,
    "FIN_WAIT_2": ConnectionState.FIN_WAIT2,
    "SYN_SENT": ConnectionState.SYN_SENT,
    "SYN_RECV": ConnectionState.SYN_RECEIVED,
    "CLOSING": ConnectionState.CLOSING,
    "LAST_ACK": ConnectionState.LAST_ACK,
}

_LSOF_STATES = {
    "ESTABLISHED": ConnectionState.ESTABLISHED,
    "LISTEN": ConnectionState.LISTEN,
    "TIME_WAIT": ConnectionState.TIME_WAIT,
    "CLOSE_WAIT": ConnectionState.CLOSE_WAIT,
    "SYN_SENT": ConnectionState.SYN_SENT,
    "SYN_RECV": ConnectionState.SYN_RECEIVED,
    "FIN_WAIT1": ConnectionState.FIN_WAIT1,
    "FIN_WAIT2": ConnectionState.FIN_WAIT2,
    "CLOSING": ConnectionState.CLOSING,
    "LAST_ACK": ConnectionState.LAST_ACK,
}


class Protocol(Enum):
    """Transport protocol of a socket."""

    TCP = "TCP"
    UDP = "UDP"
    TCP6 = "TCP6"
    UDP6 = "UDP6"

    def __str__(self) -> str:
        return self.value


_SS_PROTOCOLS = {
    "tcp": Protocol.TCP,
    "udp": Protocol.UDP,
    "tcp6": Protocol.TCP6,
    "udp6": Protocol.UDP6,
}


@dataclass
class TcpInfo:
    """Extended TCP parameters of a socket."""

    mss: int = 0
    pmtu: int = 0
    rcv_mss: int = 0
    advmss: int = 0
    cwnd_clamp: int = 0
    delivery_rate: int | None = None
    app_limited: bool = False
    reordering: int = 0


@dataclass
class SocketInfo:
    """Socket internals as reported by ss."""

    rtt: float | None = None
    rttvar: float | None = None
    cwnd: int | None = None
    ssthresh: int | None = None
    send_queue: int = 0
    recv_queue: int = 0
    bandwidth: int | None = None
    pacing_rate: int | None = None
    retrans: int = 0
    lost: int = 0
    duration: str | None = None
    interface: str | None = None
    tcp_info: TcpInfo | None = None


@dataclass
class NetworkConnection:
    """One socket with its endpoints, state and owning process."""

    local_addr: SocketAddr
    remote_addr: SocketAddr
    state: ConnectionState
    protocol: Protocol
    pid: int | None = None
    process_name: str | None = None
    bytes_sent: int = 0
    bytes_received: int = 0
    socket_info: SocketInfo = field(default_factory=SocketInfo)


def _uint(text: str, bits: int) -> int | None:
    if not _DEC_RE.fullmatch(text):
        return None
    value = int(text)
    return value if value < (1 << bits) else None


def _hex(text: str, bits: int) -> int | None:
    if not _HEX_RE.fullmatch(text):
        return None
    value = int(text, 16)
    return value if value < (1 << bits) else None


def _float(text: str) -> float | None:
    return float(text) if _FLOAT_RE.fullmatch(text) else None


def _saturating_u64(value: float) -> int:
    if math.isnan(value) or value <= 0:
        return 0
    if value >= _U64_MAX:
        return _U64_MAX
    return int(value)


def _parse_ip(text: str) -> IPAddress:
    if "%" in text or not text.isascii():
        raise ParseError(f"invalid IP address: {text!r}")
    try:
        return ipaddress.ip_address(text)
    except ValueError as exc:
        raise ParseError(f"invalid IP address: {text!r}") from exc


def _parse_port(text: str) -> int:
    port = _uint(text, 16)
    if port is None:
        raise ParseError(f"invalid port: {text!r}")
    return port


def _parse_bracketed(addr: str) -> SocketAddr:
    end = addr.find("]")
    if end < 0:
        raise ParseError("Invalid IPv6 format")
    ip = _parse_ip(addr[1:end])
    return ip, _parse_port(addr[end + 2:])


def parse_proc_socket_addr(addr: str) -> SocketAddr:
    """Parse a /proc/net address such as ``0100007F:0050``."""
    parts = addr.split(":")
    if len(parts) != 2:
        raise ParseError("Invalid socket address format")
    ip_hex, port_hex = parts
    port = _hex(port_hex, 16)
    if port is None:
        raise ParseError(f"invalid port: {port_hex!r}")
    if len(ip_hex) == 8:
        number = _hex(ip_hex, 32)
        if number is None:
            raise ParseError(f"invalid IPv4 address: {ip_hex!r}")
        ip: IPAddress = ipaddress.IPv4Address(number.to_bytes(4, "little"))
    elif len(ip_hex) == 32:
        if not _HEX32_RE.fullmatch(ip_hex):
            raise ParseError(f"invalid IPv6 address: {ip_hex!r}")
        ip = ipaddress.IPv6Address(bytes.fromhex(ip_hex))
    else:
        raise ParseError("Invalid IP address length")
    return ip, port


def parse_proc_connections(content: str, protocol: Protocol) -> list[NetworkConnection]:
    """Parse a /proc/net/{tcp,udp}[6] table, skipping its header."""
    connections = []
    for line in content.splitlines()[1:]:
        fields = line.split()
        if len(fields) < 10:
            continue
        connections.append(
            NetworkConnection(
                local_addr=parse_proc_socket_addr(fields[1]),
                remote_addr=parse_proc_socket_addr(fields[2]),
                state=ConnectionState.from_proc_code(fields[3]),
                protocol=protocol,
                pid=_uint(fields[7], 32),
            )
        )
    return connections


def parse_ss_address(addr: str) -> SocketAddr:
    """Parse an ss address: ``[::1]:22`` or ``192.168.1.1:80``."""
    if addr.startswith("["):
        return _parse_bracketed(addr)
    ip_text, sep, port_text = addr.rpartition(":")
    if not sep:
        raise ParseError("Invalid address format")
    port = _parse_port(port_text)
    return _parse_ip(ip_text), port


def parse_process_info(part: str) -> tuple[int | None, str | None]:
    """Extract pid and name from ``users:(("sshd",pid=1234,fd=3))``."""
    start = part.find("pid=")
    if start < 0:
        return None, None
    pid_part = part[start + 4:]
    end = pid_part.find(",")
    if end < 0:
        return None, None
    pid = _uint(pid_part[:end], 32)
    if pid is None:
        return None, None
    name_start = part.find('"')
    if name_start >= 0:
        name_end = part.find('"', name_start + 1)
        if name_end >= 0:
            return pid, part[name_start + 1:name_end]
    return pid, None


def parse_bandwidth(text: str) -> int | None:
    """Parse a rate such as ``1.2Mbps`` into bits per second."""
    text = text.strip()
    for suffix, factor in (("Kbps", 1e3), ("Mbps", 1e6), ("Gbps", 1e9)):
        if text.endswith(suffix):
            number = _float(text[: -len(suffix)])
            return None if number is None else _saturating_u64(number * factor)
    return _uint(text, 64)


def parse_socket_details(line: str, info: SocketInfo) -> SocketInfo:
    """Fill ``info`` from an ss detail line and return it."""
    for part in line.split():
        if part.startswith("rtt:"):
            rest = part[len("rtt:"):]
            rtt_text, slash, var_part = rest.partition("/")
            if slash:
                info.rtt = _float(rtt_text)
                ms = var_part.find("ms")
                if ms >= 0:
                    info.rttvar = _float(var_part[:ms])
        elif part.startswith("cwnd:"):
            info.cwnd = _uint(part[len("cwnd:"):], 32)
        elif part.startswith("ssthresh:"):
            info.ssthresh = _uint(part[len("ssthresh:"):], 32)
        elif part.startswith("pacing_rate"):
            pieces = part.split(":")
            if len(pieces) > 1:
                info.pacing_rate = parse_bandwidth(pieces[1])
        elif part.startswith("retrans:"):
            retrans, slash, lost = part[len("retrans:"):].partition("/")
            if slash:
                info.retrans = _uint(retrans, 32) or 0
                info.lost = _uint(lost, 32) or 0
    return info


def parse_ss_connection_line(line: str) -> NetworkConnection | None:
    """Parse one main ss line; None if it is not a tcp/udp socket line."""
    parts = line.split()
    if len(parts) < 5:
        return None
    protocol = _SS_PROTOCOLS.get(parts[0])
    if protocol is None:
        return None
    state = _SS_STATES.get(parts[1], ConnectionState.UNKNOWN)
    recv_queue = _uint(parts[2], 32) or 0
    send_queue = _uint(parts[3], 32) or 0
    local_addr = parse_ss_address(parts[4])
    if len(parts) > 5 and parts[5] != "*:*":
        remote_addr = parse_ss_address(parts[5])
    else:
        remote_addr = _UNSPECIFIED
    users = next((p for p in parts if p.startswith("users:")), None)
    pid, process_name = parse_process_info(users) if users is not None else (None, None)
    return NetworkConnection(
        local_addr=local_addr,
        remote_addr=remote_addr,
        state=state,
        protocol=protocol,
        pid=pid,
        process_name=process_name,
        socket_info=SocketInfo(send_queue=send_queue, recv_queue=recv_queue),
    )


def _is_detail_line(line: str) -> bool:
    return line.startswith("cubic") or line.startswith("rto:") or "rtt:" in line


def parse_ss_output(content: str) -> list[NetworkConnection]:
    """Parse the full output of ``ss -tupln -i -e -p``."""
    connections: list[NetworkConnection] = []
    current: NetworkConnection | None = None
    for raw in content.splitlines():
        line = raw.strip()
        if current is not None and _is_detail_line(line):
            parse_socket_details(line, current.socket_info)
            continue
        current = None
        if line.startswith("Netid") or not line:
            continue
        connection = parse_ss_connection_line(line)
        if connection is not None:
            connection.socket_info = SocketInfo()
            connections.append(connection)
            current = connection
    return connections


def parse_netstat_address(addr: str) -> SocketAddr:
    """Parse a BSD netstat address: ``192.168.86.21.58412`` or ``[fe80::1]:22``."""
    if "*:*" in addr or addr == "*":
        return _UNSPECIFIED
    if addr.startswith("["):
        return _parse_bracketed(addr)
    ip_text, sep, port_text = addr.rpartition(".")
    if not sep:
        raise ParseError("Invalid address format")
    ip = _parse_ip(ip_text)
    return ip, _parse_port(port_text)


def parse_netstat_line(line: str, protocol: Protocol) -> NetworkConnection | None:
    """Parse one netstat connection line, or return None."""
    parts = line.split()
    if len(parts) < 6 or parts[0] in ("Proto", "Active"):
        return None
    try:
        local_addr = parse_netstat_address(parts[3])
    except ParseError:
        return None
    try:
        remote_addr = parse_netstat_address(parts[4])
    except ParseError:
        remote_addr = _UNSPECIFIED
    return NetworkConnection(
        local_addr=local_addr,
        remote_addr=remote_addr,
        state=_NETSTAT_STATES.get(parts[5], ConnectionState.UNKNOWN),
        protocol=protocol,
    )


def parse_netstat_output(output: str, protocol: Protocol) -> list[NetworkConnection]:
    """Parse netstat output, skipping its two header lines."""
    parsed = (parse_netstat_line(line, protocol) for line in output.splitlines()[2:])
    return [conn for conn in parsed if conn is not None]


def parse_lsof_address(addr: str) -> SocketAddr:
    """Parse an lsof address: ``*:64566``, ``[fe80::1]:22`` or ``1.2.3.4:80``."""
    if addr.startswith("*:"):
        return _UNSPECIFIED[0], _parse_port(addr[2:])
    return parse_ss_address(addr)


def parse_lsof_line(line: str, protocol: Protocol) -> NetworkConnection | None:
    """Parse one ``lsof -i`` line, or return None."""
    parts = line.split()
    if len(parts) < 8 or parts[0] == "COMMAND":
        return None
    process_name = parts[0]
    pid = _uint(parts[1], 32)
    network_part = next(
        (p for p in parts if "->" in p or (":" in p and "0x" not in p)), None
    )
    if network_part is None:
        return None
    state = _LSOF_STATES.get(parts[-1].strip("()"), ConnectionState.UNKNOWN)
    try:
        if "->" in network_part:
            local_text, _, remote_text = network_part.partition("->")
            local_addr = parse_lsof_address(local_text)
            remote_addr = parse_lsof_address(remote_text)
        else:
            local_addr = parse_lsof_address(network_part)
            remote_addr = _UNSPECIFIED
    except ParseError:
        return None
    return NetworkConnection(
        local_addr=local_addr,
        remote_addr=remote_addr,
        state=state,
        protocol=protocol,
        pid=pid,
        process_name=process_name,
    )


def parse_lsof_output(output: str, protocol: Protocol) -> list[NetworkConnection]:
    """Parse ``lsof -i`` output, skipping its header line."""
    parsed = (parse_lsof_line(line, protocol) for line in output.splitlines()[1:])
    return [conn for conn in parsed if conn is not None]