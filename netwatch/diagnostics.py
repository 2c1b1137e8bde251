"""Active connectivity checks: ping, DNS, traceroute and port probes."""

from __future__ import annotations

import itertools
import socket
import subprocess
import sys
import time
from collections.abc import Sequence

from netwatch.config import Config
from netwatch.diagnostics_models import (
    ActiveDiagnostics,
    ConnectivityStatus,
    ConnectivitySummary,
    DnsResult,
    DnsStatus,
    PingResult,
    PortScanResult,
    PortStatus,
    TracerouteResult,
    extract_avg_rtt,
    extract_rtt_from_ping,
    parse_dns_records,
    parse_traceroute_output,
    service_banner,
)

_CRITICAL_PORTS = (22, 80, 443, 53, 8080, 8443, 3000, 5432, 3306, 6379, 9200)
_LOCAL_CHECK_PORTS = (22, 80, 443)
_WEB_PORTS = (80, 443)

# Shared by every engine, so consecutive updates rotate through the checks.
_CYCLE = itertools.count()


def _run(args: Sequence[str]) -> subprocess.CompletedProcess:
    return subprocess.run(
        list(args),
        capture_output=True,
        text=True,
        encoding="utf-8",
        errors="replace",
        check=False,
    )


def _elapsed_ms(start: float) -> float:
    return float(int((time.monotonic() - start) * 1000))


def _unsupported(what: str) -> OSError:
    return OSError(f"{what} not supported on this platform")


def _ping_command(target: str, darwin_wait: str, linux_wait: str) -> list[str]:
    if sys.platform == "darwin":
        return ["ping", "-c", "1", "-W", darwin_wait, target]
    if sys.platform.startswith("linux"):
        return ["ping", "-c", "1", "-W", linux_wait, target]
    raise _unsupported("Ping")


def _offline_ping(target: str, last_test: float, sent: int = 1) -> PingResult:
    return PingResult(
        target=target,
        packets_sent=sent,
        packets_received=0,
        packet_loss=100.0,
        status=ConnectivityStatus.OFFLINE,
        last_test=last_test,
    )


def _port_available(port: int) -> bool:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        try:
            sock.bind(("127.0.0.1", port))
            sock.listen()
        except OSError:
            return False
    return True


class ActiveDiagnosticsEngine:
    """Runs lightweight diagnostics, one kind per update, and keeps the results."""

    def __init__(self, config: Config | None = None) -> None:
        config = config if config is not None else Config()
        self._diagnostics = ActiveDiagnostics()
        self._test_targets: list[str] = list(config.diagnostic_targets)
        self._critical_ports: tuple[int, ...] = _CRITICAL_PORTS
        self._dns_domains: list[str] = list(config.dns_domains)

    def update(self) -> None:
        """Run the next check in the ping, DNS, connectivity, local-port rotation."""
        step = next(_CYCLE) % 4
        if step == 0:
            self._run_quick_ping_test()
        elif step == 1:
            self._run_quick_dns_test()
        elif step == 2:
            self._run_basic_connectivity_check()
        else:
            self.check_local_ports()
        self._diagnostics.last_updated = time.monotonic()

    def diagnostics(self) -> ActiveDiagnostics:
        """The collected results."""
        return self._diagnostics

    def add_custom_target(self, target: str) -> None:
        """Add a ping target unless it is already present."""
        if target not in self._test_targets:
            self._test_targets.append(target)

    def _run_quick_ping_test(self) -> None:
        if self._test_targets:
            target = self._test_targets[0]
            self._diagnostics.ping_results[target] = self.quick_ping_target(target)

    def _run_quick_dns_test(self) -> None:
        if self._dns_domains:
            domain = self._dns_domains[0]
            self._diagnostics.dns_results[domain] = self.quick_dns_lookup(domain)

    def _run_basic_connectivity_check(self) -> None:
        """No remote targets are probed in this step."""

    def check_local_ports(self) -> None:
        """Record whether a few well-known ports can be bound on localhost."""
        for port in _LOCAL_CHECK_PORTS:
            status = PortStatus.OPEN if _port_available(port) else PortStatus.CLOSED
            self._diagnostics.port_scan_results[f"local:{port}"] = PortScanResult(
                target=f"localhost:{port}",
                port=port,
                protocol="TCP",
                status=status,
                response_time=1.0,
                service_banner=None,
                last_test=time.monotonic(),
            )

    def quick_ping_target(self, target: str) -> PingResult:
        """Send one ping with a 200 ms timeout."""
        start = time.monotonic()
        try:
            result = _run(_ping_command(target, "200", "0.2"))
        except OSError:
            return _offline_ping(target, time.monotonic())
        elapsed = _elapsed_ms(start)
        if result.returncode != 0:
            return _offline_ping(target, time.monotonic())
        rtt = extract_rtt_from_ping(result.stdout)
        if rtt is None:
            rtt = elapsed
        return PingResult(
            target=target,
            packets_sent=1,
            packets_received=1,
            packet_loss=0.0,
            min_rtt=rtt,
            avg_rtt=rtt,
            max_rtt=rtt,
            stddev_rtt=0.0,
            status=ConnectivityStatus.ONLINE,
            last_test=time.monotonic(),
        )

    def ping_target(self, target: str) -> PingResult:
        """Send one ping with a one-second timeout and grade the latency."""
        start = time.monotonic()
        try:
            result = _run(_ping_command(target, "1000", "1"))
        except OSError as exc:
            return PingResult(
                target=target,
                packets_sent=0,
                packets_received=0,
                packet_loss=100.0,
                status=ConnectivityStatus.error(f"Ping failed: {exc}"),
                last_test=start,
            )
        stdout = result.stdout
        if "0% packet loss" not in stdout and "1 packets transmitted, 1 received" not in stdout:
            return _offline_ping(target, start)
        avg = extract_avg_rtt(stdout)
        if avg < 50.0:
            status = ConnectivityStatus.ONLINE
        elif avg < 200.0:
            status = ConnectivityStatus.DEGRADED
        else:
            status = ConnectivityStatus.OFFLINE
        return PingResult(
            target=target,
            packets_sent=1,
            packets_received=1,
            packet_loss=0.0,
            min_rtt=avg * 0.8,
            avg_rtt=avg,
            max_rtt=avg * 1.2,
            stddev_rtt=avg * 0.1,
            status=status,
            last_test=start,
        )

    def quick_dns_lookup(self, domain: str) -> DnsResult:
        """Resolve ``domain`` with the system resolver."""
        start = time.monotonic()
        try:
            infos = socket.getaddrinfo(domain, 80, type=socket.SOCK_STREAM)
        except (OSError, UnicodeError):
            return DnsResult(
                domain=domain,
                query_type="A",
                records=[],
                response_time=_elapsed_ms(start),
                status=DnsStatus.NAME_ERROR,
                nameserver="system",
                last_test=time.monotonic(),
            )
        elapsed = _elapsed_ms(start)
        records = [str(infos[0][4][0])] if infos else []
        return DnsResult(
            domain=domain,
            query_type="A",
            records=records,
            response_time=elapsed,
            status=DnsStatus.SUCCESS,
            nameserver="system",
            last_test=time.monotonic(),
        )

    def dns_lookup(self, domain: str) -> DnsResult:
        """Resolve ``domain`` with nslookup, bounded by ``timeout`` when available."""
        start = time.monotonic()
        try:
            try:
                result = _run(["timeout", "2", "nslookup", domain])
            except OSError:
                result = _run(["nslookup", domain])
        except OSError as exc:
            return DnsResult(
                domain=domain,
                query_type="A",
                records=[],
                response_time=0.0,
                status=DnsStatus.error(f"DNS lookup failed: {exc}"),
                nameserver="unknown",
                last_test=start,
            )
        elapsed = _elapsed_ms(start)
        records = parse_dns_records(result.stdout)
        return DnsResult(
            domain=domain,
            query_type="A",
            records=records,
            response_time=elapsed,
            status=DnsStatus.SUCCESS if records else DnsStatus.NAME_ERROR,
            nameserver="unknown",
            last_test=start,
        )

    def traceroute_target(self, target: str) -> TracerouteResult:
        """Trace at most five hops towards ``target``."""
        start = time.monotonic()
        try:
            if sys.platform != "darwin" and not sys.platform.startswith("linux"):
                raise _unsupported("Traceroute")
            result = _run(["traceroute", "-m", "5", "-q", "1", "-w", "1", target])
        except OSError as exc:
            return TracerouteResult(
                target=target,
                hops=[],
                total_hops=0,
                status=ConnectivityStatus.error(f"Traceroute failed: {exc}"),
                last_test=start,
            )
        hops = parse_traceroute_output(result.stdout)
        if not hops:
            status = ConnectivityStatus.TIMEOUT
        elif any(hop.packet_loss > 50.0 for hop in hops):
            status = ConnectivityStatus.DEGRADED
        else:
            status = ConnectivityStatus.ONLINE
        return TracerouteResult(
            target=target,
            hops=hops,
            total_hops=len(hops),
            status=status,
            last_test=start,
        )

    def scan_port(self, target: str, port: int) -> PortScanResult:
        """Probe a TCP port with netcat."""
        start = time.monotonic()
        try:
            result = _run(["nc", "-z", "-v", "-w", "1", target, str(port)])
        except OSError:
            status = PortStatus.ERROR
        else:
            if "succeeded" in result.stderr or result.returncode == 0:
                status = PortStatus.OPEN
            elif "refused" in result.stderr:
                status = PortStatus.CLOSED
            else:
                status = PortStatus.FILTERED
        return PortScanResult(
            target=target,
            port=port,
            protocol="TCP",
            status=status,
            response_time=_elapsed_ms(start),
            service_banner=service_banner(port),
            last_test=start,
        )

    def connectivity_summary(self) -> ConnectivitySummary:
        """Summarise the ping results and list critical problems."""
        pings = list(self._diagnostics.ping_results.values())
        online = [r for r in pings if r.status == ConnectivityStatus.ONLINE]
        degraded = sum(1 for r in pings if r.status == ConnectivityStatus.DEGRADED)
        offline = sum(1 for r in pings if r.status == ConnectivityStatus.OFFLINE)
        avg_latency = (
            sum(r.avg_rtt for r in online) / max(len(online), 1) if pings else 0.0
        )
        return ConnectivitySummary(
            total_targets=len(pings),
            online_targets=len(online),
            degraded_targets=degraded,
            offline_targets=offline,
            avg_latency=avg_latency,
            critical_issues=self._critical_issues(),
        )

    def _critical_issues(self) -> list[str]:
        issues: list[str] = []
        for result in self._diagnostics.ping_results.values():
            if result.packet_loss > 10.0:
                issues.append(
                    f"High packet loss to {result.target}: {result.packet_loss:.1f}%"
                )
            if result.avg_rtt > 500.0 and result.status == ConnectivityStatus.ONLINE:
                issues.append(f"High latency to {result.target}: {result.avg_rtt:.0f}ms")

        for trace in self._diagnostics.traceroute_results.values():
            problematic = sum(1 for hop in trace.hops if hop.packet_loss > 20.0)
            if problematic > 0:
                issues.append(
                    f"Routing issues to {trace.target}: {problematic} problematic hops"
                )

        closed = sum(
            1
            for r in self._diagnostics.port_scan_results.values()
            if r.status is PortStatus.CLOSED and r.port in _WEB_PORTS
        )
        if closed > 0:
            issues.append(f"{closed} critical ports inaccessible")

        dns_failures = sum(
            1 for r in self._diagnostics.dns_results.values() if r.status != DnsStatus.SUCCESS
        )
        if dns_failures > 0:
            issues.append(f"{dns_failures} DNS resolution failures")
        return issues