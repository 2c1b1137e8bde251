import pytest

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

MAC_PING = """PING 1.1.1.1 (1.1.1.1): 56 data bytes
64 bytes from 1.1.1.1: icmp_seq=0 ttl=57 time=12.345 ms

--- 1.1.1.1 ping statistics ---
1 packets transmitted, 1 packets received, 0.0% packet loss
round-trip min/avg/max/stddev = 11.111/22.222/33.333/0.000 ms
"""

LINUX_PING = """PING 8.8.8.8 (8.8.8.8) 56(84) bytes of data.
64 bytes from 8.8.8.8: icmp_seq=1 ttl=117 time=9.87 ms

--- 8.8.8.8 ping statistics ---
1 packets transmitted, 1 received, 0% packet loss, time 0ms
rtt min/avg/max/mdev = 9.870/9.870/9.870/0.000 ms
"""

NSLOOKUP = """Server:\t\t192.168.1.1
Address:\t192.168.1.1#53

Non-authoritative answer:
Name:\texample.com
Address: 93.184.216.34
Name:\texample.com
Address: 2606:2800:220:1:248:1893:25c8:1946
"""


def test_extract_avg_rtt_macos():
    assert extract_avg_rtt(MAC_PING) == pytest.approx(22.222)


def test_extract_avg_rtt_linux():
    assert extract_avg_rtt(LINUX_PING) == pytest.approx(9.870)


def test_extract_avg_rtt_fallback_empty():
    assert extract_avg_rtt("") == pytest.approx(20.0)


def test_extract_avg_rtt_fallback_grows_with_output_length():
    short = extract_avg_rtt("no stats")
    longer = extract_avg_rtt("no stats here at all, just a lot more text")
    assert short > 20.0
    assert longer > short


def test_extract_avg_rtt_unparseable_summary_uses_fallback():
    text = "min/avg/max/x = a/b/c/d"
    assert extract_avg_rtt(text) == pytest.approx(20.0 + len(text) * 0.1)


def test_extract_rtt_from_ping_macos():
    assert extract_rtt_from_ping(MAC_PING) == pytest.approx(12.345)


def test_extract_rtt_from_ping_linux():
    assert extract_rtt_from_ping(LINUX_PING) == pytest.approx(9.87)


def test_extract_rtt_from_ping_absent():
    assert extract_rtt_from_ping("Request timeout for icmp_seq 0\n") is None


def test_extract_rtt_skips_unparseable_time():
    text = "time=abc ms\ntime=5.5 ms\n"
    assert extract_rtt_from_ping(text) == pytest.approx(5.5)


def test_parse_dns_records_skips_nameserver():
    records = parse_dns_records(NSLOOKUP)
    assert records == ["93.184.216.34", "2606:2800:220:1:248:1893:25c8:1946"]


def test_parse_dns_records_empty():
    assert parse_dns_records("** server can't find nothing: NXDOMAIN\n") == []


def test_parse_traceroute_output_has_no_hops():
    text = "traceroute to 1.1.1.1, 5 hops max\n 1  192.168.1.1  1.0 ms\n"
    assert parse_traceroute_output(text) == []


def test_service_banner_absent():
    assert service_banner(22) is None


def test_connectivity_status_equality():
    assert ConnectivityStatus.error("boom") == ConnectivityStatus.error("boom")
    assert ConnectivityStatus.error("boom") != ConnectivityStatus.error("other")
    assert ConnectivityStatus.ONLINE != ConnectivityStatus.DEGRADED
    assert ConnectivityStatus.error("boom").is_error
    assert not ConnectivityStatus.OFFLINE.is_error


def test_dns_status_equality_and_str():
    assert DnsStatus.SUCCESS == DnsStatus("Success")
    assert DnsStatus.error("x") != DnsStatus.NAME_ERROR
    assert str(DnsStatus.NAME_ERROR) == "NameError"


def test_port_status_values():
    assert PortStatus("Open") is PortStatus.OPEN
    assert str(PortStatus.FILTERED) == "Filtered"


def test_result_defaults():
    ping = PingResult(target="1.1.1.1")
    assert ping.status == ConnectivityStatus.UNKNOWN
    assert ping.packet_loss == 0.0
    dns = DnsResult(domain="example.com")
    assert dns.query_type == "A"
    assert dns.records == []
    port = PortScanResult(target="localhost:22", port=22)
    assert port.protocol == "TCP"
    assert port.status is PortStatus.UNKNOWN
    route = TracerouteResult(target="1.1.1.1")
    assert route.hops == [] and route.total_hops == 0


def test_active_diagnostics_collections_are_independent():
    first = ActiveDiagnostics()
    second = ActiveDiagnostics()
    first.ping_results["a"] = PingResult(target="a")
    assert second.ping_results == {}
    assert list(first.ping_results) == ["a"]


def test_connectivity_summary_defaults():
    summary = ConnectivitySummary()
    assert summary.total_targets == 0
    assert summary.critical_issues == []
    assert summary.avg_latency == 0.0