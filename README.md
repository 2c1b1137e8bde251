# netwatch

A library of building blocks for watching network activity on Unix
systems. It parses command-line options for a traffic monitor, keeps a
small configuration file compatible with the classic `nload` format, lists
open sockets together with their owning processes, and runs light
connectivity checks (ping, DNS, local port availability).

## Requirements

Python 3.11 or later, and `tomli-w` for writing the configuration file.
Socket listings and diagnostics call the usual system tools (`ss`,
`netstat`, `lsof`, `ping`, `nslookup`, `timeout`, `traceroute`, `nc`) or
read `/proc` where that is available.

## Command-line options

`netwatch.cli.parse_args` turns an argument list (default `sys.argv[1:]`)
into an `Args` dataclass:

```python
from netwatch.cli import parse_args, TrafficUnit

args = parse_args(["eth0", "-t", "500", "-u", "M"])
print(args.devices)                      # ['eth0']
print(args.refresh_interval)             # 500
print(args.traffic_unit is TrafficUnit.MEGA_BYTE)  # True
```

Options: positional device names, `-l/--list`, `-a/--average` (seconds,
default 300), `-i/--incoming` and `-o/--outgoing` (kBit/s, 0 = auto),
`-t/--interval` (milliseconds, default 1000), `--high-perf`, `-u/--unit`
(default `k`), `-U/--data-unit` (default `M`), `-m/--multiple`,
`-f/--file`, `--test`, `--debug-dashboard`, `--show-comparison`,
`--show-overview`, `--force-terminal`, `--sre-terminal` and `-V/--version`.
Numeric options must be unsigned integers; units must be one of
`h H b B k K m M g G`. `build_parser()` returns the underlying
`argparse.ArgumentParser`.

`TrafficUnit` (also available as `DataUnit`) is an enum keyed by those
letters. `TrafficUnit.from_string("K")` returns the matching member or
`None`, and `next()` cycles `h → H → b → B → k → K → m → M → g → G → h`.

## Configuration

`netwatch.config.Config` is a dataclass of settings. `Config.load(home)`
reads `<home>/.netwatch` (TOML) if it exists, otherwise `<home>/.nload`
(`Key="Value"` lines), otherwise returns the defaults; `home` defaults to
the user's home directory. `save(home)` writes `<home>/.netwatch`.

```python
from pathlib import Path
from netwatch.config import Config

config = Config.load(Path.home())
config.apply_args(args)
print(config.traffic_unit(), config.data_unit())
config.save(Path.home())
```

`Config.from_toml` and `Config.to_toml` work on strings; `from_toml` raises
`ConfigError` for invalid TOML, missing required keys or values of the
wrong type. `Config.from_nload` reads the legacy format, ignoring unknown
keys and falling back to defaults for unparsable numbers.

## Devices

`netwatch.device` defines `NetworkStats` (a snapshot of byte, packet,
error and drop counters), the abstract `NetworkReader` interface
(`list_devices`, `read_stats`, `is_available`) and `Device`, whose
`update(reader)` stores fresh statistics and marks the device active, or
marks it inactive and re-raises the reader's error.

## Connections

```python
from netwatch.connections import ConnectionMonitor

monitor = ConnectionMonitor()
monitor.update()
stats = monitor.connection_stats()
print(stats.total, stats.established, stats.listening, stats.tcp, stats.udp)
for name, count in monitor.top_processes():
    print(name, count)
for host, count in monitor.remote_hosts():
    print(host, count)
```

On Linux, `update()` tries `ss` first and falls back to the
`/proc/net/{tcp,tcp6,udp,udp6}` tables with process names from
`/proc/<pid>/comm`; where a table is missing (as on macOS) it uses
`netstat`, then `lsof`. `ConnectionMonitor` accepts `proc_root`, `runner`
(a function that runs a command and returns a `CompletedProcess`) and
`platform` for use with captured data. Connections are ordered by
`sort_connections`: lowest RTT first, then those without RTT by bytes
transferred.

The parsers live in `netwatch.connection_parsing` — `parse_ss_output`,
`parse_proc_connections`, `parse_netstat_output`, `parse_lsof_output`,
and the per-line and per-address helpers — and return
`NetworkConnection` objects with `ConnectionState`, `Protocol` and
`SocketInfo` details. Malformed addresses raise `ParseError`.

## Diagnostics

```python
from netwatch.config import Config
from netwatch.diagnostics import ActiveDiagnosticsEngine

engine = ActiveDiagnosticsEngine(Config())
engine.update()        # runs one quick check per call, in rotation
summary = engine.connectivity_summary()
print(summary.online_targets, summary.avg_latency, summary.critical_issues)
```

Each `update()` call performs one step of a rotation shared by all
engines: a ping of the first target, a system-resolver lookup of the first
DNS domain, an empty connectivity step, or a local port check. The local
check records ports 22, 80 and 443 as `OPEN` when they can be bound on
127.0.0.1 and `CLOSED` when they cannot.

The engine also offers `quick_ping_target`, `ping_target`,
`quick_dns_lookup`, `dns_lookup` (via `nslookup`), `traceroute_target`,
`scan_port` (via `nc`) and `add_custom_target`. Traceroute output is not
interpreted, so a trace reports no hops and a `Timeout` status. Result
types and output parsers are in `netwatch.diagnostics_models`.

## What is not included

The package has no command to run and no terminal screen: `parse_args`
only parses options, and nothing acts on `--list`, `--test` or the display
options. There is no concrete `NetworkReader` for any platform, no
bandwidth statistics calculator and no traffic log writer.

## Errors

`netwatch.errors` defines `NetwatchError` and its subclasses
`DeviceNotFoundError`, `PermissionDeniedError`, `ParseError`,
`ConfigError`, `PlatformError` and `SecurityError`. The package itself
raises `ParseError` from the connection parsers and `ConfigError` from
`Config.from_toml`; file and process errors surface as `OSError`.