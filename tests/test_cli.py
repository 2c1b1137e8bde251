import pytest

from netwatch.cli import Args, DataUnit, TrafficUnit, build_parser, parse_args


def test_next_cycles_through_all_units():
    unit = TrafficUnit.HUMAN_BIT
    seen = []
    for _ in range(len(TrafficUnit)):
        seen.append(unit)
        unit = unit.next()
    assert unit is TrafficUnit.HUMAN_BIT
    assert set(seen) == set(TrafficUnit)


def test_next_specific_steps():
    assert TrafficUnit.HUMAN_BIT.next() is TrafficUnit.HUMAN_BYTE
    assert TrafficUnit.MEGA_BYTE.next() is TrafficUnit.GIGA_BIT
    assert TrafficUnit.GIGA_BYTE.next() is TrafficUnit.HUMAN_BIT


@pytest.mark.parametrize("unit", list(TrafficUnit))
def test_from_string_round_trip(unit):
    assert TrafficUnit.from_string(str(unit)) is unit


@pytest.mark.parametrize("text", ["", "x", "kb", "KK"])
def test_from_string_unknown(text):
    assert TrafficUnit.from_string(text) is None


def test_data_unit_is_traffic_unit():
    assert DataUnit.from_string("M") is TrafficUnit.MEGA_BYTE


def test_defaults():
    args = parse_args([])
    assert args == Args()
    assert args.average_window == 300
    assert args.refresh_interval == 1000
    assert args.traffic_unit is TrafficUnit.KILO_BIT
    assert args.data_unit is TrafficUnit.MEGA_BYTE
    assert args.devices == []
    assert args.log_file is None


def test_all_options():
    args = parse_args([
        "eth0", "wlan0", "-a", "60", "-i", "1000", "-o", "2000", "-t", "500",
        "-u", "H", "-U", "g", "-m", "-f", "traffic.log", "--high-perf", "-l",
        "--test", "--sre-terminal",
    ])
    assert args.devices == ["eth0", "wlan0"]
    assert args.average_window == 60
    assert args.max_incoming == 1000
    assert args.max_outgoing == 2000
    assert args.refresh_interval == 500
    assert args.traffic_unit is TrafficUnit.HUMAN_BYTE
    assert args.data_unit is TrafficUnit.GIGA_BIT
    assert args.multiple_devices is True
    assert args.log_file == "traffic.log"
    assert args.high_performance is True
    assert args.list_interfaces is True
    assert args.test is True
    assert args.sre_terminal is True
    assert args.force_terminal is False


@pytest.mark.parametrize(
    "argv",
    [["-u", "x"], ["-U", "kb"], ["-a", "-5"], ["-t", "abc"], ["-a", "4294967296"]],
)
def test_invalid_values_exit(argv):
    with pytest.raises(SystemExit) as info:
        parse_args(argv)
    assert info.value.code == 2


def test_parser_program_name():
    assert build_parser().prog == "netwatch"