import pytest

from netwatch.cli import Args, TrafficUnit, parse_args
from netwatch.config import Config
from netwatch.errors import ConfigError

MINIMAL_TOML = """
AverageWindow = 120
BarMaxIn = 0
BarMaxOut = 0
DataFormat = "K"
Devices = "eth0"
MultipleDevices = true
RefreshInterval = 750
TrafficFormat = "m"
"""


def test_defaults():
    config = Config()
    assert config.average_window == 300
    assert config.refresh_interval == 1000
    assert config.devices == "all"
    assert config.data_format == "M"
    assert config.traffic_format == "k"
    assert config.diagnostic_targets == ["1.1.1.1", "8.8.8.8"]
    assert config.dns_domains == ["cloudflare.com", "google.com"]


def test_toml_round_trip():
    config = Config(average_window=60, max_incoming=100000, devices="eth0",
                    high_performance=True, dns_domains=["example.com"])
    assert Config.from_toml(config.to_toml()) == config


def test_to_toml_uses_file_keys():
    text = Config().to_toml()
    assert "AverageWindow = 300" in text
    assert 'TrafficFormat = "k"' in text
    assert "DNSDomains" in text


def test_from_toml_optional_fields_default():
    config = Config.from_toml(MINIMAL_TOML)
    assert config.average_window == 120
    assert config.multiple_devices is True
    assert config.high_performance is False
    assert config.diagnostic_targets == ["1.1.1.1", "8.8.8.8"]
    assert config.traffic_unit() is TrafficUnit.MEGA_BIT
    assert config.data_unit() is TrafficUnit.KILO_BYTE


def test_from_toml_missing_required_field():
    text = MINIMAL_TOML.replace("Devices = \"eth0\"\n", "")
    with pytest.raises(ConfigError):
        Config.from_toml(text)


@pytest.mark.parametrize(
    "replacement",
    ["AverageWindow = -1", "AverageWindow = \"300\"", "AverageWindow = true"],
)
def test_from_toml_bad_types(replacement):
    with pytest.raises(ConfigError):
        Config.from_toml(MINIMAL_TOML.replace("AverageWindow = 120", replacement))


def test_from_toml_syntax_error():
    with pytest.raises(ConfigError):
        Config.from_toml("AverageWindow = = 3")


def test_from_nload_parses_known_keys():
    text = '''
# nload settings
AverageWindow="45"
BarMaxIn = "1000"
DataFormat="G"
Devices="eth0 wlan0"
MultipleDevices="true"
TrafficFormat="h"
UnknownKey="ignored"
'''
    config = Config.from_nload(text)
    assert config.average_window == 45
    assert config.max_incoming == 1000
    assert config.data_format == "G"
    assert config.devices == "eth0 wlan0"
    assert config.multiple_devices is True
    assert config.traffic_unit() is TrafficUnit.HUMAN_BIT
    assert config.refresh_interval == Config().refresh_interval


def test_from_nload_invalid_numbers_fall_back():
    config = Config.from_nload('AverageWindow="abc"\nRefreshInterval="fast"\nBarMaxOut="-3"')
    assert config.average_window == 300
    assert config.refresh_interval == 500
    assert config.max_outgoing == 0


def test_load_defaults_without_files(tmp_path):
    assert Config.load(tmp_path) == Config()


def test_load_legacy_file(tmp_path):
    (tmp_path / ".nload").write_text('Devices="eth1"\n')
    assert Config.load(tmp_path).devices == "eth1"


def test_modern_file_takes_precedence(tmp_path):
    (tmp_path / ".nload").write_text('Devices="eth1"\n')
    (tmp_path / ".netwatch").write_text(MINIMAL_TOML)
    assert Config.load(tmp_path).devices == "eth0"


def test_save_then_load(tmp_path):
    config = Config(average_window=90, traffic_format="G", multiple_devices=True)
    config.save(tmp_path)
    assert (tmp_path / ".netwatch").exists()
    assert Config.load(tmp_path) == config


def test_apply_args():
    config = Config()
    args = parse_args(["-a", "30", "-t", "200", "-u", "b", "-U", "K", "-m", "--high-perf"])
    config.apply_args(args)
    assert config.average_window == 30
    assert config.refresh_interval == 200
    assert config.traffic_unit() is TrafficUnit.BIT
    assert config.data_unit() is TrafficUnit.KILO_BYTE
    assert config.multiple_devices is True
    assert config.high_performance is True


def test_apply_default_args_keeps_formats():
    config = Config(traffic_format="G")
    config.apply_args(Args())
    assert config.traffic_format == "k"
    assert config.data_format == "M"


def test_unit_fallbacks():
    config = Config(traffic_format="zz", data_format="")
    assert config.traffic_unit() is TrafficUnit.KILO_BIT
    assert config.data_unit() is TrafficUnit.MEGA_BYTE