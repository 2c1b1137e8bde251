import time

import pytest

from netwatch.device import Device, NetworkReader, NetworkStats
from netwatch.errors import DeviceNotFoundError


class FakeReader(NetworkReader):
    def __init__(self, stats_by_device):
        self.stats_by_device = stats_by_device

    def list_devices(self):
        return sorted(self.stats_by_device)

    def read_stats(self, device):
        try:
            return self.stats_by_device[device]
        except KeyError:
            raise DeviceNotFoundError(device) from None

    def is_available(self):
        return True


def test_stats_default_to_zero():
    before = time.time()
    stats = NetworkStats()
    after = time.time()
    assert before <= stats.timestamp <= after
    counters = (
        stats.bytes_in, stats.bytes_out, stats.packets_in, stats.packets_out,
        stats.errors_in, stats.errors_out, stats.drops_in, stats.drops_out,
    )
    assert counters == (0,) * 8


def test_new_device_is_inactive():
    device = Device("eth0")
    assert device.name == "eth0"
    assert device.is_active is False
    assert device.stats.bytes_in == 0


def test_update_success_sets_stats_and_activates():
    stats = NetworkStats(bytes_in=1000000, bytes_out=500000)
    device = Device("eth0")
    device.update(FakeReader({"eth0": stats}))
    assert device.is_active is True
    assert device.stats is stats


def test_update_failure_deactivates_and_reraises():
    good = NetworkStats(bytes_in=42)
    reader = FakeReader({"eth0": good})
    device = Device("eth0")
    device.update(reader)
    reader.stats_by_device.clear()
    with pytest.raises(DeviceNotFoundError):
        device.update(reader)
    assert device.is_active is False
    assert device.stats is good


def test_reader_lists_devices():
    reader = FakeReader({"wlan0": NetworkStats(), "eth0": NetworkStats()})
    assert reader.list_devices() == ["eth0", "wlan0"]


def test_reader_is_abstract():
    with pytest.raises(TypeError):
        NetworkReader()