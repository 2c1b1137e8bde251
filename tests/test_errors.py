import pytest

from netwatch.errors import (
    ConfigError,
    DeviceNotFoundError,
    NetwatchError,
    ParseError,
    PermissionDeniedError,
    PlatformError,
    SecurityError,
)


@pytest.mark.parametrize(
    ("cls", "prefix"),
    [
        (DeviceNotFoundError, "Device not found"),
        (PermissionDeniedError, "Permission denied"),
        (ParseError, "Parse error"),
        (ConfigError, "Configuration error"),
        (PlatformError, "Platform error"),
        (SecurityError, "Security error"),
    ],
)
def test_message_uses_prefix(cls, prefix):
    error = cls("eth0")
    assert str(error) == f"{prefix}: eth0"
    assert error.detail == "eth0"


@pytest.mark.parametrize(
    "cls",
    [
        DeviceNotFoundError,
        PermissionDeniedError,
        ParseError,
        ConfigError,
        PlatformError,
        SecurityError,
    ],
)
def test_all_errors_are_caught_as_base(cls):
    error = cls("detail")
    assert isinstance(error, NetwatchError)
    try:
        raise error
    except NetwatchError as caught:
        assert caught is error
        assert caught.detail == "detail"
        assert str(caught).endswith(": detail")


def test_device_not_found_message():
    assert str(DeviceNotFoundError("wlan0")) == "Device not found: wlan0"