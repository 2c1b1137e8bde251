"""Exception hierarchy used throughout netwatch."""


class NetwatchError(Exception):
    """Base class for every error netwatch raises."""

    prefix = "Netwatch error"

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail

    def __str__(self) -> str:
        return f"{self.prefix}: {self.detail}"


class DeviceNotFoundError(NetwatchError):
    """A requested network device does not exist."""

    prefix = "Device not found"


class PermissionDeniedError(NetwatchError):
    """The process lacks the rights to read some data."""

    prefix = "Permission denied"


class ParseError(NetwatchError):
    """Input data could not be parsed."""

    prefix = "Parse error"


class ConfigError(NetwatchError):
    """A configuration file or value is invalid."""

    prefix = "Configuration error"


class PlatformError(NetwatchError):
    """The current platform cannot provide the requested data."""

    prefix = "Platform error"


class SecurityError(NetwatchError):
    """An input was rejected for security reasons."""

    prefix = "Security error"