"""Network monitoring building blocks: options, configuration, device interface, socket listings and diagnostics."""

__version__ = "0.2.0"