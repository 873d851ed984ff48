"""
Error taxonomy for PyStrip.

Each error also derives from the closest builtin so callers that only know
about ``ValueError``/``OSError``/``TimeoutError`` still catch it.
"""


class PyStripError(Exception):
    """Base class for all PyStrip errors."""


class DeviceUnavailable(PyStripError, OSError):
    """No matching device, or the device could not be opened or read."""


class ParseError(PyStripError, ValueError):
    """A numeric token from the device could not be turned into a sample."""


class IoTimeout(PyStripError, TimeoutError):
    """No bytes arrived within the bounded read timeout."""


class LogWriteFailure(PyStripError, OSError):
    """A sample could not be appended to the durable log."""


class InvalidArgument(PyStripError, ValueError):
    """An argument is outside the range an operation accepts."""
