"""
Access to the sensor's byte stream.

The rest of the package only needs something with ``read``/``write``/``close``;
pyserial's ``Serial`` satisfies that, and so does any test double.
"""

from typing import List, Optional, Protocol

import serial
import serial.tools.list_ports
from loguru import logger

from pystrip.errors import DeviceUnavailable

DEFAULT_BAUDRATE = 9600
DEFAULT_READ_TIMEOUT = 1.0  # seconds
WAKE_SEQUENCE = b"\r\n"


class ByteSource(Protocol):
    """Ordered byte source/sink with bounded-timeout reads."""

    def read(self, size: int = 1) -> bytes: ...

    def write(self, data: bytes) -> Optional[int]: ...

    def close(self) -> None: ...


def list_serial_ports() -> List[str]:
    """Return the device names of all serial ports on this machine."""
    ports = [p.device for p in serial.tools.list_ports.comports()]
    for name in ports:
        logger.info(f"Found serial port {name}")
    return ports


def open_serial_device(
    port: Optional[str] = None,
    expected_port: Optional[str] = None,
    baudrate: int = DEFAULT_BAUDRATE,
    timeout: float = DEFAULT_READ_TIMEOUT,
) -> ByteSource:
    """
    Open the sensor's serial port.

    Parameters
    ----------
    port : Optional[str], default=None
        Device name to open. If None, the first enumerated port is used.
    expected_port : Optional[str], default=None
        If given, the chosen port must have this name, otherwise the sensor is
        considered absent.
    baudrate : int, default=9600
        Line speed in symbols per second.
    timeout : float, default=1.0
        Read timeout in seconds. A read returning no bytes means the device was
        silent for this long.

    Returns
    -------
    ByteSource
        The opened port (8 data bits, even parity, one stop bit).

    Raises
    ------
    DeviceUnavailable
        If no port is available, the port does not match ``expected_port``,
        or opening it fails.
    """
    if port is None:
        ports = list_serial_ports()
        if not ports:
            raise DeviceUnavailable("No serial ports found")
        port = ports[0]

    if expected_port is not None and port != expected_port:
        raise DeviceUnavailable(
            f"Serial port {port} is not the expected device {expected_port}"
        )

    try:
        device = serial.Serial(
            port,
            baudrate=baudrate,
            bytesize=serial.EIGHTBITS,
            parity=serial.PARITY_EVEN,
            stopbits=serial.STOPBITS_ONE,
            timeout=timeout,
        )
    except (serial.SerialException, ValueError) as e:
        raise DeviceUnavailable(f"Failed to open serial port {port}: {e}") from e

    logger.info(f"Opened {port} at {baudrate} baud (8E1, timeout={timeout}s)")
    try:
        device.write(WAKE_SEQUENCE)
    except serial.SerialException as e:
        device.close()
        raise DeviceUnavailable(f"Failed to write to serial port {port}: {e}") from e
    return device
