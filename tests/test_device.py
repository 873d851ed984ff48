"""
Tests for serial device discovery and opening, with pyserial patched out.
"""

from types import SimpleNamespace

import pytest
import serial
import serial.tools.list_ports

from pystrip.errors import DeviceUnavailable
from pystrip.stream import device


class FakeSerial:
    instances = []

    def __init__(self, port, **kwargs):
        self.port = port
        self.kwargs = kwargs
        self.written = []
        self.closed = False
        FakeSerial.instances.append(self)

    def write(self, data):
        self.written.append(data)
        return len(data)

    def close(self):
        self.closed = True


@pytest.fixture
def fake_ports(monkeypatch):
    FakeSerial.instances = []
    ports = []
    monkeypatch.setattr(
        serial.tools.list_ports,
        "comports",
        lambda: [SimpleNamespace(device=name) for name in ports],
    )
    monkeypatch.setattr(serial, "Serial", FakeSerial)
    return ports


class TestOpenSerialDevice:
    def test_no_ports(self, fake_ports):
        with pytest.raises(DeviceUnavailable):
            device.open_serial_device()

    def test_opens_first_port_with_line_settings(self, fake_ports):
        fake_ports.extend(["/dev/ttyACM0", "/dev/ttyUSB0"])
        port = device.open_serial_device()

        assert port.port == "/dev/ttyACM0"
        assert port.kwargs["baudrate"] == 9600
        assert port.kwargs["parity"] == serial.PARITY_EVEN
        assert port.kwargs["stopbits"] == serial.STOPBITS_ONE
        assert port.kwargs["timeout"] == 1.0
        assert port.written == [b"\r\n"]

    def test_expected_port_mismatch(self, fake_ports):
        fake_ports.append("/dev/ttyUSB0")
        with pytest.raises(DeviceUnavailable):
            device.open_serial_device(expected_port="/dev/ttyACM0")
        assert FakeSerial.instances == []

    def test_explicit_port_skips_discovery(self, fake_ports):
        port = device.open_serial_device(port="/dev/ttyS3", baudrate=115200)
        assert port.port == "/dev/ttyS3"
        assert port.kwargs["baudrate"] == 115200

    def test_open_failure(self, fake_ports, monkeypatch):
        def broken(port, **kwargs):
            raise serial.SerialException(f"could not open port {port}")

        monkeypatch.setattr(serial, "Serial", broken)
        with pytest.raises(DeviceUnavailable):
            device.open_serial_device(port="/dev/ttyACM0")

    def test_list_serial_ports(self, fake_ports):
        fake_ports.extend(["/dev/ttyACM0"])
        assert device.list_serial_ports() == ["/dev/ttyACM0"]
