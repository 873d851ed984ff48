"""
Acquisition components for PyStrip.

This package turns a device byte stream into timestamped samples and keeps
them in a store shared with the visualization side.
"""

from pystrip.stream.device import ByteSource, list_serial_ports, open_serial_device
from pystrip.stream.parser import FrameParser
from pystrip.stream.sample import Sample, Series, utc_now
from pystrip.stream.sample_log import SampleLog, read_sample_log
from pystrip.stream.store import SeriesStore

__all__ = [
    "Sample",
    "Series",
    "utc_now",
    "FrameParser",
    "SeriesStore",
    "SampleLog",
    "read_sample_log",
    "ByteSource",
    "list_serial_ports",
    "open_serial_device",
]
