"""
Shared fixtures for PyStrip tests.
"""

from datetime import datetime, timedelta, timezone

import numpy as np
import pytest

from pystrip.stream.sample import Sample, from_timestamp_ms

START_MS = 1_700_000_000_000


def make_series(values, start_ms=START_MS, step_ms=10):
    """Samples with evenly spaced timestamps and the given values."""
    return [
        Sample(from_timestamp_ms(start_ms + i * step_ms), float(v))
        for i, v in enumerate(values)
    ]


class StepClock:
    """Deterministic clock advancing one second per call."""

    def __init__(self, start=datetime(2024, 1, 1, tzinfo=timezone.utc)):
        self.next = start
        self.calls = []

    def __call__(self):
        now = self.next
        self.calls.append(now)
        self.next = now + timedelta(seconds=1)
        return now


class FakeSource:
    """
    Byte source replaying a script of reads.

    Each script entry is either ``bytes`` (returned one byte per read, like a
    device with 1-byte reads), ``b""`` (a read timeout) or an exception
    instance (raised by that read). When the script runs out, ``on_exhausted``
    is called and reads time out from then on.
    """

    def __init__(self, script, on_exhausted=None):
        self._reads = []
        for entry in script:
            if isinstance(entry, bytes) and entry:
                self._reads.extend(bytes([b]) for b in entry)
            else:
                self._reads.append(entry)
        self._on_exhausted = on_exhausted
        self.written = []
        self.closed = False

    def read(self, size=1):
        if not self._reads:
            if self._on_exhausted is not None:
                self._on_exhausted()
            return b""
        entry = self._reads.pop(0)
        if isinstance(entry, BaseException):
            raise entry
        return entry

    def write(self, data):
        self.written.append(data)
        return len(data)

    def close(self):
        self.closed = True


@pytest.fixture
def series_factory():
    return make_series


@pytest.fixture
def step_clock():
    return StepClock()


@pytest.fixture
def sine_series():
    """5,000 samples of a noisy sine with strictly ascending timestamps."""
    rng = np.random.default_rng(42)
    t = np.arange(5000)
    values = 60 + 20 * np.sin(2 * np.pi * t / 700) + rng.normal(0, 2, size=t.size)
    return make_series(np.round(values))
