"""
PyStrip: live strip-chart for serial sensors

Reads scalar readings from a device, keeps the full history in memory and on
disk, and renders a bounded, shape-preserving view of it once per second.
"""

from pystrip.config import DEFAULT_CONFIG
from pystrip.context import IngestionStatus, StripContext
from pystrip.errors import (
    DeviceUnavailable,
    InvalidArgument,
    IoTimeout,
    LogWriteFailure,
    ParseError,
    PyStripError,
)
from pystrip.logging_config import configure_logging

# Import from stream subpackage
from pystrip.stream import (
    FrameParser,
    Sample,
    SampleLog,
    SeriesStore,
    open_serial_device,
    read_sample_log,
)
from pystrip.stream.ingest import IngestionWorker

# Import from stripplot subpackage
from pystrip.stripplot import (
    RefreshScheduler,
    RenderCache,
    SchedulerState,
    StripChart,
    downsample,
)

__all__ = [
    # Shared
    "DEFAULT_CONFIG",
    "StripContext",
    "IngestionStatus",
    "configure_logging",
    "PyStripError",
    "DeviceUnavailable",
    "ParseError",
    "IoTimeout",
    "LogWriteFailure",
    "InvalidArgument",
    # Acquisition
    "Sample",
    "FrameParser",
    "SeriesStore",
    "SampleLog",
    "read_sample_log",
    "open_serial_device",
    "IngestionWorker",
    # Visualization
    "downsample",
    "RenderCache",
    "StripChart",
    "RefreshScheduler",
    "SchedulerState",
]
