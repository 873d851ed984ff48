"""
Live strip-chart components for PyStrip.

This package reduces buffered series to a bounded number of points and
keeps a rendered chart up to date on a fixed refresh period.
"""

from pystrip.stripplot.chart import StripChart
from pystrip.stripplot.lttb import downsample, lttb_indices
from pystrip.stripplot.render_cache import RenderCache
from pystrip.stripplot.scheduler import RefreshScheduler, SchedulerState

__all__ = [
    "StripChart",
    "RenderCache",
    "RefreshScheduler",
    "SchedulerState",
    "downsample",
    "lttb_indices",
]
