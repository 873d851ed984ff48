from datetime import timedelta
from typing import Optional, Sequence, Tuple

import matplotlib.dates as mdates
import matplotlib.image
import numpy as np
from loguru import logger
from matplotlib.backends.backend_agg import FigureCanvasAgg
from matplotlib.figure import Figure
from matplotlib.ticker import MaxNLocator

from pystrip.stream.sample import Sample
from pystrip.stripplot.render_cache import RenderCache

Bounds = Tuple[int, int]


class StripChart:
    """
    Chart consumer for the active downsampled dataset.

    Holds the dataset the scheduler installed last and renders it to an RGBA
    image with matplotlib's Agg canvas. Rendering goes through a
    ``RenderCache`` keyed on the dataset version, so repeated draws between
    installs return the same image. Before the first install a loading
    placeholder is drawn instead.
    """

    DEFAULT_TITLE = "Live sensor"
    DEFAULT_BOUNDS: Bounds = (1000, 500)
    DEFAULT_DPI = 100
    DEFAULT_LINE_COLOR = (0 / 255, 175 / 255, 255 / 255)
    DEFAULT_FILL_ALPHA = 0.175
    DEFAULT_LINE_WIDTH = 2.0
    DEFAULT_X_PADDING = 10.0  # seconds either side of the data
    DEFAULT_X_TICKS = 5
    DEFAULT_Y_TICKS = 10
    PLACEHOLDER_TEXT = "Loading..."

    def __init__(
        self,
        title: str = DEFAULT_TITLE,
        dpi: int = DEFAULT_DPI,
        line_color: Tuple[float, float, float] = DEFAULT_LINE_COLOR,
        fill_alpha: float = DEFAULT_FILL_ALPHA,
        line_width: float = DEFAULT_LINE_WIDTH,
        x_padding: float = DEFAULT_X_PADDING,
    ):
        """
        Initialise an empty chart.

        Parameters
        ----------
        title : str, default="Live sensor"
            Chart title.
        dpi : int, default=100
            Resolution used to convert pixel bounds to figure size.
        line_color : Tuple[float, float, float], default=RGB(0, 175, 255)
            Colour of the series line and its fill.
        fill_alpha : float, default=0.175
            Alpha of the area between the series and zero.
        line_width : float, default=2.0
            Width of the series line.
        x_padding : float, default=10.0
            Seconds of empty time added before the first and after the last
            sample.
        """
        self.title = title
        self.dpi = dpi
        self.line_color = line_color
        self.fill_alpha = fill_alpha
        self.line_width = line_width
        self.x_padding = x_padding

        self._dataset: Optional[Tuple[Sample, ...]] = None
        self._version = 0
        self.cache = RenderCache(identity=self._version)

    @property
    def active_dataset(self) -> Optional[Tuple[Sample, ...]]:
        """Dataset currently driving rendering, or None before the first install."""
        return self._dataset

    @property
    def version(self) -> int:
        """Number of datasets installed so far. Used as the cache identity."""
        return self._version

    def install(self, dataset: Sequence[Sample]) -> None:
        """Replace the active dataset and invalidate the render cache."""
        if len(dataset) == 0:
            raise ValueError("Cannot install an empty dataset")
        self._dataset = tuple(dataset)
        self._version += 1
        self.cache.invalidate(self._version)
        logger.debug(f"Installed dataset v{self._version} with {len(dataset)} points")

    def draw(self, bounds: Bounds = DEFAULT_BOUNDS) -> np.ndarray:
        """
        Return the chart geometry for the given pixel bounds.

        Parameters
        ----------
        bounds : Tuple[int, int], default=(1000, 500)
            Width and height in pixels.

        Returns
        -------
        np.ndarray
            Read-only ``(height, width, 4)`` uint8 RGBA image.
        """
        bounds = (int(bounds[0]), int(bounds[1]))
        if bounds[0] <= 0 or bounds[1] <= 0:
            raise ValueError(f"Bounds must be positive. Got {bounds}")
        return self.cache.draw(lambda: self._render(bounds), bounds)

    def save(self, filepath: str, bounds: Bounds = DEFAULT_BOUNDS) -> None:
        """
        Save the current chart image to a file.

        Parameters
        ----------
        filepath : str
            Path to save the image. Format is taken from the extension.
        bounds : Tuple[int, int], default=(1000, 500)
            Width and height in pixels.
        """
        matplotlib.image.imsave(filepath, self.draw(bounds))
        logger.info(f"Chart saved to {filepath}")

    def _render(self, bounds: Bounds) -> np.ndarray:
        width, height = bounds
        fig = Figure(figsize=(width / self.dpi, height / self.dpi), dpi=self.dpi)
        canvas = FigureCanvasAgg(fig)
        ax = fig.add_subplot()

        if self._dataset is None:
            self._render_placeholder(ax)
        else:
            self._render_series(ax, self._dataset)

        canvas.draw()
        image = np.asarray(canvas.buffer_rgba()).copy()
        image.flags.writeable = False
        logger.debug(f"Rendered chart v{self._version} at {width}x{height}")
        return image

    def _render_placeholder(self, ax) -> None:
        ax.set_axis_off()
        ax.text(
            0.5,
            0.5,
            self.PLACEHOLDER_TEXT,
            ha="center",
            va="center",
            transform=ax.transAxes,
        )

    def _render_series(self, ax, dataset: Tuple[Sample, ...]) -> None:
        times = [s.timestamp for s in dataset]
        values = np.array([s.value for s in dataset], dtype=np.float64)

        ax.fill_between(
            times, values, 0.0, color=self.line_color, alpha=self.fill_alpha, linewidth=0
        )
        ax.plot(times, values, color=self.line_color, linewidth=self.line_width)

        padding = timedelta(seconds=self.x_padding)
        ax.set_xlim(times[0] - padding, times[-1] + padding)

        y_min, y_max = float(np.min(values)), float(np.max(values))
        if y_min == y_max:
            # Flat series: give the axis a non-zero range
            y_min, y_max = y_min - 0.5, y_max + 0.5
        ax.set_ylim(y_min, y_max)

        ax.set_title(self.title, fontweight="bold")
        ax.grid(True, which="major", color="blue", alpha=0.1)
        for spine in ax.spines.values():
            spine.set_color("blue")
            spine.set_alpha(0.45)

        ax.yaxis.set_major_locator(MaxNLocator(self.DEFAULT_Y_TICKS))
        ax.xaxis.set_major_locator(mdates.AutoDateLocator(maxticks=self.DEFAULT_X_TICKS))
        ax.xaxis.set_major_formatter(mdates.DateFormatter("%H:%M:%S"))
        ax.tick_params(axis="both", labelrotation=90, labelcolor="blue")
