import asyncio
from concurrent.futures import Executor
from enum import Enum
from functools import partial
from typing import Callable, List, Optional, Sequence

from loguru import logger

from pystrip.context import StripContext
from pystrip.errors import InvalidArgument
from pystrip.stream.sample import Sample
from pystrip.stripplot.chart import StripChart
from pystrip.stripplot.lttb import MIN_TARGET_POINTS, downsample

Downsampler = Callable[[Sequence[Sample], int], List[Sample]]


class SchedulerState(Enum):
    IDLE = "idle"
    SNAPSHOTTING = "snapshotting"
    DOWNSAMPLING = "downsampling"
    INSTALLING = "installing"


class RefreshScheduler:
    """
    Periodic snapshot -> downsample -> install cycle for a chart.

    Runs on an asyncio event loop, which owns the chart. Each tick copies the
    store and hands the copy to an executor, so the loop is never blocked by
    the downsampling work. Results are installed from a done callback on the
    loop, in completion order: when jobs from several ticks overlap, the one
    that finishes last wins. With ``discard_stale=True`` a result from an
    older tick than the one already installed is dropped instead.

    A tick that fails (empty snapshot, downsampler error) leaves the current
    dataset on screen and does not affect later ticks.
    """

    DEFAULT_PERIOD = 1.0  # seconds
    DEFAULT_TARGET_POINTS = 1000

    def __init__(
        self,
        context: StripContext,
        chart: StripChart,
        period: float = DEFAULT_PERIOD,
        target_points: int = DEFAULT_TARGET_POINTS,
        executor: Optional[Executor] = None,
        downsampler: Downsampler = downsample,
        discard_stale: bool = False,
    ):
        """
        Initialise the scheduler.

        Parameters
        ----------
        context : StripContext
            Shared context; its store is snapshotted on every tick.
        chart : StripChart
            Chart that receives each completed dataset.
        period : float, default=1.0
            Seconds between ticks.
        target_points : int, default=1000
            Number of points each snapshot is downsampled to.
        executor : Optional[Executor], default=None
            Where downsample jobs run. None uses the loop's default executor.
        downsampler : Callable, default=downsample
            Function ``(series, target_points) -> series``.
        discard_stale : bool, default=False
            Drop results from ticks older than the last installed one.

        Raises
        ------
        InvalidArgument
            If ``target_points`` is below 2 or ``period`` is not positive.
        """
        if target_points < MIN_TARGET_POINTS:
            raise InvalidArgument(
                f"target_points must be at least {MIN_TARGET_POINTS}, got {target_points}"
            )
        if period <= 0:
            raise InvalidArgument(f"period must be positive, got {period}")

        self.context = context
        self.chart = chart
        self.period = period
        self.target_points = target_points
        self.executor = executor
        self.downsampler = downsampler
        self.discard_stale = discard_stale

        self.state = SchedulerState.IDLE
        self._stop_event: Optional[asyncio.Event] = None
        self._stop_requested = False
        self._sequence = 0
        self._installed_sequence = 0
        self._reported_ingestion_failure = False

        self.ticks = 0
        self.installs = 0
        self.failures = 0
        self.discarded = 0
        self.pending = 0

    def tick(self) -> Optional["asyncio.Future[List[Sample]]"]:
        """
        Run one refresh cycle. Must be called from the event loop.

        Returns
        -------
        Optional[asyncio.Future]
            Future of the submitted downsample job, or None if nothing was
            submitted. The result is installed by a callback, not by awaiting
            this future.
        """
        loop = asyncio.get_running_loop()
        self.ticks += 1
        self._sequence += 1
        sequence = self._sequence

        self.state = SchedulerState.SNAPSHOTTING
        snapshot = self.context.store.snapshot()
        if not snapshot:
            logger.warning(f"Tick {sequence}: empty snapshot, keeping current dataset")
            self.failures += 1
            self._settle()
            return None

        self.state = SchedulerState.DOWNSAMPLING
        future = loop.run_in_executor(
            self.executor, self.downsampler, snapshot, self.target_points
        )
        self.pending += 1
        future.add_done_callback(partial(self._on_downsampled, sequence, len(snapshot)))
        logger.debug(f"Tick {sequence}: submitted {len(snapshot)} samples for downsampling")
        return future

    def _settle(self) -> None:
        self.state = SchedulerState.DOWNSAMPLING if self.pending else SchedulerState.IDLE

    def _on_downsampled(self, sequence: int, n_input: int, future: asyncio.Future) -> None:
        self.pending -= 1
        try:
            if future.cancelled():
                logger.warning(f"Tick {sequence}: downsample job was cancelled")
                self.failures += 1
                return
            error = future.exception()
            if error is not None:
                logger.opt(exception=error).warning(
                    f"Tick {sequence}: downsampling failed, keeping current dataset"
                )
                self.failures += 1
                return
            if self.discard_stale and sequence < self._installed_sequence:
                logger.debug(
                    f"Tick {sequence}: discarding stale result "
                    f"(tick {self._installed_sequence} already installed)"
                )
                self.discarded += 1
                return

            self.state = SchedulerState.INSTALLING
            result = future.result()
            try:
                self.chart.install(result)
            except ValueError as e:
                logger.warning(f"Tick {sequence}: cannot install result: {e}")
                self.failures += 1
                return
            self._installed_sequence = max(self._installed_sequence, sequence)
            self.installs += 1
            logger.debug(
                f"Tick {sequence}: installed {len(result)} of {n_input} samples "
                f"(v{self.chart.version})"
            )
        finally:
            self._settle()

    async def run(self) -> None:
        """Tick every ``period`` seconds until ``stop`` is called."""
        self._stop_event = asyncio.Event()
        if self._stop_requested:
            self._stop_event.set()
        logger.info(
            f"Refresh scheduler started: period={self.period}s, target_points={self.target_points}"
        )
        while not self._stop_event.is_set():
            try:
                self.tick()
            except Exception:
                # One bad tick must not end the refresh loop
                logger.exception("Refresh tick failed")
                self.failures += 1
                self._settle()

            if not self.context.ingestion_ok and not self._reported_ingestion_failure:
                logger.warning(
                    f"Ingestion is {self.context.status.value}; no new samples will arrive, "
                    "showing data collected so far"
                )
                self._reported_ingestion_failure = True

            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self.period)
            except asyncio.TimeoutError:
                pass
        self._stop_requested = False
        logger.info(f"Refresh scheduler stopped after {self.ticks} ticks")

    def stop(self) -> None:
        """
        Make ``run`` return at the end of the current wait.

        A stop requested before ``run`` starts makes it return without ticking.
        """
        self._stop_requested = True
        if self._stop_event is not None:
            self._stop_event.set()
