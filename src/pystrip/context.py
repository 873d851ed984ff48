import threading
from enum import Enum
from typing import Optional, Sequence

from loguru import logger

from pystrip.stream.sample import Sample
from pystrip.stream.sample_log import SampleLog
from pystrip.stream.store import SeriesStore


class IngestionStatus(Enum):
    STARTING = "starting"
    RUNNING = "running"
    STOPPED = "stopped"
    DEVICE_UNAVAILABLE = "device_unavailable"
    LOG_FAILED = "log_failed"
    FAILED = "failed"


# Terminal states caused by a failure rather than a requested stop
FAILED_STATUSES = (
    IngestionStatus.DEVICE_UNAVAILABLE,
    IngestionStatus.LOG_FAILED,
    IngestionStatus.FAILED,
)


class StripContext:
    """
    State shared by the ingestion worker and the refresh scheduler.

    Built once at startup and handed to both sides by reference. Holds the
    series store, the optional durable log, and the ingestion status so the
    visualization side can tell that no more data will arrive.
    """

    def __init__(self, store: SeriesStore, sample_log: Optional[SampleLog] = None):
        self.store = store
        self.sample_log = sample_log
        self._status = IngestionStatus.STARTING
        self._status_lock = threading.Lock()

    @classmethod
    def create(
        cls, log_path: Optional[str] = None, history: Sequence[Sample] = ()
    ) -> "StripContext":
        """
        Build a context with a seeded store and, optionally, a durable log.

        Parameters
        ----------
        log_path : Optional[str], default=None
            Path of the sample log to append to. No log is kept if None.
        history : Sequence[Sample], default=()
            Samples from an earlier session. The store starts with them
            instead of the sentinel sample.
        """
        sample_log = SampleLog(log_path) if log_path is not None else None
        if history:
            store = SeriesStore(seed=history[0])
            store.extend(history[1:])
        else:
            store = SeriesStore()
        return cls(store, sample_log)

    @property
    def status(self) -> IngestionStatus:
        with self._status_lock:
            return self._status

    def set_status(self, status: IngestionStatus) -> None:
        with self._status_lock:
            previous, self._status = self._status, status
        if previous is not status:
            logger.debug(f"Ingestion status {previous.value} -> {status.value}")

    @property
    def ingestion_ok(self) -> bool:
        """False once ingestion has stopped because of a failure."""
        return self.status not in FAILED_STATUSES

    def close(self) -> None:
        if self.sample_log is not None:
            self.sample_log.close()
