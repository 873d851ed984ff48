import threading
from typing import Iterable, List, Optional, Tuple

from loguru import logger

from pystrip.stream.sample import Sample, utc_now


class SeriesStore:
    """
    Append-only time series shared between one writer and periodic readers.

    The ingestion worker is the only caller of ``push``/``extend``. Readers take
    full copies with ``snapshot`` and never see the underlying list. Both sides
    use the same lock, and it is held only for the append or the copy.
    """

    def __init__(self, seed: Optional[Sample] = None):
        """
        Initialise the store with a single sentinel sample.

        Parameters
        ----------
        seed : Optional[Sample], default=None
            First sample of the series. If None, a sentinel at the current
            time with value 0.0 is used so the series is never empty.
        """
        if seed is None:
            seed = Sample(utc_now(), 0.0)
        self._samples: List[Sample] = [seed]
        self._lock = threading.Lock()

    def push(self, sample: Sample) -> None:
        """Append one sample. Writer only."""
        with self._lock:
            self._samples.append(sample)

    def extend(self, samples: Iterable[Sample]) -> int:
        """
        Append a batch of samples under a single lock acquisition.

        Returns
        -------
        int
            Number of samples appended.
        """
        batch = list(samples)
        with self._lock:
            self._samples.extend(batch)
        logger.debug(f"Appended batch of {len(batch)} samples to store")
        return len(batch)

    def snapshot(self) -> Tuple[Sample, ...]:
        """Return an immutable copy of the full series as it is right now."""
        with self._lock:
            return tuple(self._samples)

    @property
    def latest(self) -> Sample:
        """Most recently appended sample."""
        with self._lock:
            return self._samples[-1]

    def __len__(self) -> int:
        with self._lock:
            return len(self._samples)
