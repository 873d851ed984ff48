import os
from typing import List, Optional, TextIO

from loguru import logger

from pystrip.errors import LogWriteFailure
from pystrip.stream.sample import Sample, from_timestamp_ms


def _format_value(value: float) -> str:
    """Integral readings are written without a decimal part."""
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


def format_record(sample: Sample) -> str:
    """Format a sample as one ``timestamp_ms,value`` log line."""
    return f"{sample.timestamp_ms},{_format_value(sample.value)}\n"


class SampleLog:
    """
    Append-only durable record of every sample emitted by the parser.

    The file is opened once in append mode and kept open for the lifetime of
    the process. Each record is flushed before ``append`` returns, so a sample
    that reaches the in-memory store is already in the file.
    """

    def __init__(self, path: str):
        """
        Open (or create) the log file.

        Parameters
        ----------
        path : str
            Path of the log file. Parent directories are created if needed.

        Raises
        ------
        LogWriteFailure
            If the file cannot be opened for appending.
        """
        self.path = path
        self.records = 0
        directory = os.path.dirname(path)
        try:
            if directory:
                os.makedirs(directory, exist_ok=True)
            self._file: Optional[TextIO] = open(
                path, "a", encoding="utf-8", newline="\n"
            )
        except OSError as e:
            raise LogWriteFailure(f"Cannot open sample log {path}: {e}") from e
        logger.info(f"Appending samples to {path}")

    def append(self, sample: Sample) -> None:
        """
        Write one record and flush it.

        Raises
        ------
        LogWriteFailure
            If the log is closed or the write fails.
        """
        if self._file is None:
            raise LogWriteFailure(f"Sample log {self.path} is closed")
        try:
            self._file.write(format_record(sample))
            self._file.flush()
        except (OSError, ValueError) as e:
            raise LogWriteFailure(f"Failed writing to {self.path}: {e}") from e
        self.records += 1

    @property
    def closed(self) -> bool:
        return self._file is None

    def close(self) -> None:
        if self._file is not None:
            self._file.close()
            self._file = None
            logger.debug(f"Closed sample log {self.path} after {self.records} records")

    def __enter__(self) -> "SampleLog":
        return self

    def __exit__(self, *exc) -> None:
        self.close()


def read_sample_log(path: str) -> List[Sample]:
    """
    Read a durable sample log back into a series.

    Parameters
    ----------
    path : str
        Path to a file written by ``SampleLog``.

    Returns
    -------
    List[Sample]
        Samples in file order. Blank lines are ignored; malformed lines are
        skipped with a warning.

    Raises
    ------
    FileNotFoundError
        If the file does not exist.
    """
    if not os.path.exists(path):
        raise FileNotFoundError(f"Sample log not found: {path}")

    samples = []
    skipped = 0
    with open(path, "r", encoding="utf-8") as f:
        for line_no, line in enumerate(f, start=1):
            line = line.strip()
            if not line:
                continue
            fields = line.split(",")
            if len(fields) != 2:
                logger.warning(f"{path}:{line_no}: expected 2 fields, got {len(fields)}")
                skipped += 1
                continue
            try:
                timestamp = from_timestamp_ms(int(fields[0]))
                value = float(fields[1])
            except (ValueError, OverflowError, OSError) as e:
                logger.warning(f"{path}:{line_no}: cannot parse {line!r}: {e}")
                skipped += 1
                continue
            samples.append(Sample(timestamp, value))

    logger.info(f"Read {len(samples)} samples from {path} ({skipped} skipped)")
    return samples
