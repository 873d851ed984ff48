import threading
from typing import Callable, Optional

import serial
from loguru import logger

from pystrip.context import IngestionStatus, StripContext
from pystrip.errors import DeviceUnavailable, IoTimeout, LogWriteFailure
from pystrip.stream.device import ByteSource
from pystrip.stream.parser import FrameParser
from pystrip.stream.sample import Sample


class IngestionWorker:
    """
    Blocking read loop feeding the series store from a device.

    Runs on its own thread. Every sample the parser emits is written to the
    durable log (if the context has one) before it is pushed into the store.
    Read timeouts are idle ticks. A device failure or a failed log write ends
    ingestion; the store keeps everything collected so far and the context
    status records why ingestion stopped. Any other exception in the loop is
    logged with its traceback and ends ingestion with status ``FAILED``.
    """

    def __init__(
        self,
        context: StripContext,
        source_factory: Callable[[], ByteSource],
        parser: Optional[FrameParser] = None,
    ):
        """
        Initialise the worker.

        Parameters
        ----------
        context : StripContext
            Shared context holding the store, log and status.
        source_factory : Callable[[], ByteSource]
            Opens the device. Called once, on the ingestion thread. Should raise
            ``DeviceUnavailable`` if the device cannot be opened.
        parser : Optional[FrameParser], default=None
            Parser to use. A new ``FrameParser`` is created if None.
        """
        self.context = context
        self._source_factory = source_factory
        self.parser = parser if parser is not None else FrameParser()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

        self.bytes_read = 0
        self.samples = 0
        self.idle_reads = 0

    def start(self) -> None:
        """Start the read loop on a daemon thread."""
        if self._thread is not None:
            logger.warning("Ingestion worker already started")
            return
        self._thread = threading.Thread(
            target=self.run, name="pystrip-ingest", daemon=True
        )
        self._thread.start()

    def stop(self) -> None:
        """Ask the loop to exit after the current (bounded) read."""
        self._stop_event.set()

    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)

    @property
    def is_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _read_byte(self, source: ByteSource) -> int:
        try:
            data = source.read(1)
        except (serial.SerialException, OSError) as e:
            raise DeviceUnavailable(f"Device read failed: {e}") from e
        if not data:
            raise IoTimeout("No bytes within read timeout")
        return data[0]

    def _emit(self, sample: Sample) -> None:
        # Log first: a sample in memory is always in the log
        if self.context.sample_log is not None:
            self.context.sample_log.append(sample)
        self.context.store.push(sample)
        self.samples += 1

    def run(self) -> None:
        """Open the device and read until stopped or a fatal error occurs."""
        try:
            source = self._source_factory()
        except DeviceUnavailable as e:
            logger.error(f"Ingestion unavailable: {e}")
            self.context.set_status(IngestionStatus.DEVICE_UNAVAILABLE)
            return

        self.context.set_status(IngestionStatus.RUNNING)
        logger.info("Ingestion started")
        try:
            while not self._stop_event.is_set():
                try:
                    byte = self._read_byte(source)
                except IoTimeout:
                    self.idle_reads += 1
                    continue
                self.bytes_read += 1

                sample = self.parser.feed(byte)
                if sample is not None:
                    self._emit(sample)
        except DeviceUnavailable as e:
            logger.error(f"Ingestion stopped: {e}")
            self.context.set_status(IngestionStatus.DEVICE_UNAVAILABLE)
        except LogWriteFailure as e:
            logger.error(f"Ingestion stopped, durable log unavailable: {e}")
            self.context.set_status(IngestionStatus.LOG_FAILED)
        except Exception:
            logger.exception("Ingestion crashed")
            self.context.set_status(IngestionStatus.FAILED)
        else:
            self.context.set_status(IngestionStatus.STOPPED)
        finally:
            source.close()
            logger.info(
                f"Ingestion finished: {self.bytes_read} bytes, {self.samples} samples, "
                f"{self.idle_reads} idle reads"
            )
