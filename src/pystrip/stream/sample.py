from datetime import datetime, timezone
from typing import NamedTuple, Sequence


def utc_now() -> datetime:
    """Current wall-clock time, UTC, truncated to millisecond resolution."""
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=(now.microsecond // 1000) * 1000)


def from_timestamp_ms(timestamp_ms: int) -> datetime:
    """Convert epoch milliseconds to an aware UTC datetime."""
    seconds, millis = divmod(int(timestamp_ms), 1000)
    return datetime.fromtimestamp(seconds, timezone.utc).replace(
        microsecond=millis * 1000
    )


class Sample(NamedTuple):
    """A single ``(timestamp, value)`` reading. Immutable once created."""

    timestamp: datetime
    value: float

    @property
    def timestamp_ms(self) -> int:
        """Timestamp as integer epoch milliseconds."""
        delta = self.timestamp - _EPOCH
        return (delta.days * 86_400 + delta.seconds) * 1000 + delta.microseconds // 1000

    @property
    def seconds(self) -> float:
        """Timestamp as float epoch seconds (x coordinate for downsampling)."""
        return self.timestamp.timestamp()


# A time-ordered sequence of samples
Series = Sequence[Sample]

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
