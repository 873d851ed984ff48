from datetime import datetime
from typing import Callable, List, Optional

from loguru import logger

from pystrip.errors import ParseError
from pystrip.stream.sample import Sample, utc_now

# Largest token value the device can send (unsigned 64-bit word)
MAX_TOKEN_VALUE = 2**64 - 1

_DIGIT_0 = ord("0")
_DIGIT_9 = ord("9")


class FrameParser:
    """
    Turns a raw ASCII byte stream into timestamped samples.

    The device sends decimal integers separated by arbitrary non-digit bytes.
    Digits are accumulated until a non-digit arrives, at which point the token
    is emitted as a ``Sample``. A token's timestamp is taken when its first
    digit arrives, not when it is terminated. Non-digits arriving between
    tokens are idle heartbeats and are ignored.
    """

    def __init__(
        self,
        clock: Callable[[], datetime] = utc_now,
        max_value: int = MAX_TOKEN_VALUE,
    ):
        """
        Initialise the parser with an empty accumulator.

        Parameters
        ----------
        clock : Callable[[], datetime], default=utc_now
            Wall-clock source used to stamp each token at its first digit.
        max_value : int, default=2**64 - 1
            Largest value accepted for a token. Larger tokens are dropped.
        """
        self._clock = clock
        self._max_value = max_value
        # Significant digits in max_value; one more always overflows
        self._max_digits = len(str(max_value))
        self._digits = bytearray()
        self._length = 0
        self._overflowed = False
        self._tag: Optional[datetime] = None

    @property
    def pending(self) -> str:
        """
        Digits accumulated for the token currently being read.

        Leading zeros are collapsed, and accumulation stops once the token has
        more significant digits than ``max_value``, so this stays short however
        long the device keeps sending digits.
        """
        return self._digits.decode("ascii")

    def reset(self) -> None:
        """Discard any partially accumulated token."""
        self._digits.clear()
        self._length = 0
        self._overflowed = False
        self._tag = None

    def _describe_token(self) -> str:
        digits = self._digits.decode("ascii")
        if self._overflowed:
            return f"{digits[:20]}... ({self._length} digits)"
        return digits

    def _parse_token(self) -> int:
        if self._overflowed:
            raise ParseError(
                f"Token {self._describe_token()} exceeds maximum device value {self._max_value}"
            )
        try:
            value = int(self._digits.decode("ascii"))
        except ValueError as e:
            raise ParseError(f"Malformed token {self._describe_token()}: {e}") from e
        if value > self._max_value:
            raise ParseError(
                f"Token {value} exceeds maximum device value {self._max_value}"
            )
        return value

    def feed(self, byte: int) -> Optional[Sample]:
        """
        Consume one byte.

        Parameters
        ----------
        byte : int
            The byte value (0-255).

        Returns
        -------
        Optional[Sample]
            The completed sample if this byte terminated a token, else None.
            Malformed tokens are logged and dropped.
        """
        if _DIGIT_0 <= byte <= _DIGIT_9:
            if not self._length:
                self._tag = self._clock()
            self._length += 1
            if self._overflowed:
                return None
            if self._digits == b"0":
                self._digits[0] = byte
            else:
                self._digits.append(byte)
                self._overflowed = len(self._digits) > self._max_digits
            return None

        if not self._length:
            # Idle heartbeat byte between tokens
            return None

        tag = self._tag
        try:
            value = self._parse_token()
        except ParseError as e:
            logger.warning(f"Dropping token: {e}")
            return None
        finally:
            self.reset()

        return Sample(tag, float(value))

    def feed_bytes(self, data: bytes) -> List[Sample]:
        """Consume a chunk of bytes and return every sample it completed."""
        samples = []
        for byte in data:
            sample = self.feed(byte)
            if sample is not None:
                samples.append(sample)
        return samples
