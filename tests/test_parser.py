"""
Tests for the frame parser.
"""

from loguru import logger

from pystrip.stream.parser import MAX_TOKEN_VALUE, FrameParser


class TestTokenisation:
    """Digits accumulate into tokens; non-digits terminate them."""

    def test_two_tokens(self, step_clock):
        """'123', separator, '45', separator -> two samples stamped at first digit."""
        parser = FrameParser(clock=step_clock)
        samples = parser.feed_bytes(b"123,45\n")

        assert [s.value for s in samples] == [123.0, 45.0]
        assert len(step_clock.calls) == 2
        assert samples[0].timestamp == step_clock.calls[0]
        assert samples[1].timestamp == step_clock.calls[1]

    def test_timestamp_fixed_at_first_digit(self, step_clock):
        """Later digits of the same token do not restamp it."""
        parser = FrameParser(clock=step_clock)
        assert parser.feed(ord("9")) is None
        assert parser.feed(ord("8")) is None
        assert parser.feed(ord("7")) is None
        sample = parser.feed(ord(";"))

        assert sample.value == 987.0
        assert sample.timestamp == step_clock.calls[0]
        assert len(step_clock.calls) == 1

    def test_idle_bytes_are_ignored(self, step_clock):
        """Non-digits with an empty accumulator emit nothing."""
        parser = FrameParser(clock=step_clock)
        assert parser.feed_bytes(b"\r\n\r\n  ,,") == []
        assert step_clock.calls == []

    def test_unterminated_token_is_pending(self, step_clock):
        parser = FrameParser(clock=step_clock)
        samples = parser.feed_bytes(b"12,34")

        assert [s.value for s in samples] == [12.0]
        assert parser.pending == "34"

    def test_token_split_across_chunks(self, step_clock):
        """A token may arrive over several reads."""
        parser = FrameParser(clock=step_clock)
        assert parser.feed_bytes(b"7") == []
        assert parser.feed_bytes(b"2") == []
        samples = parser.feed_bytes(b"\n")

        assert len(samples) == 1
        assert samples[0].value == 72.0
        assert samples[0].timestamp == step_clock.calls[0]

    def test_leading_zeros(self, step_clock):
        parser = FrameParser(clock=step_clock)
        samples = parser.feed_bytes(b"007\n")
        assert samples[0].value == 7.0

    def test_non_ascii_byte_terminates(self, step_clock):
        """Only ASCII 0-9 are digits; any other byte value is a separator."""
        parser = FrameParser(clock=step_clock)
        samples = parser.feed_bytes(b"5\xb26")
        assert [s.value for s in samples] == [5.0]
        assert parser.pending == "6"

    def test_reset_discards_partial_token(self, step_clock):
        parser = FrameParser(clock=step_clock)
        parser.feed_bytes(b"123")
        parser.reset()
        assert parser.pending == ""
        assert parser.feed_bytes(b"\n") == []


class TestMalformedTokens:
    """Oversized tokens are dropped and parsing continues."""

    def test_overflow_token_dropped(self, step_clock):
        parser = FrameParser(clock=step_clock, max_value=255)
        samples = parser.feed_bytes(b"256,255,")

        assert [s.value for s in samples] == [255.0]
        assert parser.pending == ""

    def test_default_limit_is_unsigned_64_bit(self, step_clock):
        parser = FrameParser(clock=step_clock)
        samples = parser.feed_bytes(
            str(2**64).encode() + b"," + str(2**64 - 1).encode() + b","
        )
        assert [s.value for s in samples] == [float(2**64 - 1)]

    def test_endless_digit_run_is_bounded(self, step_clock):
        """A device stuck sending digits cannot grow the accumulator."""
        parser = FrameParser(clock=step_clock)
        messages = []
        handler_id = logger.add(messages.append, level="WARNING")
        try:
            assert parser.feed_bytes(b"1" * 200_000) == []
            assert len(parser.pending) <= len(str(MAX_TOKEN_VALUE)) + 1
            samples = parser.feed_bytes(b",5,")
        finally:
            logger.remove(handler_id)

        assert [s.value for s in samples] == [5.0]
        assert len(step_clock.calls) == 2
        assert len(messages) == 1
        assert "(200000 digits)" in messages[0]
        assert len(messages[0]) < 300

    def test_long_leading_zero_run(self, step_clock):
        """Leading zeros do not count towards the token length."""
        parser = FrameParser(clock=step_clock, max_value=255)
        assert parser.feed_bytes(b"0" * 10_000) == []
        assert parser.pending == "0"
        samples = parser.feed_bytes(b"7,000,")

        assert [s.value for s in samples] == [7.0, 0.0]
