"""Length-prefixed stream framing.

Frame layout::

    +-----------------+--------------------------+
    | Length (u16 LE) |  Record (Length bytes)   |
    +-----------------+--------------------------+

The framer never looks inside the record.
"""

from __future__ import annotations

import logging
import struct

from flicctl.core.errors import EncodeError, RecordTooLarge

LOGGER = logging.getLogger(__name__)

LENGTH_PREFIX = struct.Struct("<H")
MAX_RECORD_SIZE = 0xFFFF


def encode_frame(record: bytes) -> bytes:
    """Prefix ``record`` with its 2-byte little-endian length."""
    if len(record) > MAX_RECORD_SIZE:
        raise EncodeError(f"Record of {len(record)} bytes does not fit a 16-bit length prefix")
    return LENGTH_PREFIX.pack(len(record)) + bytes(record)


class FrameDecoder:
    """Resumable decoder turning arbitrary stream chunks into complete records.

    Usage::

        decoder = FrameDecoder()
        decoder.feed(chunk)
        record = decoder.next_frame()
        if record is not None:
            handle(record)

    A length prefix above ``max_record_size`` raises :class:`RecordTooLarge`
    once; the oversized body is then drained from the stream so the next
    frame is read from a clean boundary.
    """

    def __init__(self, max_record_size: int = MAX_RECORD_SIZE) -> None:
        if not 0 < max_record_size <= MAX_RECORD_SIZE:
            raise ValueError(f"max_record_size must be 1-{MAX_RECORD_SIZE}, got {max_record_size}")
        self.max_record_size = max_record_size
        self._buffer = bytearray()
        self._expected: int | None = None
        self._discard = 0

    @property
    def buffered(self) -> int:
        return len(self._buffer)

    @property
    def needed(self) -> int:
        """Bytes still missing before the next frame (or drain) can complete."""
        if self._discard:
            return max(0, self._discard - len(self._buffer))
        if self._expected is None:
            return max(0, LENGTH_PREFIX.size - len(self._buffer))
        return max(0, self._expected - len(self._buffer))

    def feed(self, data: bytes) -> None:
        self._buffer.extend(data)

    def next_frame(self) -> bytes | None:
        """Return the next complete record, or ``None`` if more bytes are needed."""
        if self._discard:
            dropped = min(self._discard, len(self._buffer))
            del self._buffer[:dropped]
            self._discard -= dropped
            if self._discard:
                return None
            LOGGER.debug("Finished draining oversized record")

        if self._expected is None:
            if len(self._buffer) < LENGTH_PREFIX.size:
                return None
            (length,) = LENGTH_PREFIX.unpack_from(self._buffer, 0)
            del self._buffer[: LENGTH_PREFIX.size]
            if length > self.max_record_size:
                self._discard = length
                LOGGER.warning("Dropping record of %d bytes (limit %d)", length, self.max_record_size)
                raise RecordTooLarge(length, self.max_record_size)
            self._expected = length

        if len(self._buffer) < self._expected:
            return None

        record = bytes(self._buffer[: self._expected])
        del self._buffer[: self._expected]
        self._expected = None
        return record

    def reset(self) -> None:
        self._buffer.clear()
        self._expected = None
        self._discard = 0
