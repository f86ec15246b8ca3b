"""Sequential big-endian reader over an immutable byte buffer."""

from __future__ import annotations

from .errors import TruncatedStream


class ByteCursor:
    """Read primitives for SMF chunks.

    The cursor only ever moves forward.  Every read checks the remaining
    length first and raises :class:`TruncatedStream` instead of returning
    short data.
    """

    def __init__(self, data: bytes, position: int = 0) -> None:
        self._data = bytes(data)
        self._pos = position

    @property
    def position(self) -> int:
        return self._pos

    @property
    def remaining(self) -> int:
        return len(self._data) - self._pos

    def at_end(self) -> bool:
        return self._pos >= len(self._data)

    def _take(self, count: int) -> bytes:
        if count < 0:
            raise ValueError(f"negative read length {count}")
        end = self._pos + count
        if end > len(self._data):
            raise TruncatedStream(
                f"need {count} bytes at offset {self._pos}, "
                f"only {self.remaining} left"
            )
        chunk = self._data[self._pos : end]
        self._pos = end
        return chunk

    def read_bytes(self, count: int) -> bytes:
        return self._take(count)

    def read_chars(self, count: int) -> str:
        """Read ``count`` raw bytes as text (chunk tags)."""

        return self._take(count).decode("latin-1")

    def read_byte(self) -> int:
        return self._take(1)[0]

    def peek_byte(self) -> int:
        if self._pos >= len(self._data):
            raise TruncatedStream(f"peek past end of buffer at offset {self._pos}")
        return self._data[self._pos]

    def read_u16(self) -> int:
        return int.from_bytes(self._take(2), "big")

    def read_u24(self) -> int:
        return int.from_bytes(self._take(3), "big")

    def read_u32(self) -> int:
        return int.from_bytes(self._take(4), "big")

    def skip(self, count: int) -> None:
        self._take(count)

    def read_varlen(self) -> int:
        """Read a MIDI variable-length quantity.

        Seven data bits per byte, most significant group first.  Bytes with
        the high bit set continue the value; the first byte with it clear
        terminates it.
        """

        value = 0
        while True:
            byte = self.read_byte()
            value = (value << 7) | (byte & 0x7F)
            if not byte & 0x80:
                return value
