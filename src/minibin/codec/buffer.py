"""Byte-level output buffer and bounds-checked input cursor.

The encoder appends to a ByteBuffer; the decoder reads through a Cursor that
tracks its byte offset and raises TruncatedError instead of reading past the end.
"""

from __future__ import annotations

from ..exceptions import TruncatedError


class ByteBuffer:
    """Growable byte buffer for encoding.

    Example:
        >>> buf = ByteBuffer()
        >>> buf.write_byte(0x01)
        >>> buf.write_bytes(b"ab")
        >>> buf.to_bytes()
        b'\\x01ab'
    """

    def __init__(self) -> None:
        """Initialize an empty buffer."""
        self._data = bytearray()

    def write_byte(self, value: int) -> None:
        """Append a single byte.

        Args:
            value: Byte value (0-255)

        Raises:
            ValueError: If value is not a valid byte
        """
        if value < 0 or value > 0xFF:
            raise ValueError(f"byte value must be 0-255, got {value}")
        self._data.append(value)

    def write_bytes(self, data: bytes | bytearray | memoryview) -> None:
        """Append raw bytes.

        Args:
            data: Bytes to append
        """
        self._data += data

    def __len__(self) -> int:
        return len(self._data)

    def to_bytes(self) -> bytes:
        """Return an immutable copy of the buffer contents."""
        return bytes(self._data)


class Cursor:
    """Bounds-checked read cursor over a byte sequence.

    Example:
        >>> cursor = Cursor(b"\\x01ab")
        >>> cursor.read_byte()
        1
        >>> bytes(cursor.read_exact(2))
        b'ab'
        >>> cursor.at_end()
        True
    """

    def __init__(self, data: bytes | bytearray | memoryview) -> None:
        """Initialize a cursor at the start of data.

        Args:
            data: Bytes-like input to read from
        """
        self._view = memoryview(data).cast("B")
        self._offset = 0

    @property
    def offset(self) -> int:
        """Current read position in bytes."""
        return self._offset

    def remaining(self) -> int:
        """Return the number of unread bytes."""
        return len(self._view) - self._offset

    def at_end(self) -> bool:
        """Return True when every byte has been consumed."""
        return self._offset >= len(self._view)

    def peek_byte(self) -> int:
        """Return the next byte without consuming it.

        Raises:
            TruncatedError: If no bytes remain
        """
        if self._offset >= len(self._view):
            raise TruncatedError("Attempted to read past end of input", offset=self._offset)
        return self._view[self._offset]

    def read_byte(self) -> int:
        """Consume and return a single byte.

        Raises:
            TruncatedError: If no bytes remain
        """
        value = self.peek_byte()
        self._offset += 1
        return value

    def read_exact(self, num_bytes: int) -> memoryview:
        """Consume exactly num_bytes bytes.

        Args:
            num_bytes: Number of bytes to read

        Returns:
            A view over the consumed bytes

        Raises:
            TruncatedError: If fewer than num_bytes bytes remain
        """
        if num_bytes < 0:
            raise ValueError(f"num_bytes must be non-negative, got {num_bytes}")
        if num_bytes > self.remaining():
            raise TruncatedError(
                f"Not enough bytes: need {num_bytes}, have {self.remaining()}",
                offset=len(self._view),
            )
        start = self._offset
        self._offset += num_bytes
        return self._view[start : self._offset]
