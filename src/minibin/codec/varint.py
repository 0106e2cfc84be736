r"""Variable-length integer codec.

Unsigned values are written 7 bits per byte, least-significant group first.
The high bit of each byte is a continuation flag: set when more bytes follow.

    0          -> 00
    127        -> 7f
    128        -> 80 01
    300        -> ac 02
    16384      -> 80 80 01

Signed values are zig-zag mapped to unsigned first, so small magnitudes of
either sign stay short:

    0 -> 0, -1 -> 1, 1 -> 2, -2 -> 3, 2 -> 4, ...

Decoding is bounded by a target bit width. Under strict decoding a value must
use its unique minimal encoding; a redundant trailing zero group such as
``80 00`` (zero in two bytes) is rejected with NonCanonicalError.
"""

from __future__ import annotations

from ..exceptions import IntegerOverflowError, NonCanonicalError
from .buffer import ByteBuffer, Cursor


def zigzag_encode(value: int) -> int:
    """Map a signed integer to the unsigned domain."""
    if value >= 0:
        return value << 1
    return ((-value) << 1) - 1


def zigzag_decode(value: int) -> int:
    """Inverse of zigzag_encode()."""
    return (value >> 1) ^ -(value & 1)


def max_encoded_length(bits: int) -> int:
    """Return the longest encoding allowed for a value of the given width."""
    return (bits + 6) // 7


def encoded_length(value: int) -> int:
    """Return the number of bytes encode_unsigned(value) produces.

    Args:
        value: Unsigned integer (must be >= 0)
    """
    if value < 0:
        raise ValueError(f"encoded_length requires non-negative value, got {value}")
    return max(1, (value.bit_length() + 6) // 7)


def encode_unsigned(value: int, buffer: ByteBuffer | None = None) -> bytes:
    """Encode an unsigned integer as a VarInt.

    Args:
        value: Unsigned integer value (must be >= 0)
        buffer: Optional buffer to append the encoding to

    Returns:
        The encoded bytes

    Raises:
        ValueError: If value is negative
    """
    if value < 0:
        raise ValueError(f"encode_unsigned requires non-negative value, got {value}")

    out = bytearray()
    while True:
        group = value & 0x7F
        value >>= 7
        if value:
            out.append(group | 0x80)
        else:
            out.append(group)
            break

    if buffer is not None:
        buffer.write_bytes(out)
    return bytes(out)


def encode_signed(value: int, buffer: ByteBuffer | None = None) -> bytes:
    """Encode a signed integer as a zig-zag VarInt.

    Args:
        value: Signed integer value
        buffer: Optional buffer to append the encoding to

    Returns:
        The encoded bytes
    """
    return encode_unsigned(zigzag_encode(value), buffer)


def decode_unsigned(cursor: Cursor, bits: int = 64, strict: bool = True) -> int:
    """Decode an unsigned VarInt that must fit in ``bits`` bits.

    Args:
        cursor: Cursor positioned at the first byte of the VarInt
        bits: Width of the target integer
        strict: Reject non-minimal encodings

    Returns:
        Decoded unsigned integer

    Raises:
        TruncatedError: If the input ends before the terminating byte
        IntegerOverflowError: If the value does not fit in ``bits`` bits
        NonCanonicalError: If strict and the encoding is not minimal
    """
    start = cursor.offset
    value = 0
    shift = 0
    for index in range(max_encoded_length(bits)):
        byte = cursor.read_byte()
        value |= (byte & 0x7F) << shift
        if not byte & 0x80:
            if strict and byte == 0 and index > 0:
                raise NonCanonicalError(
                    f"VarInt uses {index + 1} bytes for a value that needs fewer", offset=start
                )
            if value >> bits:
                raise IntegerOverflowError(
                    f"Decoded value {value} does not fit in {bits} bits", offset=start
                )
            return value
        shift += 7

    raise IntegerOverflowError(
        f"VarInt longer than {max_encoded_length(bits)} bytes for a {bits}-bit value",
        offset=start,
    )


def decode_signed(cursor: Cursor, bits: int = 64, strict: bool = True) -> int:
    """Decode a zig-zag VarInt into a signed integer of width ``bits``.

    The zig-zag image of a signed N-bit integer spans exactly N unsigned bits,
    so the unsigned bound doubles as the signed range check.
    """
    return zigzag_decode(decode_unsigned(cursor, bits, strict))
