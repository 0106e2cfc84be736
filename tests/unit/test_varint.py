"""Unit tests for the VarInt codec."""

from __future__ import annotations

import pytest

from minibin.codec.buffer import ByteBuffer, Cursor
from minibin.codec.varint import (
    decode_signed,
    decode_unsigned,
    encode_signed,
    encode_unsigned,
    encoded_length,
    max_encoded_length,
    zigzag_decode,
    zigzag_encode,
)
from minibin.exceptions import IntegerOverflowError, NonCanonicalError, TruncatedError


class TestZigZag:
    """Test the signed-to-unsigned mapping."""

    @pytest.mark.parametrize(
        "signed,unsigned",
        [(0, 0), (-1, 1), (1, 2), (-2, 3), (2, 4), (-64, 127), (64, 128)],
    )
    def test_mapping_table(self, signed: int, unsigned: int) -> None:
        """Small magnitudes of either sign map to small unsigned values."""
        assert zigzag_encode(signed) == unsigned
        assert zigzag_decode(unsigned) == signed

    def test_extremes(self) -> None:
        """Width extremes map to the top of the unsigned range."""
        assert zigzag_encode(-(2**63)) == 2**64 - 1
        assert zigzag_encode(2**63 - 1) == 2**64 - 2
        assert zigzag_decode(2**128 - 1) == -(2**127)


class TestEncodeUnsigned:
    """Test unsigned VarInt encoding."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            (0, "00"),
            (1, "01"),
            (127, "7f"),
            (128, "8001"),
            (300, "ac02"),
            (16383, "ff7f"),
            (16384, "808001"),
        ],
    )
    def test_known_encodings(self, value: int, expected: str) -> None:
        """Values encode 7 bits per byte, low group first."""
        assert encode_unsigned(value).hex() == expected

    def test_max_u64(self) -> None:
        """Largest u64 takes ten bytes."""
        assert encode_unsigned(2**64 - 1) == b"\xff" * 9 + b"\x01"

    def test_appends_to_buffer(self) -> None:
        """Encoding appends to a supplied buffer."""
        buf = ByteBuffer()
        buf.write_byte(0xAA)
        encode_unsigned(300, buf)
        assert buf.to_bytes() == b"\xaa\xac\x02"

    def test_negative_rejected(self) -> None:
        """Negative values cannot be encoded unsigned."""
        with pytest.raises(ValueError, match="non-negative"):
            encode_unsigned(-1)

    def test_signed_uses_zigzag(self) -> None:
        """Signed encoding goes through zig-zag."""
        assert encode_signed(-1) == b"\x01"
        assert encode_signed(1) == b"\x02"
        assert encode_signed(-65) == b"\x81\x01"


class TestLengths:
    """Test length helpers."""

    @pytest.mark.parametrize("bits,expected", [(8, 2), (16, 3), (32, 5), (64, 10), (128, 19)])
    def test_max_encoded_length(self, bits: int, expected: int) -> None:
        """Longest encoding is ceil(bits / 7)."""
        assert max_encoded_length(bits) == expected

    @pytest.mark.parametrize("value", [0, 1, 127, 128, 300, 2**32, 2**64 - 1])
    def test_encoded_length_matches(self, value: int) -> None:
        """encoded_length() agrees with the actual encoding."""
        assert encoded_length(value) == len(encode_unsigned(value))


class TestDecodeUnsigned:
    """Test unsigned VarInt decoding."""

    def test_decode_300(self) -> None:
        """Two-byte value decodes and advances the cursor."""
        cursor = Cursor(b"\xac\x02\xff")
        assert decode_unsigned(cursor, 32) == 300
        assert cursor.offset == 2

    def test_non_canonical_rejected(self) -> None:
        """Redundant zero group is rejected in strict mode."""
        with pytest.raises(NonCanonicalError) as exc_info:
            decode_unsigned(Cursor(b"\x80\x00"), 32)
        assert exc_info.value.offset == 0

    def test_non_canonical_padded_value(self) -> None:
        """Padding a non-zero value is also non-canonical."""
        with pytest.raises(NonCanonicalError):
            decode_unsigned(Cursor(b"\x81\x80\x00"), 32)

    def test_lenient_accepts_padding(self) -> None:
        """Lenient mode accepts redundant groups."""
        assert decode_unsigned(Cursor(b"\x80\x00"), 32, strict=False) == 0
        assert decode_unsigned(Cursor(b"\xac\x82\x00"), 32, strict=False) == 300

    def test_overflow_u8(self) -> None:
        """256 does not fit in eight bits."""
        with pytest.raises(IntegerOverflowError):
            decode_unsigned(Cursor(encode_unsigned(256)), 8)

    def test_u8_max_fits(self) -> None:
        """255 is the largest u8."""
        assert decode_unsigned(Cursor(b"\xff\x01"), 8) == 255

    def test_overlong_encoding(self) -> None:
        """More continuation bytes than the width allows is an overflow."""
        with pytest.raises(IntegerOverflowError):
            decode_unsigned(Cursor(b"\x80\x80\x80\x01"), 8, strict=False)

    def test_u64_eleven_bytes(self) -> None:
        """A u64 can never need eleven bytes."""
        with pytest.raises(IntegerOverflowError):
            decode_unsigned(Cursor(b"\xff" * 10 + b"\x01"), 64)

    def test_u64_top_byte_overflow(self) -> None:
        """Tenth byte may only carry the single remaining bit."""
        with pytest.raises(IntegerOverflowError):
            decode_unsigned(Cursor(b"\xff" * 9 + b"\x02"), 64)

    def test_truncated(self) -> None:
        """Input ending on a continuation byte is truncated."""
        with pytest.raises(TruncatedError) as exc_info:
            decode_unsigned(Cursor(b"\xac"), 32)
        assert exc_info.value.offset == 1

    def test_empty_input(self) -> None:
        """Empty input is truncated at offset 0."""
        with pytest.raises(TruncatedError) as exc_info:
            decode_unsigned(Cursor(b""), 32)
        assert exc_info.value.offset == 0


class TestDecodeSigned:
    """Test signed VarInt decoding."""

    @pytest.mark.parametrize("value", [0, -1, 1, -64, 64, -(2**31), 2**31 - 1])
    def test_i32_values(self, value: int) -> None:
        """Signed values come back from their zig-zag encoding."""
        assert decode_signed(Cursor(encode_signed(value)), 32) == value

    def test_i8_bounds(self) -> None:
        """i8 accepts -128 and 127 and rejects what lies beyond."""
        assert decode_signed(Cursor(encode_signed(-128)), 8) == -128
        assert decode_signed(Cursor(encode_signed(127)), 8) == 127
        with pytest.raises(IntegerOverflowError):
            decode_signed(Cursor(encode_signed(128)), 8)
        with pytest.raises(IntegerOverflowError):
            decode_signed(Cursor(encode_signed(-129)), 8)
