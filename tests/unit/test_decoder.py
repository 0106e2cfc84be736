"""Unit tests for the Decoder engine."""

from __future__ import annotations

import pytest

from minibin import (
    ContractViolationError,
    DecodeError,
    Decoder,
    IntegerOverflowError,
    InvalidCharError,
    InvalidTagError,
    InvalidUtf8Error,
    InvalidVariantError,
    NonCanonicalError,
    TrailingBytesError,
    TruncatedError,
    ValueKind,
)


class TestScalars:
    """Test decoding scalar kinds."""

    def test_bool(self) -> None:
        """0x00 and 0x01 are the only booleans."""
        decoder = Decoder(b"\x01\x00")
        assert decoder.expect_bool() is True
        assert decoder.expect_bool() is False
        decoder.finish()

    def test_bool_invalid_tag(self) -> None:
        """Any other byte is an invalid tag."""
        decoder = Decoder(b"\x01\x02")
        decoder.expect_bool()
        with pytest.raises(InvalidTagError) as exc_info:
            decoder.expect_bool()
        assert exc_info.value.offset == 1

    def test_integers(self) -> None:
        """Integers decode with the width of their kind."""
        decoder = Decoder(bytes.fromhex("ff01ac020103"))
        assert decoder.expect_u8() == 255
        assert decoder.expect_u16() == 300
        assert decoder.expect_i32() == -1
        assert decoder.expect_int(ValueKind.I64) == -2
        decoder.finish()

    def test_integer_overflow_offset(self) -> None:
        """Overflow errors point at the start of the VarInt."""
        decoder = Decoder(b"\x05\x80\x02")
        decoder.expect_u8()
        with pytest.raises(IntegerOverflowError) as exc_info:
            decoder.expect_u8()
        assert exc_info.value.offset == 1

    def test_expect_int_non_integer_kind(self) -> None:
        """expect_int() needs an integer kind."""
        with pytest.raises(ValueError):
            Decoder(b"\x00").expect_int(ValueKind.BOOL)

    def test_floats(self) -> None:
        """Floats are little-endian IEEE-754."""
        decoder = Decoder(bytes.fromhex("0000803f" + "000000000000f03f"))
        assert decoder.expect_f32() == 1.0
        assert decoder.expect_f64() == 1.0

    def test_float_truncated(self) -> None:
        """Short float input is truncated."""
        with pytest.raises(TruncatedError):
            Decoder(b"\x00\x00\x80").expect_f32()

    def test_char(self) -> None:
        """Chars decode from their code point."""
        decoder = Decoder(bytes.fromhex("41ac41"))
        assert decoder.expect_char() == "A"
        assert decoder.expect_char() == "€"

    def test_char_surrogate(self) -> None:
        """Surrogate code points are invalid chars."""
        with pytest.raises(InvalidCharError) as exc_info:
            Decoder(bytes.fromhex("80b003")).expect_char()
        assert exc_info.value.offset == 0

    def test_char_beyond_unicode(self) -> None:
        """Code points past U+10FFFF are invalid chars."""
        with pytest.raises(InvalidCharError):
            Decoder(bytes.fromhex("808044")).expect_char()

    def test_str(self) -> None:
        """Strings are length-prefixed UTF-8."""
        decoder = Decoder(bytes.fromhex("02616200"))
        assert decoder.expect_str() == "ab"
        assert decoder.expect_str() == ""

    def test_str_invalid_utf8(self, invalid_utf8: bytes) -> None:
        """Invalid UTF-8 is reported at the offending byte."""
        data = bytes([len(invalid_utf8)]) + invalid_utf8
        with pytest.raises(InvalidUtf8Error) as exc_info:
            Decoder(data).expect_str()
        assert exc_info.value.offset == 2

    def test_str_truncated(self) -> None:
        """Declared length longer than the input is truncated."""
        with pytest.raises(TruncatedError):
            Decoder(b"\x05ab").expect_str()

    def test_bytes(self) -> None:
        """Byte strings come back as bytes."""
        decoder = Decoder(b"\x02\x00\xff")
        assert decoder.expect_bytes() == b"\x00\xff"


class TestCompounds:
    """Test decoding compound kinds."""

    def test_option(self) -> None:
        """Presence byte reports whether a value follows."""
        decoder = Decoder(b"\x00\x01\x05")
        assert decoder.expect_option() is False
        assert decoder.expect_option() is True
        assert decoder.expect_u8() == 5
        decoder.finish()

    def test_option_invalid_tag(self) -> None:
        """Option presence must be 0 or 1."""
        with pytest.raises(InvalidTagError, match="option"):
            Decoder(b"\x02").expect_option()

    def test_seq(self) -> None:
        """begin_seq() returns the element count."""
        decoder = Decoder(b"\x03\x01\x02\x03")
        count = decoder.begin_seq()
        assert [decoder.expect_u8() for _ in range(count)] == [1, 2, 3]
        decoder.end_seq()
        decoder.finish()

    def test_map(self) -> None:
        """begin_map() returns the pair count."""
        decoder = Decoder(bytes.fromhex("01016101"))
        assert decoder.begin_map() == 1
        assert decoder.expect_str() == "a"
        assert decoder.expect_bool() is True
        decoder.end_map()

    def test_enum_variant(self) -> None:
        """Variant index is checked against the variant count."""
        decoder = Decoder(b"\x01\x07")
        assert decoder.expect_enum_variant(2) == 1
        assert decoder.expect_u8() == 7
        decoder.finish()

    def test_enum_variant_out_of_range(self) -> None:
        """Indices at or beyond the count are invalid."""
        with pytest.raises(InvalidVariantError) as exc_info:
            Decoder(b"\x02").expect_enum_variant(2)
        assert exc_info.value.offset == 0

    def test_enum_payload_len_callable(self) -> None:
        """Payload length may depend on the decoded index."""
        decoder = Decoder(b"\x00\x01\x05")
        decoder.begin_tuple(2)
        assert decoder.expect_enum_variant(2, payload_len=lambda index: index) == 0
        assert decoder.expect_enum_variant(2, payload_len=lambda index: index) == 1
        assert decoder.expect_u8() == 5
        decoder.end_tuple()
        decoder.finish()

    def test_record_example(self, record_bytes: bytes) -> None:
        """Hand-driven consumer reads the documented record."""
        decoder = Decoder(record_bytes)
        decoder.begin_struct(3)
        assert decoder.expect_u32() == 300
        assert decoder.expect_str() == "ab"
        assert decoder.expect_option() is True
        count = decoder.begin_seq()
        assert [decoder.expect_bool() for _ in range(count)] == [True, False]
        decoder.end_seq()
        decoder.end_struct()
        decoder.finish()


class TestInputErrors:
    """Test corrupt and incomplete input."""

    def test_every_prefix_truncated(self, record_bytes: bytes) -> None:
        """Every strict prefix of a valid encoding fails with TruncatedError."""
        for cut in range(len(record_bytes)):
            decoder = Decoder(record_bytes[:cut])
            with pytest.raises(TruncatedError):
                decoder.begin_struct(3)
                decoder.expect_u32()
                decoder.expect_str()
                decoder.expect_option()
                for _ in range(decoder.begin_seq()):
                    decoder.expect_bool()

    def test_trailing_bytes(self) -> None:
        """finish() rejects leftover input."""
        decoder = Decoder(b"\x01\xff")
        decoder.expect_bool()
        with pytest.raises(TrailingBytesError) as exc_info:
            decoder.finish()
        assert exc_info.value.offset == 1

    def test_trailing_bytes_allowed(self) -> None:
        """finish(allow_trailing=True) ignores leftover input."""
        decoder = Decoder(b"\x01\xff")
        decoder.expect_bool()
        decoder.finish(allow_trailing=True)

    def test_non_canonical_strict(self) -> None:
        """Strict decoders reject padded VarInts."""
        with pytest.raises(NonCanonicalError):
            Decoder(b"\x85\x00").expect_u32()

    def test_non_canonical_lenient(self) -> None:
        """Lenient decoders accept padded VarInts."""
        assert Decoder(b"\x85\x00", strict=False).expect_u32() == 5

    def test_error_message_carries_offset(self) -> None:
        """Offsets appear in the error message."""
        with pytest.raises(DecodeError, match=r"at byte 0"):
            Decoder(b"\x07").expect_bool()

    def test_all_input_errors_are_decode_errors(self) -> None:
        """Every input error derives from DecodeError."""
        for error in (
            TruncatedError,
            InvalidTagError,
            InvalidVariantError,
            IntegerOverflowError,
            InvalidUtf8Error,
            InvalidCharError,
            NonCanonicalError,
            TrailingBytesError,
        ):
            assert issubclass(error, DecodeError)


class TestContract:
    """Test begin/end bookkeeping on the consumer side."""

    def test_end_seq_early(self) -> None:
        """Closing before consuming every element is a contract violation."""
        decoder = Decoder(b"\x02\x01\x02")
        decoder.begin_seq()
        decoder.expect_u8()
        with pytest.raises(ContractViolationError):
            decoder.end_seq()

    def test_finish_with_open_frame(self) -> None:
        """finish() requires every frame to be closed."""
        decoder = Decoder(b"")
        decoder.begin_struct(1)
        with pytest.raises(ContractViolationError):
            decoder.finish()

    def test_too_many_reads(self) -> None:
        """Reading past a declared length is a contract violation."""
        decoder = Decoder(b"\x00\x01")
        decoder.begin_seq()
        with pytest.raises(ContractViolationError):
            decoder.expect_bool()

    @pytest.mark.parametrize("count", [-1, 1.0, "2", None, True])
    def test_struct_length_must_be_count(self, count) -> None:
        """Struct and tuple lengths are non-negative ints."""
        decoder = Decoder(b"")
        with pytest.raises(ContractViolationError, match="non-negative"):
            decoder.begin_struct(count)
        with pytest.raises(ContractViolationError, match="non-negative"):
            decoder.begin_tuple(count)
        decoder.finish()
