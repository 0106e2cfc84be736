"""Compact binary decoder.

This module provides the Decoder engine, which mirrors the Encoder with one
expect call per value kind, and the decode() function that rebuilds a Pydantic
message from its encoding.
"""

from __future__ import annotations

import logging
import struct
from typing import Any, Callable, TypeVar, Union

from pydantic import BaseModel, ValidationError

from ..exceptions import (
    ContractViolationError,
    DecodeError,
    InvalidCharError,
    InvalidTagError,
    InvalidUtf8Error,
    InvalidVariantError,
    TrailingBytesError,
    TruncatedError,
)
from .buffer import Cursor
from .frames import FrameStack
from .kinds import ValueKind
from .schema import MAX_ZERO_WIDTH_ELEMENTS, MessageSchema, TypeSchema
from .varint import decode_signed, decode_unsigned

logger = logging.getLogger(__name__)

T = TypeVar("T")

_MAX_CHAR = 0x10FFFF
_SURROGATES = range(0xD800, 0xE000)

PayloadLen = Union[int, Callable[[int], int]]


class Decoder:
    """Read-only engine that consumes one value per expect call.

    Calls must follow the order the producer used. Every tag, length and
    integer width is validated; errors carry the byte offset of the failure.

    Example:
        >>> decoder = Decoder(bytes.fromhex("ac0202616201020100"))
        >>> decoder.begin_struct(3)
        >>> decoder.expect_u32()
        300
        >>> decoder.expect_str()
        'ab'
        >>> decoder.expect_option()
        True
        >>> [decoder.expect_bool() for _ in range(decoder.begin_seq())]
        [True, False]
        >>> decoder.end_seq()
        >>> decoder.end_struct()
        >>> decoder.finish()
    """

    def __init__(self, data: bytes | bytearray | memoryview, strict: bool = True) -> None:
        """Initialize a decoder over data.

        Args:
            data: Encoded input
            strict: Reject non-canonical VarInt encodings
        """
        self._cursor = Cursor(data)
        self._frames = FrameStack()
        self.strict = strict

    @property
    def offset(self) -> int:
        """Current read position in bytes."""
        return self._cursor.offset

    def remaining(self) -> int:
        """Number of unread bytes."""
        return self._cursor.remaining()

    # Scalars

    def expect_unit(self) -> None:
        """Consume a unit value (zero bytes)."""
        self._frames.value_done()

    def expect_bool(self) -> bool:
        """Consume a boolean byte.

        Raises:
            InvalidTagError: If the byte is neither 0x00 nor 0x01
        """
        self._frames.value_done()
        return self._read_flag("bool")

    def expect_u8(self) -> int:
        return self.expect_int(ValueKind.U8)

    def expect_u16(self) -> int:
        return self.expect_int(ValueKind.U16)

    def expect_u32(self) -> int:
        return self.expect_int(ValueKind.U32)

    def expect_u64(self) -> int:
        return self.expect_int(ValueKind.U64)

    def expect_u128(self) -> int:
        return self.expect_int(ValueKind.U128)

    def expect_i8(self) -> int:
        return self.expect_int(ValueKind.I8)

    def expect_i16(self) -> int:
        return self.expect_int(ValueKind.I16)

    def expect_i32(self) -> int:
        return self.expect_int(ValueKind.I32)

    def expect_i64(self) -> int:
        return self.expect_int(ValueKind.I64)

    def expect_i128(self) -> int:
        return self.expect_int(ValueKind.I128)

    def expect_int(self, kind: ValueKind) -> int:
        """Consume a VarInt bounded by the width of an integer kind.

        Raises:
            IntegerOverflowError: If the value does not fit the width
            NonCanonicalError: If strict and the VarInt is not minimal
        """
        if not kind.is_integer:
            raise ValueError(f"{kind.value} is not an integer kind")
        self._frames.value_done()
        if kind.signed:
            return decode_signed(self._cursor, kind.bits, self.strict)
        return decode_unsigned(self._cursor, kind.bits, self.strict)

    def expect_f32(self) -> float:
        """Consume 4 little-endian IEEE-754 bytes."""
        self._frames.value_done()
        (value,) = struct.unpack("<f", self._cursor.read_exact(4))
        return value

    def expect_f64(self) -> float:
        """Consume 8 little-endian IEEE-754 bytes."""
        self._frames.value_done()
        (value,) = struct.unpack("<d", self._cursor.read_exact(8))
        return value

    def expect_char(self) -> str:
        """Consume a Unicode scalar value.

        Raises:
            InvalidCharError: If the code point is a surrogate or beyond U+10FFFF
        """
        self._frames.value_done()
        start = self._cursor.offset
        code_point = decode_unsigned(self._cursor, 32, self.strict)
        if code_point > _MAX_CHAR or code_point in _SURROGATES:
            raise InvalidCharError(
                f"0x{code_point:X} is not a Unicode scalar value", offset=start
            )
        return chr(code_point)

    def expect_str(self) -> str:
        """Consume a length-prefixed UTF-8 string.

        Raises:
            InvalidUtf8Error: If the bytes are not valid UTF-8
        """
        self._frames.value_done()
        data_start, raw = self._read_length_prefixed()
        try:
            return str(raw, "utf-8")
        except UnicodeDecodeError as err:
            raise InvalidUtf8Error(
                f"invalid UTF-8 in string: {err.reason}", offset=data_start + err.start
            ) from err

    def expect_bytes(self) -> bytes:
        """Consume a length-prefixed byte string."""
        self._frames.value_done()
        _, raw = self._read_length_prefixed()
        return bytes(raw)

    # Option

    def expect_option(self) -> bool:
        """Consume an option presence byte.

        Returns:
            True if a value follows; the caller must then expect exactly one value

        Raises:
            InvalidTagError: If the byte is neither 0x00 nor 0x01
        """
        self._frames.check_room()
        present = self._read_flag("option")
        if present:
            self._frames.push(ValueKind.OPTION, 1, auto_close=True)
        else:
            self._frames.value_done()
        return present

    # Compound values

    def begin_seq(self) -> int:
        """Consume a sequence header and return the element count."""
        length = self._read_count()
        self._frames.push(ValueKind.SEQ, length)
        return length

    def end_seq(self) -> None:
        self._frames.pop(ValueKind.SEQ)

    def begin_map(self) -> int:
        """Consume a map header and return the pair count."""
        length = self._read_count()
        self._frames.push(ValueKind.MAP, 2 * length)
        return length

    def end_map(self) -> None:
        self._frames.pop(ValueKind.MAP)

    def begin_struct(self, field_count: int) -> None:
        """Open a record of ``field_count`` fields; no bytes are consumed."""
        _check_count(ValueKind.STRUCT, field_count)
        self._frames.push(ValueKind.STRUCT, field_count)

    def end_struct(self) -> None:
        self._frames.pop(ValueKind.STRUCT)

    def begin_tuple(self, length: int) -> None:
        """Open a fixed-length tuple; no bytes are consumed."""
        _check_count(ValueKind.TUPLE, length)
        self._frames.push(ValueKind.TUPLE, length)

    def end_tuple(self) -> None:
        self._frames.pop(ValueKind.TUPLE)

    def expect_enum_variant(self, variant_count: int, payload_len: PayloadLen = 1) -> int:
        """Consume an enum variant index.

        Args:
            variant_count: Number of variants the target enum declares
            payload_len: Number of payload values, or a callable mapping the
                decoded index to it (0 for unit variants)

        Returns:
            The variant index

        Raises:
            InvalidVariantError: If the index is not below variant_count
        """
        self._frames.check_room()
        start = self._cursor.offset
        index = decode_unsigned(self._cursor, 32, self.strict)
        if index >= variant_count:
            raise InvalidVariantError(
                f"variant index {index} out of range for {variant_count} variants", offset=start
            )
        count = payload_len(index) if callable(payload_len) else payload_len
        self._frames.push(ValueKind.ENUM, count, auto_close=True)
        return index

    # Result

    def finish(self, allow_trailing: bool = False) -> None:
        """Assert every frame is closed and the input was consumed completely.

        Args:
            allow_trailing: Skip the check for unread bytes

        Raises:
            ContractViolationError: If a begin_*() frame is still open
            TrailingBytesError: If unread bytes remain
        """
        self._frames.ensure_closed()
        if not allow_trailing and not self._cursor.at_end():
            raise TrailingBytesError(
                f"{self._cursor.remaining()} trailing bytes after value", offset=self._cursor.offset
            )

    # Internals

    def _read_flag(self, what: str) -> bool:
        start = self._cursor.offset
        byte = self._cursor.read_byte()
        if byte == 0x00:
            return False
        if byte == 0x01:
            return True
        raise InvalidTagError(
            f"invalid {what} byte 0x{byte:02x}, expected 0x00 or 0x01", offset=start
        )

    def _read_count(self) -> int:
        self._frames.check_room()
        return decode_unsigned(self._cursor, 64, self.strict)

    def _read_length_prefixed(self) -> tuple[int, memoryview]:
        length = decode_unsigned(self._cursor, 64, self.strict)
        data_start = self._cursor.offset
        return data_start, self._cursor.read_exact(length)


def decode(
    message_class: type[T], data: bytes, strict: bool = True, allow_trailing: bool = False
) -> T:
    """Decode compact binary data to a Pydantic message.

    Fields are decoded in the same order and format as they were encoded.
    Classes implementing the Encodable protocol are asked to consume themselves.

    Args:
        message_class: Pydantic message class (or Encodable class) to decode to
        data: Binary data to decode
        strict: Reject non-canonical VarInt encodings
        allow_trailing: Accept bytes left over after the message

    Returns:
        Decoded message instance

    Raises:
        SchemaError: If the message schema cannot be mapped to the wire format
        DecodeError: If data is truncated, corrupted, or doesn't match schema

    Example:
        ```python
        from minibin import decode

        record = decode(Record, bytes.fromhex("ac0202616201020100"))
        assert record.tags == [True, False]
        ```
    """
    decoder = Decoder(data, strict=strict)

    if isinstance(message_class, type) and issubclass(message_class, BaseModel):
        schema = MessageSchema.from_model(message_class)
        message: Any = _decode_struct(decoder, schema)
    elif callable(getattr(message_class, "consume", None)):
        message = message_class.consume(decoder)  # type: ignore[attr-defined]
    else:
        raise DecodeError(f"{message_class!r} is neither a Pydantic model nor an Encodable type")

    decoder.finish(allow_trailing=allow_trailing)

    logger.debug(
        f"Decoded {getattr(message_class, '__name__', message_class)} "
        f"from {decoder.offset} of {len(data)} bytes"
    )
    return message


def _decode_struct(decoder: Decoder, schema: MessageSchema) -> BaseModel:
    """Decode every field of a message in declaration order."""
    decoder.begin_struct(len(schema.fields))
    field_values: dict[str, Any] = {}
    for field_schema in schema.fields:
        field_values[field_schema.name] = decode_value(decoder, field_schema.type_schema)
    decoder.end_struct()

    try:
        return schema.model_class(**field_values)
    except ValidationError as e:
        raise DecodeError(f"Failed to construct {schema.model_class.__name__}: {e}") from e


def decode_value(decoder: Decoder, schema: TypeSchema) -> Any:
    """Decode a single value according to its type schema."""
    if schema.custom is not None:
        return schema.custom.consume(decoder)

    kind = schema.kind

    if kind is ValueKind.UNIT:
        decoder.expect_unit()
        return None
    if kind is ValueKind.BOOL:
        return decoder.expect_bool()
    if kind.is_integer:
        return decoder.expect_int(kind)
    if kind is ValueKind.F32:
        return decoder.expect_f32()
    if kind is ValueKind.F64:
        return decoder.expect_f64()
    if kind is ValueKind.CHAR:
        return decoder.expect_char()
    if kind is ValueKind.STR:
        return decoder.expect_str()
    if kind is ValueKind.BYTES:
        return decoder.expect_bytes()

    if kind is ValueKind.OPTION:
        if decoder.expect_option():
            return decode_value(decoder, schema.items[0])
        return None

    if kind is ValueKind.SEQ:
        start = decoder.offset
        length = decoder.begin_seq()
        element_schema = schema.items[0]
        _check_room_for(decoder, start, length, element_schema.min_size())
        elements = [decode_value(decoder, element_schema) for _ in range(length)]
        decoder.end_seq()
        builder = schema.container or list
        return builder(elements)

    if kind is ValueKind.MAP:
        start = decoder.offset
        length = decoder.begin_map()
        key_schema, value_schema = schema.items
        _check_room_for(decoder, start, length, key_schema.min_size() + value_schema.min_size())
        result = {}
        for _ in range(length):
            key = decode_value(decoder, key_schema)
            result[key] = decode_value(decoder, value_schema)
        decoder.end_map()
        return result

    if kind is ValueKind.TUPLE:
        decoder.begin_tuple(len(schema.items))
        items = tuple(decode_value(decoder, item_schema) for item_schema in schema.items)
        decoder.end_tuple()
        return items

    if kind is ValueKind.STRUCT:
        return _decode_struct(decoder, schema.models[0])

    if kind is ValueKind.ENUM:
        if schema.enum_type is not None:
            index = decoder.expect_enum_variant(schema.variant_count(), payload_len=0)
            return list(schema.enum_type)[index]
        index = decoder.expect_enum_variant(schema.variant_count(), payload_len=1)
        return _decode_struct(decoder, schema.models[index])

    raise DecodeError(f"unsupported kind {kind.value}")


def _check_room_for(decoder: Decoder, start: int, count: int, min_size: int) -> None:
    """Reject element counts the remaining input cannot possibly hold.

    Elements that may take zero bytes are bounded by MAX_ZERO_WIDTH_ELEMENTS
    instead.
    """
    if not min_size:
        if count > MAX_ZERO_WIDTH_ELEMENTS:
            raise DecodeError(
                f"{count} zero-width elements exceed the limit of {MAX_ZERO_WIDTH_ELEMENTS}",
                offset=start,
            )
        return
    if count * min_size > decoder.remaining():
        raise TruncatedError(
            f"{count} elements need at least {count * min_size} bytes, "
            f"have {decoder.remaining()}",
            offset=start,
        )


def _check_count(kind: ValueKind, count: int) -> None:
    if isinstance(count, bool) or not isinstance(count, int) or count < 0:
        raise ContractViolationError(
            f"{kind.value}: length must be a non-negative int, got {count!r}"
        )
