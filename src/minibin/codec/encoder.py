"""Compact binary encoder.

This module provides the Encoder engine, with one emit call per value kind,
and the encode() function that walks a Pydantic message through it in field
declaration order.
"""

from __future__ import annotations

import enum
import logging
import struct
from typing import Any, BinaryIO

from pydantic import BaseModel

from ..exceptions import EncodeError
from .buffer import ByteBuffer
from .frames import FrameStack
from .kinds import ValueKind
from .schema import MAX_ZERO_WIDTH_ELEMENTS, MessageSchema, TypeSchema
from .varint import encode_signed, encode_unsigned

logger = logging.getLogger(__name__)

_SURROGATES = range(0xD800, 0xE000)
_MAX_VARIANT_INDEX = (1 << 32) - 1


class Encoder:
    """Write-only engine that appends the encoding of each emitted value.

    Compound values are framed with begin_*()/end_*() pairs that declare how
    many child values follow; emitting more or fewer raises
    ContractViolationError. Option and enum payloads need no end call.

    Example:
        >>> encoder = Encoder()
        >>> encoder.begin_struct(3)
        >>> encoder.emit_u32(300)
        >>> encoder.emit_str("ab")
        >>> encoder.emit_option_some()
        >>> encoder.begin_seq(2)
        >>> encoder.emit_bool(True)
        >>> encoder.emit_bool(False)
        >>> encoder.end_seq()
        >>> encoder.end_struct()
        >>> encoder.getvalue().hex()
        'ac0202616201020100'
    """

    def __init__(self, sink: BinaryIO | None = None) -> None:
        """Initialize an encoder.

        Args:
            sink: Optional binary stream that finish() writes the result to
        """
        self._buffer = ByteBuffer()
        self._frames = FrameStack()
        self._sink = sink

    def __len__(self) -> int:
        """Number of bytes emitted so far."""
        return len(self._buffer)

    # Scalars

    def emit_unit(self) -> None:
        """Emit a unit value (zero bytes)."""
        self._frames.value_done()

    def emit_bool(self, value: bool) -> None:
        """Emit a boolean as one byte, 0x00 or 0x01."""
        if not isinstance(value, bool):
            raise EncodeError(f"bool: expected bool, got {type(value).__name__}")
        self._frames.value_done()
        self._buffer.write_byte(0x01 if value else 0x00)

    def emit_u8(self, value: int) -> None:
        self._emit_int(ValueKind.U8, value)

    def emit_u16(self, value: int) -> None:
        self._emit_int(ValueKind.U16, value)

    def emit_u32(self, value: int) -> None:
        self._emit_int(ValueKind.U32, value)

    def emit_u64(self, value: int) -> None:
        self._emit_int(ValueKind.U64, value)

    def emit_u128(self, value: int) -> None:
        self._emit_int(ValueKind.U128, value)

    def emit_i8(self, value: int) -> None:
        self._emit_int(ValueKind.I8, value)

    def emit_i16(self, value: int) -> None:
        self._emit_int(ValueKind.I16, value)

    def emit_i32(self, value: int) -> None:
        self._emit_int(ValueKind.I32, value)

    def emit_i64(self, value: int) -> None:
        self._emit_int(ValueKind.I64, value)

    def emit_i128(self, value: int) -> None:
        self._emit_int(ValueKind.I128, value)

    def emit_int(self, kind: ValueKind, value: int) -> None:
        """Emit an integer of the given integer kind."""
        if not kind.is_integer:
            raise EncodeError(f"{kind.value} is not an integer kind")
        self._emit_int(kind, value)

    def emit_f32(self, value: float) -> None:
        """Emit a float as 4 little-endian IEEE-754 bytes."""
        self._emit_float("<f", ValueKind.F32, value)

    def emit_f64(self, value: float) -> None:
        """Emit a float as 8 little-endian IEEE-754 bytes."""
        self._emit_float("<d", ValueKind.F64, value)

    def emit_char(self, value: str) -> None:
        """Emit a single Unicode scalar value as a VarInt of its code point."""
        if not isinstance(value, str) or len(value) != 1:
            raise EncodeError(f"char: expected a single character, got {value!r}")
        code_point = ord(value)
        if code_point in _SURROGATES:
            raise EncodeError(f"char: surrogate U+{code_point:04X} is not a Unicode scalar value")
        self._frames.value_done()
        encode_unsigned(code_point, self._buffer)

    def emit_str(self, value: str) -> None:
        """Emit a string as a VarInt byte length followed by its UTF-8 bytes."""
        if not isinstance(value, str):
            raise EncodeError(f"str: expected str, got {type(value).__name__}")
        try:
            data = value.encode("utf-8")
        except UnicodeEncodeError as err:
            raise EncodeError(f"str: cannot encode as UTF-8: {err.reason}") from err
        self._frames.value_done()
        encode_unsigned(len(data), self._buffer)
        self._buffer.write_bytes(data)

    def emit_bytes(self, value: bytes | bytearray | memoryview) -> None:
        """Emit raw bytes as a VarInt length followed by the bytes."""
        if not isinstance(value, (bytes, bytearray, memoryview)):
            raise EncodeError(f"bytes: expected bytes, got {type(value).__name__}")
        data = bytes(value)
        self._frames.value_done()
        encode_unsigned(len(data), self._buffer)
        self._buffer.write_bytes(data)

    # Option

    def emit_option_none(self) -> None:
        """Emit an absent optional value."""
        self._frames.value_done()
        self._buffer.write_byte(0x00)

    def emit_option_some(self) -> None:
        """Emit the presence flag of an optional value.

        The caller must emit exactly one inner value next.
        """
        self._frames.check_room()
        self._buffer.write_byte(0x01)
        self._frames.push(ValueKind.OPTION, 1, auto_close=True)

    # Compound values

    def begin_seq(self, length: int) -> None:
        """Start a sequence of ``length`` elements."""
        self._begin_counted(ValueKind.SEQ, length, length)

    def end_seq(self) -> None:
        self._frames.pop(ValueKind.SEQ)

    def begin_map(self, length: int) -> None:
        """Start a map of ``length`` key/value pairs (2 * length emits)."""
        self._begin_counted(ValueKind.MAP, length, 2 * length)

    def end_map(self) -> None:
        self._frames.pop(ValueKind.MAP)

    def begin_struct(self, field_count: int) -> None:
        """Start a record of ``field_count`` fields; no bytes are written."""
        self._check_count(ValueKind.STRUCT, field_count)
        self._frames.push(ValueKind.STRUCT, field_count)

    def end_struct(self) -> None:
        self._frames.pop(ValueKind.STRUCT)

    def begin_tuple(self, length: int) -> None:
        """Start a fixed-length tuple; no bytes are written."""
        self._check_count(ValueKind.TUPLE, length)
        self._frames.push(ValueKind.TUPLE, length)

    def end_tuple(self) -> None:
        self._frames.pop(ValueKind.TUPLE)

    def emit_enum_variant(self, index: int, payload_len: int = 1) -> None:
        """Emit an enum variant index.

        Args:
            index: Zero-based variant index
            payload_len: Number of values the variant payload holds (0 for a unit variant)
        """
        if not isinstance(index, int) or index < 0 or index > _MAX_VARIANT_INDEX:
            raise EncodeError(
                f"enum: variant index {index!r} out of bounds [0, {_MAX_VARIANT_INDEX}]"
            )
        self._check_count(ValueKind.ENUM, payload_len)
        self._frames.check_room()
        encode_unsigned(index, self._buffer)
        self._frames.push(ValueKind.ENUM, payload_len, auto_close=True)

    # Result

    def getvalue(self) -> bytes:
        """Return the encoded bytes.

        Raises:
            ContractViolationError: If a begin_*() frame is still open
        """
        self._frames.ensure_closed()
        return self._buffer.to_bytes()

    def finish(self) -> bytes:
        """Return the encoded bytes, writing them to the sink if one was given."""
        data = self.getvalue()
        if self._sink is not None:
            self._sink.write(data)
        return data

    # Internals

    def _emit_int(self, kind: ValueKind, value: int) -> None:
        if isinstance(value, bool) or not isinstance(value, int):
            raise EncodeError(f"{kind.value}: expected int, got {type(value).__name__}")
        bits = kind.bits
        if kind.signed:
            min_val, max_val = -(1 << (bits - 1)), (1 << (bits - 1)) - 1
        else:
            min_val, max_val = 0, (1 << bits) - 1
        if value < min_val or value > max_val:
            raise EncodeError(f"{kind.value}: value {value} out of bounds [{min_val}, {max_val}]")
        self._frames.value_done()
        if kind.signed:
            encode_signed(int(value), self._buffer)
        else:
            encode_unsigned(int(value), self._buffer)

    def _emit_float(self, fmt: str, kind: ValueKind, value: float) -> None:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise EncodeError(f"{kind.value}: expected float, got {type(value).__name__}")
        try:
            data = struct.pack(fmt, value)
        except (OverflowError, struct.error) as err:
            raise EncodeError(f"{kind.value}: cannot encode {value!r}: {err}") from err
        self._frames.value_done()
        self._buffer.write_bytes(data)

    def _begin_counted(self, kind: ValueKind, length: int, children: int) -> None:
        self._check_count(kind, length)
        self._frames.check_room()
        encode_unsigned(length, self._buffer)
        self._frames.push(kind, children)

    @staticmethod
    def _check_count(kind: ValueKind, count: int) -> None:
        if not isinstance(count, int) or count < 0:
            raise EncodeError(f"{kind.value}: length must be a non-negative int, got {count!r}")


def encode(message: Any, sink: BinaryIO | None = None) -> bytes:
    """Encode a message to compact binary format.

    Pydantic messages are walked field by field in declaration order. Objects
    implementing the Encodable protocol are asked to produce themselves.

    Args:
        message: Pydantic message instance (or Encodable object) to encode
        sink: Optional binary stream the encoded bytes are also written to

    Returns:
        Compact binary representation

    Raises:
        SchemaError: If the message schema cannot be mapped to the wire format
        EncodeError: If a field value is invalid or the result exceeds minibin_max_bytes

    Example:
        ```python
        from minibin import BaseMessage, U32, encode

        class Record(BaseMessage):
            id: U32
            name: str
            tags: Optional[list[bool]]

        data = encode(Record(id=300, name="ab", tags=[True, False]))
        assert data == bytes.fromhex("ac0202616201020100")
        ```
    """
    encoder = Encoder(sink)

    if isinstance(message, BaseModel):
        schema = MessageSchema.from_model(type(message))
        _encode_struct(encoder, schema, message)
    elif _is_encodable(type(message)):
        message.produce(encoder)
    else:
        raise EncodeError(
            f"{type(message).__name__} is neither a Pydantic model nor an Encodable type"
        )

    encoded = encoder.getvalue()

    max_bytes = getattr(type(message), "minibin_max_bytes", None)
    if max_bytes is not None and len(encoded) > max_bytes:
        raise EncodeError(
            f"Encoded message size ({len(encoded)} bytes) exceeds minibin_max_bytes={max_bytes}"
        )

    encoder.finish()
    logger.debug(f"Encoded {type(message).__name__} into {len(encoded)} bytes")
    return encoded


def _is_encodable(cls: type) -> bool:
    return callable(getattr(cls, "produce", None)) and callable(getattr(cls, "consume", None))


def _encode_struct(encoder: Encoder, schema: MessageSchema, message: BaseModel) -> None:
    """Encode every field of a message in declaration order."""
    encoder.begin_struct(len(schema.fields))
    for field_schema in schema.fields:
        encode_value(encoder, field_schema.type_schema, getattr(message, field_schema.name))
    encoder.end_struct()


def encode_value(encoder: Encoder, schema: TypeSchema, value: Any) -> None:
    """Encode a single value according to its type schema.

    Raises:
        EncodeError: If value does not match the schema
    """
    if schema.custom is not None:
        if not isinstance(value, schema.custom):
            raise EncodeError(f"expected {schema.custom.__name__}, got {type(value).__name__}")
        value.produce(encoder)
        return

    kind = schema.kind

    if kind is ValueKind.UNIT:
        if value is not None:
            raise EncodeError(f"unit: expected None, got {type(value).__name__}")
        encoder.emit_unit()
    elif kind is ValueKind.BOOL:
        encoder.emit_bool(value)
    elif kind.is_integer:
        encoder.emit_int(kind, value)
    elif kind is ValueKind.F32:
        encoder.emit_f32(value)
    elif kind is ValueKind.F64:
        encoder.emit_f64(value)
    elif kind is ValueKind.CHAR:
        encoder.emit_char(value)
    elif kind is ValueKind.STR:
        encoder.emit_str(value)
    elif kind is ValueKind.BYTES:
        encoder.emit_bytes(value)
    elif kind is ValueKind.OPTION:
        if value is None:
            encoder.emit_option_none()
        else:
            encoder.emit_option_some()
            encode_value(encoder, schema.items[0], value)
    elif kind is ValueKind.SEQ:
        if isinstance(value, (str, bytes, dict)) or not hasattr(value, "__iter__"):
            raise EncodeError(f"seq: expected a collection, got {type(value).__name__}")
        elements = list(value)
        _check_zero_width(kind, len(elements), schema.items[0].min_size())
        encoder.begin_seq(len(elements))
        for element in elements:
            encode_value(encoder, schema.items[0], element)
        encoder.end_seq()
    elif kind is ValueKind.MAP:
        if not isinstance(value, dict):
            raise EncodeError(f"map: expected dict, got {type(value).__name__}")
        key_schema, value_schema = schema.items
        _check_zero_width(kind, len(value), key_schema.min_size() + value_schema.min_size())
        encoder.begin_map(len(value))
        for key, item in value.items():
            encode_value(encoder, key_schema, key)
            encode_value(encoder, value_schema, item)
        encoder.end_map()
    elif kind is ValueKind.TUPLE:
        if not isinstance(value, (tuple, list)) or len(value) != len(schema.items):
            raise EncodeError(f"tuple: expected {len(schema.items)} items, got {value!r}")
        encoder.begin_tuple(len(schema.items))
        for item_schema, item in zip(schema.items, value):
            encode_value(encoder, item_schema, item)
        encoder.end_tuple()
    elif kind is ValueKind.STRUCT:
        model_schema = schema.models[0]
        if not isinstance(value, model_schema.model_class):
            raise EncodeError(
                f"expected {model_schema.model_class.__name__}, got {type(value).__name__}"
            )
        _encode_struct(encoder, model_schema, value)
    elif kind is ValueKind.ENUM:
        if schema.enum_type is not None:
            _encode_enum_member(encoder, schema.enum_type, value)
        else:
            index = schema.variant_index(value)
            if index is None:
                names = ", ".join(m.model_class.__name__ for m in schema.models)
                raise EncodeError(f"enum: {type(value).__name__} is not one of ({names})")
            encoder.emit_enum_variant(index, payload_len=1)
            _encode_struct(encoder, schema.models[index], value)
    else:
        raise EncodeError(f"unsupported kind {kind.value}")


def _encode_enum_member(encoder: Encoder, enum_type: type[enum.Enum], value: Any) -> None:
    """Encode a Python enum member as a unit variant of its declaration position."""
    if not isinstance(value, enum_type):
        raise EncodeError(f"expected {enum_type.__name__}, got {type(value).__name__}")
    members = list(enum_type)
    encoder.emit_enum_variant(members.index(value), payload_len=0)


def _check_zero_width(kind: ValueKind, count: int, min_size: int) -> None:
    """Refuse collections the decoder would reject as unbounded."""
    if not min_size and count > MAX_ZERO_WIDTH_ELEMENTS:
        raise EncodeError(
            f"{kind.value}: {count} zero-width elements exceed the limit of "
            f"{MAX_ZERO_WIDTH_ELEMENTS}"
        )
