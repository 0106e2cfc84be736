"""Value kinds and the producer/consumer contract.

Every value that crosses the codec is one of the kinds below. Producers walk
a value depth-first and make one Encoder call per node; consumers make the
matching Decoder calls in the same order.
"""

from __future__ import annotations

import enum
from typing import TYPE_CHECKING, Protocol, TypeVar, runtime_checkable

if TYPE_CHECKING:
    from .decoder import Decoder
    from .encoder import Encoder

T = TypeVar("T")


class ValueKind(enum.Enum):
    """Closed set of value kinds the wire format can represent."""

    UNIT = "unit"
    BOOL = "bool"
    U8 = "u8"
    U16 = "u16"
    U32 = "u32"
    U64 = "u64"
    U128 = "u128"
    I8 = "i8"
    I16 = "i16"
    I32 = "i32"
    I64 = "i64"
    I128 = "i128"
    F32 = "f32"
    F64 = "f64"
    CHAR = "char"
    STR = "str"
    BYTES = "bytes"
    OPTION = "option"
    SEQ = "seq"
    MAP = "map"
    TUPLE = "tuple"
    STRUCT = "struct"
    ENUM = "enum"

    @property
    def is_integer(self) -> bool:
        return self in _INT_WIDTHS

    @property
    def bits(self) -> int:
        """Bit width of an integer kind.

        Raises:
            ValueError: If the kind is not an integer
        """
        try:
            return _INT_WIDTHS[self][0]
        except KeyError:
            raise ValueError(f"{self.name} is not an integer kind") from None

    @property
    def signed(self) -> bool:
        """Whether an integer kind is signed."""
        try:
            return _INT_WIDTHS[self][1]
        except KeyError:
            raise ValueError(f"{self.name} is not an integer kind") from None

    @classmethod
    def for_integer(cls, bits: int, signed: bool) -> ValueKind:
        """Return the integer kind with the given width and signedness.

        Raises:
            ValueError: If no such kind exists
        """
        for kind, width in _INT_WIDTHS.items():
            if width == (bits, signed):
                return kind
        raise ValueError(f"no {'signed' if signed else 'unsigned'} integer kind of {bits} bits")


_INT_WIDTHS: dict[ValueKind, tuple[int, bool]] = {
    ValueKind.U8: (8, False),
    ValueKind.U16: (16, False),
    ValueKind.U32: (32, False),
    ValueKind.U64: (64, False),
    ValueKind.U128: (128, False),
    ValueKind.I8: (8, True),
    ValueKind.I16: (16, True),
    ValueKind.I32: (32, True),
    ValueKind.I64: (64, True),
    ValueKind.I128: (128, True),
}


@runtime_checkable
class Encodable(Protocol):
    """A type that walks itself through the codec.

    Implementations call one Encoder method per value node in ``produce`` and
    issue the same sequence of Decoder calls in ``consume``. The schema layer
    defers to these methods when a model field is annotated with such a type.

    Example:
        >>> class Point:
        ...     def __init__(self, x: int, y: int) -> None:
        ...         self.x, self.y = x, y
        ...
        ...     def produce(self, encoder: Encoder) -> None:
        ...         encoder.begin_struct(2)
        ...         encoder.emit_i32(self.x)
        ...         encoder.emit_i32(self.y)
        ...         encoder.end_struct()
        ...
        ...     @classmethod
        ...     def consume(cls, decoder: Decoder) -> Point:
        ...         decoder.begin_struct(2)
        ...         x = decoder.expect_i32()
        ...         y = decoder.expect_i32()
        ...         decoder.end_struct()
        ...         return cls(x, y)
    """

    def produce(self, encoder: Encoder) -> None: ...

    @classmethod
    def consume(cls: type[T], decoder: Decoder) -> T: ...
