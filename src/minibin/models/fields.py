"""Field type aliases and width markers.

Python has a single unbounded ``int`` and a single ``float``; the aliases below
attach the declared wire width to a field so the decoder knows the bound to
enforce, and Pydantic validates the matching value range on construction.
F32 fields round their value to binary32 on validation, so the model holds
exactly the value that goes on the wire.

Example:
    >>> class Reading(BaseMessage):
    ...     sensor_id: U16
    ...     offset: I32
    ...     value: F32
    ...     unit: Char
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import Annotated

from pydantic import AfterValidator, Field


@dataclass(frozen=True)
class IntWidth:
    """Marks an ``int`` annotation with its wire width and signedness."""

    bits: int
    signed: bool

    def __post_init__(self) -> None:
        if self.bits not in (8, 16, 32, 64, 128):
            raise ValueError(f"bits must be 8, 16, 32, 64 or 128, got {self.bits}")


@dataclass(frozen=True)
class FloatWidth:
    """Marks a ``float`` annotation as 32- or 64-bit IEEE-754."""

    bits: int

    def __post_init__(self) -> None:
        if self.bits not in (32, 64):
            raise ValueError(f"bits must be 32 or 64, got {self.bits}")


@dataclass(frozen=True)
class CharMarker:
    """Marks a ``str`` annotation as a single Unicode scalar value."""


U8 = Annotated[int, IntWidth(8, signed=False), Field(ge=0, le=2**8 - 1)]
U16 = Annotated[int, IntWidth(16, signed=False), Field(ge=0, le=2**16 - 1)]
U32 = Annotated[int, IntWidth(32, signed=False), Field(ge=0, le=2**32 - 1)]
U64 = Annotated[int, IntWidth(64, signed=False), Field(ge=0, le=2**64 - 1)]
U128 = Annotated[int, IntWidth(128, signed=False), Field(ge=0, le=2**128 - 1)]

I8 = Annotated[int, IntWidth(8, signed=True), Field(ge=-(2**7), le=2**7 - 1)]
I16 = Annotated[int, IntWidth(16, signed=True), Field(ge=-(2**15), le=2**15 - 1)]
I32 = Annotated[int, IntWidth(32, signed=True), Field(ge=-(2**31), le=2**31 - 1)]
I64 = Annotated[int, IntWidth(64, signed=True), Field(ge=-(2**63), le=2**63 - 1)]
I128 = Annotated[int, IntWidth(128, signed=True), Field(ge=-(2**127), le=2**127 - 1)]


def _round_to_f32(value: float) -> float:
    """Store the binary32 value the field encodes to."""
    try:
        (rounded,) = struct.unpack("<f", struct.pack("<f", value))
    except OverflowError:
        raise ValueError(f"{value!r} is out of range for a 32-bit float") from None
    return rounded


F32 = Annotated[float, FloatWidth(32), AfterValidator(_round_to_f32)]
F64 = Annotated[float, FloatWidth(64)]

Char = Annotated[str, CharMarker(), Field(min_length=1, max_length=1)]
