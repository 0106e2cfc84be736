"""minibin: Compact Binary Codec

A Python library for size-minimal binary encoding of strongly-typed values.
The format carries no field names, no type tags beyond option presence and
enum variant indices, and no overall framing: producer and consumer agree on
the shape, and the bytes hold only the values.

Key Features:
- Pydantic-based message modeling
- Canonical variable-length integers (small values stay small in wide fields)
- Precise, offset-carrying decode errors for truncated or corrupt input
- Low-level Encoder/Decoder engines for hand-written producers and consumers

Quick Start:
    >>> from typing import Optional
    >>> from minibin import BaseMessage, U32, encode, decode
    >>>
    >>> class Record(BaseMessage):
    ...     id: U32
    ...     name: str
    ...     tags: Optional[list[bool]]
    >>>
    >>> msg = Record(id=300, name="ab", tags=[True, False])
    >>> data = encode(msg)
    >>> data.hex()
    'ac0202616201020100'
    >>> decode(Record, data) == msg
    True
"""

from __future__ import annotations

from .codec import Decoder, Encodable, Encoder, ValueKind, decode, encode
from .exceptions import (
    ContractViolationError,
    DecodeError,
    EncodeError,
    IntegerOverflowError,
    InvalidCharError,
    InvalidTagError,
    InvalidUtf8Error,
    InvalidVariantError,
    MinibinError,
    NonCanonicalError,
    SchemaError,
    TrailingBytesError,
    TruncatedError,
)
from .models import (
    F32,
    F64,
    I8,
    I16,
    I32,
    I64,
    I128,
    U8,
    U16,
    U32,
    U64,
    U128,
    BaseMessage,
    Char,
)
from .utils import encoded_size, field_sizes, fixed_size

__version__ = "0.1.0"

__all__ = [
    # Core API
    "BaseMessage",
    "encode",
    "decode",
    # Engines
    "Encoder",
    "Decoder",
    "Encodable",
    "ValueKind",
    # Field aliases
    "U8",
    "U16",
    "U32",
    "U64",
    "U128",
    "I8",
    "I16",
    "I32",
    "I64",
    "I128",
    "F32",
    "F64",
    "Char",
    # Exceptions
    "MinibinError",
    "SchemaError",
    "EncodeError",
    "ContractViolationError",
    "DecodeError",
    "TruncatedError",
    "InvalidTagError",
    "InvalidVariantError",
    "IntegerOverflowError",
    "InvalidUtf8Error",
    "InvalidCharError",
    "NonCanonicalError",
    "TrailingBytesError",
    # Sizing
    "encoded_size",
    "field_sizes",
    "fixed_size",
    # Version
    "__version__",
]
