"""Exception hierarchy for minibin.

This module defines all custom exceptions used throughout the package.
All exceptions inherit from MinibinError for easy catching of any minibin-specific error.

Decode errors carry the byte offset at which decoding failed, so callers can
tell exactly where a payload went wrong. ContractViolationError is kept apart
from DecodeError: it signals caller misuse, not bad input.
"""

from __future__ import annotations


class MinibinError(Exception):
    """Base exception for all minibin errors."""

    pass


class SchemaError(MinibinError):
    """Raised when a message schema cannot be mapped to the wire format.

    Examples:
        - Unsupported field annotation
        - Union mixing models and scalar types
        - Enum class without members
    """

    pass


class EncodeError(MinibinError):
    """Raised when a value cannot be encoded as its declared kind.

    Examples:
        - Integer out of range for its declared width
        - Surrogate code point passed as a char
        - Float too large for a 32-bit field
        - Message exceeds minibin_max_bytes constraint
    """

    pass


class ContractViolationError(MinibinError):
    """Raised when an Encoder or Decoder is driven out of order.

    Examples:
        - More or fewer elements emitted than begin_seq() declared
        - end_map() called while a struct is open
        - Result requested while frames are still open
    """

    pass


class DecodeError(MinibinError):
    """Raised when decoding binary data fails.

    Attributes:
        offset: Byte offset in the input at which the failing value started,
            or None when the error is not tied to a position.
    """

    def __init__(self, message: str, offset: int | None = None) -> None:
        self.offset = offset
        if offset is not None:
            message = f"{message} (at byte {offset})"
        super().__init__(message)


class TruncatedError(DecodeError):
    """Raised when the input ends before the expected value is complete."""

    pass


class InvalidTagError(DecodeError):
    """Raised when a bool or option presence byte is not 0 or 1."""

    pass


class InvalidVariantError(DecodeError):
    """Raised when an enum variant index is outside the declared variant set."""

    pass


class IntegerOverflowError(DecodeError):
    """Raised when a decoded integer does not fit its target width."""

    pass


class InvalidUtf8Error(DecodeError):
    """Raised when string bytes are not valid UTF-8."""

    pass


class InvalidCharError(DecodeError):
    """Raised when a decoded char is not a Unicode scalar value."""

    pass


class NonCanonicalError(DecodeError):
    """Raised when a VarInt uses more bytes than its value requires."""

    pass


class TrailingBytesError(DecodeError):
    """Raised when bytes remain after a complete top-level value."""

    pass
