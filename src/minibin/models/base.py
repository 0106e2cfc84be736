"""Base message class and minibin-specific Pydantic configuration.

This module provides the BaseMessage class that all minibin messages should inherit from.
"""

from __future__ import annotations

from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict


class BaseMessage(BaseModel):
    """Base class for all minibin messages.

    Fields are encoded in declaration order with no names or field count on
    the wire, so producer and consumer must agree on the class definition.
    Use the width aliases (U8, I32, F32, Char, ...) to pin integer and float
    widths; plain ``int`` encodes as I64 and plain ``float`` as F64.

    minibin-specific options can be configured as ClassVar attributes:

    Example:
        >>> from typing import ClassVar, Optional
        >>> class StatusReport(BaseMessage):
        ...     vehicle_id: U16
        ...     depth_cm: U32
        ...     note: Optional[str] = None
        ...
        ...     minibin_max_bytes: ClassVar[Optional[int]] = 16

    Attributes:
        minibin_max_bytes: Maximum encoded size in bytes (optional, checked by encode())
    """

    model_config = ConfigDict(
        # Lax validation, so decoded values such as tuples coerce into list fields
        strict=False,
        # Encodable types may be used as field annotations
        arbitrary_types_allowed=True,
        validate_assignment=True,
        extra="forbid",
    )

    minibin_max_bytes: ClassVar[int | None] = None

    def __init_subclass__(cls, **kwargs: Any) -> None:
        """Validate minibin options when a subclass is created."""
        super().__init_subclass__(**kwargs)

        max_bytes = cls.minibin_max_bytes
        if max_bytes is not None and (not isinstance(max_bytes, int) or max_bytes < 0):
            raise ValueError(
                f"{cls.__name__}.minibin_max_bytes must be a non-negative int, got {max_bytes!r}"
            )
