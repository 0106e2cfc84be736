"""Pydantic message modeling for minibin.

This module provides the BaseMessage class and width aliases for defining
compact binary messages using Pydantic.
"""

from __future__ import annotations

from .base import BaseMessage
from .fields import (
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
    Char,
    CharMarker,
    FloatWidth,
    IntWidth,
)

__all__ = [
    "BaseMessage",
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
    "IntWidth",
    "FloatWidth",
    "CharMarker",
]
