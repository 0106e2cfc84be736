"""Compact binary codec for minibin.

This module provides the Encoder/Decoder engines, the VarInt codec they build
on, and the encode()/decode() entry points for Pydantic messages.
"""

from __future__ import annotations

from .decoder import Decoder, decode
from .encoder import Encoder, encode
from .kinds import Encodable, ValueKind
from .schema import FieldSchema, MessageSchema, TypeSchema

__all__ = [
    "encode",
    "decode",
    "Encoder",
    "Decoder",
    "Encodable",
    "ValueKind",
    "MessageSchema",
    "FieldSchema",
    "TypeSchema",
]
