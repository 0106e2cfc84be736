"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import pytest


@pytest.fixture
def record_bytes() -> bytes:
    """Encoding of Record(id=300, name="ab", tags=[True, False])."""
    return bytes.fromhex("ac0202616201020100")


@pytest.fixture
def invalid_utf8() -> bytes:
    """Bytes that are not valid UTF-8 (lone continuation byte)."""
    return b"a\x80b"
