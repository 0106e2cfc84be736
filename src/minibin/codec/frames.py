"""Bookkeeping for nested begin/end calls on the Encoder and Decoder.

Each open compound value is a frame that counts the child values completed
inside it. Frames opened by begin_*() must be closed by the matching end_*()
once exactly the declared number of children is done. Option and enum
payload frames close themselves as soon as their last child completes.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..exceptions import ContractViolationError
from .kinds import ValueKind


@dataclass
class Frame:
    """One open compound value."""

    kind: ValueKind
    expected: int
    auto_close: bool
    count: int = 0


class FrameStack:
    """Stack of open frames shared by the Encoder and the Decoder."""

    def __init__(self) -> None:
        self._frames: list[Frame] = []

    def __len__(self) -> int:
        return len(self._frames)

    def check_room(self) -> None:
        """Ensure the innermost frame can take another child value.

        Raises:
            ContractViolationError: If the frame already holds all declared values
        """
        if not self._frames:
            return
        top = self._frames[-1]
        if top.count >= top.expected:
            raise ContractViolationError(
                f"{top.kind.value} declared {top.expected} values, got more"
            )

    def value_done(self) -> None:
        """Record one completed child value in the innermost frame."""
        self.check_room()
        if not self._frames:
            return
        top = self._frames[-1]
        top.count += 1
        if top.auto_close and top.count == top.expected:
            self._close_top()

    def push(self, kind: ValueKind, expected: int, auto_close: bool = False) -> None:
        """Open a frame expecting ``expected`` child values."""
        self.check_room()
        self._frames.append(Frame(kind=kind, expected=expected, auto_close=auto_close))
        if auto_close and expected == 0:
            self._close_top()

    def pop(self, kind: ValueKind) -> None:
        """Close the innermost frame, which must be of ``kind`` and complete.

        Raises:
            ContractViolationError: On a kind mismatch or a count mismatch
        """
        if not self._frames:
            raise ContractViolationError(f"end of {kind.value} with no open frame")
        top = self._frames[-1]
        if top.kind is not kind or top.auto_close:
            raise ContractViolationError(
                f"end of {kind.value} while {top.kind.value} is still open"
            )
        if top.count != top.expected:
            raise ContractViolationError(
                f"{kind.value} declared {top.expected} values, got {top.count}"
            )
        self._close_top()

    def ensure_closed(self) -> None:
        """Raise if any frame is still open."""
        if self._frames:
            top = self._frames[-1]
            raise ContractViolationError(
                f"{len(self._frames)} frame(s) still open; innermost {top.kind.value} "
                f"has {top.count} of {top.expected} values"
            )

    def _close_top(self) -> None:
        self._frames.pop()
        self.value_done()
