"""
Error reporting on top of the boolean parsers.

The core parsers only say yes or no. To report *where* and *why* a parse failed, wrap the
interesting parsers with a `FailureTracker`, which remembers the furthest position at which a
wrapped parser failed:
```
tracker = FailureTracker()
number = tracker.expect(repeat1(element_range("0", "9")), "digit")
parse(seq(number, repeat0(",", number)), "1,2,x", tracker=tracker)
# ParseError: Expected digit
# At position 4 (line 1, column 5)
```
"""

from __future__ import annotations
from typing import Any, Self

from collections.abc import Iterable, Sequence
import logging

from pegkit.main import (
    Cursor,
    Parser,
    FactoryParameter,
    PegError,
    convert_factory_parameter,
    end_of_input,
)

logger = logging.getLogger(__name__)


class ParseError(PegError):
    """
    Raised by `parse()` when the input doesn't match.

    Positions in `str` input get a line, a column and an excerpt as exception notes.
    """

    def __init__(self, src: Sequence[Any], pos: int, msg: str | None = None, expected: Sequence[str] = ()) -> None:
        """
        `src`: The input that was being parsed.
        `pos`: The position of the error.
        `msg`: The reason for the error.
        `expected`: Labels of what would have been accepted at `pos`.
        """
        if msg is None:
            super().__init__()
        else:
            super().__init__(msg)
        self.src: Sequence[Any] = src
        self.pos: int = pos
        self.expected: tuple[str, ...] = tuple(expected)
        self.append_pos_note(pos)

    def append_pos_note(self, pos: int, msg: str | None = None) -> Self:
        note: list[str] = [] if msg is None else [msg]

        pos = min(pos, len(self.src))
        if not isinstance(self.src, str):
            note.append(f"At position {pos}")
            self.add_note("\n".join(note))
            return self

        # should still work with CRLF
        line = self.src.count("\n", 0, pos) + 1
        column = pos - self.src.rfind("\n", 0, pos) # magically works even when it returns -1
        note.append(f"At position {pos} (line {line}, column {column})")

        lines = self.src.splitlines()
        if len(lines) > line-1:
            line_str = lines[line-1]
            if len(line_str) >= column-1:
                if column <= 20:
                    note.append(f"{line_str[:40]}\n{' '*(column-1)}^")
                else:
                    note.append(f"{line_str[(column-20):(column+20)]}\n{' '*20}^")
        self.add_note("\n".join(note))
        return self


class FailureTracker:
    """
    Records the furthest position at which a watched parser failed, and what it expected there.

    Watching a parser never changes its result or what it consumes.
    """

    def __init__(self) -> None:
        self.pos: int = -1
        """The furthest failure position so far. `-1` if nothing failed yet."""
        self.expected: list[str] = []
        """The labels of the parsers that failed at `pos`, without duplicates."""

    def reset(self) -> None:
        self.pos = -1
        self.expected = []

    def record(self, pos: int, label: str) -> None:
        if pos > self.pos:
            self.pos = pos
            self.expected = [label]
        elif pos == self.pos and label not in self.expected:
            self.expected.append(label)

    def expect(self, parser: FactoryParameter, label: str) -> Parser:
        """Wraps a parser so that its failures are recorded under `label`."""
        inner = convert_factory_parameter(parser)
        def watched(si: Cursor[Any]) -> bool:
            if inner(si):
                return True
            self.record(si.pos, label)
            return False
        return watched

    def message(self) -> str:
        if not self.expected:
            return "Failed to parse."
        if len(self.expected) == 1:
            return f"Expected {self.expected[0]}"
        return f"Expected one of: {', '.join(self.expected)}"

    def error(self, src: Sequence[Any]) -> ParseError:
        """Creates a `ParseError` at the furthest failure."""
        return ParseError(src, max(self.pos, 0), self.message(), self.expected)


def parse(
    parser: FactoryParameter,
    src: Iterable[Any],
    *,
    tracker: FailureTracker | None = None,
    full: bool = True,
    **cursor_options: Any,
) -> int:
    """
    Runs the parser on a fresh cursor and returns the end position.

    `full`: The parser must be followed by the end of the input.
    `tracker`: Used to locate the failure. It is reset before parsing.

    Raises `ParseError` if the input doesn't match.
    """
    if tracker is None:
        tracker = FailureTracker()
    tracker.reset()
    si = Cursor(src, **cursor_options)
    if convert_factory_parameter(parser)(si):
        if not full or end_of_input(si):
            return si.pos
        tracker.record(si.pos, "end of input")
    error = tracker.error(si.src)
    logger.debug("Parse failed at position %d: %s", error.pos, error)
    raise error
