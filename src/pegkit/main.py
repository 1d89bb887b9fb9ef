"""
The implementations of the cursor and the core parsers.
"""

from __future__ import annotations
from typing import overload, Any, Self, Literal, TypeVar, Generic, SupportsIndex, Final, Protocol
from types import TracebackType

from collections.abc import Iterable, Sequence
import logging
import re
import sys

import pegkit.const as const

logger = logging.getLogger(__name__)


_T = TypeVar("_T")
_E = TypeVar("_E")



class PegError(Exception):
    """Base class of every exception raised by pegkit. Failing to match is never an exception."""

class EndOfInputError(PegError, IndexError):
    """
    Raised when `Cursor.peek()` or `Cursor.advance()` is called at the end of the input.

    This is a bug in the calling parser, not a failed match. Check `Cursor.is_eof()` first.
    """
    def __init__(self, pos: int) -> None:
        super().__init__(f"Unexpected end of input at position {pos}")
        self.pos: int = pos

class RuleError(PegError):
    """Raised when a grammar rule is misused, e.g. defined twice."""

class UndefinedRuleError(RuleError, LookupError):
    """Raised when a rule is invoked before it has been defined."""

class RecursionLimitError(PegError, RecursionError):
    """Raised when rules nest deeper than the cursor's `max_depth`."""
    def __init__(self, max_depth: int, rule_name: str | None = None) -> None:
        where = "" if rule_name is None else f" in rule `{rule_name}`"
        super().__init__(f"Rule nesting exceeded the maximum depth of {max_depth}{where}.")
        self.max_depth: int = max_depth
        self.rule_name: str | None = rule_name


def depth_clamp(requested_depth: int, reserve_frames: int = const.DEPTH_RESERVE_FRAMES) -> int:
    """
    Clamps a requested rule nesting depth so that it fits under `sys.getrecursionlimit()`.

    Each nested rule costs several Python frames (`const.FRAMES_PER_RULE`).
    """
    max_safe_depth = max(1, (sys.getrecursionlimit() - reserve_frames) // const.FRAMES_PER_RULE)
    if requested_depth > max_safe_depth:
        logger.warning(
            "Requested rule depth %d exceeds what the Python recursion limit (%d) allows. "
            "Clamping to %d. Consider increasing sys.setrecursionlimit() if needed.",
            requested_depth,
            sys.getrecursionlimit(),
            max_safe_depth,
        )
        return max_safe_depth
    return requested_depth



class Cursor(Generic[_E]):
    """
    A mutable position within a sequence of elements.

    Parsers borrow the cursor, advance it when they match and leave it untouched when they fail.

    ```
    si = Cursor("abc")
    si.peek()       # "a"
    si.advance()
    si.rest()       # "bc"
    ```

    Strings yield one-character elements, `bytes` yield ints. Other iterables are read once into a tuple.
    """
    def __init__(self, src: Iterable[_E], starting_pos: int = 0, *, max_depth: int = const.MAX_RULE_DEPTH) -> None:
        if not isinstance(src, Sequence):
            src = tuple(src)
        if not 0 <= starting_pos <= len(src):
            raise ValueError(f"Starting position {starting_pos} is outside of the input (length {len(src)}).")
        if max_depth < 1:
            raise ValueError(f"max_depth must be at least 1, got {max_depth}.")
        self.src: Final[Sequence[_E]] = src
        """The sequence that's being parsed."""
        self.pos: int = starting_pos
        """The current position."""
        self.max_depth: Final[int] = depth_clamp(max_depth)
        """How deeply rules may nest during one parse."""
        self.depth: int = 0
        """The current rule nesting depth. Maintained by `pegkit.rules.Rule`."""

    def __len__(self) -> int:
        return len(self.src)

    @overload
    def __getitem__(self, key: SupportsIndex) -> _E: ...
    @overload
    def __getitem__(self, key: slice) -> Sequence[_E]: ...

    def __getitem__(self, key: SupportsIndex | slice) -> _E | Sequence[_E]:
        return self.src[key]

    def __repr__(self) -> str:
        return f"<Cursor {self.pos}/{len(self.src)}>"

    def is_eof(self) -> bool:
        """Whether the end of the input has been reached. The opposite of `__bool__()`"""
        return self.pos >= len(self.src)

    def __bool__(self) -> bool:
        """Whether there are any elements left to parse. The opposite of `is_eof()`"""
        return self.pos < len(self.src)

    def peek(self) -> _E:
        """
        Retrieves the current element without consuming it.

        Raises `EndOfInputError` at the end of the input.
        """
        if self.pos >= len(self.src):
            raise EndOfInputError(self.pos)
        return self.src[self.pos]

    def advance(self) -> None:
        """
        Consumes the current element.

        Raises `EndOfInputError` at the end of the input.
        """
        if self.pos >= len(self.src):
            raise EndOfInputError(self.pos)
        self.pos += 1

    def rest(self) -> Sequence[_E]:
        """The elements that haven't been consumed yet."""
        return self.src[self.pos:]

    def save(self) -> Savepoint:
        """Saves the current position as a `Savepoint` and returns it."""
        return Savepoint(self)

    def restore(self, savepoint: Savepoint) -> None:
        """Moves back to a `Savepoint` taken from this cursor."""
        if savepoint.si is not self:
            raise ValueError("The savepoint belongs to a different cursor.")
        self.pos = savepoint.pos

    def checkpoint(self) -> Checkpoint:
        """
        Creates a `Checkpoint` at the current position.

        Same as `Cursor.__call__()`
        """
        return Checkpoint(self)

    def __call__(self) -> Checkpoint:
        """
        Creates a `Checkpoint` at the current position.

        Same as `Cursor.checkpoint()`
        """
        return Checkpoint(self)


class Savepoint:
    """
    A snapshot of a cursor's position.

    Can only be reverted manually. (By calling the savepoint.)
    """
    __slots__ = ("pos", "si")

    def __init__(self, si: Cursor[Any]) -> None:
        self.pos: Final[int] = si.pos
        self.si: Final[Cursor[Any]] = si

    def __call__(self) -> None:
        """Same as `Savepoint.rollback()`."""
        self.si.pos = self.pos

    def rollback(self) -> None:
        """Same as `Savepoint.__call__()`."""
        self.si.pos = self.pos

    def get_range(self) -> tuple[int, int]:
        return (self.pos, self.si.pos)

    def get_slice(self) -> Sequence[Any]:
        """The elements consumed since the savepoint was taken."""
        return self.si.src[self.pos : self.si.pos]

    def guard(self, value: _T) -> _T:
        """
        If the parameter is `False` or falsy, rolls back.

        Returns the parameter as-is.

        Common usage method:
        ```
        si.save().guard(all(parser(si) for parser in parsers))
        ```
        """
        if not value:
            self.rollback()
        return value

    def rollback_inline(self, value: _T) -> _T:
        """
        Always rolls back.

        Returns the parameter as-is.
        """
        self.rollback()
        return value


class Checkpoint:
    """
    Used as a context manager for hand-written parsers:
    ```
    def foo(si: Cursor[str]) -> bool:
        with si() as c:
            if not element("a")(si):
                return c.fail()
            ...
            return c.success()
    ```

    Leaving the block without committing (or with an exception) rolls the cursor back.
    """
    def __init__(self, si: Cursor[Any], *, parent_checkpoint: Checkpoint | None = None) -> None:
        """
        Create using `Cursor.checkpoint()` or `Cursor.__call__()` instead.
        """
        self.pos: Final[int] = si.pos
        """The saved position."""
        self.si: Final[Cursor[Any]] = si
        """The bound Cursor."""
        self.parent_checkpoint: Final[Checkpoint | None] = parent_checkpoint
        self.committed: bool = False
        """Use `is_committed()` to check if it's committed."""

    def commit(self) -> None:
        """Commited checkpoints will not be rolled back automatically."""
        self.committed = True

    def uncommit(self) -> None:
        """Uncommited checkpoints will be rolled back automatically."""
        self.committed = False

    def is_committed(self) -> bool:
        """Checks if this is committed. Works with sub-checkpoints."""
        return self.committed or (self.parent_checkpoint is not None and self.parent_checkpoint.is_committed())

    def rollback(self) -> None:
        """Rolls back the cursor to the starting position. (Regardless of the checkpoint being commited or not.)"""
        self.si.pos = self.pos

    def rollback_if_uncommited(self) -> None:
        """Rolls back the cursor to the starting position if the checkpoint isn't committed."""
        if not self.is_committed():
            self.si.pos = self.pos

    def get_range(self) -> tuple[int, int]:
        return (self.pos, self.si.pos)

    def get_slice(self) -> Sequence[Any]:
        return self.si.src[self.pos : self.si.pos]

    def success(self) -> Literal[True]:
        """Commits and returns `True`."""
        self.committed = True
        return True

    def fail(self) -> Literal[False]:
        """Uncommits and returns `False`. The cursor is rolled back when the block exits."""
        self.committed = False
        return False

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exctype: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        if exc is None:
            self.rollback_if_uncommited()
        else:
            self.rollback()
        return False

    def sub_checkpoint(self) -> Checkpoint:
        """
        Creates a `Checkpoint` at the current position.

        If the parent checkpoint is committed, the sub-checkpoint won't roll back.

        Same as `Checkpoint.__call__()`
        """
        return Checkpoint(self.si, parent_checkpoint=self)

    def __call__(self) -> Checkpoint:
        """Same as `Checkpoint.sub_checkpoint()`"""
        return Checkpoint(self.si, parent_checkpoint=self)



class Parser(Protocol):
    """
    A protocol for parsers: called with a cursor, returns whether it matched.

    A parser that returns `False` must leave the cursor where it found it.
    Only `test_and` and `test_not` tolerate inner parsers that break this rule.
    """
    def __call__(self, si: Cursor[Any], /) -> bool: ...

FactoryParameter = Parser | str | re.Pattern

def convert_factory_parameter(parser: FactoryParameter) -> Parser:
    if isinstance(parser, str):
        return literal(parser)
    elif isinstance(parser, re.Pattern):
        return regex(parser)
    elif callable(parser):
        return parser
    else:
        raise TypeError(f"Expected a parser, a string or a regex pattern, got {type(parser).__name__}.")

def convert_factory_parameters(parsers: tuple[FactoryParameter, ...]) -> tuple[Parser, ...]:
    return tuple(convert_factory_parameter(parser) for parser in parsers)

def _joined(parsers: tuple[FactoryParameter, ...]) -> Parser:
    """A single parser, or several parsers matched in sequence."""
    if len(parsers) <= 0:
        raise ValueError("At least one parser required.")
    if len(parsers) == 1:
        return convert_factory_parameter(parsers[0])
    return seq(*parsers)



def any_element(si: Cursor[Any]) -> bool:
    """A pre-defined parser (not a factory) that matches any single element."""
    if si.is_eof():
        return False
    si.advance()
    return True

def end_of_input(si: Cursor[Any]) -> bool:
    """A pre-defined parser (not a factory) that matches the end of the input. Never consumes."""
    return si.is_eof()

def element(value: Any) -> Parser:
    """Parser factory for a single element equal to `value`."""
    def inner(si: Cursor[Any]) -> bool:
        if not si.is_eof() and si.peek() == value:
            si.advance()
            return True
        return False
    return inner

def _literal_sequence(value: Iterable[Any]) -> Parser:
    if not isinstance(value, (str, bytes)):
        value = tuple(value)
    def inner(si: Cursor[Any]) -> bool:
        revert = si.save()
        for expected in value:
            if si.is_eof() or si.peek() != expected:
                revert()
                return False
            si.advance()
        return True
    return inner

def literal(*values: Iterable[Any]) -> Parser:
    """
    Parser factory for a run of elements.

    - One single-character string: same as `element(...)`
    - One sequence: matches its elements in order, all or nothing.
      Other iterables are copied into a tuple when the parser is built.
    - Several sequences: tries them in order, the first that matches wins.
    """
    if len(values) <= 0:
        raise ValueError("At least one literal required.")
    if len(values) == 1:
        value = values[0]
        if isinstance(value, str) and len(value) == 1:
            return element(value)
        return _literal_sequence(value)
    return choice(*(_literal_sequence(value) for value in values))

def element_range(low: Any, high: Any) -> Parser:
    """Parser factory for a single element `e` with `low <= e <= high`."""
    if high < low:
        raise ValueError(f"Empty range: {low!r} is greater than {high!r}.")
    def inner(si: Cursor[Any]) -> bool:
        if not si.is_eof() and low <= si.peek() <= high:
            si.advance()
            return True
        return False
    return inner

def element_set(members: Iterable[Any]) -> Parser:
    """
    Parser factory for a single element equal to any of `members`.

    The members are scanned in order. An empty collection never matches.
    """
    frozen_members = tuple(members)
    def inner(si: Cursor[Any]) -> bool:
        if si.is_eof():
            return False
        current = si.peek()
        for member in frozen_members:
            if member == current:
                si.advance()
                return True
        return False
    return inner

def regex(pattern: str | re.Pattern, flags: int | re.RegexFlag = 0) -> Parser:
    """Parser factory for a regular expression anchored at the cursor. Only works on `str` input."""
    compiled = re.compile(pattern, flags)
    def inner(si: Cursor[Any]) -> bool:
        if not isinstance(si.src, str):
            raise TypeError("regex() can only match `str` input.")
        m = compiled.match(si.src, si.pos)
        if m is None:
            return False
        si.pos = m.end()
        return True
    return inner



def test_and(*parsers: FactoryParameter) -> Parser:
    """
    A parser factory. (Positive lookahead)

    Matches without advancing. Always restores the cursor, whatever the inner parser did.

    If multiple parsers are supplied, matches them in sequence.
    """
    parser = _joined(parsers)
    return lambda si: si.save().rollback_inline(bool(parser(si)))

def test_not(*parsers: FactoryParameter) -> Parser:
    """
    A parser factory. (Negative lookahead)

    Succeeds if the parser doesn't match. Never advances.

    If multiple parsers are supplied, matches them in sequence.
    """
    parser = _joined(parsers)
    return lambda si: not si.save().rollback_inline(bool(parser(si)))

lookahead = test_and
inverted = test_not


def repeat0(*parsers: FactoryParameter) -> Parser:
    """
    A parser factory.

    Repeatedly matches the given parser until it fails. Always succeeds.

    An iteration that matches without consuming anything ends the loop.

    If multiple parsers are supplied, matches them in sequence. (All parsers must match for an iteration to be considered successful)
    """
    parser = _joined(parsers)
    def inner(si: Cursor[Any]) -> bool:
        while True:
            start = si.pos
            if not parser(si) or si.pos == start:
                return True
    return inner

def repeat1(*parsers: FactoryParameter) -> Parser:
    """
    A parser factory.

    Repeatedly matches the given parser until it fails. Succeeds if at least one iteration matches.

    If multiple parsers are supplied, matches them in sequence. (All parsers must match for an iteration to be considered successful)
    """
    parser = _joined(parsers)
    rest = repeat0(parser)
    def inner(si: Cursor[Any]) -> bool:
        start = si.pos
        if not parser(si):
            return False
        if si.pos != start:
            rest(si)
        return True
    return inner

def optional(*parsers: FactoryParameter) -> Parser:
    """
    A parser factory.

    Returns a parser that returns True no matter what the parser returns.

    If multiple parsers are supplied, matches them in sequence.
    """
    parser = _joined(parsers)
    def inner(si: Cursor[Any]) -> bool:
        parser(si)
        return True
    return inner


def seq(*parsers: FactoryParameter) -> Parser:
    """
    A parser factory.

    All the given parsers must match in sequence for the parser to succeed. Otherwise nothing is consumed.

    `seq()` matches the empty input.
    """
    new_parsers = convert_factory_parameters(parsers)
    return lambda si: si.save().guard(all(parser(si) for parser in new_parsers))

def choice(*parsers: FactoryParameter) -> Parser:
    """
    A parser factory.

    Attempts to match the parsers in order. The first one that matches wins. If none match, fails.

    `choice()` never matches.
    """
    new_parsers = convert_factory_parameters(parsers)
    return lambda si: any(parser(si) for parser in new_parsers)

oneof = choice



def match(parser: FactoryParameter, src: Iterable[Any], pos: int = 0) -> int | None:
    """Runs the parser on a fresh cursor. Returns the end position, or `None` if it didn't match."""
    si = Cursor(src, pos)
    if convert_factory_parameter(parser)(si):
        return si.pos
    return None

def fullmatch(parser: FactoryParameter, src: Iterable[Any]) -> bool:
    """Whether the parser matches the whole input."""
    return seq(parser, end_of_input)(Cursor(src))
