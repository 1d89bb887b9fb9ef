"""
General use constants.
"""

from __future__ import annotations
from typing import Final

# rule nesting
MAX_RULE_DEPTH: Final[int] = 100
"""Default `Cursor.max_depth`. How deeply rules may nest during one parse."""
FRAMES_PER_RULE: Final[int] = 8
"""Rough number of Python frames a nested rule costs (rule, sequence, choice, generator...)."""
DEPTH_RESERVE_FRAMES: Final[int] = 50
"""Frames kept free for the caller when clamping against the recursion limit."""

# character sets
WHITESPACES: Final[frozenset[str]] = frozenset({" ", "\t", "\n", "\r", "\f"})
BINARY: Final[frozenset[str]] = frozenset({"0", "1"})
OCTAL: Final[frozenset[str]] = frozenset({"0", "1", "2", "3", "4", "5", "6", "7"})
DECIMAL: Final[frozenset[str]] = frozenset({"0", "1", "2", "3", "4", "5", "6", "7", "8", "9"})
HEXADECIMAL: Final[frozenset[str]] = DECIMAL | {"a", "b", "c", "d", "e", "f", "A", "B", "C", "D", "E", "F"}
ALPHABETIC: Final[frozenset[str]] = frozenset("abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ")
ALNUM: Final[frozenset[str]] = ALPHABETIC | DECIMAL
