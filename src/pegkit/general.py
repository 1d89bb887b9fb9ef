"""
General purpose parsers for text, built from the combinators.

Also meant as examples of defining parsers.
"""

from __future__ import annotations
from typing import Any

from collections.abc import Sequence

from pegkit.main import (
    Cursor,
    Parser,
    FactoryParameter,
    convert_factory_parameter,
    element,
    element_range,
    element_set,
    any_element,
    literal,
    seq,
    choice,
    optional,
    repeat0,
    repeat1,
    test_not,
)
import pegkit.const as const

# whitespace

ws0: Parser = repeat0(element_set(const.WHITESPACES))
"""Zero or more whitespaces. Always matches."""
ws1: Parser = repeat1(element_set(const.WHITESPACES))
"""One or more whitespaces."""

# characters

digit: Parser = element_range("0", "9")
hex_digit: Parser = element_set(const.HEXADECIMAL)
letter: Parser = choice(element_range("a", "z"), element_range("A", "Z"))

identifier: Parser = seq(choice(letter, "_"), repeat0(choice(letter, digit, "_")))
"""`[A-Za-z_][A-Za-z0-9_]*`"""

# numbers

_sign = optional(element_set("+-"))

def _prefixed(prefix: str, digits: Parser) -> Parser:
    return seq(element("0"), element_set(prefix + prefix.upper()), repeat1(digits))

integer_number: Parser = seq(
    _sign,
    choice(
        _prefixed("b", element_set(const.BINARY)),
        _prefixed("o", element_set(const.OCTAL)),
        _prefixed("x", hex_digit),
        repeat1(digit),
    ),
)
"""
An integer with an optional sign.

- `0b`: Binary
- `0o`: Octal
- `0x`: Hexadecimal
- Otherwise decimal.
"""

_exponent = seq(element_set("eE"), _sign, repeat1(digit))

float_number: Parser = seq(
    _sign,
    choice(
        seq(repeat1(digit), choice(seq(".", repeat0(digit), optional(_exponent)), _exponent)),
        seq(".", repeat1(digit), optional(_exponent)),
    ),
)
"""A decimal number with a fraction, an exponent or both. `1.`, `.5`, `1e3`, `-2.5E-3`"""

# quoted string

GENERAL_ESCAPES: frozenset[str] = frozenset('\\"\'bfnrt')
_unicode_escape: Parser = seq("u", hex_digit, hex_digit, hex_digit, hex_digit)

def quoted_string(
    si: Cursor[Any],
    *,
    quotes: Sequence[str] = ('"', "'"),
    escape: str = '\\',
    escapes: frozenset[str] = GENERAL_ESCAPES,
) -> bool:
    """
    A string in single or double quotes.

    Backslash escapes are limited to `escapes`, plus `\\uXXXX`. A string must end with the quote it started with.
    """
    simple_escape = element_set(escapes)
    with si() as c:
        if si.is_eof() or si.peek() not in quotes:
            return c.fail()
        quote = si.peek()
        si.advance()
        while not si.is_eof():
            current = si.peek()
            if current == quote:
                si.advance()
                return c.success()
            if current == escape:
                si.advance()
                if not (simple_escape(si) or _unicode_escape(si)):
                    return c.fail()
            elif current == "\n":
                return c.fail()
            else:
                si.advance()
        return c.fail()

# lists

def delimited(item: FactoryParameter, separator: FactoryParameter = ",", *, spaces: bool = True) -> Parser:
    """
    One or more `item`s joined by `separator`.

    A trailing separator isn't consumed. With `spaces`, whitespace is allowed around the separator.
    """
    sep = seq(ws0, separator, ws0) if spaces else convert_factory_parameter(separator)
    return seq(item, repeat0(sep, item))

def keyword(word: str) -> Parser:
    """Matches `word` only if it isn't followed by more identifier characters."""
    return seq(literal(word), test_not(choice(letter, digit, "_")))

line_comment: Parser = seq("#", repeat0(test_not("\n"), any_element))
"""`#` up to (not including) the end of the line."""
