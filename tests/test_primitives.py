"""Primitive matchers."""

import re

import pytest

from pegkit import (
    Cursor,
    any_element,
    element,
    element_range,
    element_set,
    end_of_input,
    literal,
    regex,
)
import pegkit.const as const


class TestAnyElement:
    """any_element matches one element of anything."""

    def test_single_element(self) -> None:
        """One element is consumed."""
        si = Cursor("a")
        assert any_element(si)
        assert si.is_eof()

    def test_empty(self) -> None:
        """Nothing to match at the end."""
        assert not any_element(Cursor(""))

    def test_walks_input(self) -> None:
        """Repeated application consumes the input one element at a time."""
        si = Cursor("test")
        for _ in range(4):
            assert any_element(si)
        assert not any_element(si)
        assert si.pos == 4


class TestElement:
    """element(e) matches a single equal element."""

    def test_match_at_end(self) -> None:
        """`element('a')` on "a" succeeds and reaches the end."""
        si = Cursor("a")
        assert element("a")(si)
        assert si.is_eof()

    def test_mismatch_leaves_cursor(self) -> None:
        """`element('a')` on "b" fails and stays at the start."""
        si = Cursor("b")
        assert not element("a")(si)
        assert si.pos == 0

    def test_sequence_of_elements(self) -> None:
        """Each element in turn, then failure at the end."""
        si = Cursor("abcd")
        for ch in "abcd":
            assert element(ch)(si)
        assert not element("d")(si)

    def test_non_character_elements(self) -> None:
        """Elements can be any comparable value."""
        si = Cursor([1, 2])
        assert not element(2)(si)
        assert element(1)(si)
        assert element(2)(si)


class TestLiteral:
    """literal(...) matches runs of elements, all or nothing."""

    def test_prefix_match(self) -> None:
        """`literal("ab")` on "abcd" leaves "cd", and again fails leaving "cd"."""
        si = Cursor("abcd")
        assert literal("ab")(si)
        assert si.rest() == "cd"
        assert not literal("ab")(si)
        assert si.rest() == "cd"
        assert literal("cd")(si)
        assert si.is_eof()

    def test_partial_match_rolls_back(self) -> None:
        """A mismatch after some matching elements restores the position."""
        si = Cursor("abx")
        assert not literal("abc")(si)
        assert si.pos == 0

    def test_input_shorter_than_literal(self) -> None:
        """Running out of input mid-literal fails cleanly."""
        si = Cursor("ab")
        assert not literal("abc")(si)
        assert si.pos == 0

    def test_empty_literal(self) -> None:
        """The empty literal matches without consuming."""
        si = Cursor("abc")
        assert literal("")(si)
        assert si.pos == 0

    def test_non_string_sequence(self) -> None:
        """Literals can be any sequence of elements."""
        si = Cursor([1, 2, 3])
        assert literal([1, 2])(si)
        assert si.rest() == [3]

    def test_bytes_literal(self) -> None:
        """A bytes literal matches bytes input."""
        si = Cursor(b"GET /")
        assert literal(b"GET")(si)
        assert si.pos == 3

    def test_several_values(self) -> None:
        """Several literals are tried in order."""
        parser = literal("<=", "<", "=")
        si = Cursor("<=<")
        assert parser(si)
        assert si.pos == 2
        assert parser(si)
        assert si.pos == 3
        assert not parser(si)

    def test_one_shot_iterable_is_frozen(self) -> None:
        """A literal built from an iterator matches the same run every time."""
        parser = literal(iter("ab"))
        si = Cursor("abab")
        assert parser(si)
        assert si.pos == 2
        assert parser(si)
        assert si.pos == 4
        mismatch = Cursor("zz")
        assert not parser(mismatch)
        assert mismatch.pos == 0

    def test_later_mutation_ignored(self) -> None:
        """Changing the source list after construction doesn't change the parser."""
        elements = ["a", "b"]
        parser = literal(elements)
        elements.append("c")
        si = Cursor("abx")
        assert parser(si)
        assert si.pos == 2

    def test_requires_value(self) -> None:
        """At least one literal is needed."""
        with pytest.raises(ValueError):
            literal()


class TestEndOfInput:
    """end_of_input matches only at the end."""

    def test_empty(self) -> None:
        """The empty input is at its end."""
        assert end_of_input(Cursor(""))

    def test_not_at_end(self) -> None:
        """Remaining input means no match."""
        si = Cursor("test")
        assert not end_of_input(si)
        assert si.pos == 0

    def test_never_consumes(self) -> None:
        """Matching the end consumes nothing."""
        si = Cursor("t", 1)
        assert end_of_input(si)
        assert si.pos == 1


class TestElementRange:
    """element_range(lo, hi) is inclusive on both ends."""

    def test_both_ends(self) -> None:
        """`element_range('a', 'z')` matches "a" then "z", then fails at the end."""
        si = Cursor("az")
        parser = element_range("a", "z")
        assert parser(si)
        assert parser(si)
        assert not parser(si)

    def test_outside_range(self) -> None:
        """Upper case letters are outside a..z."""
        si = Cursor("AZ")
        assert not element_range("a", "z")(si)
        assert si.pos == 0
        assert element_range("A", "Z")(si)
        assert element_range("A", "Z")(si)
        assert not element_range("A", "Z")(si)

    def test_integer_range(self) -> None:
        """Ranges work with any ordered element type."""
        si = Cursor(b"\x10\x20")
        assert element_range(0x00, 0x1F)(si)
        assert not element_range(0x00, 0x1F)(si)

    def test_empty_range_rejected(self) -> None:
        """A range whose low end is above its high end is a mistake."""
        with pytest.raises(ValueError):
            element_range("z", "a")


class TestElementSet:
    """element_set(members) matches one of the members."""

    def test_members(self) -> None:
        """Members match, non-members don't."""
        si = Cursor("abc")
        assert element_set("ab")(si)
        assert element_set("ab")(si)
        assert not element_set("ab")(si)
        assert element_set("c")(si)
        assert not element_set("c")(si)

    def test_order_does_not_matter(self) -> None:
        """The order of members doesn't change the result."""
        assert element_set("xyz")(Cursor("z"))
        assert element_set("zyx")(Cursor("z"))

    def test_frozenset_members(self) -> None:
        """Constant sets can be used directly."""
        si = Cursor("7f")
        assert element_set(const.DECIMAL)(si)
        assert not element_set(const.DECIMAL)(si)
        assert element_set(const.HEXADECIMAL)(si)

    def test_empty_set(self) -> None:
        """An empty set never matches."""
        si = Cursor("a")
        assert not element_set(())(si)
        assert si.pos == 0

    def test_members_are_captured(self) -> None:
        """Changing the source collection later doesn't change the parser."""
        members = ["a"]
        parser = element_set(members)
        members.append("b")
        assert not parser(Cursor("b"))


class TestRegex:
    """regex(...) on text input."""

    def test_anchored_at_cursor(self) -> None:
        """The pattern must match at the current position."""
        si = Cursor("ab123", 2)
        assert regex(r"\d+")(si)
        assert si.is_eof()

    def test_no_search(self) -> None:
        """A match further along doesn't count."""
        si = Cursor("ab123")
        assert not regex(r"\d+")(si)
        assert si.pos == 0

    def test_compiled_pattern_and_flags(self) -> None:
        """Compiled patterns and flags are accepted."""
        assert regex(re.compile("abc"))(Cursor("abc"))
        assert regex("ABC", re.IGNORECASE)(Cursor("abc"))

    def test_requires_text(self) -> None:
        """Non-text input is rejected."""
        with pytest.raises(TypeError):
            regex("a")(Cursor(["a"]))
