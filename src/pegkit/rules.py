"""
Rules and grammars: named, late-bound parsers for recursive grammars.

A parser built from combinators can't mention itself while it's being built.
A `Rule` is a placeholder that can be used right away and defined later:
```
value = Rule("value")
value.define(choice(seq("(", value, ")"), "x"))
```

A `Grammar` does the same for a table of rules looked up by name:
```
g = Grammar()
g["list"] = seq("[", optional(g["items"]), "]")
g["items"] = seq(g["item"], repeat0(",", g["item"]))
g["item"] = choice(g["list"], "x")
g.parse("list", "[x,[x]]")
```
"""

from __future__ import annotations
from typing import Any

from collections.abc import Iterable, Iterator
import logging

from pegkit.main import (
    Cursor,
    Parser,
    FactoryParameter,
    RuleError,
    UndefinedRuleError,
    RecursionLimitError,
    convert_factory_parameter,
)

logger = logging.getLogger(__name__)


class Rule:
    """
    A parser whose body is supplied after it has been created.

    Every invocation counts towards the cursor's `depth`. Going past `max_depth` raises
    `RecursionLimitError` with the cursor restored to where this rule was entered.
    """
    __slots__ = ("name", "parser")

    def __init__(self, name: str | None = None) -> None:
        self.name: str | None = name
        self.parser: Parser | None = None
        """The body. `None` until `define()` is called."""

    def define(self, parser: FactoryParameter) -> Rule:
        """Binds the rule's body. Can only be done once. Returns the rule itself."""
        if self.parser is not None:
            raise RuleError(f"Rule `{self.name or '<anonymous>'}` is already defined.")
        self.parser = convert_factory_parameter(parser)
        logger.debug("Defined rule: %s", self.name or "<anonymous>")
        return self

    def is_defined(self) -> bool:
        return self.parser is not None

    def __call__(self, si: Cursor[Any]) -> bool:
        parser = self.parser
        if parser is None:
            raise UndefinedRuleError(f"Rule `{self.name or '<anonymous>'}` is used before being defined.")
        if si.depth >= si.max_depth:
            raise RecursionLimitError(si.max_depth, self.name)
        revert = si.save()
        si.depth += 1
        try:
            return parser(si)
        except RecursionLimitError:
            revert()
            raise
        finally:
            si.depth -= 1

    def __repr__(self) -> str:
        state = "defined" if self.parser is not None else "undefined"
        return f"<Rule {self.name or '<anonymous>'} ({state})>"


class Grammar:
    """
    A table of named rules.

    Referring to a rule (`grammar["name"]` or `grammar.ref("name")`) never fails: the name is
    resolved when the parser runs, so rules can refer to rules that are defined later.
    """
    def __init__(self, rules: Iterable[tuple[str, FactoryParameter]] = ()) -> None:
        self._rules: dict[str, Rule] = {}
        for name, parser in rules:
            self.define(name, parser)

    def _slot(self, name: str) -> Rule:
        rule = self._rules.get(name)
        if rule is None:
            rule = self._rules[name] = Rule(name)
        return rule

    def define(self, name: str, parser: FactoryParameter) -> Rule:
        """Defines a rule. A name can only be defined once."""
        return self._slot(name).define(parser)

    def ref(self, name: str) -> Rule:
        """A parser that runs the rule called `name`."""
        return self._slot(name)

    def __setitem__(self, name: str, parser: FactoryParameter) -> None:
        self.define(name, parser)

    def __getitem__(self, name: str) -> Rule:
        return self.ref(name)

    def __contains__(self, name: object) -> bool:
        rule = self._rules.get(name) if isinstance(name, str) else None
        return rule is not None and rule.is_defined()

    def __iter__(self) -> Iterator[str]:
        return (name for name, rule in self._rules.items() if rule.is_defined())

    def __len__(self) -> int:
        return sum(1 for _ in self)

    def undefined(self) -> list[str]:
        """Names that were referred to but never defined."""
        return [name for name, rule in self._rules.items() if not rule.is_defined()]

    def parse(self, name: str, src: Iterable[Any], pos: int = 0, **cursor_options: Any) -> int | None:
        """
        Runs the rule called `name` on a fresh cursor.

        Returns the end position, or `None` if the rule didn't match.
        Extra keyword arguments are passed on to `Cursor`.
        """
        if name not in self:
            raise UndefinedRuleError(f"Rule `{name}` is not defined.")
        si = Cursor(src, pos, **cursor_options)
        if self._rules[name](si):
            return si.pos
        return None
