"""
Parsing expression grammar (PEG) combinators.

A parser is any callable that takes a `Cursor` and returns a bool. When it returns `True` it has
consumed what it matched. When it returns `False` the cursor is exactly where it was.
Combinators build new parsers out of existing ones and keep that promise.

See `pegkit.general` for general purpose parsers you can use as examples.

Defining parsers:
```
digit = element_range("0", "9")
number = seq(optional("-"), repeat1(digit))
numbers = seq(number, repeat0(",", number), end_of_input)
```

Recursive grammars:
```
expr = Rule("expr")
expr.define(choice(seq("(", expr, ")"), number))
```

Using parsers:
```
si = Cursor("1,-20,3")

if numbers(si):
    ... # matched, `si.pos` is the end of the match
else:
    ... # didn't match, `si.pos` is unchanged
```
"""

import pegkit.const as const
import pegkit.main
from pegkit.main import (
    PegError,
    EndOfInputError,
    RuleError,
    UndefinedRuleError,
    RecursionLimitError,
    Cursor,
    Savepoint,
    Checkpoint,
    Parser,
    depth_clamp,
    any_element,
    end_of_input,
    element,
    literal,
    element_range,
    element_set,
    regex,
    test_and,
    test_not,
    lookahead,
    inverted,
    repeat0,
    repeat1,
    optional,
    seq,
    choice,
    oneof,
    match,
    fullmatch,
)
from pegkit.rules import (
    Rule,
    Grammar,
)
from pegkit.diagnostics import (
    ParseError,
    FailureTracker,
    parse,
)
import pegkit.general as general
