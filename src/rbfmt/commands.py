"""Printers for parenthesis-free calls: ``foo a, b`` and ``recv.foo a, b``.

A call without parentheses either stays on one line or breaks its
arguments. When it breaks, arguments normally align under the first one:

    method_name bar,
                baz

Two idioms override that. A method definition passed as an argument
(``private def foo ... end``) carries its own block indentation, so it is
never aligned. An argument list holding a ternary is wrapped in
parentheses when broken, since a bare line break there would change how
the conditional parses:

    assert_equal(
      cond ? 1 : 2,
      other
    )

Receiver calls align under the first argument the same way, except for
the RSpec-style ``expect(...).to`` chain, whose arguments read better flush
with the statement.
"""

from __future__ import annotations

from collections.abc import Callable

from rbfmt.ast import Args, Command, CommandCall, Def, Defs, IfOp, Node
from rbfmt.doc import (
    Doc,
    align,
    concat,
    group,
    if_break,
    indent,
    join,
    line,
    measure,
    softline,
    text,
)
from rbfmt.errors import MalformedNodeError

PrintFn = Callable[[Node], Doc]

# Matcher methods of `expect(foo).to receive(:bar).with(...)` chains
ASSERTION_CHAIN_METHODS = frozenset({"to", "not_to"})


def has_def_argument(node: Command) -> bool:
    """True if the first argument is a method definition."""
    items = node.args.items
    return bool(items) and isinstance(items[0], (Def, Defs))


def has_ternary_argument(node: Command) -> bool:
    return any(isinstance(item, IfOp) for item in node.args.items)


def skip_alignment(node: CommandCall) -> bool:
    """True if the call's arguments break at base indentation, not aligned."""
    return node.name in ASSERTION_CHAIN_METHODS


def _join_args(node: Command | CommandCall, print_node: PrintFn) -> Doc:
    if not isinstance(node.args, Args) or not node.args.items:
        raise MalformedNodeError("expected a non-empty argument list", node.kind, node.span)
    return join(concat(",", line), [print_node(item) for item in node.args.items])


def print_command(node: Command, print_node: PrintFn) -> Doc:
    if not node.name:
        raise MalformedNodeError("command has no method name", node.kind, node.span)

    command = text(node.name)
    joined_args = _join_args(node, print_node)

    has_ternary = has_ternary_argument(node)
    if has_ternary:
        break_args: Doc = indent(concat(softline, joined_args))
    elif has_def_argument(node):
        break_args = joined_args
    else:
        break_args = align(measure(command) + 1, joined_args)

    return group(
        if_break(
            concat(
                command,
                "(" if has_ternary else " ",
                break_args,
                concat(softline, ")") if has_ternary else "",
            ),
            concat(command, " ", joined_args),
        )
    )


def print_command_call(node: CommandCall, print_node: PrintFn) -> Doc:
    prefix = concat(print_node(node.receiver), node.operator, node.name)

    if node.args is None:
        return prefix

    joined_args = _join_args(node, print_node)
    break_args = joined_args if skip_alignment(node) else align(measure(concat(prefix, " ")), joined_args)

    return group(if_break(concat(prefix, " ", break_args), concat(prefix, " ", joined_args)))


PRINTERS: dict[str, Callable[..., Doc]] = {
    "command": print_command,
    "command_call": print_command_call,
}
