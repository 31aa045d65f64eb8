"""AST printer: dispatches each node kind to a function building its Doc."""

from __future__ import annotations

from collections.abc import Callable

from rbfmt.ast import (
    ArrayLiteral,
    Assoc,
    Binary,
    Call,
    Comment,
    Def,
    Defs,
    IfOp,
    Literal,
    Node,
    Paren,
    Program,
    Statement,
    Unary,
    VarRef,
)
from rbfmt.commands import PRINTERS as COMMAND_PRINTERS
from rbfmt.commands import PrintFn
from rbfmt.doc import (
    Doc,
    concat,
    group,
    hardline,
    indent,
    join,
    line,
    softline,
    text,
)
from rbfmt.errors import MalformedNodeError, UnsupportedConstructError


def _print_statements(statements: tuple[Statement, ...], print_node: PrintFn) -> Doc:
    """Statements one per line, trailing comments kept, at most one blank line kept."""
    parts: list[Doc] = []
    prev: Statement | None = None
    for stmt in statements:
        if isinstance(stmt, Comment) and stmt.trailing and prev is not None:
            parts.append(concat(" ", stmt.value))
        else:
            if prev is not None:
                parts.append(hardline)
                if stmt.span.start.line - prev.span.end.line > 1:
                    parts.append(hardline)
            parts.append(print_node(stmt))
        prev = stmt
    return concat(*parts)


def _print_arg_list(open_: str, items: tuple[Node, ...], close: str, print_node: PrintFn) -> Doc:
    if not items:
        return text(open_ + close)
    return group(
        concat(
            open_,
            indent(concat(softline, join(concat(",", line), [print_node(i) for i in items]))),
            softline,
            close,
        )
    )


def _print_program(node: Program, print_node: PrintFn) -> Doc:
    if not node.statements:
        return text("")
    return concat(_print_statements(node.statements, print_node), hardline)


def _print_comment(node: Comment, print_node: PrintFn) -> Doc:
    return text(node.value)


def _print_var_ref(node: VarRef, print_node: PrintFn) -> Doc:
    return text(node.name)


def _print_literal(node: Literal, print_node: PrintFn) -> Doc:
    return text(node.value)


def _print_array(node: ArrayLiteral, print_node: PrintFn) -> Doc:
    return _print_arg_list("[", node.elements, "]", print_node)


def _print_paren(node: Paren, print_node: PrintFn) -> Doc:
    return concat("(", print_node(node.expr), ")")


def _print_assoc(node: Assoc, print_node: PrintFn) -> Doc:
    return concat(node.label, ": ", print_node(node.value))


def _print_binary(node: Binary, print_node: PrintFn) -> Doc:
    return concat(print_node(node.left), f" {node.operator} ", print_node(node.right))


def _print_unary(node: Unary, print_node: PrintFn) -> Doc:
    return concat(node.operator, print_node(node.operand))


def _print_ifop(node: IfOp, print_node: PrintFn) -> Doc:
    return concat(
        print_node(node.predicate),
        " ? ",
        print_node(node.truthy),
        " : ",
        print_node(node.falsy),
    )


def _print_call(node: Call, print_node: PrintFn) -> Doc:
    if node.receiver is not None:
        if node.operator is None:
            raise MalformedNodeError("receiver call has no call operator", node.kind, node.span)
        callee = concat(print_node(node.receiver), node.operator, node.name)
    else:
        callee = text(node.name)
    if node.args is None:
        return callee
    return concat(callee, _print_arg_list("(", node.args, ")", print_node))


def _print_def_tail(
    name: str,
    params: tuple[str, ...] | None,
    body: tuple[Statement, ...],
    print_node: PrintFn,
) -> Doc:
    parts: list[Doc | str] = [name]
    if params is not None:
        parts.append("(" + ", ".join(params) + ")")
    if body:
        parts.append(indent(concat(hardline, _print_statements(body, print_node))))
    parts.append(hardline)
    parts.append("end")
    return concat(*parts)


def _print_def(node: Def, print_node: PrintFn) -> Doc:
    return concat("def ", _print_def_tail(node.name, node.params, node.body, print_node))


def _print_defs(node: Defs, print_node: PrintFn) -> Doc:
    return concat(
        "def ",
        print_node(node.target),
        node.operator,
        _print_def_tail(node.name, node.params, node.body, print_node),
    )


PRINTERS: dict[str, Callable[..., Doc]] = {
    "program": _print_program,
    "comment": _print_comment,
    "var_ref": _print_var_ref,
    "literal": _print_literal,
    "array": _print_array,
    "paren": _print_paren,
    "assoc_new": _print_assoc,
    "binary": _print_binary,
    "unary": _print_unary,
    "ifop": _print_ifop,
    "call": _print_call,
    "fcall": _print_call,
    "def": _print_def,
    "defs": _print_defs,
    **COMMAND_PRINTERS,
}


class Printer:
    """Build the Doc for an AST, one printer function per node kind."""

    def __init__(
        self,
        printers: dict[str, Callable[..., Doc]] | None = None,
        max_depth: int = 128,
    ) -> None:
        self._printers = PRINTERS if printers is None else printers
        self._depth = 0
        self._max_depth = max_depth

    def print(self, node: Program | Statement) -> Doc:
        kind = getattr(node, "kind", type(node).__name__)
        printer = self._printers.get(kind)
        if printer is None:
            raise UnsupportedConstructError(
                f"no printer for node kind '{kind}'", kind, getattr(node, "span", None)
            )

        self._depth += 1
        try:
            if self._depth > self._max_depth:
                raise MalformedNodeError("node nested too deeply", kind, getattr(node, "span", None))
            return printer(node, self.print)
        finally:
            self._depth -= 1


def print_ast(node: Program | Statement) -> Doc:
    """Convenience function: build the Doc for a node with the default printers."""
    return Printer().print(node)
