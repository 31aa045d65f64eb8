"""--debug AST dump to stderr."""

from __future__ import annotations

import sys
from typing import TextIO

from rbfmt.ast import (
    Args,
    ArrayLiteral,
    Assoc,
    Binary,
    Call,
    Command,
    CommandCall,
    Comment,
    Def,
    Defs,
    IfOp,
    Literal,
    Paren,
    Program,
    Statement,
    Unary,
    VarRef,
)


def dump_ast(node: Program | Statement, *, file: TextIO | None = None) -> None:
    """Print a human-readable AST tree to *file*."""
    _dump(node, 0, file if file is not None else sys.stderr)


def _indent(depth: int) -> str:
    return "  " * depth


def _params(params: tuple[str, ...] | None) -> str:
    return "" if params is None else "(" + ", ".join(params) + ")"


def _dump(node: Program | Statement | Args, depth: int, f: TextIO) -> None:
    pad = _indent(depth)
    if isinstance(node, Program):
        f.write(f"{pad}Program\n")
        _dump_all(node.statements, depth + 1, f)
    elif isinstance(node, Comment):
        where = "trailing " if node.trailing else ""
        f.write(f"{pad}Comment {where}{node.value!r}\n")
    elif isinstance(node, VarRef):
        f.write(f"{pad}VarRef {node.name}\n")
    elif isinstance(node, Literal):
        f.write(f"{pad}Literal {node.value}\n")
    elif isinstance(node, ArrayLiteral):
        f.write(f"{pad}Array\n")
        _dump_all(node.elements, depth + 1, f)
    elif isinstance(node, Paren):
        f.write(f"{pad}Paren\n")
        _dump(node.expr, depth + 1, f)
    elif isinstance(node, Assoc):
        f.write(f"{pad}Assoc {node.label}:\n")
        _dump(node.value, depth + 1, f)
    elif isinstance(node, Binary):
        f.write(f"{pad}Binary {node.operator}\n")
        _dump(node.left, depth + 1, f)
        _dump(node.right, depth + 1, f)
    elif isinstance(node, Unary):
        f.write(f"{pad}Unary {node.operator}\n")
        _dump(node.operand, depth + 1, f)
    elif isinstance(node, IfOp):
        f.write(f"{pad}IfOp\n")
        _dump_all((node.predicate, node.truthy, node.falsy), depth + 1, f)
    elif isinstance(node, Args):
        f.write(f"{pad}Args\n")
        _dump_all(node.items, depth + 1, f)
    elif isinstance(node, Call):
        parens = "()" if node.args is not None else ""
        f.write(f"{pad}Call {node.operator or ''}{node.name}{parens}\n")
        if node.receiver is not None:
            _dump(node.receiver, depth + 1, f)
        _dump_all(node.args or (), depth + 1, f)
    elif isinstance(node, Command):
        f.write(f"{pad}Command {node.name}\n")
        _dump(node.args, depth + 1, f)
    elif isinstance(node, CommandCall):
        f.write(f"{pad}CommandCall {node.operator}{node.name}\n")
        _dump(node.receiver, depth + 1, f)
        if node.args is not None:
            _dump(node.args, depth + 1, f)
    elif isinstance(node, Def):
        f.write(f"{pad}Def {node.name}{_params(node.params)}\n")
        _dump_all(node.body, depth + 1, f)
    elif isinstance(node, Defs):
        f.write(f"{pad}Defs {node.operator}{node.name}{_params(node.params)}\n")
        _dump(node.target, depth + 1, f)
        _dump_all(node.body, depth + 1, f)


def _dump_all(nodes: tuple[Statement, ...], depth: int, f: TextIO) -> None:
    for child in nodes:
        _dump(child, depth, f)
