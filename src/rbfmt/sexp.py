"""Load Ripper S-expressions into typed AST nodes.

Accepts the JSON rendering of ``Ripper.sexp`` output, where every node is
a list headed by its kind (``["command", ["@ident", "foo", [1, 0]], ...]``),
as well as the ``{"type": ..., "body": [...]}`` objects some Ruby-side
parsers emit instead. Each node's shape is checked once here; a mismatch
raises MalformedNodeError, and a kind outside the supported subset raises
UnsupportedConstructError.

Ripper does not record where most constructs end, so loaded nodes carry
an empty span and blank lines between statements are not reproduced.
"""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any

from rbfmt.ast import (
    Args,
    ArrayLiteral,
    Assoc,
    Binary,
    Call,
    Command,
    CommandCall,
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
from rbfmt.errors import MalformedNodeError, UnsupportedConstructError
from rbfmt.tokens import Position, Span

_NO_SPAN = Span(Position(0, 0, 0), Position(0, 0, 0))

_NAME_TOKENS = frozenset({"@ident", "@const", "@kw", "@ivar", "@cvar", "@gvar"})

_CALL_OPERATORS = frozenset({".", "&."})


def _as_sexp(value: Any) -> Any:
    """Convert a ``{"type", "body"}`` object to list form; pass lists through."""
    if not isinstance(value, dict):
        return value
    kind = value.get("type")
    body = value.get("body")
    if isinstance(kind, str) and kind.startswith("@"):
        line = value.get("start", 0)
        return [kind, body, [line, 0]]
    if isinstance(body, list):
        return [kind, *body]
    return [kind, body]


def _quote(raw: str) -> str:
    """Quote raw string content; Ripper does not record the original quotes."""
    if "'" not in raw and "\\" not in raw:
        return f"'{raw}'"
    return '"' + re.sub(r'(?<!\\)"', r'\\"', raw) + '"'


def _find_span(sexp: Any) -> Span | None:
    """Span of the first scanner token inside ``sexp``, if any."""
    stack = [sexp]
    while stack:
        item = _as_sexp(stack.pop())
        if not isinstance(item, list) or not item:
            continue
        head = item[0]
        if isinstance(head, str) and head.startswith("@") and len(item) >= 3:
            pos = item[2]
            if isinstance(pos, list) and len(pos) == 2 and isinstance(item[1], str):
                line, col = pos
                start = Position(line, col + 1, 0)
                return Span(start, Position(line, col + 1 + len(item[1]), 0))
        stack.extend(reversed(item))
    return None


class Loader:
    """Convert Ripper S-expressions to AST nodes, validating each shape."""

    def __init__(self, max_depth: int = 128) -> None:
        self._depth = 0
        self._max_depth = max_depth

    # ------------------------------------------------------------------
    # Shape helpers
    # ------------------------------------------------------------------

    def _malformed(self, message: str, kind: str, sexp: Any) -> MalformedNodeError:
        return MalformedNodeError(message, kind, _find_span(sexp))

    def _node(self, sexp: Any, context: str) -> list[Any]:
        sexp = _as_sexp(sexp)
        if not isinstance(sexp, list) or not sexp or not isinstance(sexp[0], str):
            raise self._malformed(f"expected a node in {context}", context, sexp)
        return sexp

    def _arity(self, sexp: list[Any], count: int) -> None:
        if len(sexp) < count + 1:
            raise self._malformed(
                f"expected {count} children, got {len(sexp) - 1}", sexp[0], sexp
            )

    def _token(self, sexp: Any, context: str, kinds: frozenset[str] | None = None) -> str:
        """Return the text of a scanner token such as ``["@ident", "foo", [1, 0]]``."""
        tok = self._node(sexp, context)
        if not tok[0].startswith("@") or len(tok) < 2 or not isinstance(tok[1], str):
            raise self._malformed(f"expected a scanner token in {context}", context, tok)
        if kinds is not None and tok[0] not in kinds:
            raise self._malformed(f"unexpected token {tok[0]} in {context}", context, tok)
        return tok[1]

    def _operator(self, sexp: Any, context: str) -> str:
        sexp = _as_sexp(sexp)
        op = sexp if isinstance(sexp, str) else self._token(sexp, context)
        if op == "::":
            raise UnsupportedConstructError("'::' calls are not supported", context, _find_span(sexp))
        if op not in _CALL_OPERATORS:
            raise self._malformed(f"unknown call operator {op!r}", context, sexp)
        return op

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def load(self, sexp: Any) -> Program | Node:
        node = self._node(sexp, "root")
        if node[0] == "program":
            self._arity(node, 1)
            return Program(self._statements(node[1], "program"), _NO_SPAN)
        return self.expression(node)

    def _statements(self, stmts: Any, context: str) -> tuple[Statement, ...]:
        stmts = _as_sexp(stmts)
        if isinstance(stmts, list) and stmts and stmts[0] == "stmts_add":
            raise UnsupportedConstructError("raw Ripper event lists are not supported", context)
        if not isinstance(stmts, list):
            raise self._malformed("expected a statement list", context, stmts)
        result: list[Statement] = []
        for stmt in stmts:
            node = self._node(stmt, context)
            if node[0] == "void_stmt":
                continue
            result.append(self.expression(node))
        return tuple(result)

    def expression(self, sexp: Any) -> Node:
        node = self._node(sexp, "expression")
        kind = node[0]
        handler = getattr(self, "_load_" + kind.lstrip("@"), None)
        if handler is None:
            raise UnsupportedConstructError(
                f"unsupported node kind '{kind}'", kind, _find_span(node)
            )

        self._depth += 1
        try:
            if self._depth > self._max_depth:
                raise self._malformed("node nested too deeply", kind, node)
            return handler(node)
        finally:
            self._depth -= 1

    # ------------------------------------------------------------------
    # Leaves
    # ------------------------------------------------------------------

    def _load_var_ref(self, node: list[Any]) -> Node:
        self._arity(node, 1)
        return VarRef(self._token(node[1], node[0], _NAME_TOKENS), _NO_SPAN)

    _load_vcall = _load_var_ref
    _load_const_ref = _load_var_ref

    def _load_int(self, node: list[Any]) -> Node:
        return Literal(self._token(node, "@int"), _NO_SPAN)

    def _load_float(self, node: list[Any]) -> Node:
        return Literal(self._token(node, "@float"), _NO_SPAN)

    def _load_string_literal(self, node: list[Any]) -> Node:
        self._arity(node, 1)
        content = self._node(node[1], "string_literal")
        if content[0] != "string_content":
            raise self._malformed("expected string_content", "string_literal", node)
        pieces: list[str] = []
        for part in content[1:]:
            part = self._node(part, "string_content")
            if part[0] != "@tstring_content":
                raise UnsupportedConstructError(
                    "string interpolation is not supported", part[0], _find_span(part)
                )
            pieces.append(self._token(part, "string_content"))
        return Literal(_quote("".join(pieces)), _NO_SPAN)

    def _load_symbol_literal(self, node: list[Any]) -> Node:
        self._arity(node, 1)
        inner = self._node(node[1], "symbol_literal")
        if inner[0] == "symbol":
            self._arity(inner, 1)
            inner = self._node(inner[1], "symbol")
        return Literal(":" + self._token(inner, "symbol_literal"), _NO_SPAN)

    # ------------------------------------------------------------------
    # Compound expressions
    # ------------------------------------------------------------------

    def _load_array(self, node: list[Any]) -> Node:
        self._arity(node, 1)
        if node[1] is None:
            return ArrayLiteral((), _NO_SPAN)
        return ArrayLiteral(self._arg_items(node[1], "array"), _NO_SPAN)

    def _load_paren(self, node: list[Any]) -> Node:
        self._arity(node, 1)
        inner = _as_sexp(node[1])
        if isinstance(inner, list) and inner and isinstance(inner[0], list | dict):
            if len(inner) != 1:
                raise self._malformed("expected one expression in parentheses", "paren", node)
            inner = inner[0]
        return Paren(self.expression(inner), _NO_SPAN)

    def _load_binary(self, node: list[Any]) -> Node:
        self._arity(node, 3)
        op = node[2]
        if not isinstance(op, str):
            raise self._malformed("expected an operator", "binary", node)
        return Binary(self.expression(node[1]), op.lstrip(":"), self.expression(node[3]), _NO_SPAN)

    def _load_unary(self, node: list[Any]) -> Node:
        self._arity(node, 2)
        op = node[1]
        if not isinstance(op, str):
            raise self._malformed("expected an operator", "unary", node)
        op = op.lstrip(":")
        if op in ("-@", "!"):
            op = op.rstrip("@")
        else:
            raise UnsupportedConstructError(f"unary operator {op!r} is not supported", "unary")
        return Unary(op, self.expression(node[2]), _NO_SPAN)

    def _load_ifop(self, node: list[Any]) -> Node:
        self._arity(node, 3)
        return IfOp(
            self.expression(node[1]),
            self.expression(node[2]),
            self.expression(node[3]),
            _NO_SPAN,
        )

    def _load_assoc_new(self, node: list[Any]) -> Node:
        self._arity(node, 2)
        label = self._token(node[1], "assoc_new", frozenset({"@label"}))
        return Assoc(label.rstrip(":"), self.expression(node[2]), _NO_SPAN)

    # ------------------------------------------------------------------
    # Arguments
    # ------------------------------------------------------------------

    def _arg_items(self, sexp: Any, context: str) -> tuple[Node, ...]:
        """Flatten ``args_add_block``/``args``/plain lists into argument nodes."""
        sexp = _as_sexp(sexp)
        if isinstance(sexp, list) and sexp and isinstance(sexp[0], str):
            if sexp[0] == "args_add_block":
                self._arity(sexp, 1)
                if len(sexp) > 2 and sexp[2] not in (False, None):
                    raise UnsupportedConstructError("block arguments are not supported", context)
                return self._arg_items(sexp[1], context)
            if sexp[0] == "args":
                self._arity(sexp, 1)
                return self._arg_items(sexp[1], context)
            raise self._malformed(f"expected an argument list, got '{sexp[0]}'", context, sexp)
        if not isinstance(sexp, list):
            raise self._malformed("expected an argument list", context, sexp)

        items: list[Node] = []
        for arg in sexp:
            arg = self._node(arg, context)
            if arg[0] == "bare_assoc_hash":
                self._arity(arg, 1)
                items.extend(self.expression(pair) for pair in arg[1])
            else:
                items.append(self.expression(arg))
        return tuple(items)

    def _args(self, sexp: Any, context: str) -> Args:
        items = self._arg_items(sexp, context)
        if not items:
            raise self._malformed("expected at least one argument", context, sexp)
        return Args(items, _NO_SPAN)

    def _paren_args(self, sexp: Any, context: str) -> tuple[Node, ...]:
        node = self._node(sexp, context)
        if node[0] != "arg_paren":
            raise self._malformed(f"expected arg_paren, got '{node[0]}'", context, node)
        if len(node) < 2 or node[1] is None:
            return ()
        return self._arg_items(node[1], context)

    # ------------------------------------------------------------------
    # Calls
    # ------------------------------------------------------------------

    def _load_fcall(self, node: list[Any]) -> Node:
        self._arity(node, 1)
        return Call(None, None, self._token(node[1], "fcall", _NAME_TOKENS), None, _NO_SPAN)

    def _load_call(self, node: list[Any]) -> Node:
        self._arity(node, 3)
        receiver = self.expression(node[1])
        op = self._operator(node[2], "call")
        name = self._token(node[3], "call", _NAME_TOKENS)
        return Call(receiver, op, name, None, _NO_SPAN)

    def _load_method_add_arg(self, node: list[Any]) -> Node:
        self._arity(node, 2)
        callee = self.expression(node[1])
        if not isinstance(callee, Call) or callee.args is not None:
            raise self._malformed("expected a call before its arguments", "method_add_arg", node)
        args = self._paren_args(node[2], "method_add_arg")
        return Call(callee.receiver, callee.operator, callee.name, args, _NO_SPAN)

    def _load_command(self, node: list[Any]) -> Node:
        self._arity(node, 2)
        name = self._token(node[1], "command", _NAME_TOKENS)
        return Command(name, self._args(node[2], "command"), _NO_SPAN)

    def _load_command_call(self, node: list[Any]) -> Node:
        self._arity(node, 3)
        receiver = self.expression(node[1])
        op = self._operator(node[2], "command_call")
        name = self._token(node[3], "command_call", _NAME_TOKENS)
        args = None
        if len(node) > 4 and node[4] is not None:
            args = self._args(node[4], "command_call")
        return CommandCall(receiver, op, name, args, _NO_SPAN)

    # ------------------------------------------------------------------
    # Method definitions
    # ------------------------------------------------------------------

    def _params(self, sexp: Any, context: str) -> tuple[str, ...] | None:
        node = self._node(sexp, context)
        parenthesized = node[0] == "paren"
        if parenthesized:
            self._arity(node, 1)
            node = self._node(node[1], context)
        if node[0] != "params":
            raise self._malformed(f"expected params, got '{node[0]}'", context, node)
        required = node[1] if len(node) > 1 else None
        if any(extra not in (None, False, 0) for extra in node[2:]):
            raise UnsupportedConstructError("only required parameters are supported", context)
        if required is None:
            return () if parenthesized else None
        names = tuple(self._token(p, context, frozenset({"@ident"})) for p in required)
        return names

    def _body(self, sexp: Any, context: str) -> tuple[Statement, ...]:
        node = self._node(sexp, context)
        if node[0] != "bodystmt":
            raise self._malformed(f"expected bodystmt, got '{node[0]}'", context, node)
        self._arity(node, 1)
        if any(extra is not None for extra in node[2:]):
            raise UnsupportedConstructError("rescue/else/ensure clauses are not supported", context)
        return self._statements(node[1], context)

    def _load_def(self, node: list[Any]) -> Node:
        self._arity(node, 3)
        name = self._token(node[1], "def", _NAME_TOKENS)
        return Def(name, self._params(node[2], "def"), self._body(node[3], "def"), _NO_SPAN)

    def _load_defs(self, node: list[Any]) -> Node:
        self._arity(node, 5)
        target_sexp = self._node(node[1], "defs")
        if target_sexp[0].startswith("@"):
            target: Node = VarRef(self._token(target_sexp, "defs", _NAME_TOKENS), _NO_SPAN)
        else:
            target = self.expression(target_sexp)
        return Defs(
            target,
            self._operator(node[2], "defs"),
            self._token(node[3], "defs", _NAME_TOKENS),
            self._params(node[4], "defs"),
            self._body(node[5], "defs"),
            _NO_SPAN,
        )


def load(sexp: Any) -> Program | Node:
    """Convenience function: convert a Ripper S-expression to AST nodes."""
    return Loader().load(sexp)


def load_file(path: Path) -> Program | Node:
    """Read a JSON-encoded Ripper S-expression from ``path``."""
    with open(path, encoding="utf-8") as f:
        return load(json.load(f))
