"""AST node types for the supported Ruby subset.

Each node names its Ripper equivalent in ``kind``; the printer dispatches
on it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar

from rbfmt.tokens import Span


@dataclass(frozen=True, slots=True)
class Comment:
    """A ``#`` comment, on its own line or trailing a statement."""

    kind: ClassVar[str] = "comment"

    value: str
    trailing: bool
    span: Span


@dataclass(frozen=True, slots=True)
class VarRef:
    """Identifier, constant, instance/global variable or value keyword."""

    kind: ClassVar[str] = "var_ref"

    name: str
    span: Span


@dataclass(frozen=True, slots=True)
class Literal:
    """Number, string or symbol, kept as its raw source text."""

    kind: ClassVar[str] = "literal"

    value: str
    span: Span


@dataclass(frozen=True, slots=True)
class ArrayLiteral:
    kind: ClassVar[str] = "array"

    elements: tuple[Node, ...]
    span: Span


@dataclass(frozen=True, slots=True)
class Paren:
    kind: ClassVar[str] = "paren"

    expr: Node
    span: Span


@dataclass(frozen=True, slots=True)
class Assoc:
    """Bare ``key: value`` argument."""

    kind: ClassVar[str] = "assoc_new"

    label: str
    value: Node
    span: Span


@dataclass(frozen=True, slots=True)
class Binary:
    kind: ClassVar[str] = "binary"

    left: Node
    operator: str
    right: Node
    span: Span


@dataclass(frozen=True, slots=True)
class Unary:
    kind: ClassVar[str] = "unary"

    operator: str
    operand: Node
    span: Span


@dataclass(frozen=True, slots=True)
class IfOp:
    """Ternary conditional: ``predicate ? truthy : falsy``."""

    kind: ClassVar[str] = "ifop"

    predicate: Node
    truthy: Node
    falsy: Node
    span: Span


@dataclass(frozen=True, slots=True)
class Args:
    """Parenthesis-free argument list of a command or command-call."""

    kind: ClassVar[str] = "args_add_block"

    items: tuple[Node, ...]
    span: Span


@dataclass(frozen=True, slots=True)
class Call:
    """Method call: ``foo(a)``, ``recv.foo`` or ``recv&.foo(a)``.

    ``receiver`` and ``operator`` are None for a receiverless call.
    ``args`` is None when the call has no parentheses.
    """

    receiver: Node | None
    operator: str | None
    name: str
    args: tuple[Node, ...] | None
    span: Span

    @property
    def kind(self) -> str:
        return "fcall" if self.receiver is None else "call"


@dataclass(frozen=True, slots=True)
class Command:
    """Receiverless call without parentheses: ``foo a, b``."""

    kind: ClassVar[str] = "command"

    name: str
    args: Args
    span: Span


@dataclass(frozen=True, slots=True)
class CommandCall:
    """Receiver call with a parenthesis-free argument list: ``recv.foo a, b``."""

    kind: ClassVar[str] = "command_call"

    receiver: Node
    operator: str
    name: str
    args: Args | None
    span: Span


@dataclass(frozen=True, slots=True)
class Def:
    """Method definition. ``params`` is None when written without parentheses."""

    kind: ClassVar[str] = "def"

    name: str
    params: tuple[str, ...] | None
    body: tuple[Statement, ...]
    span: Span


@dataclass(frozen=True, slots=True)
class Defs:
    """Singleton method definition: ``def self.name``."""

    kind: ClassVar[str] = "defs"

    target: Node
    operator: str
    name: str
    params: tuple[str, ...] | None
    body: tuple[Statement, ...]
    span: Span


@dataclass(frozen=True, slots=True)
class Program:
    """Root node."""

    kind: ClassVar[str] = "program"

    statements: tuple[Statement, ...]
    span: Span


Node = (
    VarRef
    | Literal
    | ArrayLiteral
    | Paren
    | Assoc
    | Binary
    | Unary
    | IfOp
    | Call
    | Command
    | CommandCall
    | Def
    | Defs
)

Statement = Node | Comment
