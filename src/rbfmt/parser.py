"""Ruby subset parser: converts a token stream into an AST."""

from __future__ import annotations

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
    Node,
    Paren,
    Program,
    Statement,
    Unary,
    VarRef,
)
from rbfmt.errors import ParseError
from rbfmt.lexer import tokenize
from rbfmt.tokens import VALUE_KEYWORDS, Position, Span, Token, TokenType

# Binary operator precedence, loosest first
_PRECEDENCE: dict[str, int] = {
    "||": 1,
    "&&": 2,
    "==": 3,
    "!=": 3,
    "<=>": 3,
    "<": 4,
    ">": 4,
    "<=": 4,
    ">=": 4,
    "+": 5,
    "-": 5,
    "*": 6,
    "/": 6,
    "%": 6,
}

# Tokens that, after whitespace, can only begin a command argument
_ARG_START = frozenset(
    {
        TokenType.IDENTIFIER,
        TokenType.CONSTANT,
        TokenType.VARIABLE,
        TokenType.INTEGER,
        TokenType.FLOAT,
        TokenType.STRING,
        TokenType.SYMBOL,
        TokenType.LABEL,
        TokenType.LBRACKET,
        TokenType.LPAREN,
    }
)

_LITERALS = frozenset({TokenType.INTEGER, TokenType.FLOAT, TokenType.STRING, TokenType.SYMBOL})

_STATEMENT_END = (TokenType.NEWLINE, TokenType.SEMICOLON, TokenType.COMMENT, TokenType.EOF)


def _is_bare_call(node: Node) -> bool:
    return isinstance(node, Call) and node.receiver is not None and node.args is None


class Parser:
    """Recursive descent parser for Ruby token streams."""

    def __init__(
        self,
        tokens: list[Token],
        source: str,
        filename: str,
        max_depth: int = 64,
    ) -> None:
        self._tokens = tokens
        self._source = source
        self._filename = filename
        self._pos = 0
        self._depth = 0
        self._max_depth = max_depth

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def _peek(self, offset: int = 0) -> Token:
        idx = self._pos + offset
        if idx < len(self._tokens):
            return self._tokens[idx]
        return self._tokens[-1]  # EOF

    def _at(self, *types: TokenType) -> bool:
        return self._peek().type in types

    def _at_keyword(self, name: str) -> bool:
        tok = self._peek()
        return tok.type == TokenType.KEYWORD and tok.value == name

    def _at_eof(self) -> bool:
        return self._peek().type == TokenType.EOF

    def _advance(self) -> Token:
        tok = self._tokens[self._pos]
        if tok.type != TokenType.EOF:
            self._pos += 1
        return tok

    def _expect(self, tt: TokenType, message: str) -> Token:
        tok = self._peek()
        if tok.type != tt:
            raise self._error(message, tok.span)
        return self._advance()

    def _skip_newlines(self) -> None:
        while self._at(TokenType.NEWLINE):
            self._advance()

    def _prev_end(self) -> Position:
        """End position of the previously consumed token."""
        if self._pos > 0:
            return self._tokens[self._pos - 1].span.end
        return self._tokens[0].span.start

    def _error(self, message: str, span: Span) -> ParseError:
        return ParseError(message, span, self._source)

    def _unexpected(self, tok: Token) -> ParseError:
        if tok.type == TokenType.EOF:
            return self._error("unexpected end of input", tok.span)
        if tok.type == TokenType.KEYWORD:
            return self._error(f"'{tok.value}' is not supported", tok.span)
        if tok.type == TokenType.COMMENT:
            return self._error("comments inside expressions are not supported", tok.span)
        if tok.type == TokenType.NEWLINE:
            return self._error("unexpected end of line", tok.span)
        return self._error(f"unexpected '{tok.raw}'", tok.span)

    def _starts_argument(self, offset: int) -> bool:
        """True if the token at ``offset`` opens a parenthesis-free argument list."""
        tok = self._peek(offset)
        if not tok.spaced:
            return False
        if tok.type in _ARG_START:
            return True
        if tok.type == TokenType.KEYWORD:
            return tok.value in VALUE_KEYWORDS or tok.value == "def"
        if tok.type == TokenType.OPERATOR and tok.value in ("!", "-", "*"):
            # foo -1 is a command, foo - 1 is subtraction
            following = self._peek(offset + 1)
            if following.spaced or following.type in _STATEMENT_END:
                return False
            if tok.value == "*":
                raise self._error("splat arguments are not supported", tok.span)
            return True
        return False

    # ------------------------------------------------------------------
    # Program and statements
    # ------------------------------------------------------------------

    def parse(self) -> Program:
        start = self._peek().span.start
        statements = self._parse_statements(in_body=False)
        end = self._peek().span.end
        return Program(tuple(statements), Span(start, end))

    def _parse_statements(self, *, in_body: bool) -> list[Statement]:
        statements: list[Statement] = []

        while True:
            while self._at(TokenType.NEWLINE, TokenType.SEMICOLON):
                self._advance()

            if self._at_eof() or (in_body and self._at_keyword("end")):
                return statements

            if self._at(TokenType.COMMENT):
                tok = self._advance()
                statements.append(Comment(tok.value, False, tok.span))
                continue

            statements.append(self._parse_command_or_expression())

            if self._at(TokenType.COMMENT):
                tok = self._advance()
                statements.append(Comment(tok.value, True, tok.span))

            if self._at(TokenType.NEWLINE, TokenType.SEMICOLON, TokenType.EOF):
                continue
            if in_body and self._at_keyword("end"):
                continue
            tok = self._peek()
            if tok.type == TokenType.OPERATOR and tok.value == "=":
                raise self._error("assignment is not supported", tok.span)
            if tok.type == TokenType.KEYWORD:
                raise self._unexpected(tok)
            raise self._error(f"unexpected '{tok.raw}' after statement", tok.span)

    def _parse_command_or_expression(self) -> Node:
        if self._at(TokenType.IDENTIFIER) and self._starts_argument(1):
            return self._parse_command()

        expr = self._parse_expression()

        if _is_bare_call(expr) and self._starts_argument(0):
            args = self._parse_command_args()
            return CommandCall(
                expr.receiver,
                expr.operator or ".",
                expr.name,
                args,
                Span(expr.span.start, self._prev_end()),
            )

        return expr

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def _parse_command(self) -> Command:
        name_tok = self._advance()
        self._depth += 1
        try:
            if self._depth > self._max_depth:
                raise self._error("command nested too deeply", name_tok.span)
            args = self._parse_command_args()
        finally:
            self._depth -= 1
        return Command(name_tok.value, args, Span(name_tok.span.start, self._prev_end()))

    def _parse_command_args(self) -> Args:
        start = self._peek().span.start
        items = [self._parse_argument()]
        # A nested command as the last argument consumes the remaining commas
        while self._at(TokenType.COMMA):
            self._advance()
            self._skip_newlines()
            items.append(self._parse_argument())
        return Args(tuple(items), Span(start, self._prev_end()))

    def _parse_argument(self) -> Node:
        if self._at(TokenType.LABEL):
            label_tok = self._advance()
            self._skip_newlines()
            value = self._parse_expression()
            return Assoc(label_tok.value, value, Span(label_tok.span.start, value.span.end))
        return self._parse_command_or_expression()

    def _parse_paren_args(self, close: TokenType, closer: str) -> tuple[Node, ...]:
        self._advance()  # consume opener
        self._skip_newlines()
        items: list[Node] = []

        while not self._at(close):
            items.append(self._parse_argument())
            self._skip_newlines()
            if not self._at(TokenType.COMMA):
                break
            self._advance()
            self._skip_newlines()

        self._expect(close, f"expected '{closer}'")
        return tuple(items)

    # ------------------------------------------------------------------
    # Expressions
    # ------------------------------------------------------------------

    def _parse_expression(self) -> Node:
        self._depth += 1
        try:
            if self._depth > self._max_depth:
                raise self._error("expression nested too deeply", self._peek().span)
            return self._parse_ternary()
        finally:
            self._depth -= 1

    def _parse_ternary(self) -> Node:
        predicate = self._parse_binary(1)
        if not self._at(TokenType.QUESTION):
            return predicate

        self._advance()
        self._skip_newlines()
        truthy = self._parse_expression()
        self._skip_newlines()
        self._expect(TokenType.COLON, "expected ':' in ternary expression")
        self._skip_newlines()
        falsy = self._parse_expression()
        return IfOp(predicate, truthy, falsy, Span(predicate.span.start, falsy.span.end))

    def _parse_binary(self, min_prec: int) -> Node:
        left = self._parse_unary()

        while self._at(TokenType.OPERATOR):
            tok = self._peek()
            if tok.value == "=":
                raise self._error("assignment is not supported", tok.span)
            prec = _PRECEDENCE.get(tok.value)
            if prec is None or prec < min_prec:
                break
            if _is_bare_call(left) and self._starts_argument(0):
                # obj.meth -1 passes -1 to meth
                break
            self._advance()
            self._skip_newlines()
            right = self._parse_binary(prec + 1)
            left = Binary(left, tok.value, right, Span(left.span.start, right.span.end))

        return left

    def _parse_unary(self) -> Node:
        operators: list[Token] = []
        while self._at(TokenType.OPERATOR) and self._peek().value in ("!", "-"):
            operators.append(self._advance())

        node = self._parse_postfix()
        for tok in reversed(operators):
            node = Unary(tok.value, node, Span(tok.span.start, node.span.end))
        return node

    def _parse_postfix(self) -> Node:
        node = self._parse_primary()

        while self._at(TokenType.DOT, TokenType.AMPDOT):
            op_tok = self._advance()
            self._skip_newlines()
            name_tok = self._peek()
            if name_tok.type not in (TokenType.IDENTIFIER, TokenType.CONSTANT, TokenType.KEYWORD):
                raise self._error(f"expected method name after '{op_tok.value}'", name_tok.span)
            self._advance()

            args: tuple[Node, ...] | None = None
            if self._at(TokenType.LPAREN) and not self._peek().spaced:
                args = self._parse_paren_args(TokenType.RPAREN, ")")

            node = Call(
                node,
                op_tok.value,
                name_tok.value,
                args,
                Span(node.span.start, self._prev_end()),
            )

        return node

    def _parse_primary(self) -> Node:
        tok = self._peek()

        if tok.type in _LITERALS:
            self._advance()
            return Literal(tok.value, tok.span)

        if tok.type in (TokenType.IDENTIFIER, TokenType.CONSTANT):
            self._advance()
            if self._at(TokenType.LPAREN) and not self._peek().spaced:
                args = self._parse_paren_args(TokenType.RPAREN, ")")
                return Call(None, None, tok.value, args, Span(tok.span.start, self._prev_end()))
            return VarRef(tok.value, tok.span)

        if tok.type == TokenType.VARIABLE:
            self._advance()
            return VarRef(tok.value, tok.span)

        if tok.type == TokenType.KEYWORD:
            if tok.value in VALUE_KEYWORDS:
                self._advance()
                return VarRef(tok.value, tok.span)
            if tok.value == "def":
                return self._parse_def()
            raise self._unexpected(tok)

        if tok.type == TokenType.LPAREN:
            self._advance()
            self._skip_newlines()
            expr = self._parse_command_or_expression()
            self._skip_newlines()
            self._expect(TokenType.RPAREN, "expected ')'")
            return Paren(expr, Span(tok.span.start, self._prev_end()))

        if tok.type == TokenType.LBRACKET:
            elements = self._parse_paren_args(TokenType.RBRACKET, "]")
            return ArrayLiteral(elements, Span(tok.span.start, self._prev_end()))

        raise self._unexpected(tok)

    # ------------------------------------------------------------------
    # Method definitions
    # ------------------------------------------------------------------

    def _parse_def(self) -> Def | Defs:
        start = self._advance().span.start  # consume 'def'

        target: Node | None = None
        operator = "."
        tok = self._peek()
        following = self._peek(1)
        if following.type == TokenType.DOT and not following.spaced:
            if tok.type in (TokenType.IDENTIFIER, TokenType.CONSTANT) or (
                tok.type == TokenType.KEYWORD and tok.value == "self"
            ):
                self._advance()
                target = VarRef(tok.value, tok.span)
                operator = self._advance().value

        name_tok = self._peek()
        if name_tok.type not in (TokenType.IDENTIFIER, TokenType.CONSTANT):
            raise self._error("expected method name after 'def'", name_tok.span)
        self._advance()

        params = self._parse_params()

        if not self._at(*_STATEMENT_END) and not self._at_keyword("end"):
            raise self._error("unexpected text in method definition", self._peek().span)

        body = tuple(self._parse_statements(in_body=True))
        if not self._at_keyword("end"):
            raise self._error("expected 'end' to close method definition", self._peek().span)
        self._advance()

        span = Span(start, self._prev_end())
        if target is not None:
            return Defs(target, operator, name_tok.value, params, body, span)
        return Def(name_tok.value, params, body, span)

    def _parse_params(self) -> tuple[str, ...] | None:
        """Parse a parameter list; unparenthesized lists come back the same way."""
        if self._at(TokenType.LPAREN):
            self._advance()
            self._skip_newlines()
            names: list[str] = []
            while not self._at(TokenType.RPAREN):
                names.append(self._expect(TokenType.IDENTIFIER, "expected parameter name").value)
                self._skip_newlines()
                if not self._at(TokenType.COMMA):
                    break
                self._advance()
                self._skip_newlines()
            self._expect(TokenType.RPAREN, "expected ')' after parameters")
            return tuple(names)

        if self._at(TokenType.IDENTIFIER) and self._peek().spaced:
            names = [self._advance().value]
            while self._at(TokenType.COMMA):
                self._advance()
                names.append(self._expect(TokenType.IDENTIFIER, "expected parameter name").value)
            return tuple(names)

        return None


def parse(source: str, filename: str = "input.rb") -> Program:
    """Convenience function: tokenize and parse source text."""
    tokens = tokenize(source, filename)
    return Parser(tokens, source, filename).parse()
