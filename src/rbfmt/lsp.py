"""Minimal LSP server for rbfmt: diagnostics and whole-document formatting.

Formatting takes the indent width from the client and the print width from
the rbfmt.toml beside the document, falling back to the default width when
that file is missing or invalid.
"""

from __future__ import annotations

import argparse
import tomllib
from pathlib import Path

from lsprotocol.types import (
    TEXT_DOCUMENT_DID_CHANGE,
    TEXT_DOCUMENT_DID_OPEN,
    TEXT_DOCUMENT_FORMATTING,
    Diagnostic,
    DiagnosticSeverity,
    DidChangeTextDocumentParams,
    DidOpenTextDocumentParams,
    DocumentFormattingParams,
    Position,
    PublishDiagnosticsParams,
    Range,
    TextDocumentSyncKind,
    TextEdit,
)
from pygls.lsp.server import LanguageServer

from rbfmt import __version__
from rbfmt.cli import config_int, load_config
from rbfmt.errors import FormatError, LexError, ParseError
from rbfmt.layout import render
from rbfmt.options import FormatOptions
from rbfmt.parser import parse
from rbfmt.printer import print_ast
from rbfmt.tokens import Span

server = LanguageServer("rbfmt-lsp", __version__, text_document_sync_kind=TextDocumentSyncKind.Full)


def _range(span: Span) -> Range:
    """Convert a 1-based source span to a 0-based LSP range."""
    return Range(
        start=Position(line=span.start.line - 1, character=span.start.column - 1),
        end=Position(line=span.end.line - 1, character=span.end.column - 1),
    )


def _validate(ls: LanguageServer, uri: str) -> None:
    """Run the rbfmt pipeline and publish diagnostics."""
    doc = ls.workspace.get_text_document(uri)
    source = doc.source
    filename = uri.rsplit("/", 1)[-1] if "/" in uri else uri
    diagnostics: list[Diagnostic] = []

    try:
        program = parse(source, filename)
    except LexError as exc:
        line = exc.position.line - 1
        col = exc.position.column - 1
        diagnostics.append(
            Diagnostic(
                range=Range(
                    start=Position(line=line, character=col),
                    end=Position(line=line, character=col + 1),
                ),
                message=exc.message,
                severity=DiagnosticSeverity.Error,
                source="rbfmt",
            )
        )
    except ParseError as exc:
        diagnostics.append(
            Diagnostic(
                range=_range(exc.span),
                message=exc.message,
                severity=DiagnosticSeverity.Error,
                source="rbfmt",
            )
        )
    else:
        try:
            print_ast(program)
        except FormatError as exc:
            span = exc.span if exc.span is not None else program.span
            diagnostics.append(
                Diagnostic(
                    range=_range(span),
                    message=f"{exc.message} (node: {exc.kind})",
                    severity=DiagnosticSeverity.Warning,
                    source="rbfmt",
                )
            )

    ls.text_document_publish_diagnostics(
        PublishDiagnosticsParams(uri=uri, diagnostics=diagnostics)
    )


def _print_width(path: str | None) -> int:
    default = FormatOptions().print_width
    if not path:
        return default
    try:
        table = load_config(None, Path(path).parent).get("format")
        if not isinstance(table, dict):
            return default
        return config_int(table, "print_width", default)
    except (OSError, tomllib.TOMLDecodeError, argparse.ArgumentTypeError):
        return default


def _format_edits(ls: LanguageServer, uri: str, tab_width: int) -> list[TextEdit]:
    """Return one edit replacing the whole document, or none if it is unchanged or invalid."""
    doc = ls.workspace.get_text_document(uri)
    source = doc.source
    filename = uri.rsplit("/", 1)[-1] if "/" in uri else uri
    options = FormatOptions(print_width=_print_width(doc.path), tab_width=tab_width)

    try:
        program = parse(source, filename)
        formatted = render(print_ast(program), options)
    except (LexError, ParseError, FormatError):
        return []

    if formatted == source:
        return []

    lines = source.split("\n")
    end = Position(line=len(lines) - 1, character=len(lines[-1]))
    return [TextEdit(range=Range(start=Position(line=0, character=0), end=end), new_text=formatted)]


@server.feature(TEXT_DOCUMENT_DID_OPEN)
def did_open(ls: LanguageServer, params: DidOpenTextDocumentParams) -> None:
    _validate(ls, params.text_document.uri)


@server.feature(TEXT_DOCUMENT_DID_CHANGE)
def did_change(ls: LanguageServer, params: DidChangeTextDocumentParams) -> None:
    _validate(ls, params.text_document.uri)


@server.feature(TEXT_DOCUMENT_FORMATTING)
def formatting(ls: LanguageServer, params: DocumentFormattingParams) -> list[TextEdit]:
    return _format_edits(ls, params.text_document.uri, params.options.tab_size)


def main() -> None:
    server.start_io()
