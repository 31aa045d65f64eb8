"""Opt-in pragma comments: ``# @format`` or ``# @prettier``."""

from __future__ import annotations

import re

_PRAGMA_RE = re.compile(r"^\s*#[^\S\n]*@(?:prettier|format)\s*?(?:\n|$)", re.MULTILINE)

PRAGMA = "# @format"


def has_pragma(text: str) -> bool:
    """Return True if a line of ``text`` is a format pragma comment."""
    return _PRAGMA_RE.search(text) is not None


def insert_pragma(text: str) -> str:
    """Prepend the pragma, separated by a blank line unless text opens with a comment."""
    separator = "\n" if text.startswith("#") else "\n\n"
    return PRAGMA + separator + text
