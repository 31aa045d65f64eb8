"""Which files are Ruby: extensions, well-known filenames, and shebangs.

Lists follow GitHub Linguist and RuboCop's target finder.
"""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

EXTENSIONS = frozenset(
    {
        ".arb",
        ".axlsx",
        ".builder",
        ".eye",
        ".fcgi",
        ".gemfile",
        ".gemspec",
        ".god",
        ".jb",
        ".jbuilder",
        ".mspec",
        ".opal",
        ".pluginspec",
        ".podspec",
        ".rabl",
        ".rake",
        ".rb",
        ".rbi",
        ".rbuild",
        ".rbw",
        ".rbx",
        ".ru",
        ".ruby",
        ".thor",
        ".watchr",
    }
)

FILENAMES = frozenset(
    {
        ".irbrc",
        ".pryrc",
        ".simplecov",
        "Appraisals",
        "Berksfile",
        "Brewfile",
        "Buildfile",
        "Capfile",
        "Cheffile",
        "Dangerfile",
        "Deliverfile",
        "Fastfile",
        "Gemfile",
        "Guardfile",
        "Jarfile",
        "Mavenfile",
        "Podfile",
        "Puppetfile",
        "Rakefile",
        "Snapfile",
        "Thorfile",
        "Vagabondfile",
        "Vagrantfile",
        "buildfile",
    }
)

INTERPRETERS = frozenset({"jruby", "macruby", "rake", "rbx", "ruby"})


def interpreter_of(first_line: str) -> str | None:
    """Return the interpreter named by a ``#!`` line, or None."""
    if not first_line.startswith("#!"):
        return None
    words = first_line[2:].split()
    if not words:
        return None
    program = words[0].rsplit("/", 1)[-1]
    if program == "env" and len(words) > 1:
        program = words[1]
    return program


def is_ruby_file(path: Path) -> bool:
    """Return True if ``path`` names a Ruby file by extension, filename, or shebang."""
    if path.suffix in EXTENSIONS or path.name in FILENAMES:
        return True
    if path.suffix or not path.is_file():
        return False
    try:
        with open(path, encoding="utf-8") as f:
            first_line = f.readline()
    except (OSError, UnicodeDecodeError):
        return False
    return interpreter_of(first_line) in INTERPRETERS


def find_ruby_files(root: Path) -> Iterator[Path]:
    """Yield Ruby files under ``root`` in sorted order, skipping hidden directories."""
    for path in sorted(root.rglob("*")):
        relative = path.relative_to(root)
        if any(part.startswith(".") for part in relative.parts[:-1]):
            continue
        if path.is_file() and is_ruby_file(path):
            yield path
