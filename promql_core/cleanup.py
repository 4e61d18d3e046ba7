"""
Whitespace cleanup applied after layout.

Drops blank lines, trims trailing whitespace and rounds every line's
indentation down to an even number of spaces. Literals are swapped out
for placeholders first, so their content is never touched.
"""

from __future__ import annotations
import re

from .lexer import protect_literals, restore_literals


_TRIPLE_NEWLINE_RE = re.compile(r"\n\s*\n\s*\n")
_BLANK_LINE_RE = re.compile(r"\n\s*\n")
_TRAILING_RE = re.compile(r"[^\S\n]+$", re.MULTILINE)
_LEADING_RE = re.compile(r"^[^\S\n]+", re.MULTILINE)


def cleanup(text: str) -> str:
    """Normalize whitespace of a laid-out query and strip its ends."""
    protected, literals, sentinel = protect_literals(text)

    protected = _TRIPLE_NEWLINE_RE.sub("\n\n", protected)
    protected = _BLANK_LINE_RE.sub("\n", protected)
    protected = _TRAILING_RE.sub("", protected)
    protected = _LEADING_RE.sub(lambda m: " " * (len(m.group(0)) // 2 * 2), protected)

    return restore_literals(protected.strip(), literals, sentinel)
