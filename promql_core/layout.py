"""
Layout Engine

Re-lays a canonical query across lines with nesting-based indentation.

RULES (outside literals and selector interiors):
================================================
- "("  opens a level; breaks after itself when its content is complex
       (comma, long, nested call, or comparison)
- ")"  closes a level; breaks before itself when the current line is
       long or holds a comma
- ") by (" / ") without ("  the closing paren goes on a fresh line and
       the clause stays on it
- ","  breaks inside brackets, gets one trailing space at top level
- comparison operators sit on their own line

Input is expected in canonical form (see lexer.canonicalize). The engine
only inserts whitespace.
"""

from __future__ import annotations
import re
from typing import List, Optional

from .config import LayoutConfig
from .lexer import CLAUSE_RE, MASK_CHAR, ScanResult, match_comparison, scan


_CALL_RE = re.compile(r"\w+\s*\(")
_COMPARISON_RE = re.compile(r"==|!=|>=|<=|>|<")


class _Emitter:
    """Output buffer that remembers the current line in raw and masked form."""

    def __init__(self):
        self._chunks: List[str] = []
        self._line: List[str] = []
        self._line_masked: List[str] = []

    def write(self, text: str, masked: bool = False) -> None:
        if not text:
            return
        self._chunks.append(text)
        if "\n" in text:
            tail = text.rsplit("\n", 1)[1]
            self._line = [tail]
            self._line_masked = [MASK_CHAR * len(tail) if masked else tail]
        else:
            self._line.append(text)
            self._line_masked.append(MASK_CHAR * len(text) if masked else text)

    def newline(self, indent: str) -> None:
        self.write("\n" + indent)

    @property
    def last_char(self) -> str:
        """Last emitted character; an empty buffer reads as a line start."""
        for chunk in reversed(self._chunks):
            if chunk:
                return chunk[-1]
        return "\n"

    @property
    def current_line(self) -> str:
        return "".join(self._line)

    @property
    def current_line_masked(self) -> str:
        return "".join(self._line_masked)

    def getvalue(self) -> str:
        return "".join(self._chunks)


class LayoutEngine:
    """Stateless apart from its configuration; safe to share."""

    def __init__(self, config: Optional[LayoutConfig] = None):
        self.config = config or LayoutConfig()

    def layout(self, query: str) -> str:
        scanned = scan(query)
        out = _Emitter()
        level = 0
        n = len(query)

        i = 0
        while i < n:
            if scanned.in_literal[i]:
                span = scanned.span_at(i)
                out.write(query[span.start:span.end], masked=True)
                i = span.end
                continue

            ch = query[i]

            if scanned.in_selector[i]:
                out.write(", " if ch == "," else ch, masked=True)
                i += 1
                continue

            if ch == "(":
                out.write("(")
                level += 1
                if self._is_complex(scanned, i + 1):
                    out.newline(self._indent(level))

            elif ch == ")":
                level = max(0, level - 1)
                clause = CLAUSE_RE.match(query, i + 1)
                if clause:
                    if out.current_line.strip():
                        out.newline(self._indent(level))
                    out.write(f") {clause.group(1)} (")
                    i = clause.end()
                    level += 1
                    if self._is_complex(scanned, i):
                        out.newline(self._indent(level))
                    continue
                if out.last_char not in (" ", "\n") and self._line_needs_break(out):
                    out.newline(self._indent(level))
                out.write(")")

            elif ch == ",":
                out.write(",")
                if level > 0:
                    out.newline(self._indent(level))
                else:
                    out.write(" ")

            else:
                op = match_comparison(query, i)
                if op:
                    if out.last_char not in (" ", "\n"):
                        out.write("\n")
                    out.write(self._indent(level) + op)
                    i += len(op)
                    if i < n:
                        out.newline(self._indent(level))
                    continue
                out.write(ch)

            i += 1

        return out.getvalue()

    # =========================================================================
    # INTERNAL HELPERS
    # =========================================================================

    def _indent(self, level: int) -> str:
        return " " * (level * self.config.indent_size)

    def _is_complex(self, scanned: ScanResult, start: int) -> bool:
        """Whether the bracket content starting at start deserves its own lines."""
        end = _matching_close(scanned, start)
        structural = scanned.structural_view(start, end)
        return (
            "," in structural
            or (end - start) > self.config.open_bracket_threshold
            or _CALL_RE.search(structural) is not None
            or _COMPARISON_RE.search(structural) is not None
        )

    def _line_needs_break(self, out: _Emitter) -> bool:
        line = out.current_line.strip()
        if not line:
            return False
        return len(line) > self.config.close_bracket_threshold or "," in out.current_line_masked


def _matching_close(scanned: ScanResult, start: int) -> int:
    """Index of the ")" closing the bracket whose content begins at start, or len(text)."""
    text = scanned.text
    depth = 1
    for j in range(start, len(text)):
        if not scanned.is_structural(j):
            continue
        if text[j] == "(":
            depth += 1
        elif text[j] == ")":
            depth -= 1
            if depth == 0:
                return j
    return len(text)
