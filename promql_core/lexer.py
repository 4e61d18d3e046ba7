"""
Lexical Scanner

Single-pass character walker shared by the layout engine and the
structural validator.

CLASSIFICATION:
===============
- A string literal opens at a quote (" or ') not immediately preceded
  by a backslash, and closes at the next unescaped quote of the same
  kind. Inside a literal a backslash escapes the next character.
- Label selectors {...} and range/subquery windows [...] outside
  literals are "selector" zones: their interior is copied as-is and
  never broken onto new lines.

INVARIANT:
==========
Nothing here inserts, removes or reorders characters inside a literal.
canonicalize() only changes whitespace outside literals.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple
import re


QUOTES = ('"', "'")

# Longer operators first so ">=" is never read as ">".
COMPARISON_OPERATORS = ("==", "!=", ">=", "<=", ">", "<")

MASK_CHAR = "\x00"

SELECTOR_PAIRS = {"{": "}", "[": "]"}

CLAUSE_RE = re.compile(r"\s*(by|without)\s*\(")

_WHITESPACE_RE = re.compile(r"\s+")


@dataclass(frozen=True)
class LiteralSpan:
    """A quoted span; end is exclusive and includes the closing quote."""
    start: int
    end: int
    quote: str
    terminated: bool


@dataclass(frozen=True)
class ScanResult:
    """Per-position classification of one query string."""
    text: str
    spans: Tuple[LiteralSpan, ...]
    in_literal: Tuple[bool, ...]
    in_selector: Tuple[bool, ...]

    def is_structural(self, index: int) -> bool:
        """True when the character at index may carry layout meaning."""
        return not self.in_literal[index] and not self.in_selector[index]

    def span_at(self, index: int) -> Optional[LiteralSpan]:
        for span in self.spans:
            if span.start <= index < span.end:
                return span
        return None

    def structural_view(self, start: int = 0, end: Optional[int] = None) -> str:
        """The text between start and end with literal and selector interiors masked."""
        end = len(self.text) if end is None else end
        return "".join(
            MASK_CHAR if (self.in_literal[i] or self.in_selector[i]) else self.text[i]
            for i in range(start, end)
        )


# =============================================================================
# SCANNING
# =============================================================================

def scan(text: str) -> ScanResult:
    """Classify every position of text in one left-to-right pass."""
    n = len(text)
    in_literal = [False] * n
    in_selector = [False] * n
    spans: List[LiteralSpan] = []
    closers: List[str] = []

    i = 0
    while i < n:
        ch = text[i]

        if ch in QUOTES and (i == 0 or text[i - 1] != "\\"):
            start = i
            terminated = False
            i += 1
            while i < n:
                c = text[i]
                if c == "\\":
                    i += 2
                    continue
                i += 1
                if c == ch:
                    terminated = True
                    break
            end = min(i, n)
            for j in range(start, end):
                in_literal[j] = True
                # Literals inside a selector are selector content as well.
                in_selector[j] = bool(closers)
            spans.append(LiteralSpan(start=start, end=end, quote=ch, terminated=terminated))
            i = end
            continue

        if closers and ch == closers[-1]:
            closers.pop()
        elif ch in SELECTOR_PAIRS:
            if closers:
                in_selector[i] = True
            closers.append(SELECTOR_PAIRS[ch])
            i += 1
            continue

        if closers:
            in_selector[i] = True
        i += 1

    return ScanResult(
        text=text,
        spans=tuple(spans),
        in_literal=tuple(in_literal),
        in_selector=tuple(in_selector),
    )


def literal_spans(text: str) -> Tuple[LiteralSpan, ...]:
    return scan(text).spans


def literal_mask(text: str) -> Tuple[bool, ...]:
    """Per-position flag: True inside a string literal (delimiters included)."""
    return scan(text).in_literal


def segments(text: str) -> Iterator[Tuple[str, bool]]:
    """Yield alternating (chunk, is_literal) pieces that concatenate back to text."""
    position = 0
    for span in scan(text).spans:
        if span.start > position:
            yield text[position:span.start], False
        yield text[span.start:span.end], True
        position = span.end
    if position < len(text):
        yield text[position:], False


def match_comparison(text: str, index: int) -> Optional[str]:
    """The comparison operator starting at index, longest match first."""
    for op in COMPARISON_OPERATORS:
        if text.startswith(op, index):
            return op
    return None


# =============================================================================
# CANONICAL FORM
# =============================================================================

def collapse_whitespace(text: str) -> str:
    """Collapse whitespace runs outside literals to one space."""
    return "".join(
        chunk if is_literal else _WHITESPACE_RE.sub(" ", chunk)
        for chunk, is_literal in segments(text)
    )


def canonicalize(text: str) -> str:
    """
    Canonical whitespace form of a query.

    Outside literals:
    - whitespace runs (newlines included) become one space
    - no space after "(" or ",", none before ")" or ","
    - no space around comparison operators outside selectors
    - a trailing clause reads ") by (" / ") without ("
    - no leading or trailing space

    The layout engine only inserts whitespace next to those tokens, so
    canonicalize(format(q)) == canonicalize(q).
    """
    collapsed = collapse_whitespace(text)
    scanned = scan(collapsed)
    n = len(collapsed)
    out: List[str] = []
    last_token: Optional[str] = None

    i = 0
    while i < n:
        if scanned.in_literal[i]:
            span = scanned.span_at(i)
            out.append(collapsed[span.start:span.end])
            last_token = None
            i = span.end
            continue

        ch = collapsed[i]

        if ch == " ":
            if out and i + 1 < n and last_token not in ("open", "comma", "op") \
                    and not _next_is_tight(collapsed, scanned, i + 1):
                out.append(" ")
            i += 1
            continue

        if scanned.in_selector[i]:
            out.append(ch)
            last_token = "comma" if ch == "," else None
            i += 1
            continue

        if ch == "(":
            out.append(ch)
            last_token = "open"
        elif ch == ")":
            clause = CLAUSE_RE.match(collapsed, i + 1)
            if clause:
                out.append(f") {clause.group(1)} (")
                last_token = "open"
                i = clause.end()
                continue
            out.append(ch)
            last_token = None
        elif ch == ",":
            out.append(ch)
            last_token = "comma"
        else:
            op = match_comparison(collapsed, i)
            if op:
                out.append(op)
                last_token = "op"
                i += len(op)
                continue
            out.append(ch)
            last_token = None
        i += 1

    return "".join(out)


def _next_is_tight(text: str, scanned: ScanResult, index: int) -> bool:
    """True when the character at index must not be preceded by a space."""
    if index >= len(text) or scanned.in_literal[index]:
        return False
    ch = text[index]
    if ch == ",":
        return True
    if scanned.in_selector[index]:
        return False
    return ch == ")" or match_comparison(text, index) is not None


# =============================================================================
# LITERAL PROTECTION
# =============================================================================

def protect_literals(text: str) -> Tuple[str, Tuple[str, ...], str]:
    """
    Replace every literal with a whitespace-free placeholder.

    Returns (protected_text, literals, sentinel). Line-based passes can
    then run over protected_text without touching literal content.
    """
    sentinel = _free_sentinel(text)
    literals: List[str] = []
    pieces: List[str] = []
    for chunk, is_literal in segments(text):
        if is_literal:
            pieces.append(f"{sentinel}{len(literals)}{sentinel}")
            literals.append(chunk)
        else:
            pieces.append(chunk)
    return "".join(pieces), tuple(literals), sentinel


def restore_literals(text: str, literals: Tuple[str, ...], sentinel: str) -> str:
    if not literals:
        return text
    pattern = re.compile(re.escape(sentinel) + r"(\d+)" + re.escape(sentinel))
    return pattern.sub(lambda m: literals[int(m.group(1))], text)


def _free_sentinel(text: str) -> str:
    """A private-use character that does not occur in text."""
    for code in range(0xE000, 0xF900):
        candidate = chr(code)
        if candidate not in text:
            return candidate
    raise ValueError("no free sentinel character for literal protection")
