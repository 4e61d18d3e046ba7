"""
Property Tests for Formatter Invariants

Idempotence, literal preservation, empty input, bracket balance and
cleanup stability over generated queries.
"""

import asyncio

import pytest
from hypothesis import given, settings, strategies as st
from hypothesis.strategies import composite

from promql_core.cleanup import cleanup
from promql_core.contracts import FormatOptions, FormatterMode
from promql_core.engine import LocalEngine
from promql_core.lexer import canonicalize
from promql_core.service import QueryFormatterService
from promql_core.validator import StructuralValidator


ENGINE = LocalEngine()

# =============================================================================
# STRATEGIES (Generators)
# =============================================================================

TOKENS = [
    "sum", "rate", "avg_over_time", "histogram_quantile", "count", "abs",
    "http_requests_total", "node_cpu_seconds_total", "x", "0.95", "100",
    "(", ")", "(", ")", ",", "by", "without", "bool",
    "[5m]", "[1h:5m]", '{job="api"}', '{mode!="idle",env=~"prod|stage"}',
    ">", "<", ">=", "<=", "==", "!=", "*", "+", "/",
    '"a(b,c)"', "'it''s'", '"esc\\"aped"',
]

WHITESPACE = ["", " ", "  ", "\n", "\t", " \n  "]


@composite
def queries(draw):
    """Token soup: not always valid PromQL, always something a user might paste."""
    parts = draw(st.lists(st.sampled_from(TOKENS), min_size=0, max_size=25))
    pieces = []
    for part in parts:
        pieces.append(draw(st.sampled_from(WHITESPACE)))
        pieces.append(part)
    pieces.append(draw(st.sampled_from(WHITESPACE)))
    return "".join(pieces)


SAFE_LITERAL_TEXT = st.text(
    alphabet=st.sampled_from(list("abc (),[]{}<>=!  \n\t+*-_.:$0123456789")),
    max_size=30
)


# =============================================================================
# PROPERTIES
# =============================================================================

class TestIdempotence:

    @settings(max_examples=300)
    @given(queries())
    def test_format_is_idempotent(self, query):
        """Formatting formatted output must not change it."""
        once = ENGINE.prettify(query)
        assert ENGINE.prettify(once) == once

    @given(queries())
    def test_format_only_changes_whitespace(self, query):
        """Formatting may only change whitespace."""
        assert canonicalize(ENGINE.prettify(query)) == canonicalize(query)


class TestLiteralPreservation:

    @given(SAFE_LITERAL_TEXT)
    def test_literal_content_byte_identical(self, content):
        """Selector literal must survive byte for byte."""
        literal = f'"{content}"'
        query = f"sum(rate(x{{a={literal}}}[5m])) by (job)"
        assert literal in ENGINE.prettify(query)

    @given(SAFE_LITERAL_TEXT)
    def test_function_argument_literal_preserved(self, content):
        """Argument literal must survive byte for byte."""
        literal = f"'{content}'"
        query = f'label_replace(up, "dst", {literal}, "src", ".*")'
        assert literal in ENGINE.prettify(query)


class TestEmptyInput:

    @given(st.text(alphabet=" \t\n\r", max_size=20))
    def test_whitespace_formats_to_empty(self, blank):
        """Blank input must format to empty."""
        assert ENGINE.format(blank).as_tuple() == ("", None)
        assert ENGINE.validate(blank).as_tuple() == (True, None)

    @given(st.text(alphabet=" \t\n", max_size=10))
    def test_service_empty_input_without_delegate(self, blank):
        """Blank input must not need a delegate."""
        service = QueryFormatterService()
        result = asyncio.run(service.format_query(blank, FormatOptions(fallback_to_local=False)))
        assert result.as_tuple() == ("", None)


class TestBracketBalance:

    @given(st.text(alphabet="()ab ", max_size=40))
    def test_matches_reference_count(self, query):
        """Bracket verdict must match a plain depth count."""
        depth = 0
        expected = None
        for ch in query:
            if ch == "(":
                depth += 1
            elif ch == ")":
                if depth == 0:
                    expected = "unmatched closing bracket"
                    break
                depth -= 1
        if expected is None and depth > 0:
            expected = "missing closing bracket"

        result = StructuralValidator().validate(query)

        assert result.error == expected
        assert result.is_valid == (expected is None)

    @given(st.text(alphabet="ab\"' ", max_size=30))
    def test_quote_parity(self, query):
        """Quote verdict must follow parity."""
        quotes = query.count('"') + query.count("'")
        result = StructuralValidator().validate(query)
        assert result.is_valid == (quotes % 2 == 0)

    @given(queries())
    def test_validation_is_whitespace_independent(self, query):
        """Formatting must not change the verdict."""
        validator = StructuralValidator()
        assert validator.validate(query).as_tuple() == \
            validator.validate(ENGINE.prettify(query)).as_tuple()


class TestCleanupStability:

    @given(st.text(alphabet="ab(),\n \t", max_size=60))
    def test_cleanup_is_idempotent(self, text):
        """Cleanup of cleaned text must not change it."""
        once = cleanup(text)
        assert cleanup(once) == once

    @given(st.text(alphabet="ab\n ", max_size=60))
    def test_cleanup_leaves_even_indentation(self, text):
        """Cleaned lines must have even indentation."""
        for line in cleanup(text).splitlines():
            indent = len(line) - len(line.lstrip(" "))
            assert indent % 2 == 0
