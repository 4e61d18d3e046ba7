"""
Lexical Scanner Tests

Literal masking, selector zones and the canonical whitespace form.
"""

import pytest

from promql_core.lexer import (
    MASK_CHAR,
    canonicalize,
    collapse_whitespace,
    literal_mask,
    literal_spans,
    match_comparison,
    protect_literals,
    restore_literals,
    scan,
    segments,
)


# =============================================================================
# LITERAL MASKING
# =============================================================================

class TestLiteralMasking:
    """Quoted spans are recognised exactly once, escapes included."""

    def test_double_quoted_literal_is_masked(self):
        """Double-quoted literal must be masked including its quotes."""
        query = 'x{a="b(c"}'
        mask = literal_mask(query)
        start = query.index('"')
        end = query.rindex('"')
        assert all(mask[start:end + 1])
        assert not any(mask[:start])
        assert not mask[-1]

    def test_single_quoted_literal_is_masked(self):
        """Single-quoted literal must be masked the same way."""
        spans = literal_spans("label_replace(up, 'dst', '$1')")
        assert len(spans) == 2
        assert all(s.quote == "'" and s.terminated for s in spans)

    def test_backslash_escapes_inside_literal(self):
        """Escaped quote must not close the literal."""
        query = r'x{a="say \"hi\""}'
        spans = literal_spans(query)
        assert len(spans) == 1
        assert query[spans[0].start:spans[0].end] == r'"say \"hi\""'

    def test_escaped_quote_outside_literal_does_not_open(self):
        """Backslash-preceded quote must not open a literal."""
        assert literal_spans(r'a\"b') == ()

    def test_other_quote_kind_is_plain_content(self):
        spans = literal_spans("""x{a="it's"}""")
        assert len(spans) == 1
        assert spans[0].quote == '"'

    def test_unterminated_literal_runs_to_end(self):
        """Unterminated literal must extend to end of input."""
        query = 'x{a="open'
        spans = literal_spans(query)
        assert len(spans) == 1
        assert spans[0].end == len(query)
        assert not spans[0].terminated

    def test_segments_concatenate_back(self):
        """Segments must reassemble into the original text."""
        query = 'sum(x{a="1", b=\'2\'}) by (job)'
        chunks = list(segments(query))
        assert "".join(chunk for chunk, _ in chunks) == query
        assert [chunk for chunk, is_literal in chunks if is_literal] == ['"1"', "'2'"]


# =============================================================================
# SELECTOR ZONES
# =============================================================================

class TestSelectorZones:

    def test_brace_interior_is_selector(self):
        """Label selector interior must be a selector zone."""
        scanned = scan('up{job="api",env="prod"}')
        view = scanned.structural_view()
        assert view.startswith("up{")
        assert view.endswith("}")
        assert "," not in view
        assert "=" not in view

    def test_range_window_interior_is_selector(self):
        """Range window interior must be a selector zone."""
        scanned = scan("rate(x[5m])")
        assert scanned.structural_view() == "rate(x[" + MASK_CHAR * 2 + "])"

    def test_structural_view_keeps_length(self):
        """Masking must preserve positions."""
        query = 'count(x{a="(,)"}) > 1'
        assert len(scan(query).structural_view()) == len(query)


# =============================================================================
# OPERATORS
# =============================================================================

class TestComparisonOperators:

    @pytest.mark.parametrize("text,expected", [
        (">=1", ">="),
        ("<=1", "<="),
        ("==1", "=="),
        ("!=1", "!="),
        (">1", ">"),
        ("<1", "<"),
        ("=1", None),
        ("x", None),
    ])
    def test_longest_match_first(self, text, expected):
        """Two-character operators must win over their prefixes."""
        assert match_comparison(text, 0) == expected


# =============================================================================
# CANONICAL FORM
# =============================================================================

class TestCanonicalForm:
    """Only whitespace outside literals may change."""

    def test_collapse_whitespace_outside_literals(self):
        """Whitespace runs collapse only outside literals."""
        assert collapse_whitespace('a   b\n\tc{x="  y  "}') == 'a b c{x="  y  "}'

    def test_removes_space_inside_brackets(self):
        """No space after an open or before a close bracket."""
        assert canonicalize("sum( rate( x[5m] ) )") == "sum(rate(x[5m]))"

    def test_removes_space_around_commas(self):
        """No space around argument commas."""
        assert canonicalize("f(a , b ,c)") == "f(a,b,c)"

    def test_removes_space_around_comparisons(self):
        """No space around comparison operators."""
        assert canonicalize("a  >=  1") == "a>=1"

    def test_normalizes_grouping_clause(self):
        """Grouping clause must read ") by ("."""
        assert canonicalize("sum(x)by(job)") == "sum(x) by (job)"
        assert canonicalize("sum(x)\n  without   ( job )") == "sum(x) without (job)"

    def test_keeps_space_between_words(self):
        """Space between words must survive."""
        assert canonicalize("sum by (job) (x)") == "sum by (job) (x)"
        assert canonicalize("a  * 100") == "a * 100"

    def test_strips_ends(self):
        """Leading and trailing whitespace must go."""
        assert canonicalize("  \n up \t") == "up"

    def test_literal_content_untouched(self):
        """Whitespace inside literals must never change."""
        query = 'x{a="  ( , )  >  "}'
        assert canonicalize(query) == query

    def test_selector_comma_space_removed(self):
        """Selector comma spacing must be normalized."""
        assert canonicalize('up{a="1", b="2"}') == 'up{a="1",b="2"}'

    def test_canonicalize_is_idempotent(self):
        """Canonical form of canonical form is unchanged."""
        query = " sum (  rate(x{a = \"b\"}[5m])) by( job ) > 3 "
        once = canonicalize(query)
        assert canonicalize(once) == once


class TestLiteralProtection:

    def test_round_trip(self):
        """Protected literals must be restored byte for byte."""
        text = 'a "x\n  y" b \'z\''
        protected, literals, sentinel = protect_literals(text)
        assert "\n" not in protected
        assert literals == ('"x\n  y"', "'z'")
        assert restore_literals(protected, literals, sentinel) == text

    def test_sentinel_not_in_text(self):
        """Sentinel must never occur in the input."""
        text = " \"a\""
        _, _, sentinel = protect_literals(text)
        assert sentinel not in text
