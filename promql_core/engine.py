"""
Local Engine

Synchronous, dependency-free formatter used when the delegate is not
wanted or not available.

PIPELINE:
=========
canonicalize → layout → cleanup

format(format(q)) == format(q) for every q.
"""

from __future__ import annotations
from typing import Optional, Tuple

from .cleanup import cleanup
from .config import LayoutConfig, ValidatorConfig
from .contracts import ExplainResult, FormatResult, FormatterMode, ValidateResult
from .examples import fallback_examples
from .explain import explain_locally
from .layout import LayoutEngine
from .lexer import canonicalize
from .validator import StructuralValidator


class LocalEngine:

    def __init__(
        self,
        layout: Optional[LayoutConfig] = None,
        validator: Optional[ValidatorConfig] = None
    ):
        self._layout = LayoutEngine(layout)
        self._validator = StructuralValidator(validator)

    def format(self, query: str) -> FormatResult:
        if not query.strip():
            return FormatResult.success_response("", FormatterMode.LOCAL)
        return FormatResult.success_response(self.prettify(query), FormatterMode.LOCAL)

    def prettify(self, query: str) -> str:
        """The formatted text alone."""
        return cleanup(self._layout.layout(canonicalize(query)))

    def validate(self, query: str) -> ValidateResult:
        return self._validator.validate(query)

    def explain(self, query: str) -> ExplainResult:
        return explain_locally(query)

    def list_examples(self) -> Tuple[str, ...]:
        return fallback_examples()
