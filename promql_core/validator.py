"""
Structural Validator

Two cheap checks, run in order, first failure wins:

1. Bracket balance over "(" and ")". Brackets inside string literals
   are ignored unless ValidatorConfig.literal_aware is False.
2. Quote parity: an odd total of '"' and "'" characters fails.

This is not a PromQL parser. A query that passes may still be rejected
by a real engine.
"""

from __future__ import annotations
from typing import Optional

from .config import ValidatorConfig
from .contracts import ErrorCode, FormatterMode, ValidateResult
from .lexer import literal_mask


UNMATCHED_CLOSING_BRACKET = "unmatched closing bracket"
MISSING_CLOSING_BRACKET = "missing closing bracket"
UNMATCHED_QUOTE = "unmatched quote"


class StructuralValidator:

    def __init__(self, config: Optional[ValidatorConfig] = None):
        self.config = config or ValidatorConfig()

    def validate(self, query: str) -> ValidateResult:
        if not query.strip():
            return ValidateResult.valid(FormatterMode.LOCAL)

        bracket_error = self._check_brackets(query)
        if bracket_error is not None:
            return bracket_error

        quotes = query.count('"') + query.count("'")
        if quotes % 2 != 0:
            return ValidateResult.invalid(
                UNMATCHED_QUOTE, ErrorCode.UNMATCHED_QUOTE, FormatterMode.LOCAL
            )

        return ValidateResult.valid(FormatterMode.LOCAL)

    def _check_brackets(self, query: str) -> Optional[ValidateResult]:
        mask = literal_mask(query) if self.config.literal_aware else None
        open_positions = []

        for i, ch in enumerate(query):
            if mask is not None and mask[i]:
                continue
            if ch == "(":
                open_positions.append(i)
            elif ch == ")":
                if not open_positions:
                    return ValidateResult.invalid(
                        UNMATCHED_CLOSING_BRACKET,
                        ErrorCode.UNMATCHED_CLOSING_BRACKET,
                        FormatterMode.LOCAL,
                        position=i
                    )
                open_positions.pop()

        if open_positions:
            return ValidateResult.invalid(
                MISSING_CLOSING_BRACKET,
                ErrorCode.MISSING_CLOSING_BRACKET,
                FormatterMode.LOCAL,
                position=open_positions[-1]
            )
        return None
