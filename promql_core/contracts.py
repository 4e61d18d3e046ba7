"""
Formatter Contracts

Result types returned by the formatter service, whichever engine
produced them.

GUARANTEES:
===========
- All results are FROZEN dataclasses
- Failures are data: an error message plus an ErrorCode, never an
  exception crossing the service boundary
- ValidateResult enforces is_valid <=> error is None at construction
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from promql_adapter.contracts import (
    AstNode,
    ExecutionStep,
    ExplainResult,
    PerformanceSummary,
)


class FormatterMode(Enum):
    """Which engine a caller wants to run."""
    DELEGATE = "delegate"
    LOCAL = "local"


@dataclass(frozen=True)
class FormatOptions:
    mode: FormatterMode = FormatterMode.DELEGATE
    fallback_to_local: bool = True


class ErrorCode(Enum):
    """Explicit failure codes surfaced to callers."""
    UNMATCHED_CLOSING_BRACKET = "unmatched_closing_bracket"
    MISSING_CLOSING_BRACKET = "missing_closing_bracket"
    UNMATCHED_QUOTE = "unmatched_quote"
    DELEGATE_UNAVAILABLE = "delegate_unavailable"
    DELEGATE_FAILURE = "delegate_failure"
    INTERNAL_ERROR = "internal_error"


# =============================================================================
# RESULTS
# =============================================================================

@dataclass(frozen=True)
class FormatResult:
    """
    Outcome of a format call.

    error is None means success; formatted may still be empty
    (empty input formats to "").
    """
    formatted: str
    error: Optional[str] = None
    error_code: Optional[ErrorCode] = None
    engine: Optional[FormatterMode] = None

    @property
    def success(self) -> bool:
        return self.error is None

    @staticmethod
    def success_response(formatted: str, engine: Optional[FormatterMode] = None) -> FormatResult:
        return FormatResult(formatted=formatted, engine=engine)

    @staticmethod
    def failure_response(
        message: str,
        code: ErrorCode,
        engine: Optional[FormatterMode] = None
    ) -> FormatResult:
        return FormatResult(formatted="", error=message, error_code=code, engine=engine)

    def as_tuple(self):
        """(formatted, error) pair."""
        return self.formatted, self.error

    def to_dict(self) -> Dict[str, Any]:
        return {
            "formatted": self.formatted,
            "error": self.error,
            "error_code": self.error_code.value if self.error_code else None,
            "engine": self.engine.value if self.engine else None,
        }


@dataclass(frozen=True)
class ValidateResult:
    """Outcome of a validate call."""
    is_valid: bool
    error: Optional[str] = None
    error_code: Optional[ErrorCode] = None
    engine: Optional[FormatterMode] = None
    position: Optional[int] = None

    def __post_init__(self):
        if self.is_valid and self.error is not None:
            raise ValueError("A valid result cannot carry an error")
        if not self.is_valid and not self.error:
            raise ValueError("An invalid result must carry an error message")

    @staticmethod
    def valid(engine: Optional[FormatterMode] = None) -> ValidateResult:
        return ValidateResult(is_valid=True, engine=engine)

    @staticmethod
    def invalid(
        message: str,
        code: Optional[ErrorCode] = None,
        engine: Optional[FormatterMode] = None,
        position: Optional[int] = None
    ) -> ValidateResult:
        return ValidateResult(
            is_valid=False,
            error=message,
            error_code=code,
            engine=engine,
            position=position
        )

    def as_tuple(self):
        """(is_valid, error) pair."""
        return self.is_valid, self.error

    def to_dict(self) -> Dict[str, Any]:
        return {
            "is_valid": self.is_valid,
            "error": self.error,
            "error_code": self.error_code.value if self.error_code else None,
            "engine": self.engine.value if self.engine else None,
            "position": self.position,
        }


__all__ = [
    "AstNode",
    "ErrorCode",
    "ExecutionStep",
    "ExplainResult",
    "FormatOptions",
    "FormatResult",
    "FormatterMode",
    "PerformanceSummary",
    "ValidateResult",
]
