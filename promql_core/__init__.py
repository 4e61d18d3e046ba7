"""
PromQL Prettifier: Formatter Core
=================================

Formats, validates and explains PromQL queries, preferring a
high-fidelity delegate engine and falling back to a local engine.

ARCHITECTURAL BOUNDARY:
- promql_core owns the local engine and the delegation policy
- promql_adapter owns everything that talks to a delegate engine
- Callers only see result dataclasses; nothing raises through the service

USAGE:
    from promql_core import format_query
    result = await format_query("sum(rate(x[5m])) by (job)")
"""

from typing import Optional, Tuple

from .config import DelegateConfig, FormatterConfig, LayoutConfig, ValidatorConfig
from .contracts import (
    AstNode,
    ErrorCode,
    ExecutionStep,
    ExplainResult,
    FormatOptions,
    FormatResult,
    FormatterMode,
    PerformanceSummary,
    ValidateResult,
)
from .engine import LocalEngine
from .service import DelegationTrace, QueryFormatterService


_default_service: Optional[QueryFormatterService] = None


def get_service() -> QueryFormatterService:
    """Process-wide default service, built from the environment on first use."""
    global _default_service
    if _default_service is None:
        _default_service = QueryFormatterService(FormatterConfig.from_env())
    return _default_service


def set_service(service: Optional[QueryFormatterService]) -> None:
    """Replace the default service; None resets it to lazy construction."""
    global _default_service
    _default_service = service


async def format_query(query: str, options: Optional[FormatOptions] = None) -> FormatResult:
    return await get_service().format_query(query, options)


async def validate_query(query: str, options: Optional[FormatOptions] = None) -> ValidateResult:
    return await get_service().validate_query(query, options)


async def explain_query(query: str, options: Optional[FormatOptions] = None) -> ExplainResult:
    return await get_service().explain_query(query, options)


async def list_example_queries(options: Optional[FormatOptions] = None) -> Tuple[str, ...]:
    return await get_service().list_example_queries(options)


__all__ = [
    # Configuration
    "DelegateConfig",
    "FormatterConfig",
    "LayoutConfig",
    "ValidatorConfig",
    # Contracts
    "AstNode",
    "ErrorCode",
    "ExecutionStep",
    "ExplainResult",
    "FormatOptions",
    "FormatResult",
    "FormatterMode",
    "PerformanceSummary",
    "ValidateResult",
    # Engines
    "DelegationTrace",
    "LocalEngine",
    "QueryFormatterService",
    # Default service
    "get_service",
    "set_service",
    "format_query",
    "validate_query",
    "explain_query",
    "list_example_queries",
]

__version__ = "0.1.0"
