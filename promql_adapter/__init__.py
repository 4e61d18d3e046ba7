"""
Delegate Adapter Package

ARCHITECTURAL BOUNDARY:
=======================
This package is the ONLY interface between the formatter core and the
external high-fidelity PromQL engine.

DIRECTION OF DEPENDENCY:
========================
promql_core → promql_adapter → external engine

NEVER:
- Adapter importing from promql_core
- Core talking to an engine without going through a DelegateHandle
"""

from .contracts import (
    AstNode,
    DelegateErrorCode,
    DelegateFormatResponse,
    DelegateUnavailableError,
    DelegateValidateResponse,
    ExecutionStep,
    ExplainResult,
    PerformanceSummary,
    ProviderVersion,
)

from .handle import (
    DelegateHandle,
    DelegateState,
    ProviderFactory,
)

from .providers import (
    DelegateProvider,
    HttpProvider,
    MockProvider,
)

__all__ = [
    # Contracts
    'AstNode', 'ExecutionStep', 'PerformanceSummary', 'ExplainResult',
    'DelegateFormatResponse', 'DelegateValidateResponse',
    'DelegateErrorCode', 'DelegateUnavailableError', 'ProviderVersion',
    # Lifecycle
    'DelegateHandle', 'DelegateState', 'ProviderFactory',
    # Providers
    'DelegateProvider', 'HttpProvider', 'MockProvider',
]
