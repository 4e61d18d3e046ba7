"""
Mock Delegate Provider
======================

Deterministic in-process delegate for testing.

GUARANTEES:
- Same query → identical response
- Explicit failure modes can be triggered
- No external dependencies
"""

from __future__ import annotations
import asyncio
from typing import List, Optional, Sequence, Tuple

from ..contracts import (
    AstNode,
    DelegateErrorCode,
    DelegateFormatResponse,
    DelegateValidateResponse,
    ExecutionStep,
    ExplainResult,
    PerformanceSummary,
    ProviderVersion,
)
from .base import DelegateProvider, ReadyCallback


class MockProvider(DelegateProvider):
    """
    Deterministic mock delegate.

    The "formatted" output is the query with its whitespace collapsed,
    which is enough to tell delegate output apart from local layout.
    """

    def __init__(
        self,
        latency_ms: float = 0.0,
        failure_mode: Optional[DelegateErrorCode] = None,
        signal_ready: bool = True,
        start_error: Optional[Exception] = None,
        call_error: Optional[Exception] = None,
        examples: Optional[Sequence[str]] = None
    ):
        """
        Args:
            latency_ms: Simulated latency for start and every call
            failure_mode: If set, all operations report this failure
            signal_ready: If False, start() never calls on_ready
            start_error: If set, start() raises it
            call_error: If set, every operation raises it
            examples: Example corpus returned by list_examples
        """
        self._latency_ms = latency_ms
        self._failure_mode = failure_mode
        self._signal_ready = signal_ready
        self._start_error = start_error
        self._call_error = call_error
        self._examples = tuple(examples) if examples is not None else (
            "up",
            "rate(http_requests_total[5m])",
        )
        self._version = ProviderVersion(
            provider_id="mock",
            engine_id="mock-deterministic-v1",
            api_version="1.0.0"
        )
        self.start_calls = 0
        self.calls: List[Tuple[str, Optional[str]]] = []

    @property
    def provider_id(self) -> str:
        return "mock"

    def get_version(self) -> ProviderVersion:
        return self._version

    async def start(self, on_ready: ReadyCallback) -> None:
        self.start_calls += 1
        await self._simulate_latency()
        if self._start_error is not None:
            raise self._start_error
        if self._signal_ready:
            on_ready()

    async def format(self, query: str) -> DelegateFormatResponse:
        await self._enter("format", query)
        if self._failure_mode is not None:
            return DelegateFormatResponse.failure_response(
                self._failure_message(), self._failure_mode
            )
        return DelegateFormatResponse.success_response(" ".join(query.split()))

    async def validate(self, query: str) -> DelegateValidateResponse:
        await self._enter("validate", query)
        if self._failure_mode is not None:
            return DelegateValidateResponse(
                valid=False,
                error=self._failure_message(),
                error_code=self._failure_mode
            )
        if query.count("(") != query.count(")"):
            return DelegateValidateResponse(valid=False, error="mock: unbalanced parentheses")
        return DelegateValidateResponse(valid=True)

    async def explain(self, query: str) -> ExplainResult:
        await self._enter("explain", query)
        if self._failure_mode is not None:
            return ExplainResult.failure_response(self._failure_message())
        return ExplainResult(
            success=True,
            ast=AstNode(type="MockQuery", value=query),
            execution=(
                ExecutionStep(step=1, operation="mock", description="Mock evaluation", cost="low"),
            ),
            performance=PerformanceSummary(
                complexity="low",
                time_range="unspecified",
                cardinality="unknown"
            )
        )

    async def list_examples(self) -> Tuple[str, ...]:
        await self._enter("list_examples", None)
        if self._failure_mode is not None:
            return ()
        return self._examples

    async def _enter(self, operation: str, query: Optional[str]) -> None:
        self.calls.append((operation, query))
        await self._simulate_latency()
        if self._call_error is not None:
            raise self._call_error

    async def _simulate_latency(self) -> None:
        if self._latency_ms > 0:
            await asyncio.sleep(self._latency_ms / 1000.0)

    def _failure_message(self) -> str:
        return f"Mock delegate configured to fail: {self._failure_mode.value}"
