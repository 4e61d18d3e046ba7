"""
Query Formatter Service

Delegation layer between callers and the two engines.

POLICY:
=======
- mode=LOCAL: the local engine answers, the delegate is never touched
- mode=DELEGATE: the delegate answers when it is ready and succeeds;
  on any delegate failure the local engine answers if
  fallback_to_local is set, otherwise the delegate's error is returned
- Empty input never reaches the delegate

GUARANTEES:
===========
- No exception crosses this boundary; unexpected failures come back as
  INTERNAL_ERROR results
- Every call leaves a DelegationTrace
- All callers share one delegate initialization outcome
"""

from __future__ import annotations
import asyncio
import hashlib
import logging
from collections import deque
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Deque, List, Optional, Tuple

from promql_adapter.contracts import DelegateUnavailableError, ProviderVersion
from promql_adapter.handle import DelegateHandle, DelegateState, ProviderFactory
from promql_adapter.providers.base import DelegateProvider
from promql_adapter.providers.http import HttpProvider
from promql_adapter.providers.mock import MockProvider

from .config import DelegateConfig, FormatterConfig
from .contracts import (
    ErrorCode,
    ExplainResult,
    FormatOptions,
    FormatResult,
    FormatterMode,
    ValidateResult,
)
from .engine import LocalEngine


logger = logging.getLogger(__name__)


# =============================================================================
# TRACING
# =============================================================================

@dataclass(frozen=True)
class DelegationTrace:
    """Record of which engine answered one service call, and why."""
    trace_id: str
    operation: str
    requested_mode: FormatterMode
    engine_used: Optional[FormatterMode]
    fell_back: bool
    delegate_error: Optional[str]
    started_at: datetime
    completed_at: datetime

    def duration_ms(self) -> float:
        return (self.completed_at - self.started_at).total_seconds() * 1000


class _DelegateFailed(Exception):
    """Internal signal: the delegate could not produce an acceptable answer."""

    def __init__(self, message: str, code: ErrorCode):
        super().__init__(message)
        self.code = code


def build_provider_factory(config: DelegateConfig) -> Optional[ProviderFactory]:
    """Provider factory for the configured delegate kind; None when no delegate is wanted."""
    if config.kind == "http":
        return lambda: HttpProvider(config.base_url, timeout=config.call_timeout)
    if config.kind == "mock":
        return MockProvider
    return None


# =============================================================================
# SERVICE
# =============================================================================

class QueryFormatterService:
    """
    Owns one delegate handle and one local engine.

    Tests inject either directly; otherwise both are built from config.
    """

    def __init__(
        self,
        config: Optional[FormatterConfig] = None,
        handle: Optional[DelegateHandle] = None,
        engine: Optional[LocalEngine] = None,
        max_traces: int = 1000
    ):
        self._config = config or FormatterConfig()
        delegate = self._config.delegate
        self._handle = handle or DelegateHandle(
            factory=build_provider_factory(delegate),
            readiness_timeout=delegate.readiness_timeout
        )
        self._engine = engine or LocalEngine(self._config.layout, self._config.validator)
        self._call_timeout = delegate.call_timeout
        self._traces: Deque[DelegationTrace] = deque(maxlen=max_traces)
        self._sequence = 0

    @property
    def config(self) -> FormatterConfig:
        return self._config

    @property
    def delegate_state(self) -> DelegateState:
        return self._handle.state

    @property
    def delegate_failure(self) -> Optional[str]:
        return self._handle.failure_message

    @property
    def delegate_version(self) -> Optional[ProviderVersion]:
        """Version of the delegate engine, once it is ready."""
        provider = self._handle.provider
        return provider.get_version() if provider is not None else None

    # =========================================================================
    # OPERATIONS
    # =========================================================================

    async def format_query(
        self,
        query: str,
        options: Optional[FormatOptions] = None
    ) -> FormatResult:
        def accept(response) -> FormatResult:
            if response.success and response.formatted:
                return FormatResult.success_response(response.formatted, FormatterMode.DELEGATE)
            raise _DelegateFailed(
                response.error or "delegate returned no formatted output",
                ErrorCode.DELEGATE_FAILURE
            )

        return await self._run(
            operation="format",
            query=query,
            options=options,
            skip_delegate=not query.strip(),
            local=lambda: self._engine.format(query),
            delegate=lambda provider: provider.format(query),
            accept=accept,
            surface=lambda failure: FormatResult.failure_response(
                str(failure), failure.code, FormatterMode.DELEGATE
            ),
            internal=lambda message: FormatResult.failure_response(
                message, ErrorCode.INTERNAL_ERROR
            ),
        )

    async def validate_query(
        self,
        query: str,
        options: Optional[FormatOptions] = None
    ) -> ValidateResult:
        def accept(response) -> ValidateResult:
            # error_code marks a transport/engine failure, not a verdict.
            if response.error_code is not None:
                raise _DelegateFailed(
                    response.error or "delegate validation failed",
                    ErrorCode.DELEGATE_FAILURE
                )
            if response.valid:
                return ValidateResult.valid(FormatterMode.DELEGATE)
            return ValidateResult.invalid(
                response.error or "delegate reported the query as invalid",
                engine=FormatterMode.DELEGATE
            )

        return await self._run(
            operation="validate",
            query=query,
            options=options,
            skip_delegate=not query.strip(),
            local=lambda: self._engine.validate(query),
            delegate=lambda provider: provider.validate(query),
            accept=accept,
            surface=lambda failure: ValidateResult.invalid(
                str(failure), failure.code, FormatterMode.DELEGATE
            ),
            internal=lambda message: ValidateResult.invalid(
                message, ErrorCode.INTERNAL_ERROR
            ),
        )

    async def explain_query(
        self,
        query: str,
        options: Optional[FormatOptions] = None
    ) -> ExplainResult:
        def accept(result: ExplainResult) -> ExplainResult:
            if result.success:
                return result
            raise _DelegateFailed(
                result.error or "delegate explain failed",
                ErrorCode.DELEGATE_FAILURE
            )

        return await self._run(
            operation="explain",
            query=query,
            options=options,
            skip_delegate=not query.strip(),
            local=lambda: self._engine.explain(query),
            delegate=lambda provider: provider.explain(query),
            accept=accept,
            surface=lambda failure: ExplainResult.failure_response(str(failure)),
            internal=ExplainResult.failure_response,
        )

    async def list_example_queries(
        self,
        options: Optional[FormatOptions] = None
    ) -> Tuple[str, ...]:
        def accept(examples) -> Tuple[str, ...]:
            if examples:
                return tuple(examples)
            raise _DelegateFailed("delegate returned no examples", ErrorCode.DELEGATE_FAILURE)

        return await self._run(
            operation="examples",
            query="",
            options=options,
            skip_delegate=False,
            local=self._engine.list_examples,
            delegate=lambda provider: provider.list_examples(),
            accept=accept,
            surface=lambda failure: (),
            internal=lambda message: (),
        )

    def get_traces(self) -> List[DelegationTrace]:
        """Recorded traces, oldest first (read-only copy)."""
        return list(self._traces)

    # =========================================================================
    # INTERNAL HELPERS
    # =========================================================================

    async def _run(
        self,
        operation: str,
        query: str,
        options: Optional[FormatOptions],
        skip_delegate: bool,
        local: Callable[[], Any],
        delegate: Callable[[DelegateProvider], Awaitable[Any]],
        accept: Callable[[Any], Any],
        surface: Callable[[_DelegateFailed], Any],
        internal: Callable[[str], Any]
    ) -> Any:
        options = options or FormatOptions()
        started_at = datetime.now(timezone.utc)
        engine_used: Optional[FormatterMode] = None
        fell_back = False
        delegate_error: Optional[str] = None

        try:
            if skip_delegate or options.mode is FormatterMode.LOCAL:
                result = local()
                engine_used = FormatterMode.LOCAL
            else:
                try:
                    result = accept(await self._call_delegate(operation, delegate))
                    engine_used = FormatterMode.DELEGATE
                except _DelegateFailed as failure:
                    delegate_error = str(failure)
                    if options.fallback_to_local:
                        logger.warning(
                            "Delegate %s failed, falling back to local engine: %s",
                            operation, failure
                        )
                        result = local()
                        engine_used = FormatterMode.LOCAL
                        fell_back = True
                    else:
                        result = surface(failure)
                        engine_used = FormatterMode.DELEGATE
        except Exception as e:
            logger.exception("Unexpected failure during %s", operation)
            result = internal(f"internal error during {operation}: {e}")

        self._record_trace(
            operation, query, options.mode, engine_used,
            fell_back, delegate_error, started_at
        )
        return result

    async def _call_delegate(
        self,
        operation: str,
        call: Callable[[DelegateProvider], Awaitable[Any]]
    ) -> Any:
        """Run one delegate call. Raises _DelegateFailed on any delegate problem."""
        try:
            provider = await self._handle.ensure_ready()
        except DelegateUnavailableError as e:
            raise _DelegateFailed(str(e), ErrorCode.DELEGATE_UNAVAILABLE) from e

        try:
            return await asyncio.wait_for(call(provider), timeout=self._call_timeout)
        except asyncio.TimeoutError as e:
            raise _DelegateFailed(
                f"delegate {operation} timed out after {self._call_timeout}s",
                ErrorCode.DELEGATE_FAILURE
            ) from e
        except Exception as e:
            logger.warning("Delegate %s raised %s: %s", operation, type(e).__name__, e)
            raise _DelegateFailed(
                str(e) or type(e).__name__,
                ErrorCode.DELEGATE_FAILURE
            ) from e

    def _record_trace(
        self,
        operation: str,
        query: str,
        requested_mode: FormatterMode,
        engine_used: Optional[FormatterMode],
        fell_back: bool,
        delegate_error: Optional[str],
        started_at: datetime
    ) -> None:
        self._sequence += 1
        digest = hashlib.sha256(
            f"{operation}|{query}|{self._sequence}".encode()
        ).hexdigest()
        self._traces.append(DelegationTrace(
            trace_id=f"trace_{digest[:12]}_{int(started_at.timestamp())}",
            operation=operation,
            requested_mode=requested_mode,
            engine_used=engine_used,
            fell_back=fell_back,
            delegate_error=delegate_error,
            started_at=started_at,
            completed_at=datetime.now(timezone.utc)
        ))
