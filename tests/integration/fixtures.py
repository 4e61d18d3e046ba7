"""
Shared builders for integration tests.
"""

from typing import Optional

from promql_adapter.contracts import DelegateErrorCode
from promql_adapter.handle import DelegateHandle
from promql_adapter.providers.mock import MockProvider
from promql_core.config import DelegateConfig, FormatterConfig
from promql_core.service import QueryFormatterService


END_TO_END_QUERY = "sum(rate(http_requests_total[5m])) by (job)"

END_TO_END_FORMATTED = (
    "sum(\n"
    "  rate(http_requests_total[5m])\n"
    ") by (job)"
)


def service_with(
    provider: Optional[MockProvider] = None,
    call_timeout: Optional[float] = 30.0,
    readiness_timeout: Optional[float] = 10.0
) -> QueryFormatterService:
    """Service around a given mock provider; no provider means no delegate configured."""
    config = FormatterConfig(delegate=DelegateConfig(
        kind="mock" if provider else "none",
        readiness_timeout=readiness_timeout,
        call_timeout=call_timeout
    ))
    handle = DelegateHandle(
        factory=(lambda: provider) if provider else None,
        readiness_timeout=readiness_timeout
    )
    return QueryFormatterService(config, handle=handle)


def failing_provider(code: DelegateErrorCode = DelegateErrorCode.ENGINE_ERROR) -> MockProvider:
    return MockProvider(failure_mode=code)
