"""
HTTP Delegate Provider
======================

Reaches a remote high-fidelity PromQL engine (a prettify/parse
service) over JSON/HTTP.

WIRE FORMAT:
- GET  /health              -> 200 when the engine is ready
- POST /format   {"query"}  -> {"success", "formatted", "error"}
- POST /validate {"query"}  -> {"valid", "error"}
- POST /explain  {"query"}  -> ExplainResult JSON
- GET  /examples            -> {"examples": [...]}

Transport failures and non-2xx statuses become failure responses.
Only start() raises.
"""

from __future__ import annotations
import logging
from typing import Any, Dict, Optional, Tuple

import httpx

from ..contracts import (
    DelegateErrorCode,
    DelegateFormatResponse,
    DelegateUnavailableError,
    DelegateValidateResponse,
    ExplainResult,
    ProviderVersion,
)
from .base import DelegateProvider, ReadyCallback


logger = logging.getLogger(__name__)


class _CallFailed(Exception):
    def __init__(self, message: str, code: DelegateErrorCode):
        super().__init__(message)
        self.code = code


class HttpProvider(DelegateProvider):
    """
    Delegate engine behind an HTTP endpoint.

    A fresh AsyncClient is opened per request, so the provider is not
    tied to any particular event loop.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        user_agent: str = "promql-prettifier/0.1",
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        if not base_url:
            raise ValueError("base_url is required for the HTTP delegate")
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._user_agent = user_agent
        self._transport = transport
        self._version = ProviderVersion(
            provider_id="http",
            engine_id=self._base_url,
            api_version="v1"
        )

    @property
    def provider_id(self) -> str:
        return "http"

    def get_version(self) -> ProviderVersion:
        return self._version

    async def start(self, on_ready: ReadyCallback) -> None:
        try:
            async with self._client() as client:
                response = await client.get("/health")
        except httpx.HTTPError as e:
            raise DelegateUnavailableError(
                f"delegate engine unreachable at {self._base_url}: {e}",
                DelegateErrorCode.NETWORK_ERROR
            ) from e

        if response.status_code != 200:
            raise DelegateUnavailableError(
                f"delegate health check returned HTTP {response.status_code}",
                DelegateErrorCode.INIT_FAILED
            )

        logger.info("HTTP delegate at %s is ready", self._base_url)
        on_ready()

    async def format(self, query: str) -> DelegateFormatResponse:
        try:
            data = await self._request("POST", "/format", {"query": query})
            return DelegateFormatResponse.from_dict(data)
        except _CallFailed as e:
            return DelegateFormatResponse.failure_response(str(e), e.code)
        except ValueError as e:
            return DelegateFormatResponse.failure_response(
                f"invalid format response: {e}", DelegateErrorCode.INVALID_RESPONSE
            )

    async def validate(self, query: str) -> DelegateValidateResponse:
        try:
            data = await self._request("POST", "/validate", {"query": query})
            return DelegateValidateResponse.from_dict(data)
        except _CallFailed as e:
            return DelegateValidateResponse(valid=False, error=str(e), error_code=e.code)
        except ValueError as e:
            return DelegateValidateResponse(
                valid=False,
                error=f"invalid validate response: {e}",
                error_code=DelegateErrorCode.INVALID_RESPONSE
            )

    async def explain(self, query: str) -> ExplainResult:
        try:
            data = await self._request("POST", "/explain", {"query": query})
            return ExplainResult.from_dict(data)
        except _CallFailed as e:
            return ExplainResult.failure_response(str(e))
        except (ValueError, TypeError) as e:
            return ExplainResult.failure_response(f"invalid explain response: {e}")

    async def list_examples(self) -> Tuple[str, ...]:
        try:
            data = await self._request("GET", "/examples")
        except (_CallFailed, ValueError) as e:
            logger.warning("HTTP delegate examples failed: %s", e)
            return ()
        examples = data.get("examples") if isinstance(data, dict) else None
        if not isinstance(examples, list):
            logger.warning("HTTP delegate examples payload has no 'examples' list")
            return ()
        return tuple(str(e) for e in examples)

    # =========================================================================
    # INTERNAL HELPERS
    # =========================================================================

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._base_url,
            timeout=self._timeout,
            headers={"User-Agent": self._user_agent},
            transport=self._transport
        )

    async def _request(
        self,
        method: str,
        path: str,
        payload: Optional[Dict[str, Any]] = None
    ) -> Any:
        try:
            async with self._client() as client:
                response = await client.request(method, path, json=payload)
        except httpx.TimeoutException as e:
            raise _CallFailed(f"delegate request timed out: {path}", DelegateErrorCode.TIMEOUT) from e
        except httpx.HTTPError as e:
            raise _CallFailed(f"delegate request failed: {e}", DelegateErrorCode.NETWORK_ERROR) from e

        if response.status_code // 100 != 2:
            raise _CallFailed(
                f"delegate returned HTTP {response.status_code} for {path}",
                DelegateErrorCode.ENGINE_ERROR
            )
        return response.json()
