"""
Delegate Provider Abstraction Layer
===================================

Abstract interface for external high-fidelity PromQL engines.

BOUNDARY ENFORCEMENT:
- Providers own the transport to the external engine and nothing else
- Readiness is signalled through the callback handed to start()
- Operation failures are explicit responses, never silent
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Callable, Tuple

from ..contracts import (
    DelegateFormatResponse,
    DelegateValidateResponse,
    ExplainResult,
    ProviderVersion,
)


ReadyCallback = Callable[[], None]


class DelegateProvider(ABC):
    """
    Abstract delegate engine interface.

    GUARANTEES:
    - start() performs the one-time resource acquisition and calls
      on_ready once the engine can serve requests; it raises if the
      engine cannot be brought up
    - format/validate/explain return failure responses instead of raising
    - list_examples returns an empty tuple on failure

    The core still guards every call, so a provider that breaks these
    rules degrades to the local engine rather than crashing the caller.
    """

    @abstractmethod
    async def start(self, on_ready: ReadyCallback) -> None:
        """Load and instantiate the external engine."""
        pass

    @abstractmethod
    async def format(self, query: str) -> DelegateFormatResponse:
        pass

    @abstractmethod
    async def validate(self, query: str) -> DelegateValidateResponse:
        pass

    @abstractmethod
    async def explain(self, query: str) -> ExplainResult:
        pass

    @abstractmethod
    async def list_examples(self) -> Tuple[str, ...]:
        pass

    @abstractmethod
    def get_version(self) -> ProviderVersion:
        """Get provider version info."""
        pass

    @property
    @abstractmethod
    def provider_id(self) -> str:
        """Unique provider identifier."""
        pass
