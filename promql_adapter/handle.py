"""
Delegate Handle

Lazily-initialized wrapper around a delegate provider's readiness state.

LIFECYCLE:
==========
UNINITIALIZED → INITIALIZING → READY
UNINITIALIZED → INITIALIZING → FAILED

- Initialization runs at most once per handle; concurrent callers
  await the same in-flight future
- FAILED is permanent: later callers get DelegateUnavailableError
  immediately, without touching the provider again
- Readiness is an asyncio.Event set by the provider's callback,
  waited on with an explicit timeout
"""

from __future__ import annotations
import asyncio
import logging
from enum import Enum
from typing import Callable, Optional

from .contracts import DelegateErrorCode, DelegateUnavailableError
from .providers.base import DelegateProvider


logger = logging.getLogger(__name__)

ProviderFactory = Callable[[], DelegateProvider]


class DelegateState(Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"
    FAILED = "failed"


class DelegateHandle:
    """
    Owns one delegate provider for the lifetime of its service.

    A handle without a factory represents "no delegate configured":
    its first initialization fails with NOT_CONFIGURED.
    """

    def __init__(
        self,
        factory: Optional[ProviderFactory] = None,
        readiness_timeout: Optional[float] = 10.0
    ):
        self._factory = factory
        self._readiness_timeout = readiness_timeout
        self._state = DelegateState.UNINITIALIZED
        self._provider: Optional[DelegateProvider] = None
        self._failure_message: Optional[str] = None
        self._failure_code: Optional[DelegateErrorCode] = None
        self._init_future: Optional[asyncio.Future] = None

    @property
    def state(self) -> DelegateState:
        return self._state

    @property
    def failure_message(self) -> Optional[str]:
        return self._failure_message

    @property
    def provider(self) -> Optional[DelegateProvider]:
        """The provider, once READY."""
        return self._provider

    @property
    def configured(self) -> bool:
        return self._factory is not None

    async def ensure_ready(self) -> DelegateProvider:
        """
        Bring the delegate to READY and return its provider.

        Raises DelegateUnavailableError if initialization failed,
        now or on an earlier call.
        """
        if self._state is DelegateState.READY:
            return self._provider
        if self._state is DelegateState.FAILED:
            raise self._unavailable()

        if self._init_future is None:
            self._init_future = asyncio.ensure_future(self._initialize())
        await asyncio.shield(self._init_future)

        if self._state is DelegateState.READY:
            return self._provider
        raise self._unavailable()

    # =========================================================================
    # INTERNAL HELPERS
    # =========================================================================

    async def _initialize(self) -> None:
        """One-time resource acquisition. Never raises."""
        self._state = DelegateState.INITIALIZING

        if self._factory is None:
            self._fail("no delegate engine configured", DelegateErrorCode.NOT_CONFIGURED)
            return

        try:
            provider = self._factory()
            await asyncio.wait_for(
                self._start_and_wait(provider),
                timeout=self._readiness_timeout
            )
        except asyncio.TimeoutError:
            self._fail(
                f"delegate engine did not become ready within {self._readiness_timeout}s",
                DelegateErrorCode.NOT_READY
            )
            return
        except DelegateUnavailableError as e:
            self._fail(str(e), e.code)
            return
        except Exception as e:
            logger.exception("Delegate initialization raised")
            self._fail(f"delegate initialization failed: {e}", DelegateErrorCode.INIT_FAILED)
            return

        self._provider = provider
        self._state = DelegateState.READY
        logger.info("Delegate engine %r is ready", provider.provider_id)

    async def _start_and_wait(self, provider: DelegateProvider) -> None:
        loop = asyncio.get_running_loop()
        ready = asyncio.Event()

        def on_ready() -> None:
            loop.call_soon_threadsafe(ready.set)

        await provider.start(on_ready)
        await ready.wait()

    def _fail(self, message: str, code: DelegateErrorCode) -> None:
        self._failure_message = message
        self._failure_code = code
        self._state = DelegateState.FAILED
        logger.warning("Delegate engine unavailable: %s", message)

    def _unavailable(self) -> DelegateUnavailableError:
        return DelegateUnavailableError(
            self._failure_message or "delegate engine unavailable",
            self._failure_code or DelegateErrorCode.INIT_FAILED
        )
