"""
Delegate Providers Package
==========================

Provider implementations for the external PromQL engine.

Available providers:
- MockProvider: Deterministic in-process delegate for testing
- HttpProvider: Remote engine reached over JSON/HTTP
"""

from .base import DelegateProvider, ReadyCallback
from .mock import MockProvider
from .http import HttpProvider

__all__ = [
    'DelegateProvider',
    'ReadyCallback',
    'MockProvider',
    'HttpProvider',
]
