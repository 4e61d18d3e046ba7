"""
Delegate Contracts

Typed response schemas for core ↔ delegate engine communication.

BOUNDARY ENFORCEMENT:
=====================
- All types are FROZEN (immutable)
- Delegate payloads are parsed into these types at the provider edge
- The explain result types are shared with the local engine, so both
  engines answer in the same shape
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple
from enum import Enum


# =============================================================================
# ERROR TYPES
# =============================================================================

class DelegateErrorCode(Enum):
    """Explicit failure codes for delegate invocations."""
    NOT_CONFIGURED = "not_configured"
    INIT_FAILED = "init_failed"
    NOT_READY = "not_ready"
    TIMEOUT = "timeout"
    INVALID_RESPONSE = "invalid_response"
    ENGINE_ERROR = "engine_error"
    NETWORK_ERROR = "network_error"


class DelegateUnavailableError(RuntimeError):
    """
    Raised when the delegate engine cannot be used at all.

    Carries the error code so the caller can surface it verbatim
    when fallback is disabled.
    """

    def __init__(self, message: str, code: DelegateErrorCode = DelegateErrorCode.INIT_FAILED):
        super().__init__(message)
        self.code = code


# =============================================================================
# VERSION INFORMATION
# =============================================================================

@dataclass(frozen=True)
class ProviderVersion:
    """Identity of the delegate engine behind a provider."""
    provider_id: str       # "http" | "mock"
    engine_id: str         # e.g. "metricsql-prettify"
    api_version: str


# =============================================================================
# FORMAT / VALIDATE RESPONSES
# =============================================================================

@dataclass(frozen=True)
class DelegateFormatResponse:
    """
    Immutable format response from a delegate engine.

    A failed response may carry no message; the core substitutes
    a default one when surfacing it.
    """
    success: bool
    formatted: str = ""
    error: Optional[str] = None
    error_code: Optional[DelegateErrorCode] = None

    @staticmethod
    def success_response(formatted: str) -> DelegateFormatResponse:
        return DelegateFormatResponse(success=True, formatted=formatted)

    @staticmethod
    def failure_response(
        message: str,
        code: DelegateErrorCode = DelegateErrorCode.ENGINE_ERROR
    ) -> DelegateFormatResponse:
        return DelegateFormatResponse(success=False, error=message, error_code=code)

    @staticmethod
    def from_dict(data: Mapping[str, Any]) -> DelegateFormatResponse:
        """Parse a wire payload. Raises ValueError on malformed input."""
        if not isinstance(data, Mapping) or "success" not in data:
            raise ValueError("format payload must be an object with 'success'")
        success = bool(data["success"])
        formatted = data.get("formatted") or ""
        if not isinstance(formatted, str):
            raise ValueError("'formatted' must be a string")
        return DelegateFormatResponse(
            success=success,
            formatted=formatted,
            error=_optional_str(data.get("error")),
            error_code=None if success else DelegateErrorCode.ENGINE_ERROR
        )


@dataclass(frozen=True)
class DelegateValidateResponse:
    """Immutable validation verdict from a delegate engine."""
    valid: bool
    error: Optional[str] = None
    error_code: Optional[DelegateErrorCode] = None

    @staticmethod
    def from_dict(data: Mapping[str, Any]) -> DelegateValidateResponse:
        if not isinstance(data, Mapping) or "valid" not in data:
            raise ValueError("validate payload must be an object with 'valid'")
        return DelegateValidateResponse(
            valid=bool(data["valid"]),
            error=_optional_str(data.get("error"))
        )


# =============================================================================
# EXPLAIN RESULT (shared by delegate and local engine)
# =============================================================================

@dataclass(frozen=True)
class AstNode:
    """Lightweight tagged node: type, raw value, children."""
    type: str
    value: str = ""
    children: Tuple[AstNode, ...] = field(default_factory=tuple)
    properties: Dict[str, Any] = field(default_factory=dict, hash=False)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "type": self.type,
            "value": self.value,
            "children": [child.to_dict() for child in self.children],
        }
        if self.properties:
            data["properties"] = dict(self.properties)
        return data

    @staticmethod
    def from_dict(data: Mapping[str, Any]) -> AstNode:
        if not isinstance(data, Mapping) or "type" not in data:
            raise ValueError("AST node must be an object with 'type'")
        return AstNode(
            type=str(data["type"]),
            value=str(data.get("value") or ""),
            children=tuple(AstNode.from_dict(c) for c in data.get("children") or ()),
            properties=dict(data.get("properties") or {})
        )


@dataclass(frozen=True)
class ExecutionStep:
    """One step of an execution trace."""
    step: int
    operation: str
    description: str
    cost: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "step": self.step,
            "operation": self.operation,
            "description": self.description,
            "cost": self.cost,
        }

    @staticmethod
    def from_dict(data: Mapping[str, Any]) -> ExecutionStep:
        if not isinstance(data, Mapping):
            raise ValueError("execution step must be an object")
        return ExecutionStep(
            step=int(data.get("step", 0)),
            operation=str(data.get("operation", "")),
            description=str(data.get("description", "")),
            cost=str(data.get("cost", ""))
        )


@dataclass(frozen=True)
class PerformanceSummary:
    """Heuristic performance summary of a query."""
    complexity: str
    time_range: str
    cardinality: str
    bottlenecks: Tuple[str, ...] = field(default_factory=tuple)
    suggestions: Tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "complexity": self.complexity,
            "timeRange": self.time_range,
            "cardinality": self.cardinality,
            "bottlenecks": list(self.bottlenecks),
            "suggestions": list(self.suggestions),
        }

    @staticmethod
    def from_dict(data: Mapping[str, Any]) -> PerformanceSummary:
        if not isinstance(data, Mapping):
            raise ValueError("performance summary must be an object")
        return PerformanceSummary(
            complexity=str(data.get("complexity", "")),
            time_range=str(data.get("timeRange", "")),
            cardinality=str(data.get("cardinality", "")),
            bottlenecks=tuple(str(b) for b in data.get("bottlenecks") or ()),
            suggestions=tuple(str(s) for s in data.get("suggestions") or ())
        )


@dataclass(frozen=True)
class ExplainResult:
    """
    Structured analysis of a query.

    INVARIANT: success=False implies error is set.
    """
    success: bool
    ast: Optional[AstNode] = None
    execution: Optional[Tuple[ExecutionStep, ...]] = None
    performance: Optional[PerformanceSummary] = None
    error: Optional[str] = None

    def __post_init__(self):
        if not self.success and not self.error:
            raise ValueError("Failed explain result must have an error")

    @staticmethod
    def failure_response(message: str) -> ExplainResult:
        return ExplainResult(success=False, error=message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "ast": self.ast.to_dict() if self.ast else None,
            "execution": [s.to_dict() for s in self.execution] if self.execution is not None else None,
            "performance": self.performance.to_dict() if self.performance else None,
            "error": self.error,
        }

    @staticmethod
    def from_dict(data: Mapping[str, Any]) -> ExplainResult:
        if not isinstance(data, Mapping) or "success" not in data:
            raise ValueError("explain payload must be an object with 'success'")
        success = bool(data["success"])
        if not success:
            return ExplainResult.failure_response(
                _optional_str(data.get("error")) or "delegate explain failed"
            )
        ast = data.get("ast")
        execution = data.get("execution")
        performance = data.get("performance")
        return ExplainResult(
            success=True,
            ast=AstNode.from_dict(ast) if ast else None,
            execution=tuple(ExecutionStep.from_dict(s) for s in execution) if execution is not None else None,
            performance=PerformanceSummary.from_dict(performance) if performance else None
        )


def _optional_str(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value)
