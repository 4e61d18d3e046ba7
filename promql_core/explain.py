"""Local explain stub: answers in the delegate's shape without analysing anything."""

from __future__ import annotations

from .contracts import AstNode, ExecutionStep, ExplainResult, PerformanceSummary


EMPTY_QUERY_ERROR = "query cannot be empty"

DELEGATE_SUGGESTION = (
    "Use the delegate engine for deeper analysis of this query's "
    "structure and cost"
)


def explain_locally(query: str) -> ExplainResult:
    if not query.strip():
        return ExplainResult.failure_response(EMPTY_QUERY_ERROR)

    return ExplainResult(
        success=True,
        ast=AstNode(type="SimpleQuery", value=query, children=()),
        execution=(
            ExecutionStep(
                step=1,
                operation="parse",
                description="Parse the query syntax",
                cost="low"
            ),
        ),
        performance=PerformanceSummary(
            complexity="unknown",
            time_range="unspecified",
            cardinality="unknown",
            bottlenecks=(),
            suggestions=(DELEGATE_SUGGESTION,)
        )
    )
