"""
PromQL Prettifier: HTTP API Server
==================================

JSON surface over the formatter service.

Endpoints:
- GET  /health              -> Service status and delegate state
- POST /api/v1/format       -> FormatResult
- POST /api/v1/validate     -> ValidateResult
- POST /api/v1/explain      -> ExplainResult
- GET  /api/v1/examples     -> Example queries

Usage:
    uvicorn promql_core.api.server:app --reload
"""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from .. import get_service
from ..contracts import FormatOptions, FormatterMode
from ..service import QueryFormatterService


logger = logging.getLogger(__name__)

# =============================================================================
# INFRASTRUCTURE SETUP
# =============================================================================

service_instance: Optional[QueryFormatterService] = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the formatter service on startup."""
    global service_instance

    try:
        service_instance = get_service()
    except ValueError as e:
        logger.error("Invalid formatter configuration: %s", e)
        raise

    delegate = service_instance.config.delegate
    logger.info("Formatter service ready (delegate=%s)", delegate.kind)

    yield

    logger.info("Shutting down formatter service")
    service_instance = None


app = FastAPI(
    title="PromQL Prettifier API",
    version="0.1.0",
    description="Format, validate and explain PromQL queries",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)


class QueryRequest(BaseModel):
    query: str
    mode: Optional[str] = None
    fallback_to_local: bool = True


def _service() -> QueryFormatterService:
    if not service_instance:
        raise HTTPException(status_code=503, detail="Formatter service not initialized")
    return service_instance


def _options(mode: Optional[str], fallback_to_local: bool) -> FormatOptions:
    if mode is None:
        return FormatOptions(fallback_to_local=fallback_to_local)
    try:
        parsed = FormatterMode(mode.strip().lower())
    except ValueError:
        raise HTTPException(
            status_code=400,
            detail=f"Unknown mode {mode!r}; expected 'delegate' or 'local'"
        )
    return FormatOptions(mode=parsed, fallback_to_local=fallback_to_local)


# =============================================================================
# ENDPOINTS
# =============================================================================

@app.get("/health")
async def health_check():
    """System status."""
    service = _service()
    version = service.delegate_version
    return {
        "status": "online",
        "delegate": {
            "kind": service.config.delegate.kind,
            "state": service.delegate_state.value,
            "engine": version.engine_id if version else None,
            "error": service.delegate_failure,
        },
    }


@app.post("/api/v1/format")
async def format_endpoint(request: QueryRequest):
    options = _options(request.mode, request.fallback_to_local)
    result = await _service().format_query(request.query, options)
    return result.to_dict()


@app.post("/api/v1/validate")
async def validate_endpoint(request: QueryRequest):
    options = _options(request.mode, request.fallback_to_local)
    result = await _service().validate_query(request.query, options)
    return result.to_dict()


@app.post("/api/v1/explain")
async def explain_endpoint(request: QueryRequest):
    options = _options(request.mode, request.fallback_to_local)
    result = await _service().explain_query(request.query, options)
    return result.to_dict()


@app.get("/api/v1/examples")
async def examples_endpoint(mode: Optional[str] = None, fallback_to_local: bool = True):
    options = _options(mode, fallback_to_local)
    examples = await _service().list_example_queries(options)
    return {"examples": list(examples)}
