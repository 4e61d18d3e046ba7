import uvicorn

from promql_core.logging_utils import configure_logging

if __name__ == "__main__":
    configure_logging("INFO")

    print("Starting PromQL Prettifier API Server...")
    print("Docs available at: http://localhost:8000/docs")

    uvicorn.run(
        "promql_core.api.server:app",
        host="0.0.0.0",
        port=8000,
        reload=True
    )
