"""FastAPI application main module.

This module defines the main FastAPI application instance and core API
endpoints for the BlendRec recommendation service. It provides health,
status and metrics endpoints and serves as the entry point for the API
server.
"""

from contextlib import asynccontextmanager
from typing import Any, Dict

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from blendrec import __version__
from blendrec.api.exceptions import BlendRecException
from blendrec.api.logging_config import RequestLoggingMiddleware, setup_logging
from blendrec.api.metrics import metrics_service
from blendrec.api.routes import recommend
from blendrec.config import get_settings


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(get_settings().log_level)
    yield


# Create FastAPI application instance
app = FastAPI(
    title=get_settings().app_name,
    description="Blended collaborative, content-based and trending product recommendations",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(RequestLoggingMiddleware)

# Include routers
app.include_router(recommend.router)


@app.exception_handler(BlendRecException)
async def blendrec_exception_handler(request: Request, exc: BlendRecException) -> JSONResponse:
    """Render BlendRec errors as a consistent JSON body."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": type(exc).__name__,
            "message": exc.message,
            "details": exc.details,
        },
    )


@app.get("/ping")
def ping() -> Dict[str, str]:
    """Health check endpoint.

    Returns:
        Dictionary with status key set to "ok".
    """
    return {"status": "ok"}


@app.get("/status")
def status() -> Dict[str, Any]:
    """Report whether data is loaded and how large the stores are.

    Never loads data itself, so it works when the data files are missing.
    """
    state = recommend._engine_cache
    if state is None:
        return {
            "data_loaded": False,
            "timestamp_last_loaded": None,
            "num_products": 0,
            "num_interactions": 0,
            "num_recommendations": 0,
        }

    return {
        "data_loaded": True,
        "timestamp_last_loaded": state["loaded_at"],
        "num_products": len(state["catalog"]),
        "num_interactions": len(state["interactions"]),
        "num_recommendations": state["recommendations"].count(),
    }


@app.get("/metrics")
def metrics() -> Dict[str, Any]:
    """Generation latency and feedback counters."""
    return metrics_service.get_metrics()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "blendrec.api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
