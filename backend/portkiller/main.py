"""PortKiller - Main FastAPI application."""

import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from portkiller import __version__
from portkiller.api import api_router
from portkiller.api.models import HealthResponse
from portkiller.config import settings
from portkiller.logging_config import setup_logging
from portkiller.termination.killer import resolve_elevation_method

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info(f"{settings.app_name} ready on {settings.host}:{settings.port}")
    yield
    logger.info(f"{settings.app_name} shutting down")


tags_metadata = [
    {
        "name": "ports",
        "description": "Listening TCP ports and the processes that own them",
    },
    {
        "name": "config",
        "description": "Effective runtime settings",
    },
]

app = FastAPI(
    title=settings.app_name,
    version=__version__,
    description="Inspect listening TCP ports and stop the owning processes, "
    "with safeguards for system-critical processes.",
    lifespan=lifespan,
    openapi_tags=tags_metadata,
    docs_url="/docs",
    redoc_url="/redoc",
)

# Local UI clients only
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173", "http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log all HTTP requests with timing information."""
    start_time = time.time()

    response = await call_next(request)

    duration_ms = (time.time() - start_time) * 1000

    path = request.url.path
    if path != "/health":
        logger.info(
            "http_request",
            extra={
                "method": request.method,
                "path": path,
                "status_code": response.status_code,
                "duration_ms": round(duration_ms, 2),
                "client_ip": request.client.host if request.client else "unknown",
            },
        )

    return response


app.include_router(api_router)


@app.get("/health", response_model=HealthResponse, tags=["health"])
async def health() -> HealthResponse:
    """Health check endpoint."""
    return HealthResponse(
        status="ok",
        version=__version__,
        elevation=resolve_elevation_method(settings.elevation),
    )


def main():
    """Run the application."""
    import uvicorn

    setup_logging(debug=settings.debug, json_logs=settings.json_logs)
    uvicorn.run(
        "portkiller.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )


if __name__ == "__main__":
    main()
