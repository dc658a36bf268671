"""FastAPI application for the vehicle selector and compatibility API."""

import time
from contextlib import asynccontextmanager
from typing import Any

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from ..core.config import get_settings, validate_settings
from ..core.dependencies import check_supabase_health, get_supabase
from ..core.enums import FilterMode, Level
from ..core.logging import log_error, log_request, log_response, logger, setup_logging
from .routes import limiter, router


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - startup / shutdown."""
    logger.info("Starting Vehicle Fitment API...")
    try:
        validate_settings()
    except ValueError as e:
        logger.error(f"Configuration error: {e}")
        raise
    yield
    logger.info("Shutting down...")


app = FastAPI(
    title="Vehicle Fitment API",
    description="Cascading vehicle selection and parts compatibility filtering",
    version="1.0.0",
    lifespan=lifespan,
)

# State for limiter
app.state.limiter = limiter


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    log_error("Rate limit exceeded", client=get_remote_address(request))
    return JSONResponse(
        status_code=429, content={"detail": "Rate limit exceeded. Try again later."}
    )


settings = get_settings()
setup_logging(settings.log_level)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)


# Request logging middleware
@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.time()
    log_request(request.method, request.url.path)

    response = await call_next(request)

    duration_ms = (time.time() - start) * 1000
    log_response(request.method, request.url.path, response.status_code, duration_ms)

    return response


app.include_router(router, prefix="/api")


class HealthResponse(BaseModel):
    status: str
    supabase: dict[str, Any] | None = None


@app.get("/health", response_model=HealthResponse)
async def health_check(detailed: bool = False, supabase=Depends(get_supabase)):
    """
    Health check endpoint.

    - Basic: Returns {"status": "healthy"}
    - Detailed (?detailed=true): Checks Supabase connectivity
    """
    if not detailed:
        return {"status": "healthy"}

    supabase_health = await check_supabase_health(supabase)
    overall = "healthy" if supabase_health["status"] == "healthy" else "degraded"
    return {"status": overall, "supabase": supabase_health}


@app.get("/api/selector-levels")
async def get_selector_levels():
    """Selection levels in cascade order and the supported filter modes."""
    return {
        "levels": [level.value for level in Level],
        "filter_modes": [mode.value for mode in FilterMode],
    }
