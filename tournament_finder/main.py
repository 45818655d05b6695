import logging
import uuid
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from tournament_finder.api import tournaments
from tournament_finder.engine.collation import configure_collation
from tournament_finder.engine.sorting import InvalidSortError
from tournament_finder.schemas.error import ErrorType
from tournament_finder.services.tournament_source import (
    DataSourceError,
    UpstreamUnavailableError,
)
from tournament_finder.settings import AppSettings, get_settings
from tournament_finder.utils.error_responses import (
    UPSTREAM_RETRY_AFTER_SECONDS,
    build_error_response,
    build_validation_error_response,
    validation_details,
)
from tournament_finder.utils.request_context import get_request_id, set_request_id

# Load environment variables from .env file
load_dotenv()

settings = get_settings()

logging.basicConfig(
    level=settings.log_level_numeric,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def validate_environment(active_settings: AppSettings | None = None) -> None:
    """Log warnings for optional settings left at their defaults."""
    warnings = (active_settings or get_settings()).optional_config_warnings()
    if warnings:
        logger.warning("=" * 60)
        logger.warning("Environment Configuration Warnings:")
        for warning in warnings:
            logger.warning(f"  • {warning}")
        logger.warning("=" * 60)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown events."""
    validate_environment()

    current = get_settings()
    collation = configure_collation(current.collation_locale)

    logger.info("=" * 60)
    logger.info("Tournament Finder API - Preflight Check")
    logger.info("=" * 60)
    logger.info(f"Upstream: {current.upstream_base_url}")
    logger.info(f"Sample-data fallback: {'on' if current.upstream_fallback_enabled else 'off'}")
    logger.info(f"Date filtering: {current.date_filter_mode.value}")
    logger.info(f"Sortable fields: {', '.join(current.sortable_fields) or 'none'}")
    logger.info(f"Collation locale: {collation}")
    logger.info("=" * 60)

    from tournament_finder.services.dependencies import get_tournament_source
    from tournament_finder.warmup import warmup_all

    source = get_tournament_source()
    await warmup_all(source)

    yield

    from tournament_finder.cache import close_redis

    logger.info("Shutting down Tournament Finder API")
    await source.aclose()
    await close_redis()


app = FastAPI(
    title="Tournament Finder API",
    version="0.1.0",
    description="Search, filter and paginate poker tournament listings.",
    lifespan=lifespan,
    redirect_slashes=False,
)


def _default_origins() -> list[str]:
    ports = list(range(3000, 3011)) + [5173]
    origins = []
    for host in ("localhost", "127.0.0.1"):
        origins.extend([f"http://{host}:{port}" for port in ports])
    origins.append("http://localhost")
    origins.append("http://127.0.0.1")
    return origins


def _combine_origins(*origin_groups: list[str]) -> list[str]:
    """Merge origins preserving order and removing duplicates."""
    seen: set[str] = set()
    combined: list[str] = []
    for group in origin_groups:
        for origin in group:
            normalized = origin.rstrip("/")
            if normalized and normalized not in seen:
                seen.add(normalized)
                combined.append(normalized)
    return combined


allow_origins = _combine_origins(_default_origins(), settings.cors_allow_origins)
cors_origin_regex = settings.cors_allow_origin_regex or None

logger.info("Configured CORS allow_origins: %s", ", ".join(allow_origins))
if cors_origin_regex:
    logger.info("Configured CORS allow_origin_regex: %s", cors_origin_regex)

app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    allow_origin_regex=cors_origin_regex,
)


@app.middleware("http")
async def add_request_id(request: Request, call_next):
    """Add unique request ID to each request for tracking."""
    request_id = str(uuid.uuid4())
    set_request_id(request_id)
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle FastAPI request validation errors."""
    errors = validation_details(exc.errors())

    logger.warning(
        "Validation error for request %s to %s: %s errors",
        get_request_id(),
        request.url.path,
        len(errors),
    )

    error_response = build_validation_error_response(
        message="Request validation failed",
        detail=f"{len(errors)} validation error(s)",
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        path=str(request.url.path),
        errors=errors,
    )

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=error_response.model_dump(mode="json"),
    )


@app.exception_handler(ValidationError)
async def pydantic_validation_exception_handler(request: Request, exc: ValidationError):
    """Handle Pydantic validation errors (e.g. criteria built from query params)."""
    errors = validation_details(exc.errors())

    logger.warning(
        "Pydantic validation error for request %s to %s: %s errors",
        get_request_id(),
        request.url.path,
        len(errors),
    )

    error_response = build_validation_error_response(
        message="Data validation failed",
        detail=f"{len(errors)} validation error(s)",
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        path=str(request.url.path),
        errors=errors,
    )

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=error_response.model_dump(mode="json"),
    )


@app.exception_handler(InvalidSortError)
async def invalid_sort_exception_handler(request: Request, exc: InvalidSortError):
    """Handle sort requests for fields disabled in this deployment."""
    logger.warning(
        "Rejected sort for request %s to %s: %s",
        get_request_id(),
        request.url.path,
        exc,
    )

    error_response = build_error_response(
        error_type=ErrorType.VALIDATION_ERROR,
        message="Unsupported sort field",
        detail=str(exc),
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        path=str(request.url.path),
    )

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=error_response.model_dump(mode="json"),
    )


@app.exception_handler(DataSourceError)
async def data_source_exception_handler(request: Request, exc: DataSourceError):
    """Handle upstream failures that were not degraded to sample data."""
    logger.error(
        "Upstream error for request %s to %s: %s",
        get_request_id(),
        request.url.path,
        str(exc),
    )

    detail = (
        f"{exc.endpoint}: {exc.reason}"
        if isinstance(exc, UpstreamUnavailableError)
        else str(exc)
    )
    error_response = build_error_response(
        error_type=ErrorType.UPSTREAM_ERROR,
        message="Tournament data unavailable",
        detail=detail,
        status_code=status.HTTP_502_BAD_GATEWAY,
        path=str(request.url.path),
        retry_after=UPSTREAM_RETRY_AFTER_SECONDS,
    )

    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content=error_response.model_dump(mode="json"),
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    """Handle all other unhandled exceptions."""
    logger.exception(
        "Unhandled exception for request %s to %s: %s",
        get_request_id(),
        request.url.path,
        type(exc).__name__,
    )

    error_response = build_error_response(
        error_type=ErrorType.INTERNAL_ERROR,
        message="Internal server error",
        detail=f"An unexpected error occurred: {type(exc).__name__}",
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        path=str(request.url.path),
        retry_after=5,
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_response.model_dump(mode="json"),
    )


@app.get("/health", tags=["system"])
async def healthcheck() -> dict[str, str]:
    """Simple health endpoint for readiness checks."""
    return {"status": "ok"}


app.include_router(tournaments.router, prefix="/api/tournaments", tags=["tournaments"])
