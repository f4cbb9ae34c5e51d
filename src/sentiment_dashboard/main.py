# src/sentiment_dashboard/main.py

import logging
import sys
import uuid
from contextlib import asynccontextmanager
from typing import List

from fastapi import FastAPI, Request, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# STEP 1: Load the configuration, fail fast when it is broken.
try:
    from .core.config import settings
except Exception as e:
    print(f"FATAL: could not load configuration. Check your .env file.\nDetails: {e}", file=sys.stderr)
    sys.exit(1)

from .core.logging_config import request_id_ctx, setup_logging
setup_logging(log_level=settings.LOG_LEVEL)

logger = logging.getLogger(__name__)

# STEP 2: Routers are imported once logging is configured.
from .api.routers import access, analytics, comments, dashboard, pages, posts, seed, sentiments, users
from .core.exceptions import InvalidRequestError, MissingReferenceError, UpstreamError
from .db.session import DatabaseSessionManager


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Owns the database session manager for the lifetime of the application.
    A manager already placed on `app.state` (tests) is used as is.
    """
    owns_manager = getattr(app.state, "sessionmanager", None) is None
    if owns_manager:
        app.state.sessionmanager = DatabaseSessionManager.from_settings(settings)
    logger.info(
        "Application starting",
        extra={'event': 'startup', 'env': settings.ENVIRONMENT.upper()}
    )
    yield
    if owns_manager:
        await app.state.sessionmanager.close()
    logger.info("Application stopping", extra={'event': 'shutdown'})


# STEP 3: The FastAPI instance.
app = FastAPI(
    title="Sentiment Dashboard API",
    description="Access-controlled queries and aggregates over scraped social-media data and its sentiment scores.",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/api/docs" if settings.is_dev else None,
    redoc_url="/api/redoc" if settings.is_dev else None,
)

# STEP 4: CORS.
origins: List[str] = [origin.strip() for origin in settings.BACKEND_CORS_ORIGINS.split(",")]
logger.info(f"CORS configured for origins: {origins}")
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def request_context(request: Request, call_next):
    """Tags every log record of the request with its id and echoes it back."""
    request_id = request.headers.get("X-Request-Id") or uuid.uuid4().hex
    token = request_id_ctx.set(request_id)
    try:
        response = await call_next(request)
    finally:
        request_id_ctx.reset(token)
    response.headers["X-Request-Id"] = request_id
    return response


# STEP 5: Domain errors to HTTP statuses.
@app.exception_handler(InvalidRequestError)
async def invalid_request_handler(request: Request, exc: InvalidRequestError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": exc.message, "field": exc.field},
    )


@app.exception_handler(MissingReferenceError)
async def missing_reference_handler(request: Request, exc: MissingReferenceError):
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={"detail": str(exc), "missing_users": exc.missing_users, "missing_posts": exc.missing_posts},
    )


@app.exception_handler(UpstreamError)
async def upstream_error_handler(request: Request, exc: UpstreamError):
    logger.error(f"Data store failure on {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content={"detail": str(exc)})


# STEP 6: Basic endpoints.
@app.get("/", tags=["Root"], include_in_schema=False)
def read_root():
    return {"message": "Welcome to Sentiment Dashboard API"}

@app.get("/health", status_code=status.HTTP_200_OK, tags=["Health Check"])
async def health_check(response: Response):
    response.headers["Cache-Control"] = "no-cache, no-store, must-revalidate"
    response.headers["Pragma"] = "no-cache"
    response.headers["Expires"] = "0"
    return {"status": "ok"}

# STEP 7: Routers.
API_PREFIX = "/api"
for router_module in (posts, comments, sentiments, users, pages, analytics, dashboard, access, seed):
    app.include_router(router_module.router, prefix=API_PREFIX)
logger.info(f"All routers mounted under '{API_PREFIX}'.")
