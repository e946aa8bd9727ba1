"""
Bakery storefront service.

Weekly menu ordering with pickup windows, custom-cake inquiries and an admin
back-office, behind a single FastAPI application.
"""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from contextlib import asynccontextmanager
import subprocess
import os

from bakery.core import ServiceHealth, setup_logging, RequestLoggingMiddleware, get_logger
from bakery.core_settings import get_settings
from bakery.domain.errors import AppError, InvalidStateTransition, RateLimitExceeded, ValidationError
from bakery.infrastructure.db import engine, init_models
from bakery.api.admin import router as admin_router
from bakery.api.checkout import router as checkout_router
from bakery.api.inquiries import router as inquiries_router
from bakery.api.menu import router as menu_router
from bakery.api.orders import router as orders_router
from bakery.api.webhooks import router as webhooks_router

settings = get_settings()

# Service configuration
SERVICE_NAME = "bakery-storefront"
SERVICE_VERSION = settings.SERVICE_VERSION
SERVICE_DESCRIPTION = "Bakery storefront: menu ordering, payments and custom cake inquiries"
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

setup_logging(service_name=SERVICE_NAME, level=settings.LOG_LEVEL)

logger = get_logger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle management"""
    logger.info(f"Starting {SERVICE_NAME} version {SERVICE_VERSION}")

    if settings.RUN_MIGRATIONS:
        try:
            logger.info("Running database migrations")
            result = subprocess.run(
                ["alembic", "upgrade", "head"],
                cwd=PROJECT_ROOT,
                capture_output=True,
                text=True,
                check=False
            )
            if result.returncode != 0:
                logger.warning(f"Migration output: {result.stderr}")
            else:
                logger.info("Database migrations completed")
        except OSError as e:
            logger.error(f"Migration error: {e}")

    try:
        init_models()
        logger.info("Database models initialized")
    except Exception as e:
        logger.error(f"Failed to initialize database models: {e}")
        raise

    logger.info(f"{SERVICE_NAME} started successfully")

    yield

    logger.info(f"Shutting down {SERVICE_NAME}")

app = FastAPI(
    title=SERVICE_NAME,
    description=SERVICE_DESCRIPTION,
    version=SERVICE_VERSION,
    lifespan=lifespan,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.APP_URL],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(RequestLoggingMiddleware)

# --- Error translation ---

@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(
            f"{exc.code}: {exc.message}",
            exc_info=exc,
            extra={'extra_fields': {'path': request.url.path, 'code': exc.code}}
        )
    body = {"error": exc.public_message, "code": exc.code}
    if isinstance(exc, ValidationError) and exc.details:
        body["details"] = exc.details
    if isinstance(exc, InvalidStateTransition):
        body["current_state"] = exc.current_state
        body["target_state"] = exc.target_state
    headers = None
    if isinstance(exc, RateLimitExceeded):
        headers = {"Retry-After": str(exc.retry_after)}
    return JSONResponse(status_code=exc.status_code, content=body, headers=headers)

@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = [
        {"field": ".".join(str(p) for p in err["loc"] if p != "body"), "message": err["msg"]}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content={"error": "Validation failed", "code": ValidationError.code, "details": details},
    )

@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)

@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        f"Unhandled error on {request.method} {request.url.path}",
        exc_info=exc,
        extra={'extra_fields': {'error_type': type(exc).__name__}}
    )
    return JSONResponse(status_code=500, content={"error": "An unexpected error occurred", "code": "INTERNAL_ERROR"})

# --- Routes ---

health_service = ServiceHealth(SERVICE_NAME, engine, SERVICE_VERSION, redis_url=settings.REDIS_URL)
app.include_router(health_service.create_health_router())

app.include_router(menu_router)
app.include_router(checkout_router)
app.include_router(orders_router)
app.include_router(webhooks_router)
app.include_router(inquiries_router)
app.include_router(admin_router)

@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
        "status": "running",
        "docs": "/api/docs"
    }

@app.get("/info")
async def info():
    """Service information endpoint"""
    return {
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
        "description": SERVICE_DESCRIPTION,
        "environment": os.getenv("ENVIRONMENT", "development"),
        "endpoints": {
            "health": "/health",
            "ready": "/health/ready",
            "live": "/health/live",
            "metrics": "/metrics",
            "docs": "/api/docs"
        }
    }
