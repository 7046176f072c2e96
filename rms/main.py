"""Main FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from rms.api.v1.router import api_router
from rms.core.config import settings
from rms.core.database import SessionLocal, engine
from rms.core.exceptions import AppException, AuthenticationError, ServerError
from rms.core.scheduler import start_scheduler, stop_scheduler
from rms.middleware.logging import RequestLoggingMiddleware
from rms.services.config import ConfigService

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

# Suppress noisy SQLAlchemy and scheduler logs
logging.getLogger("sqlalchemy").setLevel(logging.WARNING)
logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
logging.getLogger("apscheduler").setLevel(logging.WARNING)

logger = logging.getLogger(__name__)


def seed_configuration() -> None:
    """Insert default configuration rows that are not present yet."""
    db = SessionLocal()
    try:
        created = ConfigService(db).seed_defaults()
        db.commit()
        if created:
            logger.info(f"Seeded {created} default configuration entries")
    except Exception:
        db.rollback()
        logger.exception("Failed to seed default configuration")
        raise
    finally:
        db.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")
    seed_configuration()
    if settings.SCHEDULER_ENABLED:
        start_scheduler()
    yield
    logger.info("Shutting down application")
    if settings.SCHEDULER_ENABLED:
        stop_scheduler()
    engine.dispose()


def create_application() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="""
Result Management System API.

## Features

- **Role-Based Access**: admin, teacher and student roles
- **Marks Entry**: single and bulk entry with automatic grading
- **Reports**: per-student and per-class reports with spreadsheet export
- **Analytics**: top performers, grade distributions and trends
- **Attendance**: daily attendance with per-subject summaries
- **Audit Logging**: before/after snapshots of every change
- **In-App Notifications**: result approval alerts

## Authentication

All endpoints except register, login and refresh require an
`Authorization: Bearer <token>` header.

## Error Handling

All errors follow a standard format:
```json
{
  "success": false,
  "error": {
    "code": "ERROR_CODE",
    "message": "Human readable message",
    "details": {}
  }
}
```
        """,
        openapi_url=f"{settings.API_V1_PREFIX}/openapi.json",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # Add middlewares
    app.add_middleware(RequestLoggingMiddleware)

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Exception handlers
    @app.exception_handler(AppException)
    async def app_exception_handler(request: Request, exc: AppException):
        if isinstance(exc, AuthenticationError):
            logger.debug(f"Authentication failed on {request.url.path}: {exc.reason}")
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.detail,
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = [
            {
                "loc": list(error.get("loc", ())),
                "msg": error.get("msg"),
                "type": error.get("type"),
            }
            for error in exc.errors()
        ]
        return JSONResponse(
            status_code=422,
            content={
                "success": False,
                "error": {
                    "code": "VALIDATION_ERROR",
                    "message": "Request validation failed",
                    "details": {"errors": errors},
                },
            },
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception")
        error = ServerError("An internal server error occurred")
        return JSONResponse(status_code=error.status_code, content=error.detail)

    # Health check endpoint
    @app.get("/health", tags=["Health"])
    async def health_check():
        """Health check endpoint for load balancers and monitoring."""
        return {
            "status": "healthy",
            "app": settings.APP_NAME,
            "version": settings.APP_VERSION,
        }

    # Include API router
    app.include_router(api_router, prefix=settings.API_V1_PREFIX)

    return app


# Create app instance
app = create_application()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "rms.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
    )
