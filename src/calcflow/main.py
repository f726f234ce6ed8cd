"""
CalcFlow FastAPI Application Entry Point.

This module creates and configures the FastAPI application instance.
"""

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from calcflow.api.v1 import router as v1_router
from calcflow.core.config import settings
from calcflow.core.exceptions import CalcFlowException
from calcflow.core.logging import get_logger, setup_logging

logger = get_logger(__name__)


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance
    """
    setup_logging(
        log_level=settings.log_level,
        json_logs=settings.json_logs or settings.environment == "production",
    )

    app = FastAPI(
        title=settings.app_name,
        description="Unit-aware calculation graphs and batch table formulas",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    app.include_router(v1_router, prefix=settings.api_v1_prefix)

    logger.info(
        "Application created",
        extra={"app_version": settings.app_version, "environment": settings.environment},
    )
    return app


def register_exception_handlers(app: FastAPI) -> None:
    """Register custom exception handlers."""

    @app.exception_handler(CalcFlowException)
    async def calcflow_exception_handler(
        request: Request,
        exc: CalcFlowException,
    ) -> JSONResponse:
        """Handle CalcFlow custom exceptions."""
        logger.info(
            "Request rejected",
            extra={"path": request.url.path, "code": exc.code, "error": exc.message},
        )
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.to_dict(),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        """Handle Pydantic validation errors."""
        errors = []
        for error in exc.errors():
            errors.append(
                {
                    "field": ".".join(str(loc) for loc in error["loc"]),
                    "message": error["msg"],
                    "type": error["type"],
                }
            )

        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={
                "error": {
                    "code": "VALIDATION_ERROR",
                    "message": "Request validation failed",
                    "details": {"errors": errors},
                }
            },
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request,
        exc: Exception,
    ) -> JSONResponse:
        """Handle unexpected exceptions."""
        logger.exception("Unexpected error", extra={"path": request.url.path})

        # In production, don't expose internal error details
        if settings.environment == "production":
            message = "An unexpected error occurred"
        else:
            message = str(exc)

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": {
                    "code": "INTERNAL_ERROR",
                    "message": message,
                }
            },
        )


# Create the application instance
app = create_app()
