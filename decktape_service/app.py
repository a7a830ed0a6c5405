"""
Decktape Service - FastAPI application for HTML to PDF conversion.

Provides a conversion endpoint that hands the submitted HTML to Decktape
running under Node/Chromium, and a liveness probe.
"""

import logging
import time
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import DecktapeSettings, get_settings, log_settings
from .converter import PDF_FILENAME, ConversionHandler
from .errors import ConversionError, InputValidationError, RendererFailure
from .models import ConvertRequest, ErrorResponse, HealthResponse
from .renderer import RendererInvoker

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S"
)
logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[DecktapeSettings] = None,
    invoker: Optional[RendererInvoker] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Optional settings override (defaults to the environment)
        invoker: Optional renderer override (useful for testing)

    Returns:
        Configured FastAPI application
    """
    if settings is None:
        settings = get_settings()

    logging.getLogger().setLevel(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info("Decktape service starting - checking renderer installation...")
        log_settings(settings)
        yield
        logger.info("Decktape service stopped")

    app = FastAPI(
        title="Decktape Service",
        version="0.1.0",
        description="HTML to PDF conversion using Decktape/Chromium",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.handler = ConversionHandler(settings, invoker=invoker)

    if settings.cors_enabled:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_methods=["*"],
            allow_headers=["*"],
        )

    @app.middleware("http")
    async def log_requests(request: Request, call_next: Any) -> Response:
        """Log every request with its status and duration."""
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info(
            f"{request.method} {request.url.path} -> {response.status_code} ({elapsed_ms:.0f}ms)"
        )
        return response

    @app.exception_handler(ConversionError)
    async def conversion_error_handler(request: Request, exc: ConversionError) -> JSONResponse:
        """Render conversion errors as the JSON error envelope."""
        if isinstance(exc, InputValidationError):
            logger.info(f"Rejected conversion request: {exc.message}")
        elif not isinstance(exc, RendererFailure):
            # RendererFailure is logged with its output by the handler
            logger.error(f"Error in PDF conversion: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Malformed bodies get the same envelope as a missing html field."""
        logger.info(f"Rejected malformed request body: {exc.errors()}")
        return JSONResponse(status_code=400, content={"error": "Invalid request body"})

    @app.get("/health", response_model=HealthResponse)
    async def health_check() -> HealthResponse:
        """Liveness probe. Always ok."""
        return HealthResponse()

    @app.post(
        "/convert",
        response_class=Response,
        responses={
            200: {"content": {"application/pdf": {}}, "description": "Rendered PDF"},
            400: {"model": ErrorResponse},
            500: {"model": ErrorResponse},
        },
    )
    async def convert(request: Request, body: Optional[ConvertRequest] = None) -> Response:
        """
        Convert HTML to PDF.

        Args:
            body: HTML content and optional rendering options

        Returns:
            Response with the PDF binary data

        Raises:
            ConversionError: 400 for missing HTML, 500 for conversion failures
        """
        # A missing body is treated like an empty object
        if body is None:
            body = ConvertRequest()
        handler: ConversionHandler = request.app.state.handler
        try:
            pdf_bytes = await handler.convert(body.html, body.options)
        except ConversionError:
            raise
        except Exception as e:
            logger.exception("Conversion error")
            raise ConversionError(str(e)) from e

        return Response(
            content=pdf_bytes,
            media_type="application/pdf",
            headers={
                "Content-Disposition": f"attachment; filename={PDF_FILENAME}",
            },
        )

    return app


app = create_app()
