"""Application entry point and FastAPI app factory."""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
import sys
from pathlib import Path

import uvicorn
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from fastapi.staticfiles import StaticFiles
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from .config.settings import settings
from .controllers import pipeline
from .controllers.dependencies import get_llm_client, get_local_audio_store
from .middleware import StructuredLoggingMiddleware, TelemetryMiddleware

_LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
_FILE_FORMAT = "%(asctime)s | %(levelname)s | %(message)s"
_QUIET_LOGGERS = ("botocore", "boto3", "urllib3", "httpx", "httpcore")


def _rotating_handler(path: str, max_bytes: int, fmt: str) -> RotatingFileHandler:
    log_path = Path(path)
    log_path.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        log_path,
        maxBytes=max_bytes,
        backupCount=5,
        encoding="utf-8",
    )
    handler.setFormatter(logging.Formatter(fmt))
    return handler


def _dedicated_logger(name: str, handler: logging.Handler, *, propagate: bool) -> None:
    target = logging.getLogger(name)
    target.handlers.clear()
    target.addHandler(handler)
    target.setLevel(logging.INFO)
    target.propagate = propagate


def _configure_logging() -> None:
    """Stream logs to stdout and rotate them to files, one file per concern."""

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(logging.Formatter(_LOG_FORMAT))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(console)
    root.addHandler(_rotating_handler(settings.log_file, 1_000_000, _LOG_FORMAT))
    root.setLevel(logging.DEBUG if settings.debug else logging.INFO)

    access = logging.StreamHandler(sys.stdout)
    access.setFormatter(logging.Formatter("%(message)s"))
    _dedicated_logger("mindspace.middleware.structured", access, propagate=False)

    # Pipeline stages also reach stdout/app.log through the root logger.
    _dedicated_logger(
        "mindspace.pipeline",
        _rotating_handler(settings.pipeline_log_file, 500_000, _FILE_FORMAT),
        propagate=True,
    )
    _dedicated_logger(
        "mindspace.logs.transcript",
        _rotating_handler(settings.transcript_log_file, 500_000, _FILE_FORMAT),
        propagate=False,
    )

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""

    _configure_logging()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        description="Speech → Transcribe → watsonx.ai → Polly voice pipeline",
    )

    app.add_middleware(TelemetryMiddleware)
    app.add_middleware(StructuredLoggingMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )

    app.include_router(pipeline.router)

    @app.get("/health", include_in_schema=False)
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""

        return {
            "status": "healthy",
            "service": settings.app_name,
            "version": settings.app_version,
        }

    @app.get("/metrics", include_in_schema=False)
    async def metrics() -> Response:
        """Expose application metrics for Prometheus scraping."""

        return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request, exc):
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "message": str(exc.detail)},
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request, exc):
        logging.getLogger(__name__).exception("Unhandled error on %s", request.url.path)
        return JSONResponse(
            status_code=500,
            content={"success": False, "message": "Internal server error"},
        )

    @app.on_event("startup")
    async def startup_event() -> None:
        get_local_audio_store().ensure_directory()

    @app.on_event("shutdown")
    async def shutdown_event() -> None:
        await get_llm_client().close()

    # Mounted last so the API routes above take precedence over static files.
    public_dir = Path(settings.pipeline.public_dir)
    public_dir.mkdir(parents=True, exist_ok=True)
    app.mount("/", StaticFiles(directory=public_dir, html=True), name="public")

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(
        "mindspace.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
