"""
Notewise API - Main FastAPI Application

Accepts PDF/DOCX uploads, enriches their text with a summary and quiz
questions, and serves the saved notes.
"""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from notewise import __version__
from notewise.api.routes import router as notes_router
from notewise.api.schemas import HealthResponse
from notewise.config import Settings, configure_logging, get_settings
from notewise.db import check_connection, get_engine
from notewise.notes import NoteService
from notewise.storage import SQLNoteStore

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    note_service: Optional[NoteService] = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Settings to use, cached settings if not provided
        note_service: Prebuilt note service; built from settings at startup otherwise
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        configure_logging(settings)

        if app.state.note_service is None:
            engine = get_engine(settings.database_url)
            app.state.engine = engine
            app.state.note_service = NoteService(
                SQLNoteStore(engine),
                settings.enrichment_config(),
            )

        logger.info(
            "Starting Notewise API",
            extra={
                "environment": settings.environment,
                "summary_provider": settings.summary_provider,
                "question_provider": settings.question_provider,
            },
        )

        yield

        logger.info("Shutting down Notewise API")

    app = FastAPI(
        title="Notewise API",
        description="Summaries and quiz questions for uploaded documents",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.note_service = note_service
    app.state.engine = None

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(notes_router, tags=["notes"])

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(
            "Unhandled exception",
            exc_info=True,
            extra={"path": request.url.path},
        )
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})

    @app.get("/health", response_model=HealthResponse)
    def health_check(request: Request) -> HealthResponse:
        """Health check endpoint."""
        services = {
            "notes": "healthy" if request.app.state.note_service is not None else "unavailable",
        }
        engine = request.app.state.engine
        if engine is not None:
            services["database"] = "healthy" if check_connection(engine) else "unhealthy"

        status = "healthy" if all(v == "healthy" for v in services.values()) else "degraded"
        return HealthResponse(status=status, version=__version__, services=services)

    return app


# Create application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "notewise.api.main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", "5000")),
        reload=os.getenv("ENVIRONMENT", "development") == "development",
    )
