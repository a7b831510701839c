"""quizform FastAPI Application Entry Point."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from quizform import __version__
from quizform.config import settings
from quizform.exception_handlers import register_exception_handlers
from quizform.middleware import configure_logging, register_middleware
from quizform.routers import forms_router, responses_router, uploads_router
from quizform.schemas import HealthResponse


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan context manager."""
    configure_logging()
    logger.info(
        "Application starting",
        environment=settings.environment,
        debug=settings.debug,
    )
    yield
    logger.info("Application shutting down")


app = FastAPI(
    title="quizform API",
    description="Quiz forms with graded, exactly-once submissions",
    version=__version__,
    lifespan=lifespan,
)

register_middleware(app)

register_exception_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
app.include_router(forms_router, prefix="/api")
app.include_router(responses_router, prefix="/api")
app.include_router(uploads_router, prefix="/api")


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["Health"],
    summary="Health check endpoint",
)
async def health_check() -> HealthResponse:
    """Health check endpoint for container orchestration."""
    return HealthResponse(
        status="healthy",
        service="quizform-api",
        version=__version__,
    )
