"""
FastAPI application factory.

Validates configuration, configures logging, CORS and telemetry, and
creates service instances. Serve with:

    uvicorn app.main:create_app --factory

Missing credentials raise ConfigurationError here, so the process exits
before accepting traffic.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import Settings, get_settings
from app.core.errors import register_exception_handlers
from app.core.telemetry import setup_telemetry
from app.routers import chat, health
from app.services.chat import SOURCES_HEADER, ChatOrchestrator
from app.services.deepseek_client import DeepSeekService
from app.services.search import WebSearchService

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(application: FastAPI):
    """
    Application lifespan handler.
    Closes the model provider client on shutdown.
    """
    logger.info("Search chat API started.")
    yield
    await application.state.completion_service.aclose()
    logger.info("Search chat API shutting down.")


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the application. Settings are loaded from the environment when omitted."""
    if settings is None:
        settings = get_settings()

    # Configure logging
    logging.basicConfig(level=settings.log_level)

    # Initialize telemetry
    setup_telemetry(settings.telemetry_console_export)

    # Initialize service clients
    search_service = WebSearchService(settings)
    completion_service = DeepSeekService(settings)

    application = FastAPI(
        title="Search Chat API",
        description="Streams DeepSeek answers grounded in Tavily web search.",
        version="0.1.0",
        lifespan=lifespan,
    )

    # Store in app state for dependency injection
    application.state.settings = settings
    application.state.search_service = search_service
    application.state.completion_service = completion_service
    application.state.chat_orchestrator = ChatOrchestrator(
        search_service,
        completion_service,
        search_enabled=settings.search_enabled,
    )

    register_exception_handlers(application)

    # CORS; the browser must be allowed to read the sources header
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[SOURCES_HEADER],
    )

    # Register routers
    application.include_router(health.router)
    application.include_router(chat.router)

    logger.info(
        "Configured model %s (search %s by default).",
        settings.deepseek_model,
        "on" if settings.search_enabled else "off",
    )
    return application
