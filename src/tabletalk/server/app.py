"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from tabletalk import __version__
from tabletalk.agent.service import ChatService, build_service
from tabletalk.config.schema import TabletalkConfig
from tabletalk.server.diagnostics import create_diagnostics_router
from tabletalk.server.routes import create_router

logger = logging.getLogger(__name__)


def create_app(config: TabletalkConfig, service: ChatService | None = None) -> FastAPI:
    """Create and configure FastAPI application.

    The app owns the service lifecycle: the session sweeper starts with
    the application and stops, together with the HTTP clients, on shutdown.

    Args:
        config: Tabletalk configuration
        service: Prebuilt chat service (built from config when omitted)

    Returns:
        Configured FastAPI app

    Raises:
        ConfigError: If a credential needed to build the service is missing
    """
    if service is None:
        service = build_service(config)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        service.store.start_sweeper()
        logger.info("Tabletalk %s started, session sweeper running", __version__)
        try:
            yield
        finally:
            await service.store.stop_sweeper()
            await service.close()

    app = FastAPI(
        title="Tabletalk",
        description="Conversational CRUD over Airtable driven by an LLM",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.service = service

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.server.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(create_router(config, service))
    if config.server.diagnostics_enabled:
        app.include_router(create_diagnostics_router(config, service.orchestrator.gateway))

    return app
