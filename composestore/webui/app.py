"""
FastAPI Application - composestore app management API

Routes are mounted under /v2/app_management. Services are built from
configuration at startup (or injected, as the tests do) and live on
``app.state.services``.

Run with:
    composestore serve
    uvicorn composestore.webui.app:app_factory --factory
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from composestore import __version__
from composestore.core.config import AppManagementConfig, get_config
from composestore.core.log import configure_logging
from composestore.services import AppManagementServices, build_services
from composestore.webui.api import appstore
from composestore.webui.api.error_envelope import register_error_handlers
from composestore.webui.middleware.request_id import add_request_id_middleware

logger = logging.getLogger(__name__)

API_PREFIX = "/v2/app_management"


def create_app(
    config: Optional[AppManagementConfig] = None,
    services: Optional[AppManagementServices] = None,
) -> FastAPI:
    """
    Create the FastAPI application

    Args:
        config: Configuration; defaults to ``get_config()``
        services: Prebuilt services. When omitted they are built at startup,
            remote app stores not downloaded yet are synchronized in the
            background, and everything is shut down with the app.
    """
    if config is None:
        config = services.config if services is not None else get_config()

    owns_services = services is None

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if owns_services:
            app.state.services = build_services(config)
            app.state.services.registry.sync_all()
        try:
            yield
        finally:
            if owns_services:
                app.state.services.close()
                app.state.services = None

    app = FastAPI(
        title="composestore",
        description="Compose app store catalog - app stores, apps and categories",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.services = services

    add_request_id_middleware(app)
    register_error_handlers(app)

    app.include_router(appstore.router, prefix=API_PREFIX, tags=["appstore"])

    return app


def app_factory() -> FastAPI:
    """Zero-argument factory for uvicorn: loads configuration and logging first"""
    config = get_config()
    configure_logging(config.log_level, config.log_file)
    logger.info(f"Starting composestore {__version__} ({config.environment})")
    return create_app(config)
