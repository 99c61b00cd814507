"""Lifecycle management for the application."""
from contextlib import asynccontextmanager
from fastapi import FastAPI
from brand_rag.core.config import settings
from brand_rag.core.logging import get_logger
from brand_rag.core.container import ServiceContainer, set_container

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle."""
    logger.info("Starting brand RAG service...")

    # A container placed on app.state before startup (tests) is reused
    container = getattr(app.state, "container", None) or ServiceContainer()

    try:
        await container.initialize(settings)

        # Set global container for module-level access
        set_container(container)

        # Store container in app state for route access
        app.state.container = container

        logger.info("Brand RAG service started successfully")

    except Exception as e:
        logger.error(f"Failed to initialize services: {e}")
        raise

    yield

    logger.info("Shutting down brand RAG service...")
    await container.shutdown()
    set_container(None)
    logger.info("Brand RAG service shut down")
