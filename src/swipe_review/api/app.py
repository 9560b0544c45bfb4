"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from swipe_review.api.review import router as review_router
from swipe_review.api.review import stats_router
from swipe_review.app_logging import configure_logging
from swipe_review.containers import AppContainer


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info("Review API starting: environment=%s", container.settings.environment)
        yield
        for inbox in app.state.inboxes.values():
            inbox.unsubscribe()
        app.state.inboxes.clear()
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container
    app.state.inboxes = {}

    app.include_router(review_router)
    app.include_router(stats_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    return app
