"""FastAPI application factory."""

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request

from food_resolver.api.admin import router as admin_router
from food_resolver.app_logging import configure_logging
from food_resolver.config import parse_identifier_list
from food_resolver.containers import AppContainer


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)
    warm_identifiers = parse_identifier_list(
        container.settings.warm_cache_identifiers
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        resolver = app.state.container.resolver
        await asyncio.to_thread(resolver.cache.load)
        warm_task: asyncio.Task[None] | None = None
        if warm_identifiers:
            logger.info("Scheduling cache warm-up for %s items", len(warm_identifiers))
            warm_task = asyncio.create_task(resolver.warm_cache(warm_identifiers))
        yield
        if warm_task is not None and not warm_task.done():
            warm_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await warm_task
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(admin_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/attribution")
    async def attribution(request: Request) -> dict[str, str]:
        """Attribution notice to display alongside resolved data."""
        state_container: AppContainer = request.app.state.container
        return {"text": state_container.resolver.get_attribution_text()}

    @app.get("/foods/{identifier}")
    async def resolve_food(identifier: str, request: Request) -> dict[str, object]:
        """Resolve a barcode or food name to a nutrition record."""
        state_container: AppContainer = request.app.state.container
        result = await state_container.resolver.resolve(
            identifier,
            deadline_seconds=state_container.settings.resolve_deadline_seconds,
        )
        return result.to_dict()

    return app
