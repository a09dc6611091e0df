"""Admin API endpoints with simple token auth."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import (
    APIRouter,
    BackgroundTasks,
    Depends,
    Header,
    HTTPException,
    Request,
    status,
)

from food_resolver.api.models import WarmCacheRequest  # noqa: TC001

if TYPE_CHECKING:
    from food_resolver.containers import AppContainer

router = APIRouter(prefix="/admin", tags=["admin"])


def _get_admin_token(request: Request) -> str:
    container: AppContainer = request.app.state.container
    return container.settings.admin_token


async def require_admin(
    x_admin_token: str | None = Header(default=None),
    admin_token: str = Depends(_get_admin_token),
) -> None:
    """Ensure requests include a valid admin token."""
    if not x_admin_token or x_admin_token != admin_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)


@router.get("/health", dependencies=[Depends(require_admin)])
async def admin_health() -> dict[str, str]:
    """Admin health check endpoint."""
    return {"status": "ok"}


@router.get("/cache", dependencies=[Depends(require_admin)])
async def cache_stats(request: Request) -> dict[str, object]:
    """Return cache contents and current rate limit windows."""
    container: AppContainer = request.app.state.container
    stats = container.resolver.cache_stats()
    return {
        "size": stats.size,
        "keys": stats.keys,
        "rate_limits": container.resolver.rate_limit_snapshot(),
    }


@router.delete("/cache", dependencies=[Depends(require_admin)])
async def clear_cache(request: Request) -> dict[str, str]:
    """Drop every cached result from memory and storage."""
    container: AppContainer = request.app.state.container
    await container.resolver.clear_cache()
    return {"status": "cleared"}


@router.post(
    "/cache/warm",
    status_code=status.HTTP_202_ACCEPTED,
    dependencies=[Depends(require_admin)],
)
async def warm_cache(
    payload: WarmCacheRequest, request: Request, background_tasks: BackgroundTasks
) -> dict[str, object]:
    """Resolve identifiers in the background to pre-populate the cache."""
    container: AppContainer = request.app.state.container
    background_tasks.add_task(container.resolver.warm_cache, payload.identifiers)
    return {"status": "accepted", "count": len(payload.identifiers)}
