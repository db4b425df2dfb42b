from fastapi import APIRouter

from api.config import settings

internal_router = APIRouter(tags=["internal"])


@internal_router.get("/health")
async def healthcheck() -> dict:
    """Liveness probe; does not touch upstream sources."""
    return {"status": "ok"}


@internal_router.get("/version")
async def version() -> dict:
    """Return the current app version and deployment metadata."""
    return {
        "name": settings.app_name,
        "version": settings.version,
        "git_commit": settings.git_commit,
        "environment": settings.environment,
    }
