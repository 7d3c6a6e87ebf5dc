from fastapi import APIRouter

from app.infra.settings import settings

router = APIRouter(prefix="/health", tags=["health"])


@router.get("/", summary="Health check")
async def health_check() -> dict:
    """
    Basic health check.
    Also reports whether a snapshot source is configured, since nothing can
    be derived without one.
    """
    return {
        "service": "kura",
        "status": "ok",
        "env": settings.kura_env,
        "source_configured": bool(settings.kura_sheet_script_url),
    }
