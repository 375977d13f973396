from __future__ import annotations

from fastapi import APIRouter

from roster.core.config import settings
from roster.services.record_store import record_store

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
async def health_check():
    services: dict[str, str] = {}

    try:
        if record_store.initialized:
            ok = await record_store.check_connection()
            services["database"] = "ok" if ok else "error"
        else:
            services["database"] = "not_configured"
    except Exception:
        services["database"] = "error"

    all_ok = all(v in ("ok", "not_configured") for v in services.values())

    return {
        "status": "healthy" if all_ok else "degraded",
        "version": settings.APP_VERSION,
        "services": services,
    }


@router.get("/ready")
async def readiness_probe():
    return {"ready": True}
