from fastapi import APIRouter, Request

router = APIRouter()


@router.get("/health")
async def health_check(request: Request):
    cfg = request.app.state.config
    services = {
        "paapi": cfg.has_paapi_credentials,
        "rakuten": cfg.has_rakuten_credentials,
        "sentry": cfg.has_sentry,
    }
    status = "healthy" if services["paapi"] and services["rakuten"] else "degraded"
    return {"status": status, "services": services}


@router.get("/ready")
async def readiness_check(request: Request):
    return {"ready": getattr(request.app.state, "ready", False)}
