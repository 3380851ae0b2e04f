from __future__ import annotations
from datetime import datetime, timezone
from fastapi import APIRouter, Request
from banfoo.config import settings
from banfoo.services.broadcast import hub, LocalHub

router = APIRouter(tags=["system"])

@router.get("/health")
async def health(request: Request):
    body = {
        "status": "ok",
        "env": settings.environment,
        "time": datetime.now(timezone.utc).isoformat(),
        "request_id": request.state.request_id,
        "event_bus": "local" if isinstance(hub, LocalHub) else "redis",
    }
    if isinstance(hub, LocalHub):
        # live sockets on this worker
        body["subscribers"] = hub.subscriber_count
    return body

@router.get("/version")
async def version():
    return {"name": settings.app_name, "display_name": settings.app_display_name,
            "version": settings.app_version, "git_sha": settings.git_sha}
