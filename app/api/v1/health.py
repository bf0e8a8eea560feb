from __future__ import annotations

import time
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request

from app.security.headers.https import is_https
from app.security.rate_limit.service import enforce_rate_limit

router = APIRouter(tags=["health"])

_STARTED = time.monotonic()


@router.get("/health", dependencies=[Depends(enforce_rate_limit("/api/health"))])
async def health(request: Request) -> dict:
    """Liveness check; also reports whether the request arrived over HTTPS."""
    forwarded_proto = request.headers.get("x-forwarded-proto")
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "uptime": round(time.monotonic() - _STARTED, 3),
        "https": {
            "enabled": is_https(request) or forwarded_proto == "https",
            "protocol": f"{request.url.scheme}:",
            "forwardedProto": forwarded_proto,
        },
    }
