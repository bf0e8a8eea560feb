from __future__ import annotations

import time
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from app.security.rate_limit.policies import get_client_identifier
from app.security.validation.input_sanitizer import sanitize_for_logging
from app.utils.logger import get_logger

logger = get_logger(__name__)


class AccessLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        # Query strings and cookies are never logged
        client_ip = get_client_identifier(request)
        ua = sanitize_for_logging(request.headers.get("user-agent"))
        path = request.url.path
        method = request.method
        started = time.perf_counter()
        resp = await call_next(request)
        log = logger.warning if resp.status_code in (401, 403, 429) else logger.info
        log(
            "access",
            method=method,
            path=path,
            status_code=resp.status_code,
            client_ip=client_ip,
            ua=ua,
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
        )
        return resp
