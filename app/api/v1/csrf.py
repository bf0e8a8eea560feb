from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response

from app.security.csrf import get_or_issue_csrf_token
from app.security.rate_limit.service import enforce_rate_limit

router = APIRouter(tags=["security"])


@router.get(
    "/csrf-token", dependencies=[Depends(enforce_rate_limit("/api/csrf-token"))]
)
def csrf_token(request: Request, response: Response) -> dict:
    token = get_or_issue_csrf_token(request, response)
    response.headers["Cache-Control"] = "no-store, no-cache, must-revalidate"
    return {"success": True, "token": token}
