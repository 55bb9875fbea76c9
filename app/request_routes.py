"""Beat request routes: checkout submission and admin review."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Header, HTTPException
from fastapi.responses import JSONResponse

from app.admin import require_admin
from app.beat_requests import (
    RequestClosedError,
    UnknownBeatsError,
    approve_request,
    create_request,
    get_request,
    list_requests,
    reject_request,
    update_request,
)
from core.models import BeatRequestApproval, BeatRequestCreate, BeatRequestUpdate, RequestStatus

router = APIRouter(tags=["requests"])


# ---------------------------------------------------------------------------
# Checkout
# ---------------------------------------------------------------------------


@router.post("/requests", status_code=201)
async def submit_request(body: BeatRequestCreate):
    """Submit the cart as a pending request."""
    try:
        request = await create_request(body)
    except UnknownBeatsError as exc:
        raise HTTPException(
            status_code=400,
            detail={"message": "Some beats are not available", "beat_ids": exc.beat_ids},
        )
    return JSONResponse(request.model_dump(mode="json"), status_code=201)


# ---------------------------------------------------------------------------
# Admin review
# ---------------------------------------------------------------------------


@router.get("/admin/requests")
async def admin_list_requests(
    status: Optional[RequestStatus] = None,
    order_by: str = "-created_date",
    x_admin_token: Optional[str] = Header(default=None),
):
    require_admin(x_admin_token)
    try:
        requests = await list_requests(status=status, order_by=order_by)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return JSONResponse(
        {"data": [r.model_dump(mode="json") for r in requests], "count": len(requests)}
    )


@router.get("/admin/requests/{request_id}")
async def admin_get_request(
    request_id: str,
    x_admin_token: Optional[str] = Header(default=None),
):
    require_admin(x_admin_token)
    request = await get_request(request_id)
    if request is None:
        raise HTTPException(status_code=404, detail="Request not found")
    return JSONResponse(request.model_dump(mode="json"))


@router.patch("/admin/requests/{request_id}")
async def admin_update_request(
    request_id: str,
    body: BeatRequestUpdate,
    x_admin_token: Optional[str] = Header(default=None),
):
    """Set status and/or admin notes directly."""
    require_admin(x_admin_token)
    request = await update_request(request_id, body)
    if request is None:
        raise HTTPException(status_code=404, detail="Request not found")
    return JSONResponse(request.model_dump(mode="json"))


@router.post("/admin/requests/{request_id}/approve")
async def admin_approve_request(
    request_id: str,
    body: BeatRequestApproval,
    x_admin_token: Optional[str] = Header(default=None),
):
    """Accept some or all beats; responds with their full-audio links."""
    require_admin(x_admin_token)
    try:
        result = await approve_request(request_id, body.beat_ids)
    except RequestClosedError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    if result is None:
        raise HTTPException(status_code=404, detail="Request not found")
    request, links = result
    return JSONResponse(
        {"request": request.model_dump(mode="json"), "download_links": links}
    )


@router.post("/admin/requests/{request_id}/reject")
async def admin_reject_request(
    request_id: str,
    x_admin_token: Optional[str] = Header(default=None),
):
    require_admin(x_admin_token)
    try:
        request = await reject_request(request_id)
    except RequestClosedError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    if request is None:
        raise HTTPException(status_code=404, detail="Request not found")
    return JSONResponse(request.model_dump(mode="json"))
