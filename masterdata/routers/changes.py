"""Employee change notifications over SSE."""

from __future__ import annotations

import json
from functools import partial

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.responses import StreamingResponse

from ..auth import SessionUser, get_current_user
from ..database import get_db
from ..services import change_svc, column_svc, employee_svc
from ..services.change_svc import FilterState, Notification, ViewState
from ..services.projection import project_snapshot

router = APIRouter(prefix="/api/changes", tags=["changes"])


def notification_out(notification: Notification) -> dict:
    return {
        "type": notification.type,
        "employee_id": notification.employee_id,
        "employee_name": notification.employee_name,
        "changed_field": notification.changed_field,
        "message": change_svc.format_notification(notification),
        "timestamp": notification.timestamp.isoformat(),
    }


@router.get("/stream")
async def stream_changes(
    include_archived: bool = False,
    include_terminated: bool = True,
    search: str | None = None,
    visible_ids: list[str] | None = Query(None),
    max_events: int | None = Query(None, ge=1),
    user: SessionUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Stream notifications for the caller's current view.

    Without ``visible_ids`` the view starts as the employees matching the
    given filters. Snapshots are narrowed to the masterdata columns the
    caller's role can view.
    """
    columns = await column_svc.list_columns_for_role(db, user.role)
    if visible_ids is None:
        employees = await employee_svc.list_employees(
            db,
            include_archived=include_archived,
            include_terminated=include_terminated,
            search=search,
        )
        visible_ids = [str(e.id) for e in employees]

    view = ViewState(
        visible_ids=set(visible_ids),
        filters=FilterState(
            include_archived=include_archived,
            include_terminated=include_terminated,
            global_filter=search or "",
        ),
    )
    mask = partial(project_snapshot, role=user.role, columns=columns)

    async def event_stream():
        async for notification in change_svc.watch(view, mask=mask, max_events=max_events):
            yield f"data: {json.dumps(notification_out(notification))}\n\n"

    return StreamingResponse(
        event_stream(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "X-Accel-Buffering": "no",
        },
    )
