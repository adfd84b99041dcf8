import logging
from fastapi import APIRouter, Depends, HTTPException, Query
from uuid import UUID

from orderdesk.core.config import NOTIFICATION_LIST_LIMIT, NOTIFICATION_LIST_MAX
from orderdesk.core.security import require_staff
from orderdesk.repositories.notification_store import clear_all, list_notifications, mark_all_read, mark_read
from orderdesk.schemas.notification import serialize_notification
from orderdesk.schemas.response import SuccessResponse

log = logging.getLogger(__name__)

# Every route here is staff-only
router = APIRouter(dependencies=[Depends(require_staff)])


@router.get("", response_model=SuccessResponse)
async def list_notifications_endpoint(limit: int = Query(NOTIFICATION_LIST_LIMIT, ge=1, le=NOTIFICATION_LIST_MAX)):
    """Most recent dashboard notifications first."""
    try:
        rows = await list_notifications(limit)
    except Exception as e:
        log.error(f"Error fetching notifications: {e}")
        raise HTTPException(status_code=500, detail="Server failed to fetch notifications.")
    return SuccessResponse(data=[serialize_notification(r).model_dump(mode="json") for r in rows])


# Declared before /{notification_id}/read so 'read-all' is never parsed as an id
@router.patch("/read-all", response_model=SuccessResponse)
async def mark_all_read_endpoint():
    try:
        updated = await mark_all_read()
    except Exception as e:
        log.error(f"Error marking notifications read: {e}")
        raise HTTPException(status_code=500, detail="Server failed to update notifications.")
    return SuccessResponse(data={"ok": True, "updated": updated})


@router.patch("/{notification_id}/read", response_model=SuccessResponse)
async def mark_read_endpoint(notification_id: UUID):
    try:
        updated = await mark_read(notification_id)
    except Exception as e:
        log.error(f"Error marking notification {notification_id} read: {e}")
        raise HTTPException(status_code=500, detail="Server failed to update notification.")
    return SuccessResponse(data={"ok": True, "updated": updated})


@router.delete("", response_model=SuccessResponse)
async def clear_notifications_endpoint():
    try:
        deleted = await clear_all()
    except Exception as e:
        log.error(f"Error clearing notifications: {e}")
        raise HTTPException(status_code=500, detail="Server failed to clear notifications.")
    return SuccessResponse(data={"ok": True, "deleted": deleted})
