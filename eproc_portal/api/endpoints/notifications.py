# /notifications endpoints

# eproc_portal/api/endpoints/notifications.py

import logging
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from eproc_portal.api.deps import get_current_user_id, get_notification_service, require_admin
from eproc_portal.models.notification import (
    MarkReadRequest,
    MarkReadResponse,
    NotificationCreate,
    NotificationPage,
    NotificationRead,
)
from eproc_portal.services.notification_service import NotificationService, NotificationServiceError

logger = logging.getLogger(__name__)
router = APIRouter()

_READ_FILTERS = {"true": True, "false": False, "all": None}


@router.get(
    "",
    response_model=NotificationPage,
    summary="List Own Notifications",
    description="Lists the caller's notifications, newest first, with total and unread counts.",
)
async def list_notifications(
    read: Literal["true", "false", "all"] = Query("all", description="Filter on read state."),
    notification_type: Optional[str] = Query(None, alias="type"),
    entity_type: Optional[str] = Query(None),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    user_id: str = Depends(get_current_user_id),
    notification_service: NotificationService = Depends(get_notification_service),
):
    try:
        return await notification_service.list_for_user(
            user_id,
            read=_READ_FILTERS[read],
            notification_type=notification_type,
            entity_type=entity_type,
            limit=limit,
            offset=offset,
        )
    except NotificationServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.patch(
    "",
    response_model=MarkReadResponse,
    summary="Mark Notifications Read",
    description="Marks the given notifications as read. Ids owned by other users are ignored.",
)
async def mark_notifications_read(
    body: MarkReadRequest,
    user_id: str = Depends(get_current_user_id),
    notification_service: NotificationService = Depends(get_notification_service),
):
    try:
        return await notification_service.mark_read(user_id, body.ids)
    except NotificationServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post(
    "",
    response_model=NotificationRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create Notification (Admin)",
    responses={403: {"description": "Caller is not an admin"}},
    dependencies=[Depends(require_admin)],
)
async def create_notification(
    notification: NotificationCreate,
    notification_service: NotificationService = Depends(get_notification_service),
):
    try:
        return await notification_service.create(notification)
    except NotificationServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
