# eproc_portal/models/notification.py

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class NotificationType(str, Enum):
    """Defines the allowed notification categories."""
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"
    TENDER = "tender"
    PROPOSAL = "proposal"
    APPROVAL = "approval"
    INVOICE = "invoice"


class NotificationContent(BaseModel):
    """Notification body, shared by single and fan-out creation."""
    title: str = Field(..., min_length=1)
    message: str = Field(..., min_length=1)
    type: NotificationType
    entity_type: Optional[str] = None
    entity_id: Optional[str] = None
    action_url: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)


class NotificationCreate(NotificationContent):
    user_id: str = Field(..., description="Recipient identity id.")


class NotificationRead(NotificationCreate):
    id: str
    read: bool = False
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class NotificationPage(BaseModel):
    items: List[NotificationRead]
    total: int
    unread: int
    limit: int
    offset: int


class MarkReadRequest(BaseModel):
    ids: List[str] = Field(..., min_length=1, description="Notification ids to mark as read.")


class MarkReadResponse(BaseModel):
    updated: int
    notifications: List[NotificationRead]
