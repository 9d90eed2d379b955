from pydantic import BaseModel, ConfigDict, Field
from typing import Any, List, Literal, Optional
import datetime


class AdminNotificationSchema(BaseModel):
    public_id: str = Field(..., description="Public KSUID of the notification")
    type: str
    title: str
    message: str
    data: Optional[dict[str, Any]] = None
    severity: str
    is_read: bool
    created_at: datetime.datetime
    read_at: Optional[datetime.datetime] = None

    model_config = ConfigDict(from_attributes=True, protected_namespaces=())


class PaginatedNotificationsResponse(BaseModel):
    notifications: List[AdminNotificationSchema]
    total: int
    has_more: bool


class RenderedEmail(BaseModel):
    template: str
    to: Optional[str] = None
    subject: str
    body: str


class SecurityAlertCreate(BaseModel):
    type: Literal["security_incident", "performance_issue", "system_alert"]
    title: str = Field(..., min_length=1, max_length=255)
    message: str = Field(..., min_length=1)
    severity: Literal["low", "medium", "high", "critical"]
    data: Optional[dict[str, Any]] = Field(None, description="Extra structured details shown with the alert")


class SecurityAlertResponse(BaseModel):
    message: str
    notification: AdminNotificationSchema
