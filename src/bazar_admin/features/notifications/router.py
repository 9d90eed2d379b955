from fastapi import APIRouter, Depends, Query, status
from typing import Annotated

from ..auth.models import User as AuthUser
from ..auth.security import get_current_active_admin_user, get_current_moderator, get_current_senior_admin
from ..audit.schemas import AuditContext
from ..audit.service import get_audit_context
from .schemas import AdminNotificationSchema, PaginatedNotificationsResponse, SecurityAlertCreate, SecurityAlertResponse
from .service import create_security_alert, list_notifications, mark_notification_read

router = APIRouter(
    prefix="/admin/notifications",
    tags=["Admin Notifications"],
)


@router.get("/", response_model=PaginatedNotificationsResponse)
async def get_notifications(
    current_admin: Annotated[AuthUser, Depends(get_current_active_admin_user)],
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    unread_only: bool = Query(False, description="Only return unread notifications"),
):
    return await list_notifications(limit=limit, offset=offset, unread_only=unread_only)


@router.post("/alerts", response_model=SecurityAlertResponse, status_code=status.HTTP_201_CREATED)
async def raise_security_alert(
    alert: SecurityAlertCreate,
    current_admin: Annotated[AuthUser, Depends(get_current_senior_admin)],
    context: Annotated[AuditContext, Depends(get_audit_context)],
):
    return await create_security_alert(alert, current_admin, context)


@router.post("/{notification_public_id}/read", response_model=AdminNotificationSchema)
async def read_notification(
    notification_public_id: str,
    current_admin: Annotated[AuthUser, Depends(get_current_moderator)],
    context: Annotated[AuditContext, Depends(get_audit_context)],
):
    return await mark_notification_read(notification_public_id, current_admin, context)
