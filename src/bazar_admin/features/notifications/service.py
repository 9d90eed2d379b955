"""Admin notifications and seller-facing moderation e-mails."""
import logging
from typing import Any, Optional

from fastapi import HTTPException, status
from tortoise import BaseDBAsyncClient, timezone
from tortoise.exceptions import BaseORMException
from tortoise.expressions import Case, When

from ...core.config import PUBLIC_BASE_URL
from ..auth.models import User as AuthUser
from ..articles.models import Article
from ..audit.schemas import AuditContext
from ..audit.service import log_admin_action
from .models import AdminNotification, EmailTemplate, SEVERITY_ORDER
from .schemas import (
    AdminNotificationSchema, PaginatedNotificationsResponse, RenderedEmail, SecurityAlertCreate, SecurityAlertResponse
)
from ...common.query import has_more

logger = logging.getLogger(__name__)

DEFAULT_EMAIL_TEMPLATES = [
    {
        "name": "article_approved",
        "subject": 'Your article "{{article_title}}" is now live',
        "body": (
            "Hi {{first_name}},\n\n"
            'your article "{{article_title}}" has been approved and is visible at {{article_url}}.\n'
        ),
        "variables": ["first_name", "article_title", "article_url"],
    },
    {
        "name": "article_rejected",
        "subject": 'Your article "{{article_title}}" was not approved',
        "body": (
            "Hi {{first_name}},\n\n"
            'we could not approve your article "{{article_title}}" ({{article_url}}).\n'
            "Reason: {{rejection_reason}}\n"
        ),
        "variables": ["first_name", "article_title", "article_url", "rejection_reason"],
    },
]


async def create_admin_notification(
    type: str,
    title: str,
    message: str,
    data: Optional[dict[str, Any]] = None,
    severity: str = "medium",
    using_db: Optional[BaseDBAsyncClient] = None,
) -> Optional[AdminNotification]:
    """Creates an admin notification; failures are logged and return None."""
    try:
        return await AdminNotification.create(
            type=type, title=title, message=message, data=data or {}, severity=severity, using_db=using_db
        )
    except BaseORMException as e:
        logger.error(f"Failed to create admin notification '{title}': {e}", exc_info=True)
        return None


def _severity_rank() -> Case:
    """SQL expression ranking notifications by SEVERITY_ORDER, unknown severities last."""
    return Case(
        *(When(severity=severity, then=rank) for rank, severity in enumerate(SEVERITY_ORDER)),
        default=len(SEVERITY_ORDER),
    )


async def list_notifications(limit: int, offset: int, unread_only: bool) -> PaginatedNotificationsResponse:
    """
    Lists admin notifications, most severe first and newest first within a severity.

    Args:
        limit: Page size
        offset: Number of notifications to skip
        unread_only: Only include notifications that have not been read

    Returns:
        PaginatedNotificationsResponse with the requested page, total and has_more.
    """
    query = AdminNotification.all()
    if unread_only:
        query = query.filter(is_read=False)
    total = await query.count()
    page = (
        await query.annotate(severity_rank=_severity_rank())
        .order_by("severity_rank", "-created_at", "-id")
        .offset(offset)
        .limit(limit)
    )
    return PaginatedNotificationsResponse(
        notifications=[AdminNotificationSchema.model_validate(n) for n in page],
        total=total,
        has_more=has_more(offset, limit, total),
    )


async def mark_notification_read(
    notification_public_id: str, current_admin: AuthUser, context: AuditContext
) -> AdminNotificationSchema:
    notification = await AdminNotification.get_or_none(public_id=notification_public_id)
    if not notification:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")

    notification.is_read = True
    notification.read_at = timezone.now()
    await notification.save(update_fields=["is_read", "read_at"])

    await log_admin_action(
        current_admin, "mark_notification_read", "admin_notifications", notification.public_id,
        context=context,
    )
    return AdminNotificationSchema.model_validate(notification)


async def create_security_alert(
    alert: SecurityAlertCreate, current_admin: AuthUser, context: AuditContext
) -> SecurityAlertResponse:
    notification = await create_admin_notification(
        alert.type, alert.title, alert.message, data=alert.data, severity=alert.severity
    )
    if not notification:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to create security alert"
        )

    await log_admin_action(
        current_admin, "create_security_alert", "admin_notifications", notification.public_id,
        description=f"Created {alert.severity} security alert: {alert.title}",
        context=context,
    )
    logger.warning(f"Security alert [{alert.severity}] raised by {current_admin.username}: {alert.title}")
    return SecurityAlertResponse(
        message="Security alert created successfully",
        notification=AdminNotificationSchema.model_validate(notification),
    )


def render_template(text: str, variables: dict[str, Any]) -> str:
    """Replaces {{name}} placeholders; missing values render as empty strings."""
    for key, value in variables.items():
        text = text.replace("{{" + key + "}}", "" if value is None else str(value))
    return text


async def send_moderation_email(article: Article, outcome: str, reason: Optional[str] = None) -> Optional[RenderedEmail]:
    """
    Renders the approval or rejection e-mail for an article's seller.

    The message is rendered and written to the application log. Nothing is
    sent; there is no mail transport.

    Args:
        article: The moderated article, with its `user` relation loaded
        outcome: "approved" or "rejected"
        reason: Optional explanation shown to the seller

    Returns:
        The rendered e-mail, or None when no active template exists or rendering failed.
    """
    template_name = "article_approved" if outcome == "approved" else "article_rejected"
    template = await EmailTemplate.get_or_none(name=template_name, is_active=True)
    if not template:
        logger.warning(f"Email template '{template_name}' not found")
        return None

    seller = article.user
    variables = {
        "first_name": seller.first_name or seller.username,
        "article_title": article.title,
        "article_url": f"{PUBLIC_BASE_URL}/article/{article.public_id}",
        "rejection_reason": reason or "",
    }
    email = RenderedEmail(
        template=template_name,
        to=seller.email,
        subject=render_template(template.subject, variables),
        body=render_template(template.body, variables),
    )
    logger.info(f"Moderation email to={email.to} subject={email.subject!r} outcome={outcome}")
    return email


async def seed_default_templates() -> list[str]:
    """Creates the default moderation e-mail templates that do not exist yet.

    Returns:
        Names of the templates that were created.
    """
    created = []
    for template_data in DEFAULT_EMAIL_TEMPLATES:
        _, was_created = await EmailTemplate.get_or_create(
            name=template_data["name"],
            defaults={k: v for k, v in template_data.items() if k != "name"},
        )
        if was_created:
            created.append(template_data["name"])
    return created
