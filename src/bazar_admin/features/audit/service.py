"""
Audit Service Module

Writes and queries the admin log, the append-only record of every action an
administrator performs through the moderation API.
"""

import datetime
import logging
from collections import Counter
from typing import Optional

from fastapi import Request
from tortoise import BaseDBAsyncClient, timezone
from tortoise.exceptions import BaseORMException
from tortoise.functions import Count, Max

from ..auth.models import User as AuthUser
from .models import AdminLog
from .schemas import (
    AuditContext, AdminLogQuery, AdminLogEntry, AdminLogListResponse,
    ActivitySummary, ActiveAdmin, ActionCount, HourlyCount, AuditTrailResponse,
    SecurityLogQuery, SecurityEvent, SecurityMetrics, SecurityLogResponse,
)
from ...common.query import day_bounds, has_more

logger = logging.getLogger(__name__)

TRAIL_LIMIT = 100
FAILED_LOGIN_ACTION = "failed_login"
SUSPICIOUS_FAILED_LOGINS = 5
SECURITY_WINDOW_DAYS = 7


async def get_audit_context(request: Request) -> AuditContext:
    """FastAPI dependency capturing the caller's IP address and user agent."""
    return AuditContext(
        ip_address=request.client.host if request.client else "unknown",
        user_agent=request.headers.get("user-agent", ""),
    )


async def log_admin_action(
    admin: AuthUser,
    action: str,
    target_type: Optional[str] = None,
    target_id: Optional[str] = None,
    description: Optional[str] = None,
    context: Optional[AuditContext] = None,
    using_db: Optional[BaseDBAsyncClient] = None,
) -> Optional[AdminLog]:
    """
    Appends an entry to the admin log.

    A failed insert is reported through the application log and does not
    abort the moderation action that triggered it.

    Args:
        admin: The administrator performing the action
        action: Machine readable action name, e.g. "article_approve"
        target_type: Kind of entity acted upon ("articles", "user_reports", ...)
        target_id: Public ID of the entity acted upon
        description: Human readable summary
        context: Client IP address and user agent of the request
        using_db: Transaction connection when called inside one

    Returns:
        The created AdminLog, or None if it could not be written.
    """
    context = context or AuditContext()
    try:
        entry = await AdminLog.create(
            admin=admin,
            action=action,
            target_type=target_type,
            target_id=target_id,
            description=description,
            ip_address=context.ip_address,
            user_agent=context.user_agent,
            using_db=using_db,
        )
    except BaseORMException as e:
        logger.error(f"Failed to log admin action '{action}' by {admin.username}: {e}", exc_info=True)
        return None
    logger.info(f"Admin {admin.username} performed '{action}' on {target_type}:{target_id}")
    return entry


def _to_log_entry(log: AdminLog) -> AdminLogEntry:
    admin = log.admin
    return AdminLogEntry(
        public_id=log.public_id,
        action=log.action,
        target_type=log.target_type,
        target_id=log.target_id,
        description=log.description,
        ip_address=log.ip_address,
        user_agent=log.user_agent,
        created_at=log.created_at,
        admin_public_id=admin.public_id if admin else None,
        admin_username=admin.username if admin else None,
        admin_first_name=admin.first_name if admin else None,
        admin_last_name=admin.last_name if admin else None,
        admin_role=admin.admin_role if admin else None,
    )


def _build_log_filters(query: AdminLogQuery) -> dict:
    filters = {}
    if query.admin_id:
        filters["admin__public_id"] = query.admin_id
    if query.action and query.action.strip():
        filters["action__icontains"] = query.action.strip()
    filters.update(day_bounds(query.start_date, query.end_date))
    return filters


async def get_activity_summary(filters: dict) -> ActivitySummary:
    """
    Summarises admin activity for the same filters as the log listing.

    Returns the five most active admins, the ten most common actions and the
    number of actions per hour of day. Without filters, the hourly breakdown
    only covers the last 24 hours.
    """
    admin_counts = await (
        AdminLog.filter(**filters)
        .annotate(action_count=Count("id"))
        .group_by("admin_id")
        .values("admin_id", "action_count")
    )
    admin_counts = sorted(admin_counts, key=lambda row: row["action_count"], reverse=True)[:5]
    admins = {
        user.id: user
        for user in await AuthUser.filter(id__in=[row["admin_id"] for row in admin_counts])
    }
    active_admins = []
    for row in admin_counts:
        admin = admins.get(row["admin_id"])
        active_admins.append(ActiveAdmin(
            username=admin.username if admin else None,
            first_name=admin.first_name if admin else None,
            last_name=admin.last_name if admin else None,
            action_count=row["action_count"],
        ))

    action_counts = await (
        AdminLog.filter(**filters)
        .annotate(count=Count("id"))
        .group_by("action")
        .values("action", "count")
    )
    common_actions = [
        ActionCount(action=row["action"], count=row["count"])
        for row in sorted(action_counts, key=lambda row: row["count"], reverse=True)[:10]
    ]

    hourly_filters = filters or {"created_at__gte": timezone.now() - datetime.timedelta(hours=24)}
    timestamps = await AdminLog.filter(**hourly_filters).values_list("created_at", flat=True)
    hours = Counter(ts.hour for ts in timestamps if ts is not None)
    hourly_activity = [HourlyCount(hour=hour, count=count) for hour, count in sorted(hours.items())]

    return ActivitySummary(
        active_admins=active_admins, common_actions=common_actions, hourly_activity=hourly_activity
    )


async def list_admin_logs(query: AdminLogQuery, limit: int, offset: int) -> AdminLogListResponse:
    """
    Lists admin log entries, newest first, with an activity summary.

    Args:
        query: Optional admin, action and date range filters
        limit: Page size
        offset: Number of entries to skip

    Returns:
        AdminLogListResponse: the page of logs, total count, has_more flag
        and the activity summary for the filtered set.
    """
    filters = _build_log_filters(query)
    logs = (
        await AdminLog.filter(**filters)
        .prefetch_related("admin")
        .order_by("-created_at", "-id")
        .offset(offset)
        .limit(limit)
    )
    total = await AdminLog.filter(**filters).count()
    summary = await get_activity_summary(filters)
    return AdminLogListResponse(
        logs=[_to_log_entry(log) for log in logs],
        total=total,
        has_more=has_more(offset, limit, total),
        summary=summary,
    )


async def get_entity_audit_trail(target_type: str, target_id: str) -> AuditTrailResponse:
    """Returns the latest admin log entries recorded against a single entity."""
    logs = (
        await AdminLog.filter(target_type=target_type, target_id=target_id)
        .prefetch_related("admin")
        .order_by("-created_at", "-id")
        .limit(TRAIL_LIMIT)
    )
    return AuditTrailResponse(
        audit_trail=[_to_log_entry(log) for log in logs],
        target_type=target_type,
        target_id=target_id,
    )


async def record_failed_login(user: AuthUser, context: Optional[AuditContext] = None) -> Optional[AdminLog]:
    """Records a wrong password for an admin account against that account."""
    logger.warning(
        f"Failed login for admin {user.username} from {context.ip_address if context else 'unknown'}"
    )
    return await log_admin_action(
        user,
        FAILED_LOGIN_ACTION,
        "users",
        user.public_id,
        description=f"Failed login attempt for {user.username}",
        context=context,
    )


async def _repeated_failure_events(filters: dict) -> list[SecurityEvent]:
    rows = await (
        AdminLog.filter(action=FAILED_LOGIN_ACTION, **filters)
        .annotate(failed_attempts=Count("id"), last_attempt=Max("created_at"))
        .group_by("ip_address")
        .values("ip_address", "failed_attempts", "last_attempt")
    )
    rows = sorted(
        (row for row in rows if row["failed_attempts"] >= SUSPICIOUS_FAILED_LOGINS),
        key=lambda row: row["failed_attempts"],
        reverse=True,
    )
    return [
        SecurityEvent(
            event_type="multiple_failed_logins",
            event_description=(
                f"Multiple failed login attempts ({row['failed_attempts']}) from IP: {row['ip_address']}"
            ),
            ip_address=row["ip_address"],
            user_agent="",
            created_at=row["last_attempt"],
        )
        for row in rows
    ]


async def get_security_metrics(suspicious_activity_count: int) -> SecurityMetrics:
    now = timezone.now()
    last_day = now - datetime.timedelta(hours=24)
    failed_logins = AdminLog.filter(action=FAILED_LOGIN_ACTION)
    recent_ips = await AdminLog.filter(created_at__gte=last_day).distinct().values_list("ip_address", flat=True)
    return SecurityMetrics(
        failed_logins_24h=await failed_logins.filter(created_at__gte=last_day).count(),
        failed_logins_7d=await failed_logins.filter(
            created_at__gte=now - datetime.timedelta(days=SECURITY_WINDOW_DAYS)
        ).count(),
        unique_ips_24h=len({ip for ip in recent_ips if ip}),
        suspicious_activity_count=suspicious_activity_count,
    )


async def get_security_logs(query: SecurityLogQuery, limit: int, offset: int) -> SecurityLogResponse:
    """
    Lists security events for a date range, newest first.

    Events are the individual failed admin logins plus one summary event per
    IP address that failed at least SUSPICIOUS_FAILED_LOGINS times in the range.

    Args:
        query: Inclusive day range; defaults to the last 7 days up to today
        limit: Page size
        offset: Number of events to skip
    """
    end_date = query.end_date or timezone.now().date()
    start_date = query.start_date or end_date - datetime.timedelta(days=SECURITY_WINDOW_DAYS)
    filters = day_bounds(start_date, end_date)

    failed_logins = await AdminLog.filter(action=FAILED_LOGIN_ACTION, **filters).order_by("-created_at", "-id")
    suspicious = await _repeated_failure_events(filters)

    events = [
        SecurityEvent(
            event_type=FAILED_LOGIN_ACTION,
            event_description=log.description,
            ip_address=log.ip_address,
            user_agent=log.user_agent,
            created_at=log.created_at,
        )
        for log in failed_logins
    ] + suspicious
    # Stable sort keeps a summary event after the attempt it shares a timestamp with
    events.sort(key=lambda event: event.created_at, reverse=True)

    total = len(events)
    return SecurityLogResponse(
        events=events[offset:offset + limit],
        total=total,
        has_more=has_more(offset, limit, total),
        metrics=await get_security_metrics(len(suspicious)),
    )
