"""
User Report Service Module

Listing, handling and statistics for reports filed by marketplace users
against other users or their articles.

Handling a report runs inside a single database transaction together with
any action taken against the reported user or content; a failure rolls
all of it back.
"""

import logging
from collections import Counter, defaultdict
from typing import Optional

from fastapi import HTTPException, status
from tortoise import BaseDBAsyncClient, timezone
from tortoise.exceptions import BaseORMException
from tortoise.transactions import in_transaction

from ..auth.models import User as AuthUser
from ..audit.schemas import AuditContext
from ..audit.service import log_admin_action
from ..notifications.service import create_admin_notification
from .models import UserReport, OPEN_REPORT_STATUSES
from .schemas import (
    ReportListQuery, ReportListItem, PaginatedReportsResponse, ReportDetail, RelatedReport,
    ReporterStats, ReportDetailsResponse, HandleReportRequest, HandleReportResponse,
    BulkHandleReportsRequest, ReportBasicStats, ReportTypeCount, TopReporter, MostReportedUser,
    ReportStatisticsResponse,
)
from ...common.query import blank_to_none, resolve_ordering, has_more, trend_window_start, daily_counts
from ...common.schemas import BulkOperationResponse

logger = logging.getLogger(__name__)

SORTABLE_COLUMNS = ("id", "created_at", "status", "report_type")
RELATED_REPORTS_LIMIT = 10
LEADERBOARD_LIMIT = 10
REPORT_RELATIONS = ("reporter", "reported_user", "reported_article", "handled_by")

NEW_STATUS = {
    "investigating": "investigating",
    "resolve": "resolved",
    "dismiss": "dismissed",
}
HANDLED_MESSAGES = {
    "investigating": "Report marked as investigating successfully",
    "resolve": "Report resolved successfully",
    "dismiss": "Report dismissed successfully",
}


def _to_list_item(report: UserReport) -> ReportListItem:
    """Flattens a report with its prefetched relations into a ReportListItem."""
    reporter = report.reporter
    reported_user = report.reported_user
    article = report.reported_article
    handler = report.handled_by
    return ReportListItem(
        public_id=report.public_id,
        report_type=report.report_type,
        description=report.description,
        evidence_urls=report.evidence_urls,
        status=report.status,
        admin_notes=report.admin_notes,
        reported_message_id=report.reported_message_id,
        created_at=report.created_at,
        updated_at=report.updated_at,
        handled_at=report.handled_at,
        reporter_public_id=reporter.public_id if reporter else None,
        reporter_username=reporter.username if reporter else None,
        reporter_first_name=reporter.first_name if reporter else None,
        reported_user_public_id=reported_user.public_id if reported_user else None,
        reported_username=reported_user.username if reported_user else None,
        reported_user_first_name=reported_user.first_name if reported_user else None,
        article_public_id=article.public_id if article else None,
        article_title=article.title if article else None,
        handler_username=handler.username if handler else None,
    )


async def _get_report_or_404(report_public_id: str) -> UserReport:
    report = await UserReport.get_or_none(public_id=report_public_id).prefetch_related(*REPORT_RELATIONS)
    if not report:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Report not found")
    return report


async def list_reports(query: ReportListQuery, limit: int, offset: int) -> PaginatedReportsResponse:
    """
    Lists user reports.

    Args:
        query: Status and report type filters plus sort parameters.
            Empty strings are ignored; unknown sort columns fall back to created_at.
        limit: Page size
        offset: Number of reports to skip

    Returns:
        PaginatedReportsResponse with reporter, reported user, article and handler names.
    """
    filters = {}
    report_status = blank_to_none(query.status)
    if report_status:
        filters["status"] = report_status
    report_type = blank_to_none(query.report_type)
    if report_type:
        filters["report_type"] = report_type

    ordering = resolve_ordering(query.sort_by, query.sort_order, SORTABLE_COLUMNS)
    reports = (
        await UserReport.filter(**filters)
        .prefetch_related(*REPORT_RELATIONS)
        .order_by(ordering, "-id")
        .offset(offset)
        .limit(limit)
    )
    total = await UserReport.filter(**filters).count()
    return PaginatedReportsResponse(
        reports=[_to_list_item(report) for report in reports],
        total=total,
        has_more=has_more(offset, limit, total),
    )


async def get_report_details(report_public_id: str) -> ReportDetailsResponse:
    report = await _get_report_or_404(report_public_id)

    reporter = report.reporter
    reported_user = report.reported_user
    article = report.reported_article
    detail = ReportDetail(
        **_to_list_item(report).model_dump(),
        reporter_email=reporter.email if reporter else None,
        reported_user_email=reported_user.email if reported_user else None,
        article_description=article.description if article else None,
        article_price=article.price if article else None,
        handler_first_name=report.handled_by.first_name if report.handled_by else None,
    )

    related = []
    if report.reported_user_id is not None:
        related = (
            await UserReport.filter(reported_user_id=report.reported_user_id)
            .exclude(id=report.id)
            .order_by("-created_at", "-id")
            .limit(RELATED_REPORTS_LIMIT)
        )

    filed = UserReport.filter(reporter_id=report.reporter_id)
    reporter_stats = ReporterStats(
        total_reports=await filed.count(),
        resolved_reports=await filed.filter(status="resolved").count(),
        dismissed_reports=await filed.filter(status="dismissed").count(),
    )

    return ReportDetailsResponse(
        report=detail,
        related_reports=[RelatedReport.model_validate(r) for r in related],
        reporter_stats=reporter_stats,
    )


async def _take_user_action(
    report: UserReport,
    user_action: str,
    reason: str,
    current_admin: AuthUser,
    context: AuditContext,
    conn: BaseDBAsyncClient,
) -> None:
    """Applies the consequence of a resolved report to the reported user or content."""
    reported_user = report.reported_user
    article = report.reported_article

    if user_action == "warn":
        logger.warning(
            f"User {reported_user.username if reported_user else None} warned by "
            f"{current_admin.username}: {reason}"
        )
    elif user_action == "suspend":
        if reported_user:
            reported_user.status = "suspended"
            await reported_user.save(update_fields=["status", "updated_at"], using_db=conn)
            logger.info(f"User {reported_user.username} suspended by {current_admin.username}")
    elif user_action == "delete_content":
        if article:
            article.status = "archived"
            await article.save(update_fields=["status", "updated_at"], using_db=conn)
            logger.info(f"Article {article.public_id} archived by {current_admin.username}")
        if report.reported_message_id:
            logger.info(f"Message {report.reported_message_id} removed by {current_admin.username}")

    if reported_user:
        target_type, target_id = "users", reported_user.public_id
    else:
        target_type, target_id = "articles", article.public_id if article else None
    await log_admin_action(
        current_admin,
        f"user_action_{user_action}",
        target_type,
        target_id,
        description=f"User action taken: {user_action}. Reason: {reason}",
        context=context,
        using_db=conn,
    )


async def handle_report(
    report_public_id: str, request: HandleReportRequest, current_admin: AuthUser, context: AuditContext
) -> HandleReportResponse:
    """
    Moves an open report to investigating, resolved or dismissed.

    When resolving with a `user_action` other than "none", the reported
    user is warned or suspended, or the reported content is archived, in
    the same transaction as the status change.

    Raises:
        HTTPException: 404 if the report does not exist, 400 if it was
            already handled, 500 if the transaction failed.
    """
    report = await _get_report_or_404(report_public_id)
    if report.status not in OPEN_REPORT_STATUSES:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Report has already been handled")

    action = request.action
    admin_notes = request.admin_notes or ""
    try:
        async with in_transaction() as conn:
            report.status = NEW_STATUS[action]
            report.admin_notes = admin_notes
            report.handled_by = current_admin
            report.handled_at = timezone.now()
            await report.save(using_db=conn)

            if action == "resolve" and request.user_action != "none":
                await _take_user_action(report, request.user_action, admin_notes, current_admin, context, conn)
    except BaseORMException as e:
        logger.error(f"Error handling report {report_public_id}: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to handle report",
        )

    await log_admin_action(
        current_admin,
        "handle_report",
        "user_reports",
        report.public_id,
        description=f"Report {action}: {admin_notes}",
        context=context,
    )

    if action in ("resolve", "dismiss"):
        outcome = NEW_STATUS[action]
        await create_admin_notification(
            "user_report",
            f"Report {outcome}",
            f"Report #{report.public_id} has been {outcome}",
            data={"report_id": report.public_id, "action": action},
            severity="low",
        )

    report = await _get_report_or_404(report_public_id)
    return HandleReportResponse(message=HANDLED_MESSAGES[action], report=_to_list_item(report))


async def bulk_handle_reports(
    request: BulkHandleReportsRequest, current_admin: AuthUser, context: AuditContext
) -> BulkOperationResponse:
    """
    Resolves or dismisses many reports in one transaction.

    Missing and already handled reports are reported in `errors` and
    skipped. A database error aborts and rolls back the whole batch.
    """
    new_status = NEW_STATUS[request.action]
    admin_notes = request.admin_notes or ""
    success_count = 0
    errors = []

    try:
        async with in_transaction() as conn:
            for report_id in request.report_ids:
                report = await UserReport.get_or_none(public_id=report_id, using_db=conn)
                if not report:
                    errors.append(f"Report ID {report_id} not found")
                    continue
                if report.status not in OPEN_REPORT_STATUSES:
                    errors.append(f"Report ID {report_id} has already been handled")
                    continue

                report.status = new_status
                report.admin_notes = admin_notes
                report.handled_by = current_admin
                report.handled_at = timezone.now()
                await report.save(using_db=conn)

                await log_admin_action(
                    current_admin,
                    "bulk_handle_report",
                    "user_reports",
                    report.public_id,
                    description=f"Bulk {request.action} report: {admin_notes}",
                    context=context,
                    using_db=conn,
                )
                success_count += 1
    except BaseORMException as e:
        logger.error(f"Error in bulk handling of reports: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to perform bulk operations",
        )

    logger.info(
        f"Bulk {request.action} of reports by {current_admin.username}: "
        f"{success_count} succeeded, {len(errors)} skipped"
    )
    return BulkOperationResponse(
        message=f"Bulk operation completed. {success_count} reports processed successfully.",
        success_count=success_count,
        errors=errors,
    )


async def _users_by_id(user_ids: list[int]) -> dict[int, AuthUser]:
    if not user_ids:
        return {}
    return {user.id: user for user in await AuthUser.filter(id__in=user_ids)}


async def get_report_statistics() -> ReportStatisticsResponse:
    rows = await UserReport.all().values("reporter_id", "reported_user_id", "report_type", "status")

    status_counts = Counter(row["status"] for row in rows)
    basic_stats = ReportBasicStats(
        total_reports=len(rows),
        pending_reports=status_counts["pending"],
        investigating_reports=status_counts["investigating"],
        resolved_reports=status_counts["resolved"],
        dismissed_reports=status_counts["dismissed"],
    )

    by_type: dict[str, list[int]] = defaultdict(lambda: [0, 0])
    by_reporter: dict[int, list[int]] = defaultdict(lambda: [0, 0])
    by_reported: dict[int, list[int]] = defaultdict(lambda: [0, 0])
    for row in rows:
        resolved = 1 if row["status"] == "resolved" else 0
        for bucket, key in ((by_type, row["report_type"]), (by_reporter, row["reporter_id"]),
                            (by_reported, row["reported_user_id"])):
            if key is None:
                continue
            bucket[key][0] += 1
            bucket[key][1] += resolved

    type_distribution = sorted(
        (ReportTypeCount(report_type=t, count=c[0], resolved_count=c[1]) for t, c in by_type.items()),
        key=lambda item: item.count,
        reverse=True,
    )

    def _leaders(bucket: dict[int, list[int]]) -> list[tuple[int, list[int]]]:
        # Only users involved in more than one report make the leaderboards
        repeated = [(user_id, counts) for user_id, counts in bucket.items() if counts[0] > 1]
        return sorted(repeated, key=lambda entry: entry[1][0], reverse=True)[:LEADERBOARD_LIMIT]

    reporter_leaders = _leaders(by_reporter)
    reported_leaders = _leaders(by_reported)
    users = await _users_by_id([user_id for user_id, _ in reporter_leaders + reported_leaders])

    def _user_attr(user_id: int, attr: str) -> Optional[str]:
        user = users.get(user_id)
        return getattr(user, attr) if user else None

    top_reporters = [
        TopReporter(username=_user_attr(uid, "username"), first_name=_user_attr(uid, "first_name"),
                    report_count=counts[0], valid_reports=counts[1])
        for uid, counts in reporter_leaders
    ]
    most_reported = [
        MostReportedUser(username=_user_attr(uid, "username"), first_name=_user_attr(uid, "first_name"),
                         report_count=counts[0], valid_reports_against=counts[1])
        for uid, counts in reported_leaders
    ]

    created = await UserReport.filter(created_at__gte=trend_window_start()).values_list("created_at", flat=True)
    return ReportStatisticsResponse(
        basic_stats=basic_stats,
        type_distribution=type_distribution,
        trends=daily_counts(created),
        top_reporters=top_reporters,
        most_reported=most_reported,
    )
