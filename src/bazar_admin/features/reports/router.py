"""User Report Moderation API Router

Endpoints for reviewing reports filed by marketplace users:

- GET /admin/reports/: paginated, filterable list of reports
- GET /admin/reports/statistics: status, type and reporter statistics
- POST /admin/reports/bulk: resolve or dismiss many reports (admin role)
- GET /admin/reports/{id}: report details with related reports
- POST /admin/reports/{id}/handle: handle one report (moderator role)
"""
from fastapi import APIRouter, Depends, Query
from typing import Annotated

from ..auth.models import User as AuthUser
from ..auth.security import get_current_active_admin_user, get_current_moderator, get_current_senior_admin
from ..audit.schemas import AuditContext
from ..audit.service import get_audit_context
from ...common.schemas import BulkOperationResponse
from .schemas import (
    ReportListQuery, PaginatedReportsResponse, ReportDetailsResponse,
    HandleReportRequest, HandleReportResponse, BulkHandleReportsRequest, ReportStatisticsResponse,
)
from . import service as report_service

router = APIRouter(
    prefix="/admin/reports",
    tags=["Admin Reports"],
    responses={404: {"description": "Not found"}},
)


@router.get("/", response_model=PaginatedReportsResponse, summary="List user reports")
async def list_reports(
    current_admin: Annotated[AuthUser, Depends(get_current_active_admin_user)],
    query: ReportListQuery = Depends(),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
):
    return await report_service.list_reports(query, limit=limit, offset=offset)


@router.get("/statistics", response_model=ReportStatisticsResponse, summary="User report statistics")
async def get_report_statistics(
    current_admin: Annotated[AuthUser, Depends(get_current_active_admin_user)],
):
    return await report_service.get_report_statistics()


@router.post("/bulk", response_model=BulkOperationResponse, summary="Resolve or dismiss many reports")
async def bulk_handle_reports(
    request: BulkHandleReportsRequest,
    current_admin: Annotated[AuthUser, Depends(get_current_senior_admin)],
    context: Annotated[AuditContext, Depends(get_audit_context)],
):
    return await report_service.bulk_handle_reports(request, current_admin, context)


@router.get("/{report_public_id}", response_model=ReportDetailsResponse, summary="User report details")
async def get_report_details(
    report_public_id: str,
    current_admin: Annotated[AuthUser, Depends(get_current_active_admin_user)],
):
    return await report_service.get_report_details(report_public_id)


@router.post("/{report_public_id}/handle", response_model=HandleReportResponse, summary="Handle a user report")
async def handle_report(
    report_public_id: str,
    request: HandleReportRequest,
    current_admin: Annotated[AuthUser, Depends(get_current_moderator)],
    context: Annotated[AuditContext, Depends(get_audit_context)],
):
    return await report_service.handle_report(report_public_id, request, current_admin, context)
