"""API routes for browsing the admin log."""
from fastapi import APIRouter, Depends, Query
from typing import Annotated

from ..auth.models import User as AuthUser
from ..auth.security import get_current_senior_admin
from .schemas import AdminLogQuery, AdminLogListResponse, AuditTrailResponse, SecurityLogQuery, SecurityLogResponse
from . import service as audit_service

router = APIRouter(
    prefix="/admin/logs",
    tags=["Admin Audit"],
    responses={404: {"description": "Not found"}},
)


@router.get("/", response_model=AdminLogListResponse, summary="List admin activity logs")
async def list_admin_logs(
    current_admin: Annotated[AuthUser, Depends(get_current_senior_admin)],
    query: Annotated[AdminLogQuery, Query()],
    limit: int = Query(50, ge=1, le=200, description="Number of entries per page"),
    offset: int = Query(0, ge=0, description="Number of entries to skip"),
):
    return await audit_service.list_admin_logs(query, limit=limit, offset=offset)


@router.get("/trail", response_model=AuditTrailResponse, summary="Audit trail of a single entity")
async def get_entity_audit_trail(
    current_admin: Annotated[AuthUser, Depends(get_current_senior_admin)],
    target_type: str = Query(..., min_length=1, description="Entity kind, e.g. articles or user_reports"),
    target_id: str = Query(..., min_length=1, description="Public ID of the entity"),
):
    return await audit_service.get_entity_audit_trail(target_type, target_id)


@router.get("/security", response_model=SecurityLogResponse, summary="Failed admin logins and security metrics")
async def get_security_logs(
    current_admin: Annotated[AuthUser, Depends(get_current_senior_admin)],
    query: Annotated[SecurityLogQuery, Query()],
    limit: int = Query(50, ge=1, le=200, description="Number of events per page"),
    offset: int = Query(0, ge=0, description="Number of events to skip"),
):
    return await audit_service.get_security_logs(query, limit=limit, offset=offset)
