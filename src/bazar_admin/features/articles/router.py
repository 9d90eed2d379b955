from fastapi import APIRouter, Depends, Query
from typing import Annotated, Literal

from ..auth.models import User as AuthUser
from ..auth.security import get_current_active_admin_user, get_current_moderator, get_current_senior_admin
from ..audit.schemas import AuditContext
from ..audit.service import get_audit_context
from ...common.schemas import BulkOperationResponse
from .schemas import (
    ArticleListQuery, PaginatedArticlesResponse, ArticleDetailsResponse,
    ModerateArticleRequest, ModerateArticleResponse, BulkArticleOperationRequest,
    ModerationQueueResponse, ArticleStatisticsResponse,
)
from . import service as article_service

router = APIRouter(
    prefix="/admin/articles",
    tags=["Admin Articles"],
    responses={404: {"description": "Not found"}},
)


@router.get("/", response_model=PaginatedArticlesResponse, summary="List articles")
async def list_articles(
    current_admin: Annotated[AuthUser, Depends(get_current_active_admin_user)],
    query: Annotated[ArticleListQuery, Query()],
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
):
    return await article_service.list_articles(query, limit=limit, offset=offset)


@router.get("/queue", response_model=ModerationQueueResponse, summary="Draft articles awaiting review")
async def get_moderation_queue(
    current_admin: Annotated[AuthUser, Depends(get_current_active_admin_user)],
    priority: Literal["all", "high", "medium", "low"] = Query("all"),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
):
    return await article_service.get_moderation_queue(priority, limit=limit, offset=offset)


@router.get("/statistics", response_model=ArticleStatisticsResponse, summary="Article statistics")
async def get_article_statistics(
    current_admin: Annotated[AuthUser, Depends(get_current_active_admin_user)],
):
    return await article_service.get_article_statistics()


@router.post("/bulk", response_model=BulkOperationResponse, summary="Moderate many articles at once")
async def bulk_article_operation(
    request: BulkArticleOperationRequest,
    current_admin: Annotated[AuthUser, Depends(get_current_senior_admin)],
    context: Annotated[AuditContext, Depends(get_audit_context)],
):
    return await article_service.bulk_article_operation(request, current_admin, context)


@router.get("/{article_public_id}", response_model=ArticleDetailsResponse, summary="Article details")
async def get_article_details(
    article_public_id: str,
    current_admin: Annotated[AuthUser, Depends(get_current_active_admin_user)],
):
    return await article_service.get_article_details(article_public_id)


@router.post("/{article_public_id}/moderate", response_model=ModerateArticleResponse, summary="Moderate an article")
async def moderate_article(
    article_public_id: str,
    request: ModerateArticleRequest,
    current_admin: Annotated[AuthUser, Depends(get_current_moderator)],
    context: Annotated[AuditContext, Depends(get_audit_context)],
):
    return await article_service.moderate_article(article_public_id, request, current_admin, context)
