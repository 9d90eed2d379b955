import logging
from typing import Optional

from fastapi import HTTPException, status
from tortoise import BaseDBAsyncClient
from tortoise.exceptions import BaseORMException
from tortoise.expressions import Q
from tortoise.functions import Count

from ..auth.models import User as AuthUser
from ..audit.schemas import AuditContext
from ..audit.service import log_admin_action
from ..notifications.service import send_moderation_email
from ..reports.models import UserReport
from .models import Article, ArticleImage, AISuggestion, Category
from .schemas import (
    ArticleListQuery, ArticleBase, ArticleListItem, PaginatedArticlesResponse,
    ArticleDetail, ArticleImageSchema, AISuggestionSchema, ArticleReportSummary,
    SimilarArticle, ArticleDetailsResponse, ModerateArticleRequest, ModerateArticleResponse,
    BulkArticleOperationRequest, QueueArticle, ModerationQueueResponse,
    ArticleBasicStats, CategoryCount, PriceDistribution, ArticleStatisticsResponse,
)
from ...common.query import blank_to_none, resolve_ordering, has_more, trend_window_start, daily_counts
from ...common.schemas import BulkOperationResponse

logger = logging.getLogger(__name__)

SORTABLE_COLUMNS = ("id", "title", "price", "created_at", "updated_at", "view_count", "status")
SIMILAR_ARTICLES_LIMIT = 5
SIMILAR_PRICE_RANGE = (0.8, 1.2)
LOW_AI_CONFIDENCE = 0.7

MODERATION_EFFECTS = {
    "approve": {"status": "active"},
    "reject": {"status": "moderated"},
    "feature": {"is_featured": True},
    "unfeature": {"is_featured": False},
    "archive": {"status": "archived"},
}
PAST_TENSE = {
    "approve": "approved",
    "reject": "rejected",
    "feature": "featured",
    "unfeature": "unfeatured",
    "archive": "archived",
}


async def _pending_report_counts(article_ids: list[int]) -> dict[int, int]:
    if not article_ids:
        return {}
    rows = await (
        UserReport.filter(status="pending", reported_article_id__in=article_ids)
        .annotate(report_count=Count("id"))
        .group_by("reported_article_id")
        .values("reported_article_id", "report_count")
    )
    return {row["reported_article_id"]: row["report_count"] for row in rows}


async def _primary_images(article_ids: list[int]) -> dict[int, str]:
    if not article_ids:
        return {}
    rows = await (
        ArticleImage.filter(article_id__in=article_ids, is_primary=True)
        .order_by("sort_order", "id")
        .values("article_id", "filename")
    )
    images: dict[int, str] = {}
    for row in rows:
        images.setdefault(row["article_id"], row["filename"])
    return images


def _to_list_item(article: Article, pending_reports: int, primary_image: Optional[str]) -> ArticleListItem:
    """Flattens an article with its prefetched seller and category."""
    seller = article.user
    category = article.category
    return ArticleListItem(
        **ArticleBase.model_validate(article).model_dump(),
        seller_public_id=seller.public_id,
        seller_username=seller.username,
        seller_first_name=seller.first_name,
        seller_last_name=seller.last_name,
        category_public_id=category.public_id if category else None,
        category_name=category.name if category else None,
        pending_reports=pending_reports,
        primary_image=primary_image,
    )


async def list_articles(query: ArticleListQuery, limit: int, offset: int) -> PaginatedArticlesResponse:
    """
    Lists articles for the moderation back office.

    Args:
        query: Search, status, category, flagged, ai_generated and sort parameters.
            Empty strings are ignored.
        limit: Page size
        offset: Number of articles to skip

    Returns:
        PaginatedArticlesResponse with seller, category, pending report
        count and primary image for each article.
    """
    articles_query = Article.all()

    search = blank_to_none(query.search)
    if search:
        articles_query = articles_query.filter(Q(title__icontains=search) | Q(description__icontains=search))
    article_status = blank_to_none(query.status)
    if article_status:
        articles_query = articles_query.filter(status=article_status)
    category_public_id = blank_to_none(query.category)
    if category_public_id:
        articles_query = articles_query.filter(category__public_id=category_public_id)
    if query.ai_generated is not None:
        articles_query = articles_query.filter(ai_generated=query.ai_generated)
    if query.flagged is not None:
        flagged_ids = await (
            UserReport.filter(status="pending", reported_article_id__isnull=False)
            .distinct()
            .values_list("reported_article_id", flat=True)
        )
        if query.flagged:
            articles_query = articles_query.filter(id__in=list(flagged_ids))
        elif flagged_ids:
            articles_query = articles_query.exclude(id__in=list(flagged_ids))

    ordering = resolve_ordering(query.sort_by, query.sort_order, SORTABLE_COLUMNS)
    total = await articles_query.count()
    articles = (
        await articles_query.prefetch_related("user", "category")
        .order_by(ordering, "-id")
        .offset(offset)
        .limit(limit)
    )

    article_ids = [article.id for article in articles]
    pending_counts = await _pending_report_counts(article_ids)
    primary_images = await _primary_images(article_ids)
    return PaginatedArticlesResponse(
        articles=[
            _to_list_item(article, pending_counts.get(article.id, 0), primary_images.get(article.id))
            for article in articles
        ],
        total=total,
        has_more=has_more(offset, limit, total),
    )


async def _get_article_or_404(article_public_id: str) -> Article:
    article = await Article.get_or_none(public_id=article_public_id).prefetch_related("user", "category")
    if not article:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Article not found")
    return article


async def get_article_details(article_public_id: str) -> ArticleDetailsResponse:
    """Returns an article with its images, AI suggestions, reports and similar listings."""
    article = await _get_article_or_404(article_public_id)

    pending_counts = await _pending_report_counts([article.id])
    primary_images = await _primary_images([article.id])
    list_item = _to_list_item(article, pending_counts.get(article.id, 0), primary_images.get(article.id))
    detail = ArticleDetail(
        **list_item.model_dump(),
        seller_email=article.user.email,
        seller_rating=article.user.rating,
        expires_at=article.expires_at,
    )

    images = await ArticleImage.filter(article_id=article.id).order_by("sort_order", "id")
    suggestions = await AISuggestion.filter(article_id=article.id).order_by("-confidence_score", "id")
    reports = (
        await UserReport.filter(reported_article_id=article.id)
        .prefetch_related("reporter")
        .order_by("-created_at", "-id")
    )

    similar = []
    if article.category_id is not None:
        low, high = SIMILAR_PRICE_RANGE
        similar = (
            await Article.filter(
                category_id=article.category_id,
                status="active",
                price__gte=article.price * low,
                price__lte=article.price * high,
            )
            .exclude(id=article.id)
            .order_by("-created_at", "-id")
            .limit(SIMILAR_ARTICLES_LIMIT)
        )

    return ArticleDetailsResponse(
        article=detail,
        images=[ArticleImageSchema.model_validate(image) for image in images],
        ai_suggestions=[AISuggestionSchema.model_validate(s) for s in suggestions],
        reports=[
            ArticleReportSummary(
                public_id=report.public_id,
                report_type=report.report_type,
                description=report.description,
                status=report.status,
                reporter_username=report.reporter.username if report.reporter else None,
                created_at=report.created_at,
            )
            for report in reports
        ],
        similar_articles=[SimilarArticle.model_validate(a) for a in similar],
    )


async def _apply_moderation(article: Article, action: str, using_db: Optional[BaseDBAsyncClient] = None) -> None:
    effects = MODERATION_EFFECTS[action]
    for field_name, value in effects.items():
        setattr(article, field_name, value)
    await article.save(update_fields=[*effects, "updated_at"], using_db=using_db)


def _describe(prefix: str, reason: Optional[str]) -> str:
    return f"{prefix}. Reason: {reason}" if reason else prefix


async def moderate_article(
    article_public_id: str, request: ModerateArticleRequest, current_admin: AuthUser, context: AuditContext
) -> ModerateArticleResponse:
    """
    Applies a moderation action to a single article.

    Approving or rejecting also renders the corresponding e-mail for the
    seller. The action is recorded in the admin log as `article_<action>`.
    """
    article = await _get_article_or_404(article_public_id)
    action = request.action

    try:
        await _apply_moderation(article, action)
    except BaseORMException as e:
        logger.error(f"Error moderating article {article_public_id} ({action}): {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to moderate article",
        )

    if action in ("approve", "reject"):
        await send_moderation_email(article, PAST_TENSE[action], request.reason)

    await log_admin_action(
        current_admin,
        f"article_{action}",
        "articles",
        article.public_id,
        description=_describe(f"Article {action}: {article.title}", request.reason),
        context=context,
    )
    logger.info(f"Article {article.public_id} {PAST_TENSE[action]} by {current_admin.username}")
    return ModerateArticleResponse(
        message=f"Article {PAST_TENSE[action]} successfully",
        article=ArticleBase.model_validate(article),
    )


async def bulk_article_operation(
    request: BulkArticleOperationRequest, current_admin: AuthUser, context: AuditContext
) -> BulkOperationResponse:
    """
    Applies one moderation action to many articles.

    Each article is processed independently: a missing article or a
    database error is collected in `errors` and does not stop the others.
    No e-mails are sent for bulk operations.
    """
    operation = request.operation
    success_count = 0
    errors = []

    for article_id in request.article_ids:
        try:
            article = await Article.get_or_none(public_id=article_id)
            if not article:
                errors.append(f"Article ID {article_id} not found")
                continue
            await _apply_moderation(article, operation)
        except BaseORMException as e:
            logger.error(f"Bulk {operation} failed for article {article_id}: {e}", exc_info=True)
            errors.append(f"Error processing article ID {article_id}: {e}")
            continue

        await log_admin_action(
            current_admin,
            f"bulk_{operation}_article",
            "articles",
            article.public_id,
            description=_describe(f"Bulk {operation}: {article.title}", request.reason),
            context=context,
        )
        success_count += 1

    logger.info(
        f"Bulk {operation} by {current_admin.username}: {success_count} succeeded, {len(errors)} failed"
    )
    return BulkOperationResponse(
        message=f"Bulk operation completed. {success_count} articles processed successfully.",
        success_count=success_count,
        errors=errors,
    )


def queue_priority(report_count: int, ai_confidence_score: Optional[float]) -> str:
    if report_count > 2:
        return "high"
    if report_count > 0:
        return "medium"
    if ai_confidence_score is not None and ai_confidence_score < LOW_AI_CONFIDENCE:
        return "high"
    return "low"


def queue_rank(report_count: int, ai_confidence_score: Optional[float]) -> int:
    """Position in the review order; lower values are reviewed first."""
    if report_count > 2:
        return 1
    if ai_confidence_score is not None and ai_confidence_score < LOW_AI_CONFIDENCE:
        return 2
    if report_count > 0:
        return 3
    return 4


async def get_moderation_queue(priority: str, limit: int, offset: int) -> ModerationQueueResponse:
    """
    Lists draft articles awaiting review, most urgent first.

    Args:
        priority: "all", or one of "high", "medium", "low" to keep only
            articles with that computed priority
        limit: Page size
        offset: Number of articles to skip
    """
    drafts = await (
        Article.filter(status="draft")
        .order_by("created_at", "id")
        .values_list("id", "ai_confidence_score")
    )
    report_counts = await _pending_report_counts([article_id for article_id, _ in drafts])

    queue = []
    for article_id, ai_confidence_score in drafts:
        report_count = report_counts.get(article_id, 0)
        article_priority = queue_priority(report_count, ai_confidence_score)
        if priority != "all" and article_priority != priority:
            continue
        queue.append((queue_rank(report_count, ai_confidence_score), article_id, report_count, article_priority))
    # Stable sort keeps oldest-first order within a rank
    queue.sort(key=lambda entry: entry[0])

    total = len(queue)
    selected = queue[offset:offset + limit]
    articles = {}
    if selected:
        page_articles = await Article.filter(id__in=[entry[1] for entry in selected]).prefetch_related(
            "user", "category"
        )
        articles = {article.id: article for article in page_articles}
    page = []
    for _, article_id, report_count, article_priority in selected:
        article = articles[article_id]
        page.append(QueueArticle(
            **ArticleBase.model_validate(article).model_dump(),
            seller_username=article.user.username,
            seller_first_name=article.user.first_name,
            seller_last_name=article.user.last_name,
            category_name=article.category.name if article.category else None,
            report_count=report_count,
            priority=article_priority,
        ))
    return ModerationQueueResponse(articles=page, total=total, has_more=has_more(offset, limit, total))


def price_distribution(prices: list[float]) -> PriceDistribution:
    distribution = PriceDistribution()
    for price in prices:
        if price <= 10:
            distribution.under_10 += 1
        elif price <= 50:
            distribution.between_10_50 += 1
        elif price <= 100:
            distribution.between_50_100 += 1
        elif price <= 500:
            distribution.between_100_500 += 1
        else:
            distribution.over_500 += 1
    return distribution


async def get_article_statistics() -> ArticleStatisticsResponse:
    basic_stats = ArticleBasicStats(
        total_articles=await Article.all().count(),
        active_articles=await Article.filter(status="active").count(),
        pending_articles=await Article.filter(status="draft").count(),
        sold_articles=await Article.filter(status="sold").count(),
        featured_articles=await Article.filter(is_featured=True).count(),
        ai_generated_articles=await Article.filter(ai_generated=True).count(),
    )

    category_rows = await (
        Article.filter(category_id__isnull=False)
        .exclude(status="archived")
        .annotate(article_count=Count("id"))
        .group_by("category_id")
        .values("category_id", "article_count")
    )
    counts_by_category = {row["category_id"]: row["article_count"] for row in category_rows}
    category_distribution = [
        CategoryCount(category_public_id=category.public_id, name=category.name,
                      count=counts_by_category.get(category.id, 0))
        for category in await Category.all().order_by("name")
    ]
    category_distribution.sort(key=lambda c: c.count, reverse=True)

    active_prices = await Article.filter(status="active").values_list("price", flat=True)
    created = await Article.filter(created_at__gte=trend_window_start()).values_list("created_at", flat=True)

    return ArticleStatisticsResponse(
        basic_stats=basic_stats,
        category_distribution=category_distribution,
        price_distribution=price_distribution(list(active_prices)),
        trends=daily_counts(created),
    )
