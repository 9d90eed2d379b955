from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Any, List, Literal, Optional
import datetime

from ...common.schemas import DailyCount

ModerationAction = Literal["approve", "reject", "feature", "unfeature", "archive"]
QueuePriority = Literal["high", "medium", "low"]


# --- Listing ---
class ArticleListQuery(BaseModel):
    search: Optional[str] = Field(None, description="Case-insensitive match on title or description")
    status: Optional[str] = Field(None, description="Only articles with this status")
    category: Optional[str] = Field(None, description="Public ID of the category")
    flagged: Optional[bool] = Field(None, description="Articles with (true) or without (false) pending reports")
    ai_generated: Optional[bool] = Field(None, description="Filter on AI generated listings")
    sort_by: Optional[str] = Field("created_at", description="Sort column")
    sort_order: Optional[str] = Field("DESC", description="ASC or DESC")

    @field_validator("flagged", "ai_generated", mode="before")
    @classmethod
    def blank_flag_is_absent(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value


class ArticleBase(BaseModel):
    public_id: str = Field(..., description="Public unique identifier for the article (KSUID)")
    title: str
    description: Optional[str] = None
    price: float
    currency: str
    condition_type: str
    location: Optional[str] = None
    status: str
    is_featured: bool
    is_negotiable: bool
    view_count: int
    favorite_count: int
    ai_generated: bool
    ai_confidence_score: Optional[float] = None
    created_at: datetime.datetime
    updated_at: datetime.datetime

    model_config = ConfigDict(from_attributes=True, protected_namespaces=())


class ArticleListItem(ArticleBase):
    seller_public_id: str
    seller_username: str
    seller_first_name: Optional[str] = None
    seller_last_name: Optional[str] = None
    category_public_id: Optional[str] = None
    category_name: Optional[str] = None
    pending_reports: int = 0
    primary_image: Optional[str] = Field(None, description="Filename of the primary image")


class PaginatedArticlesResponse(BaseModel):
    articles: List[ArticleListItem]
    total: int
    has_more: bool


# --- Details ---
class ArticleDetail(ArticleListItem):
    seller_email: Optional[str] = None
    seller_rating: Optional[float] = None
    expires_at: Optional[datetime.datetime] = None


class ArticleImageSchema(BaseModel):
    filename: str
    file_path: str
    is_primary: bool
    sort_order: int
    ai_analyzed: bool
    ai_objects: Optional[Any] = None
    ai_labels: Optional[Any] = None
    ai_text: Optional[Any] = None
    ai_explicit_content: Optional[Any] = None

    model_config = ConfigDict(from_attributes=True, protected_namespaces=())


class AISuggestionSchema(BaseModel):
    suggestion_type: str
    original_value: Optional[str] = None
    suggested_value: str
    confidence_score: float
    is_accepted: bool
    created_at: datetime.datetime

    model_config = ConfigDict(from_attributes=True, protected_namespaces=())


class ArticleReportSummary(BaseModel):
    public_id: str
    report_type: str
    description: str
    status: str
    reporter_username: Optional[str] = None
    created_at: datetime.datetime


class SimilarArticle(BaseModel):
    public_id: str
    title: str
    price: float
    status: str
    created_at: datetime.datetime

    model_config = ConfigDict(from_attributes=True, protected_namespaces=())


class ArticleDetailsResponse(BaseModel):
    article: ArticleDetail
    images: List[ArticleImageSchema]
    ai_suggestions: List[AISuggestionSchema]
    reports: List[ArticleReportSummary]
    similar_articles: List[SimilarArticle]


# --- Moderation ---
class ModerateArticleRequest(BaseModel):
    action: ModerationAction
    reason: Optional[str] = Field(None, max_length=1000, description="Reason shown to the seller and in the admin log")


class ModerateArticleResponse(BaseModel):
    message: str
    article: ArticleBase


class BulkArticleOperationRequest(BaseModel):
    article_ids: List[str] = Field(..., min_length=1, description="Public IDs of the articles")
    operation: ModerationAction
    reason: Optional[str] = Field(None, max_length=1000)


# --- Moderation queue ---
class QueueArticle(ArticleBase):
    seller_username: str
    seller_first_name: Optional[str] = None
    seller_last_name: Optional[str] = None
    category_name: Optional[str] = None
    report_count: int
    priority: QueuePriority


class ModerationQueueResponse(BaseModel):
    articles: List[QueueArticle]
    total: int
    has_more: bool


# --- Statistics ---
class ArticleBasicStats(BaseModel):
    total_articles: int
    active_articles: int
    pending_articles: int
    sold_articles: int
    featured_articles: int
    ai_generated_articles: int


class CategoryCount(BaseModel):
    category_public_id: str
    name: str
    count: int


class PriceDistribution(BaseModel):
    under_10: int = 0
    between_10_50: int = 0
    between_50_100: int = 0
    between_100_500: int = 0
    over_500: int = 0


class ArticleStatisticsResponse(BaseModel):
    basic_stats: ArticleBasicStats
    category_distribution: List[CategoryCount]
    price_distribution: PriceDistribution
    trends: List[DailyCount]
