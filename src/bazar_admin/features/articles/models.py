"""Marketplace listing models: categories, articles and their AI analysis data."""

from tortoise import fields
from ...common.models import TimestampMixin, generate_ksuid

ARTICLE_STATUSES = ("draft", "active", "sold", "archived", "moderated")


class Category(TimestampMixin):
    id = fields.IntField(primary_key=True)
    public_id = fields.CharField(
        max_length=27, unique=True, default=generate_ksuid, db_index=True
    )
    name = fields.CharField(max_length=100)
    slug = fields.CharField(max_length=100, unique=True)
    description = fields.TextField(null=True)
    is_active = fields.BooleanField(default=True)

    articles: fields.ReverseRelation["Article"]

    def __str__(self):
        return self.name

    class Meta:
        table = "categories"


class Article(TimestampMixin):
    id = fields.IntField(primary_key=True)
    public_id = fields.CharField(
        max_length=27, unique=True, default=generate_ksuid, db_index=True
    )

    user: fields.ForeignKeyRelation["User"] = fields.ForeignKeyField(
        "models.User", related_name="articles", on_delete=fields.CASCADE
    )
    category: fields.ForeignKeyNullableRelation[Category] = fields.ForeignKeyField(
        "models.Category",
        related_name="articles",
        on_delete=fields.SET_NULL,
        null=True,
    )

    title = fields.CharField(max_length=255)
    description = fields.TextField(null=True)
    price = fields.FloatField(db_index=True)
    currency = fields.CharField(max_length=3, default="EUR")
    condition_type = fields.CharField(max_length=20, default="good")  # new, like_new, good, fair, poor
    location = fields.CharField(max_length=255, null=True)
    is_negotiable = fields.BooleanField(default=True)
    is_featured = fields.BooleanField(default=False)
    view_count = fields.IntField(default=0)
    favorite_count = fields.IntField(default=0)
    ai_generated = fields.BooleanField(default=False, db_index=True)
    ai_confidence_score = fields.FloatField(null=True, description="AI confidence for categorization")
    status = fields.CharField(max_length=20, default="draft", db_index=True)
    expires_at = fields.DatetimeField(null=True)

    images: fields.ReverseRelation["ArticleImage"]
    ai_suggestions: fields.ReverseRelation["AISuggestion"]
    reports: fields.ReverseRelation["UserReport"]

    def __str__(self):
        return f"Article {self.title} ({self.public_id}) - Status: {self.status}"

    class Meta:
        table = "articles"


class ArticleImage(TimestampMixin):
    id = fields.IntField(primary_key=True)
    article: fields.ForeignKeyRelation[Article] = fields.ForeignKeyField(
        "models.Article", related_name="images", on_delete=fields.CASCADE
    )
    filename = fields.CharField(max_length=255)
    file_path = fields.CharField(max_length=500)
    is_primary = fields.BooleanField(default=False)
    sort_order = fields.IntField(default=0)

    # AI analysis results
    ai_analyzed = fields.BooleanField(default=False)
    ai_objects = fields.JSONField(null=True)
    ai_labels = fields.JSONField(null=True)
    ai_text = fields.JSONField(null=True)
    ai_explicit_content = fields.JSONField(null=True)

    class Meta:
        table = "article_images"


class AISuggestion(TimestampMixin):
    id = fields.IntField(primary_key=True)
    article: fields.ForeignKeyRelation[Article] = fields.ForeignKeyField(
        "models.Article", related_name="ai_suggestions", on_delete=fields.CASCADE
    )
    suggestion_type = fields.CharField(max_length=20)  # title, description, category, price, condition
    original_value = fields.TextField(null=True)
    suggested_value = fields.TextField()
    confidence_score = fields.FloatField()
    is_accepted = fields.BooleanField(default=False)

    class Meta:
        table = "ai_suggestions"
