from tortoise import fields
from ...common.models import TimestampMixin, generate_ksuid

# Lowest to highest privilege
ADMIN_ROLE_HIERARCHY = ["support", "moderator", "admin", "super_admin"]


class User(TimestampMixin):
    id = fields.IntField(primary_key=True)
    public_id = fields.CharField(max_length=27, unique=True, default=generate_ksuid, db_index=True)
    username = fields.CharField(max_length=100, unique=True, db_index=True)
    email = fields.CharField(max_length=255, unique=True, db_index=True)
    first_name = fields.CharField(max_length=100, null=True)
    last_name = fields.CharField(max_length=100, null=True)
    hashed_password = fields.CharField(max_length=255)
    role = fields.CharField(max_length=50, default="customer")  # E.g., "customer", "admin"
    admin_role = fields.CharField(max_length=50, null=True)  # One of ADMIN_ROLE_HIERARCHY
    status = fields.CharField(max_length=20, default="active", db_index=True)  # active, suspended, deleted
    rating = fields.FloatField(default=0.0)

    articles: fields.ReverseRelation["bazar_admin.features.articles.models.Article"]

    @property
    def is_active(self) -> bool:
        return self.status == "active"

    def __str__(self):
        return f"{self.username} ({self.role})"

    class Meta:
        table = "users"
