from tortoise import fields
from ...common.models import TimestampMixin, generate_ksuid

REPORT_TYPES = ("spam", "inappropriate", "fraud", "fake", "harassment", "copyright", "other")
REPORT_STATUSES = ("pending", "investigating", "resolved", "dismissed")
# A report can only be (re)handled while it is still open
OPEN_REPORT_STATUSES = ("pending", "investigating")


class UserReport(TimestampMixin):
    id = fields.IntField(primary_key=True)
    public_id = fields.CharField(
        max_length=27, unique=True, default=generate_ksuid, db_index=True
    )

    reporter: fields.ForeignKeyRelation["User"] = fields.ForeignKeyField(
        "models.User", related_name="filed_reports", on_delete=fields.CASCADE
    )
    reported_user: fields.ForeignKeyNullableRelation["User"] = fields.ForeignKeyField(
        "models.User", related_name="reports_against", on_delete=fields.CASCADE, null=True
    )
    reported_article: fields.ForeignKeyNullableRelation["Article"] = fields.ForeignKeyField(
        "models.Article", related_name="reports", on_delete=fields.CASCADE, null=True
    )
    reported_message_id = fields.IntField(null=True)

    report_type = fields.CharField(max_length=20)
    description = fields.TextField()
    evidence_urls = fields.JSONField(null=True)
    status = fields.CharField(max_length=20, default="pending", db_index=True)
    admin_notes = fields.TextField(null=True)
    handled_by: fields.ForeignKeyNullableRelation["User"] = fields.ForeignKeyField(
        "models.User", related_name="handled_reports", on_delete=fields.SET_NULL, null=True
    )
    handled_at = fields.DatetimeField(null=True)

    def __str__(self):
        return f"Report {self.public_id} ({self.report_type}) - Status: {self.status}"

    class Meta:
        table = "user_reports"
