from tortoise import fields, models
from ...common.models import TimestampMixin, generate_ksuid

NOTIFICATION_TYPES = ("user_report", "system_alert", "security_incident", "performance_issue", "content_flag")
# Most urgent first; drives the ordering of the notification inbox
SEVERITY_ORDER = ("critical", "high", "medium", "low")


class AdminNotification(models.Model):
    id = fields.IntField(primary_key=True)
    public_id = fields.CharField(
        max_length=27, unique=True, default=generate_ksuid, db_index=True
    )
    type = fields.CharField(max_length=30, db_index=True)
    title = fields.CharField(max_length=255)
    message = fields.TextField()
    data = fields.JSONField(null=True)
    severity = fields.CharField(max_length=10, default="medium", db_index=True)
    is_read = fields.BooleanField(default=False, db_index=True)
    assigned_to: fields.ForeignKeyNullableRelation["User"] = fields.ForeignKeyField(
        "models.User", related_name="assigned_notifications", on_delete=fields.SET_NULL, null=True
    )
    created_at = fields.DatetimeField(auto_now_add=True)
    read_at = fields.DatetimeField(null=True)

    def __str__(self):
        return f"[{self.severity}] {self.title}"

    class Meta:
        table = "admin_notifications"


class EmailTemplate(TimestampMixin):
    id = fields.IntField(primary_key=True)
    name = fields.CharField(max_length=100, unique=True)
    subject = fields.CharField(max_length=255)
    body = fields.TextField()
    variables = fields.JSONField(null=True)  # Placeholder names available to the template
    is_active = fields.BooleanField(default=True)

    def __str__(self):
        return self.name

    class Meta:
        table = "email_templates"
