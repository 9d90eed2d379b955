from tortoise import fields, models
from ...common.models import generate_ksuid


class AdminLog(models.Model):  # Append-only, no TimestampMixin
    id = fields.IntField(primary_key=True)
    public_id = fields.CharField(
        max_length=27, unique=True, default=generate_ksuid, db_index=True
    )

    admin: fields.ForeignKeyRelation["User"] = fields.ForeignKeyField(
        "models.User", related_name="admin_logs", on_delete=fields.CASCADE
    )
    action = fields.CharField(max_length=100, db_index=True)
    target_type = fields.CharField(max_length=50, null=True)  # users, articles, user_reports, ...
    target_id = fields.CharField(max_length=27, null=True)  # public_id of the target
    description = fields.TextField(null=True)
    ip_address = fields.CharField(max_length=45, null=True)
    user_agent = fields.TextField(null=True)
    created_at = fields.DatetimeField(auto_now_add=True, db_index=True)

    def __str__(self):
        return f"AdminLog '{self.action}' on {self.target_type}:{self.target_id} at {self.created_at}"

    class Meta:
        table = "admin_logs"
