"""Shared model building blocks.

Tables addressed by the API expose a KSUID `public_id` instead of their integer
primary key; TimestampMixin adds created_at / updated_at columns."""

from tortoise import fields, models
from ksuid import ksuid


def generate_ksuid():
    """Generate a K-Sortable Unique IDentifier (KSUID).

    KSUIDs are time-ordered UUIDs that are suitable for distributed systems
    and provide better performance characteristics than traditional UUIDs.
    They are URL-safe, timestamp prefixed, and sortable chronologically.

    Returns:
        str: A string representation of the generated KSUID.
    """
    return str(ksuid.Ksuid())


class TimestampMixin(models.Model):
    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        abstract = True

