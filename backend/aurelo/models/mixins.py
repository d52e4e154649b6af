from sqlalchemy import Column, DateTime
from sqlalchemy.orm import declared_attr

from aurelo.core.time import utcnow


class TimestampMixin:
    """Naive-UTC created/updated stamps for workspace-owned rows."""

    @declared_attr
    def created_at(cls):
        return Column(DateTime, default=utcnow, nullable=False)

    @declared_attr
    def updated_at(cls):
        return Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)
