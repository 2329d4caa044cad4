"""
Mixin that adds soft delete columns to SQLAlchemy models.

A soft-deleted row keeps its data and is flagged with ``is_deleted`` plus the
``deleted_at`` timestamp. Queries that must hide such rows filter on
``is_deleted`` (see the users pagination config). ``session.delete`` still
removes the row physically, so hard deletes remain available.
"""
from datetime import UTC, datetime

from sqlalchemy import Boolean, Column, DateTime, false
from sqlalchemy.orm import declared_attr


class SoftDeleteMixin:
    """
    Usage:
        class MyEntity(SoftDeleteMixin, BaseEntity):
            __tablename__ = "my_table"
    """

    @declared_attr
    def deleted_at(cls):
        return Column(DateTime(timezone=True), nullable=True, default=None)

    @declared_attr
    def is_deleted(cls):
        return Column(Boolean, nullable=False, default=False, server_default=false(), index=True)

    def soft_delete(self):
        """Marks the row as deleted."""
        self.is_deleted = True
        self.deleted_at = datetime.now(UTC)
