from sqlalchemy import Column, DateTime, ForeignKey, String
from sqlalchemy.orm import declared_attr
from sqlalchemy.sql import func


class TimestampMixin:
    created_at = Column(DateTime, default=func.now(), nullable=False)
    updated_at = Column(DateTime, default=func.now(),
                        onupdate=func.now(), nullable=False)


class VenueScopedMixin:
    """Mixin for rows owned by a single venue"""

    @declared_attr
    def venue_id(cls):
        return Column(String(36), ForeignKey("venues.id"), nullable=False, index=True)
