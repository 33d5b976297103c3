"""Recommendation cache model — expiring snapshots of computed feeds."""

from datetime import datetime, timezone

from sqlalchemy import Column, String, Float, DateTime, ForeignKey, Index, Uuid

from recengine.models.base import Base, JSONType, UUIDMixin


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RecommendationCache(UUIDMixin, Base):
    __tablename__ = "recommendation_cache"

    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    recommendation_type = Column(String(50), nullable=False)  # personalized or personalized:<listing type>
    recommended_products = Column(JSONType, nullable=False)  # ordered product id strings, index = rank
    score = Column(Float, default=1.0)
    algorithm_version = Column(String(20), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    __table_args__ = (
        Index("idx_recommendation_cache_user_type", "user_id", "recommendation_type", "expires_at"),
        Index("idx_recommendation_cache_expires", "expires_at"),
    )
