"""Product score model — engagement counters and batch-computed ranking scores."""

from sqlalchemy import Column, Integer, Float, DateTime, ForeignKey, func, Uuid

from recengine.models.base import Base, TimestampMixin


class ProductScore(TimestampMixin, Base):
    __tablename__ = "product_scores"

    product_id = Column(Uuid(as_uuid=True), ForeignKey("products.id", ondelete="CASCADE"), primary_key=True)

    view_count = Column(Integer, default=0, nullable=False)
    click_count = Column(Integer, default=0, nullable=False)
    like_count = Column(Integer, default=0, nullable=False)
    conversion_count = Column(Integer, default=0, nullable=False)

    # Recomputed by tasks.score_tasks.refresh_product_scores
    popularity_score = Column(Float, default=0.0, nullable=False, index=True)
    trending_score = Column(Float, default=0.0, nullable=False, index=True)

    last_interaction_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
