"""User interaction model — append-only log of product and search events."""

import enum

from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, Index, func, Uuid

from recengine.models.base import Base, JSONType, UUIDMixin


class InteractionType(str, enum.Enum):
    view = "view"
    click = "click"
    search = "search"
    add_to_cart = "add_to_cart"
    like = "like"
    unlike = "unlike"


class UserInteraction(UUIDMixin, Base):
    __tablename__ = "user_interactions"

    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=True)  # null = anonymous
    session_id = Column(Uuid(as_uuid=True), nullable=False)
    product_id = Column(Uuid(as_uuid=True), ForeignKey("products.id", ondelete="CASCADE"), nullable=True)  # null for search
    interaction_type = Column(String(20), nullable=False)
    dwell_time_seconds = Column(Integer, default=0, nullable=False)
    metadata_ = Column("metadata", JSONType, default=dict)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        Index("idx_interactions_user_created", "user_id", "created_at"),
        Index("idx_interactions_product", "product_id"),
        Index("idx_interactions_type_created", "interaction_type", "created_at"),
    )
