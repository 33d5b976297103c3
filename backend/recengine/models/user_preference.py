"""User preference profile — affinities derived from the interaction log."""

from sqlalchemy import Column, Integer, DateTime, ForeignKey, Uuid, func

from recengine.models.base import Base, JSONType, TimestampMixin, UUIDMixin

DEFAULT_PRICE_RANGE = {"min": 0, "max": 10000}


class UserPreference(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "user_preferences"

    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)

    # Each is a JSON list of {"<key>": ..., "score": float}; order is not trusted
    favorite_categories = Column(JSONType, nullable=False, default=list)
    favorite_brands = Column(JSONType, nullable=False, default=list)
    favorite_stores = Column(JSONType, nullable=False, default=list)
    favorite_keywords = Column(JSONType, nullable=False, default=list)
    favorite_price_range = Column(JSONType, nullable=False, default=lambda: dict(DEFAULT_PRICE_RANGE))

    interaction_count = Column(Integer, default=0, nullable=False)
    last_active_at = Column(DateTime(timezone=True), server_default=func.now())
