"""User model — account identity and onboarding answers."""

from sqlalchemy import Column, String, Boolean

from recengine.models.base import Base, JSONType, TimestampMixin, UUIDMixin


class User(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "users"

    email = Column(String(255), unique=True, nullable=False, index=True)
    display_name = Column(String(100))
    is_active = Column(Boolean, default=True, nullable=False)

    # Onboarding answers: riding_styles, preferred_brands, experience_level,
    # budget_range ("1000-2500" or "2500+"), interests
    preferences = Column(JSONType)
