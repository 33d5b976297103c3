"""Product model — marketplace listings consumed read-only by the recommender."""

import enum

from sqlalchemy import Column, String, Float, Boolean, Text, Index, Uuid

from recengine.models.base import Base, TimestampMixin, UUIDMixin


class ListingType(str, enum.Enum):
    store_inventory = "store_inventory"
    private_listing = "private_listing"


class Product(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "products"

    # Store or private seller that owns the listing
    seller_id = Column(Uuid(as_uuid=True), nullable=False, index=True)

    display_name = Column(Text)
    description = Column(Text)
    marketplace_category = Column(String(100), index=True)
    marketplace_subcategory = Column(String(100))
    manufacturer_name = Column(String(255))
    bike_type = Column(String(50))  # Road, Mountain, Gravel, ...
    price = Column(Float)

    listing_type = Column(String(30), nullable=False, default=ListingType.store_inventory.value)
    is_active = Column(Boolean, default=True, nullable=False, index=True)

    __table_args__ = (
        Index("idx_products_category_active", "marketplace_category", "is_active"),
        Index("idx_products_listing_type", "listing_type"),
    )
