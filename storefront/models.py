"""
SQLAlchemy database models.
These are the authoritative source of truth for all storefront data.

The relational store is authoritative for:
- Products and their (color x size) variations
- Orders (immutable item snapshots) and custom-order requests
- Users, contact messages, gallery images, hero slides, site settings
"""

import enum

from sqlalchemy import (
    Column, String, Integer, Numeric, DateTime, ForeignKey, Text, Boolean, JSON,
    Index, UniqueConstraint, Enum,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from storefront.database import Base


def _enum_column(enum_cls, length: int = 20):
    # Stored as VARCHAR so enums can be widened without a schema migration
    return Enum(
        enum_cls,
        native_enum=False,
        length=length,
        values_callable=lambda members: [m.value for m in members],
        validate_strings=True,
    )


class Category(str, enum.Enum):
    ANIME = "anime"
    ABSTRACT = "abstract"
    NATURE = "nature"
    CUSTOM = "custom"
    GEOMETRIC = "geometric"
    PORTRAIT = "portrait"
    OTHER = "other"


class OrderStatus(str, enum.Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentMethod(str, enum.Enum):
    ONLINE = "online"
    CASH = "cash"
    BANK_TRANSFER = "bank_transfer"


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class CustomOrderStatus(str, enum.Enum):
    PENDING = "pending"
    IN_REVIEW = "in_review"
    APPROVED = "approved"
    IN_PRODUCTION = "in_production"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ContactSubject(str, enum.Enum):
    SALES = "sales"
    SUPPORT = "support"
    INSTALLATION = "installation"
    WARRANTY = "warranty"
    OTHER = "other"


class ContactStatus(str, enum.Enum):
    NEW = "new"
    READ = "read"
    RESPONDED = "responded"
    CLOSED = "closed"


class User(Base):
    """Registered customer or admin account."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password = Column(String(255), nullable=False)  # bcrypt hash, never plain text
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    phone = Column(String(20), nullable=True)
    is_admin = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    orders = relationship("Order", back_populates="user")


class Product(Base):
    """
    Catalog product. Purchasable on its own when it has no variations,
    otherwise each (color, size) variation is the unit of purchase.
    """
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False, index=True)
    slug = Column(String(255), nullable=False, unique=True, index=True)
    description = Column(Text, nullable=False)
    detailed_description = Column(JSON, nullable=True, default=list)
    price = Column(Numeric(10, 2), nullable=False)
    images = Column(JSON, nullable=False, default=list)
    thumbnail = Column(String(500), nullable=True)
    features = Column(JSON, nullable=False, default=list)
    specifications = Column(JSON, nullable=False, default=dict)
    category = Column(_enum_column(Category), nullable=False, index=True)
    is_active = Column(Boolean, nullable=False, default=True)
    is_on_sale = Column(Boolean, nullable=False, default=False)
    # Only meaningful while is_on_sale is set
    sale_price = Column(Numeric(10, 2), nullable=True)
    sort_order = Column(Integer, nullable=True, default=0)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    variations = relationship(
        "ProductVariation",
        back_populates="product",
        cascade="all, delete-orphan",
        order_by="[ProductVariation.color, ProductVariation.size]",
    )
    active_variations = relationship(
        "ProductVariation",
        primaryjoin="and_(Product.id == ProductVariation.product_id, ProductVariation.is_active == True)",
        order_by="[ProductVariation.color, ProductVariation.size]",
        viewonly=True,
    )


class ProductVariation(Base):
    """
    A (color, size) configuration of a product with its own price and images.
    Unique (product_id, color, size) is enforced here, not only in the API.
    """
    __tablename__ = "product_variations"
    __table_args__ = (
        UniqueConstraint("product_id", "color", "size", name="unique_variation"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    product_id = Column(
        Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True
    )
    color = Column(String(100), nullable=False)
    size = Column(String(100), nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    sale_price = Column(Numeric(10, 2), nullable=True)
    # Empty list means "fall back to the product images"
    images = Column(JSON, nullable=False, default=list)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    product = relationship("Product", back_populates="variations")


class Order(Base):
    """
    Submitted checkout. `items` is an immutable snapshot taken at submission;
    total_amount is never recomputed from live catalog prices.
    """
    __tablename__ = "orders"
    __table_args__ = (Index("ix_orders_status_created", "status", "created_at"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)  # NULL = guest order
    customer_info = Column(JSON, nullable=False)
    items = Column(JSON, nullable=False)
    total_amount = Column(Numeric(10, 2), nullable=False)
    status = Column(_enum_column(OrderStatus), nullable=False, default=OrderStatus.PENDING)
    payment_method = Column(_enum_column(PaymentMethod), nullable=False, default=PaymentMethod.CASH)
    payment_status = Column(_enum_column(PaymentStatus), nullable=False, default=PaymentStatus.PENDING)
    payment_id = Column(String(255), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="orders")

    @property
    def order_number(self) -> str:
        return f"ORD-{self.id:06d}"


class CustomOrder(Base):
    """Bespoke design request: uploaded image plus free-text dimensions."""
    __tablename__ = "custom_orders"

    id = Column(Integer, primary_key=True, autoincrement=True)
    customer_name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=False)
    design_image = Column(String(512), nullable=False)  # served URL path under /uploads
    width = Column(String(50), nullable=False)
    height = Column(String(50), nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    additional_details = Column(Text, nullable=True)
    status = Column(
        _enum_column(CustomOrderStatus), nullable=False, default=CustomOrderStatus.PENDING, index=True
    )
    estimated_price = Column(Numeric(10, 2), nullable=True)
    admin_notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class Contact(Base):
    """Contact-form inbox entry."""
    __tablename__ = "contacts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False, index=True)
    phone = Column(String(20), nullable=True)
    subject = Column(_enum_column(ContactSubject), nullable=False, index=True)
    message = Column(Text, nullable=False)
    status = Column(_enum_column(ContactStatus), nullable=False, default=ContactStatus.NEW, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    @property
    def contact_number(self) -> str:
        return f"CNT-{self.id:06d}"


class GalleryImage(Base):
    __tablename__ = "gallery_images"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)
    image_path = Column(String(512), nullable=False)
    sort_order = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class HeroSlide(Base):
    __tablename__ = "hero_slides"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    subtitle = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)
    primary_button_text = Column(String(100), nullable=True)
    primary_button_url = Column(String(255), nullable=True)
    secondary_button_text = Column(String(100), nullable=True)
    secondary_button_url = Column(String(255), nullable=True)
    youtube_url = Column(Text, nullable=True)
    image_url = Column(String(512), nullable=True)
    order = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class Setting(Base):
    """Singleton row (id=1) holding the promo banner configuration."""
    __tablename__ = "settings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    promo_enabled = Column(Boolean, nullable=False, default=False)
    promo_text = Column(String(255), nullable=False, default="")
    promo_youtube_url = Column(String(255), nullable=True)
    promo_youtube_title = Column(String(255), nullable=True)
    promo_youtube_thumbnail = Column(String(512), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
