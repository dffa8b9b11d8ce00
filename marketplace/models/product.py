from sqlalchemy import (
    Column, Integer, String, Float, Text, DateTime, ForeignKey, Enum, CheckConstraint
)
from sqlalchemy.orm import relationship
import enum

from marketplace.database import Base, generate_id, utcnow


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class ProductStatus(str, enum.Enum):
    """Moderation status of a product listing."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class Category(str, enum.Enum):
    ELECTRONICS = "Electronics"
    CLOTHING = "Clothing"
    BOOKS = "Books"
    HOME_GARDEN = "Home & Garden"
    HEALTH_BEAUTY = "Health & Beauty"
    OTHER = "Other"


class Condition(str, enum.Enum):
    NEW = "New"
    LIKE_NEW = "Like New"
    GOOD = "Good"
    FAIR = "Fair"
    POOR = "Poor"


class Product(Base):
    """
    Product listing owned by a user.

    Attributes:
        id: Opaque unique identifier
        name: Product name
        description: Free-text description
        price: Product price (must be non-negative)
        category: Product category
        condition: Item condition (optional unless the schema requires it)
        stock: Available quantity (must be non-negative)
        image: Reference to the stored image, e.g. /uploads/<file>
        status: Moderation status
        owner_id: User who created the listing, never changes
        rejection_reason: Reason given by the moderator on rejection
        moderated_by: Moderator who approved or rejected the listing
        moderated_at: Timestamp of the moderation decision
        created_at: Timestamp when product was created
        updated_at: Timestamp when product was last updated
    """
    __tablename__ = "products"

    id = Column(String(36), primary_key=True, default=generate_id)
    name = Column(String(100), nullable=False, index=True)
    description = Column(Text, nullable=False)
    price = Column(Float, nullable=False)
    category = Column(Enum(Category, values_callable=_enum_values), nullable=False)
    condition = Column(Enum(Condition, values_callable=_enum_values), nullable=True)
    stock = Column(Integer, nullable=False, default=0)
    image = Column(String(255), nullable=True)
    status = Column(
        Enum(ProductStatus, values_callable=_enum_values),
        nullable=False,
        default=ProductStatus.PENDING,
        index=True,
    )
    owner_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    rejection_reason = Column(Text, nullable=True)
    moderated_by = Column(String(36), ForeignKey("users.id"), nullable=True)
    moderated_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    owner = relationship("User", back_populates="products", foreign_keys=[owner_id])

    # Database-level constraints to ensure data integrity
    __table_args__ = (
        CheckConstraint('price >= 0', name='check_price_non_negative'),
        CheckConstraint('stock >= 0', name='check_stock_non_negative'),
    )

    def __repr__(self):
        return f"<Product(id={self.id}, name='{self.name}', status='{self.status}')>"
