from sqlalchemy import Column, String, DateTime, Enum
from sqlalchemy.orm import relationship
import enum

from marketplace.database import Base, generate_id, utcnow


class Role(str, enum.Enum):
    """Enum for account roles."""
    USER = "user"
    ADMIN = "admin"
    SUBADMIN = "subadmin"


MODERATOR_ROLES = frozenset({Role.ADMIN, Role.SUBADMIN})


class User(Base):
    """
    User account.

    Attributes:
        id: Opaque unique identifier
        full_name: Display name
        email: Login email, unique and stored lower-cased
        password_hash: Bcrypt hash of the password (never serialized)
        role: Account role
        created_at: Timestamp when the account was registered
        updated_at: Timestamp when the account was last updated
    """
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=generate_id)
    full_name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(
        Enum(Role, values_callable=lambda e: [r.value for r in e], validate_strings=True),
        nullable=False,
        default=Role.USER,
    )
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    products = relationship("Product", back_populates="owner", foreign_keys="Product.owner_id")

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', role='{self.role}')>"
