"""User model for MealCart."""
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin


class User(Base, TimestampMixin):
    """Model representing a cart owner."""

    __tablename__ = "users"

    # Primary key
    id: Mapped[int] = mapped_column(primary_key=True)

    # Relationships
    cart_items = relationship(
        "CartItem",
        back_populates="owner",
        foreign_keys="CartItem.owner_id",
        cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id})>"
