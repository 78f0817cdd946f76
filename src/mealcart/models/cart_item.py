"""CartItem model for MealCart."""
from typing import List, Optional
from sqlalchemy import String, ForeignKey, Integer, Boolean, Float, JSON, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin


class CartItem(Base, TimestampMixin):
    """One consolidated shopping-list line for an ingredient, unit and week."""

    __tablename__ = "cart_items"

    __table_args__ = (
        Index(
            "ix_cart_items_match",
            "owner_id",
            "week_id",
            "normalized_name",
            "normalized_unit",
        ),
    )

    # Primary key
    id: Mapped[int] = mapped_column(primary_key=True)

    # Fields
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    normalized_name: Mapped[str] = mapped_column(String(200), nullable=False)
    amount: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    unit: Mapped[str] = mapped_column(String(50), nullable=False)
    normalized_unit: Mapped[str] = mapped_column(String(50), nullable=False)
    week_id: Mapped[str] = mapped_column(String(7), nullable=False, index=True)
    checked: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    recipe_ids: Mapped[List[str]] = mapped_column(JSON, default=list, nullable=False)
    recipe_names: Mapped[List[str]] = mapped_column(JSON, default=list, nullable=False)
    price: Mapped[Optional[float]] = mapped_column(Float)
    note: Mapped[Optional[str]] = mapped_column(String(500))

    # Bumped on every write; compared against the snapshot at flush time
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    # Foreign keys
    owner_id: Mapped[int] = mapped_column(
        ForeignKey("users.id"),
        nullable=False
    )

    # Relationships
    owner = relationship(
        "User",
        back_populates="cart_items",
        foreign_keys=[owner_id]
    )

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        return (
            f"<CartItem(id={self.id}, name='{self.name}', amount={self.amount}, "
            f"unit='{self.unit}', week_id='{self.week_id}')>"
        )
