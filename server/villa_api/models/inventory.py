"""Inventory item and movement ledger model definitions."""

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Optional

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer, Numeric, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..core.database import Base

if TYPE_CHECKING:
    from .user import User


class MovementType(str, Enum):
    """Kinds of stock movement; only ``in`` adds to the quantity."""
    IN = "in"
    OUT = "out"
    DAMAGED = "damaged"
    MAINTENANCE = "maintenance"


def signed_delta(movement_type: MovementType, quantity: int) -> int:
    """Return the change a movement applies to an item's current quantity."""
    return quantity if MovementType(movement_type) is MovementType.IN else -quantity


class InventoryItem(Base):
    """Stock item kept at the villa (linen, appliances, consumables)."""

    __tablename__ = "inventory_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    category: Mapped[str] = mapped_column(String(100), nullable=False, default="general", index=True)
    location: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    current_quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    minimum_quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    unit: Mapped[str] = mapped_column(String(32), nullable=False, default="pz")
    purchase_price: Mapped[Optional[float]] = mapped_column(Numeric(10, 2, asdecimal=False), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    last_checked: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        server_default=func.now(),
        onupdate=func.now()
    )

    __table_args__ = (
        CheckConstraint("current_quantity >= 0", name="ck_inventory_item_quantity_non_negative"),
        CheckConstraint("minimum_quantity >= 0", name="ck_inventory_item_minimum_non_negative"),
        CheckConstraint("length(name) > 0", name="ck_inventory_item_name_not_empty"),
    )

    def __repr__(self) -> str:
        return (
            f"<InventoryItem(id={self.id}, name='{self.name}', "
            f"current_quantity={self.current_quantity}, minimum_quantity={self.minimum_quantity})>"
        )


class InventoryMovement(Base):
    """Ledger row recording one change to an item's quantity."""

    __tablename__ = "inventory_movements"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    item_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("inventory_items.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    user_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True
    )
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    quantity_before: Mapped[int] = mapped_column(Integer, nullable=False)
    quantity_after: Mapped[int] = mapped_column(Integer, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, server_default=func.now(), index=True)

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_inventory_movement_quantity_positive"),
        CheckConstraint(
            "type IN ('in', 'out', 'damaged', 'maintenance')",
            name="ck_inventory_movement_type_valid"
        ),
        CheckConstraint("quantity_after >= 0", name="ck_inventory_movement_after_non_negative"),
    )

    item: Mapped["InventoryItem"] = relationship("InventoryItem", lazy="selectin")
    user: Mapped[Optional["User"]] = relationship("User", lazy="selectin")

    def __repr__(self) -> str:
        return (
            f"<InventoryMovement(id={self.id}, item_id={self.item_id}, type={self.type}, "
            f"quantity={self.quantity}, created_at={self.created_at})>"
        )
