"""Inventory-related Pydantic schemas."""

from typing import Optional

from pydantic import AliasChoices, Field, field_validator

from ..core.timeutils import UtcDateTime
from ..models.inventory import MovementType
from .common import ApiModel, AuthorSummary, DateInput, reject_null


class CreateInventoryItemRequest(ApiModel):
    """Request schema for adding an item to the inventory."""

    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    category: str = Field("general", min_length=1, max_length=100)
    location: Optional[str] = Field(None, max_length=255)
    current_quantity: int = Field(
        0,
        ge=0,
        validation_alias=AliasChoices("currentQuantity", "quantity", "current_quantity"),
        description="Opening stock"
    )
    minimum_quantity: int = Field(
        0,
        ge=0,
        validation_alias=AliasChoices("minimumQuantity", "minStock", "minimum_quantity"),
        description="Low-stock threshold"
    )
    unit: str = Field("pz", min_length=1, max_length=32)
    purchase_price: Optional[float] = Field(None, ge=0)
    notes: Optional[str] = None
    last_checked: Optional[DateInput] = None


class UpdateInventoryItemRequest(ApiModel):
    """Partial update; quantities change only through movements."""

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    category: Optional[str] = Field(None, min_length=1, max_length=100)
    location: Optional[str] = Field(None, max_length=255)
    minimum_quantity: Optional[int] = Field(
        None,
        ge=0,
        validation_alias=AliasChoices("minimumQuantity", "minStock", "minimum_quantity"),
    )
    unit: Optional[str] = Field(None, min_length=1, max_length=32)
    purchase_price: Optional[float] = Field(None, ge=0)
    notes: Optional[str] = None
    last_checked: Optional[DateInput] = None

    @field_validator("name", "category", "minimum_quantity", "unit")
    @classmethod
    def required_columns_not_null(cls, v):
        return reject_null(v)


class InventoryItemResponse(ApiModel):
    id: int
    name: str
    description: Optional[str] = None
    category: str
    location: Optional[str] = None
    current_quantity: int
    minimum_quantity: int
    unit: str
    purchase_price: Optional[float] = None
    notes: Optional[str] = None
    last_checked: Optional[UtcDateTime] = None
    is_low_stock: bool = False
    created_at: UtcDateTime
    updated_at: UtcDateTime


class CreateMovementRequest(ApiModel):
    """Request schema for recording a stock movement."""

    item_id: int = Field(..., description="Inventory item to move")
    type: MovementType = Field(..., description="in, out, damaged or maintenance")
    quantity: int = Field(..., gt=0, description="Units moved, always positive")
    reason: Optional[str] = Field(None, max_length=500)


class MovementResponse(ApiModel):
    """Ledger row for one movement."""

    id: int
    item_id: int
    item_name: Optional[str] = None
    type: MovementType
    quantity: int
    reason: Optional[str] = None
    quantity_before: int
    quantity_after: int
    user_id: Optional[int] = None
    user: Optional[AuthorSummary] = None
    created_at: UtcDateTime
