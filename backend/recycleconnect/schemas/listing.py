"""
Pydantic schemas for WasteListing entity.
"""
from pydantic import Field, field_validator
from typing import Optional
from datetime import datetime
from recycleconnect.models.listing import MaterialType, ListingStatus
from recycleconnect.schemas.base import CamelModel


class ListingCreate(CamelModel):
    """Schema for listing creation. Owner and status are set by the server."""
    material_type: MaterialType
    quantity: float = Field(gt=0, allow_inf_nan=False)
    unit: str
    description: Optional[str] = None
    location: Optional[str] = None
    price: float = Field(ge=0, allow_inf_nan=False)  # Per unit

    @field_validator("unit")
    @classmethod
    def unit_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Unit is required")
        return v


class ListingUpdate(CamelModel):
    """Schema for listing update by its collector. Status is not editable here."""
    material_type: Optional[MaterialType] = None
    quantity: Optional[float] = Field(default=None, gt=0, allow_inf_nan=False)
    unit: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    price: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)

    @field_validator("unit")
    @classmethod
    def unit_not_blank(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError("Unit is required")
        return v.strip() if v is not None else v


class ListingRecord(CamelModel):
    """Schema for listing response."""
    id: int
    collector_id: int
    material_type: MaterialType
    quantity: float
    unit: str
    description: Optional[str] = None
    location: Optional[str] = None
    price: float
    status: ListingStatus
    created_at: datetime
    updated_at: datetime
