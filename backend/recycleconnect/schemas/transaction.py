"""
Pydantic schemas for Transaction entity.
"""
from typing import Optional
from datetime import datetime
from recycleconnect.models.transaction import TransactionStatus
from recycleconnect.schemas.base import CamelModel


class TransactionCreate(CamelModel):
    """
    Schema for transaction creation.
    Party ids, amount and status are derived server-side; anything else in the
    body is ignored.
    """
    listing_id: int
    pickup_date: Optional[datetime] = None
    delivery_date: Optional[datetime] = None


class TransactionUpdate(CamelModel):
    """Schema for transaction update by one of its parties."""
    status: Optional[TransactionStatus] = None
    pickup_date: Optional[datetime] = None
    delivery_date: Optional[datetime] = None


class TransactionRecord(CamelModel):
    """Schema for transaction response."""
    id: int
    listing_id: int
    collector_id: int
    transporter_id: Optional[int] = None
    buyer_id: Optional[int] = None
    status: TransactionStatus
    total_amount: Optional[float] = None
    pickup_date: Optional[datetime] = None
    delivery_date: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
