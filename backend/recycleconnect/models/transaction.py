"""
Transaction model tying a listing to a transporter or buyer.
"""
from sqlalchemy import Column, Float, DateTime, Enum as SQLEnum, ForeignKey, Integer
from recycleconnect.db.base import BaseModel
import enum


class TransactionStatus(str, enum.Enum):
    """Transaction status enumeration."""
    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Transaction(BaseModel):
    """One exchange on a listing. Never deleted; terminal rows are history."""
    __tablename__ = "transactions"

    # Plain reference: history outlives a deleted listing
    listing_id = Column(Integer, nullable=False, index=True)
    collector_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    transporter_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    buyer_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    status = Column(SQLEnum(TransactionStatus), default=TransactionStatus.PENDING, nullable=False, index=True)
    total_amount = Column(Float, nullable=True)
    pickup_date = Column(DateTime(timezone=True), nullable=True)
    delivery_date = Column(DateTime(timezone=True), nullable=True)
