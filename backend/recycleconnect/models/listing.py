"""
Waste listing model: an offer of recyclable material by a collector.
"""
from sqlalchemy import Column, String, Float, Text, Enum as SQLEnum, ForeignKey, Integer
from sqlalchemy.orm import relationship
from recycleconnect.db.base import BaseModel
import enum


class MaterialType(str, enum.Enum):
    """Material type enumeration."""
    PAPER = "paper"
    CARDBOARD = "cardboard"
    PLASTIC = "plastic"
    GLASS = "glass"
    METAL = "metal"
    EWASTE = "e-waste"
    ORGANIC = "organic"


class ListingStatus(str, enum.Enum):
    """Listing status enumeration."""
    AVAILABLE = "available"
    PENDING_PICKUP = "pending_pickup"
    IN_TRANSIT = "in_transit"
    DELIVERED = "delivered"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ReservationPolicy(str, enum.Enum):
    """Which transaction initiators reserve a listing (move it to pending_pickup)."""
    TRANSPORTER_ONLY = "transporter_only"  # Buyer purchases leave the listing available
    ALL_PARTIES = "all_parties"


class WasteListing(BaseModel):
    """Listing owned by a collector; status moves with its transactions."""
    __tablename__ = "waste_listings"

    collector_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    material_type = Column(SQLEnum(MaterialType), nullable=False)
    quantity = Column(Float, nullable=False)
    unit = Column(String(20), nullable=False)  # kg, ton, etc.
    description = Column(Text, nullable=True)
    location = Column(String(255), nullable=True)
    price = Column(Float, nullable=False, default=0.0)  # Price per unit
    status = Column(SQLEnum(ListingStatus), default=ListingStatus.AVAILABLE, nullable=False, index=True)

    # Relationships
    collector = relationship("User", back_populates="listings")
