"""
User model for authentication and marketplace roles.
"""
from sqlalchemy import Column, String, Boolean, Enum as SQLEnum
from sqlalchemy.orm import relationship
from recycleconnect.db.base import BaseModel
import enum


class UserRole(str, enum.Enum):
    """Marketplace role, fixed at registration."""
    COLLECTOR = "collector"
    TRANSPORTER = "transporter"
    BUYER = "buyer"


class User(BaseModel):
    """User model with immutable username, email and role."""
    __tablename__ = "users"

    username = Column(String(50), unique=True, nullable=False, index=True)
    email = Column(String(100), unique=True, nullable=False, index=True)
    hashed_password = Column(String(255), nullable=False)
    full_name = Column(String(200), nullable=False)
    phone = Column(String(50), nullable=True)
    address = Column(String(255), nullable=True)
    city = Column(String(100), nullable=True)
    role = Column(SQLEnum(UserRole), nullable=False, index=True)
    profile_complete = Column(Boolean, default=False, nullable=False)

    # Relationships
    listings = relationship("WasteListing", back_populates="collector")
