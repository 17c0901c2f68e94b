"""
Vehicle Type catalog model.

Vehicle types (Sedan, Suburban, Sprinter...) are the unit a price is quoted for.
"""

from sqlalchemy import Column, Integer, String, Boolean, DateTime
from sqlalchemy.sql import func
from pricing_backend.app.db.session import Base


class VehicleType(Base):
    """
    Vehicle Type model.
    
    Capacity values are passenger seats and luggage pieces shown to
    clients next to each resolved price.
    """
    __tablename__ = "vehicle_types"
    
    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    code = Column(String(50), unique=True, nullable=False, index=True)
    
    # Capacity
    default_capacity = Column(Integer, default=4, nullable=False)
    trunk_capacity = Column(Integer, default=2, nullable=False)
    
    active = Column(Boolean, default=True, nullable=False)
    exists = Column(Boolean, default=True, nullable=False)
    
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    
    def __repr__(self):
        return f"<VehicleType(id={self.id}, code='{self.code}')>"
