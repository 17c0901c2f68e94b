"""
Rate catalog model.

A rate is a pricing class (e.g. "Economico", "First Class") applied to services.
"""

from sqlalchemy import Column, Integer, String, Boolean, Numeric, DateTime
from sqlalchemy.sql import func
from pricing_backend.app.db.session import Base


class Rate(Base):
    """
    Rate model.
    
    Base prices and client prices are always kept per rate, so the same
    route can carry one price per rate and vehicle type.
    """
    __tablename__ = "rates"
    
    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(100), unique=True, nullable=False)
    percentage = Column(Numeric(5, 2), default=0, nullable=False)
    color = Column(String(20), default="#6366F1", nullable=False)
    
    active = Column(Boolean, default=True, nullable=False)
    exists = Column(Boolean, default=True, nullable=False)
    
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    
    def __repr__(self):
        return f"<Rate(id={self.id}, name='{self.name}')>"
