"""
Point of Interest (POI) catalog model.

POIs are the origins and destinations of transport services.
Managed by catalog admin tooling; read-only for pricing.
"""

from sqlalchemy import Column, Integer, String, Boolean, DateTime
from sqlalchemy.sql import func
from pricing_backend.app.db.session import Base


class POI(Base):
    __tablename__ = "pois"
    
    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    
    # Lifecycle: active=False hides, exists=False soft-deletes
    active = Column(Boolean, default=True, nullable=False)
    exists = Column(Boolean, default=True, nullable=False)
    
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    
    def __repr__(self):
        return f"<POI(id={self.id}, name='{self.name}')>"
