"""
Service catalog model.

A service is a route (optional origin POI, required destination POI)
with a default rate. Services are soft-disabled and soft-deleted, never
hard-deleted, so historical client prices keep a valid reference.
"""

from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from pricing_backend.app.db.session import Base


class Service(Base):
    __tablename__ = "services"
    
    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    
    # Route
    origin_poi_id = Column(Integer, ForeignKey('pois.id'), nullable=True, index=True)
    destination_poi_id = Column(Integer, ForeignKey('pois.id'), nullable=False, index=True)
    
    # Default rate shown in the catalog listing
    rate_id = Column(Integer, ForeignKey('rates.id'), nullable=False, index=True)
    
    note = Column(String(500), nullable=True)
    
    # Lifecycle
    active = Column(Boolean, default=True, nullable=False, index=True)
    exists = Column(Boolean, default=True, nullable=False, index=True)
    
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
    
    origin_poi = relationship("POI", foreign_keys=[origin_poi_id], lazy="raise")
    destination_poi = relationship("POI", foreign_keys=[destination_poi_id], lazy="raise")
    rate = relationship("Rate", lazy="raise")
    
    def __repr__(self):
        return f"<Service(id={self.id}, origin={self.origin_poi_id}, destination={self.destination_poi_id})>"
