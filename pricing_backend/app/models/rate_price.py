"""
Rate Price (base catalog price) database model.

One price per (service, rate, vehicle type). Applies to every client
that has no negotiated client price for the same combination.
"""

from sqlalchemy import Column, Integer, String, Boolean, Numeric, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from pricing_backend.app.db.session import Base


class RatePrice(Base):
    """
    Rate Price model.

    Lifecycle states:
    - active=True,  exists=True  -> used for pricing
    - active=False, exists=True  -> hidden, kept for historical quotes
    - active=False, exists=False -> soft deleted

    At most one active, existing row per (service, rate, vehicle type),
    enforced by a partial unique index.
    """
    __tablename__ = "rate_prices"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    service_id = Column(Integer, ForeignKey('services.id'), nullable=False, index=True)
    rate_id = Column(Integer, ForeignKey('rates.id'), nullable=False, index=True)
    vehicle_type_id = Column(Integer, ForeignKey('vehicle_types.id'), nullable=False, index=True)

    price = Column(Numeric(12, 2), nullable=True)
    currency = Column(String(3), default="MXN", nullable=False)

    active = Column(Boolean, default=True, nullable=False)
    exists = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    rate = relationship("Rate", lazy="raise")
    vehicle_type = relationship("VehicleType", lazy="raise")

    __table_args__ = (
        Index(
            'ix_rate_prices_active_triple', 'service_id', 'rate_id', 'vehicle_type_id',
            unique=True,
            postgresql_where=(active == True) & (exists == True),  # noqa: E712
            sqlite_where=(active == True) & (exists == True),  # noqa: E712
        ),
    )

    def __repr__(self):
        return (
            f"<RatePrice(service={self.service_id}, rate={self.rate_id}, "
            f"vehicle_type={self.vehicle_type_id}, price={self.price})>"
        )
