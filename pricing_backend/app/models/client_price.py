"""
Client Price (negotiated client override) database model.

Client prices are versioned, slowly-changing-dimension style:
- the current version of a key has valid_until = NULL
- replacing or removing a price closes the current row (valid_until set,
  active = False) instead of updating it; a replacement is a new row
- closed rows are kept forever as price history and never change again

Key: (client_id, item_type, item_id, rate_id, vehicle_type_id).
"""

from decimal import Decimal, ROUND_HALF_UP

from sqlalchemy import (
    Column, Integer, String, Boolean, Numeric, DateTime, ForeignKey, Index, Enum, inspect
)
from sqlalchemy.orm import relationship, validates
from pricing_backend.app.db.session import Base
from pricing_backend.app.models.enums import ItemType

# Columns frozen once a version is closed
_VERSIONED_FIELDS = (
    "client_id", "item_type", "item_id", "rate_id", "vehicle_type_id",
    "price", "base_price", "currency", "valid_from", "valid_until",
    "active", "exists", "notes", "created_by", "last_modified_by",
)


class ClientPrice(Base):
    """
    Client Price model.

    A partial unique index over the key where valid_until IS NULL keeps at
    most one current version per key, even with concurrent writers.
    """
    __tablename__ = "client_prices"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Key
    client_id = Column(Integer, nullable=False, index=True)  # client lives in the external user store
    item_type = Column(Enum(ItemType, native_enum=False, length=20), nullable=False, default=ItemType.SERVICES)
    item_id = Column(Integer, nullable=False, index=True)
    rate_id = Column(Integer, ForeignKey('rates.id'), nullable=False)
    vehicle_type_id = Column(Integer, ForeignKey('vehicle_types.id'), nullable=False)

    # Pricing
    price = Column(Numeric(12, 2), nullable=False)
    base_price = Column(Numeric(12, 2), nullable=True)  # catalog price snapshot at negotiation time
    currency = Column(String(3), default="MXN", nullable=False)
    notes = Column(String(500), nullable=True)

    # Versioning
    valid_from = Column(DateTime(timezone=True), nullable=False)
    valid_until = Column(DateTime(timezone=True), nullable=True, index=True)
    active = Column(Boolean, default=True, nullable=False)
    exists = Column(Boolean, default=True, nullable=False)

    # Audit
    created_by = Column(Integer, nullable=True)
    last_modified_by = Column(Integer, nullable=True)

    rate = relationship("Rate", lazy="raise")
    vehicle_type = relationship("VehicleType", lazy="raise")

    __table_args__ = (
        Index(
            'ix_client_prices_current',
            'client_id', 'item_type', 'item_id', 'rate_id', 'vehicle_type_id',
            unique=True,
            postgresql_where=valid_until.is_(None),
            sqlite_where=valid_until.is_(None),
        ),
        Index('ix_client_prices_lookup', 'client_id', 'item_type', 'item_id'),
    )

    @validates(*_VERSIONED_FIELDS)
    def _reject_closed_version_changes(self, key, value):
        state = inspect(self)
        if state.has_identity and self.valid_until is not None:
            raise ValueError(f"ClientPrice {self.id} is a closed version; '{key}' cannot change")
        return value

    @property
    def is_current(self) -> bool:
        return self.valid_until is None

    @property
    def key(self) -> tuple:
        return (self.rate_id, self.vehicle_type_id)

    def discount_percentage(self) -> Decimal:
        """
        Discount against the stored base price snapshot, in percent.

        Negative values are markups. Zero when no snapshot was stored.
        """
        if not self.base_price:
            return Decimal("0.00")
        discount = (Decimal(self.base_price) - Decimal(self.price)) / Decimal(self.base_price) * 100
        return discount.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)

    def is_discount(self) -> bool:
        return bool(self.base_price) and self.price < self.base_price

    def is_markup(self) -> bool:
        return bool(self.base_price) and self.price > self.base_price

    def __repr__(self):
        return (
            f"<ClientPrice(id={self.id}, client={self.client_id}, item={self.item_id}, "
            f"rate={self.rate_id}, vehicle_type={self.vehicle_type_id}, price={self.price}, "
            f"current={self.valid_until is None})>"
        )
