"""
Value types for the pricing domain.
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Optional

CENT = Decimal("0.01")


def to_money(value: Any) -> Decimal:
    """Quantize a price to 2 decimals; missing prices become 0.00."""
    if value is None:
        return Decimal("0.00")
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class PriceQuery:
    """Lookup key for price resolution."""
    service_id: int
    client_id: Optional[int] = None
    rate_id: Optional[int] = None
    vehicle_type_id: Optional[int] = None


@dataclass(frozen=True)
class VehicleTypeInfo:
    id: int
    name: str
    code: str
    capacity: int


@dataclass(frozen=True)
class RateInfo:
    id: int
    name: str


@dataclass(frozen=True)
class ResolvedPrice:
    """Price a caller should see for one vehicle type and rate."""
    vehicle_type: VehicleTypeInfo
    rate: RateInfo
    final_price: Decimal
    base_price: Decimal
    is_client_price: bool
    currency: str = "MXN"

    def to_dict(self) -> Dict[str, Any]:
        """JSON-serializable form consumed by controllers and UI."""
        return {
            "vehicleType": {
                "id": self.vehicle_type.id,
                "name": self.vehicle_type.name,
                "code": self.vehicle_type.code,
                "capacity": self.vehicle_type.capacity,
            },
            "rate": {"id": self.rate.id, "name": self.rate.name},
            "price": float(self.final_price),
            "basePrice": float(self.base_price),
            "currency": self.currency,
            "isClientPrice": self.is_client_price,
        }


@dataclass(frozen=True)
class ApplyResult:
    """Outcome of a client price batch."""
    applied: int
    closed: int
