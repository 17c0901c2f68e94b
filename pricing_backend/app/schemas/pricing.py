"""
Pricing schemas.

Request/response models for price resolution and client price batches.
`ClientPriceInput` is also the validation model the override writer applies
to every batch entry, so HTTP and in-process callers share the same rules.
"""

from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from decimal import Decimal
from typing import Optional, List

from pricing_backend.app.models.enums import ItemType


class ClientPriceInput(BaseModel):
    """One desired client price. A missing or zero price removes the override."""
    rate_id: int = Field(..., gt=0)
    vehicle_type_id: int = Field(..., gt=0)
    price: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)
    base_price: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)
    notes: Optional[str] = Field(None, max_length=500)


class ApplyClientPricesRequest(BaseModel):
    """Complete desired set of client prices for one client and service."""
    actor_id: int = Field(..., gt=0, description="User applying the change")
    item_type: ItemType = ItemType.SERVICES
    prices: List[ClientPriceInput] = Field(default_factory=list)


class ApplyClientPricesResponse(BaseModel):
    applied: int
    closed: int


class VehicleTypeSummary(BaseModel):
    id: int
    name: str
    code: str
    capacity: int


class RateSummary(BaseModel):
    id: int
    name: str


class ResolvedPriceResponse(BaseModel):
    """Resolved price for one vehicle type and rate."""
    model_config = ConfigDict(populate_by_name=True)

    vehicle_type: VehicleTypeSummary = Field(..., alias="vehicleType")
    rate: RateSummary
    price: float
    base_price: float = Field(..., alias="basePrice")
    currency: str
    is_client_price: bool = Field(..., alias="isClientPrice")


class ClientPriceResponse(BaseModel):
    """One stored client price version. Prices are JSON numbers, as in resolution."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    client_id: int
    item_type: ItemType
    item_id: int
    rate_id: int
    vehicle_type_id: int
    price: float
    base_price: Optional[float]
    currency: str
    notes: Optional[str]
    valid_from: datetime
    valid_until: Optional[datetime]
    active: bool
    created_by: Optional[int]
    last_modified_by: Optional[int]
