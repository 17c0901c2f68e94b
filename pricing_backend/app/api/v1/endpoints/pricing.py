"""
Pricing API Endpoints.

Price resolution for services and client price batch management.
Authentication and permissions are handled upstream; the acting user id
is part of the write payload.
"""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession

from pricing_backend.app.core.exceptions import ResourceNotFoundError
from pricing_backend.app.db.session import get_db
from pricing_backend.app.domain.pricing.catalog_store import SqlCatalogStore
from pricing_backend.app.domain.pricing.override_history import list_override_history, price_as_of
from pricing_backend.app.domain.pricing.override_writer import ClientOverrideWriter
from pricing_backend.app.domain.pricing.price_resolver import PriceResolver
from pricing_backend.app.models.enums import ItemType
from pricing_backend.app.schemas.pricing import (
    ApplyClientPricesRequest, ApplyClientPricesResponse, ClientPriceResponse, ResolvedPriceResponse
)

router = APIRouter(tags=["Pricing"])


def get_price_resolver(db: AsyncSession = Depends(get_db)) -> PriceResolver:
    return PriceResolver(SqlCatalogStore(db))


def get_override_writer(db: AsyncSession = Depends(get_db)) -> ClientOverrideWriter:
    return ClientOverrideWriter(db)


@router.get("/services/{service_id}/prices", response_model=List[ResolvedPriceResponse])
async def resolve_service_prices(
    service_id: int = Path(..., gt=0),
    client_id: Optional[int] = Query(None, gt=0, description="Apply this client's negotiated prices"),
    rate_id: Optional[int] = Query(None, gt=0),
    vehicle_type_id: Optional[int] = Query(None, gt=0),
    resolver: PriceResolver = Depends(get_price_resolver),
):
    """
    Resolve the prices of a service.

    Always 200: an unknown service or an unavailable store yields [].
    """
    prices = await resolver.resolve(
        service_id,
        client_id=client_id,
        rate_id=rate_id,
        vehicle_type_id=vehicle_type_id,
    )
    return [price.to_dict() for price in prices]


@router.put(
    "/clients/{client_id}/services/{service_id}/prices",
    response_model=ApplyClientPricesResponse,
)
async def apply_client_prices(
    payload: ApplyClientPricesRequest,
    client_id: int = Path(..., gt=0),
    service_id: int = Path(..., gt=0),
    writer: ClientOverrideWriter = Depends(get_override_writer),
):
    """
    Replace a client's prices for a service with the given complete set.
    """
    result = await writer.apply_client_overrides(
        client_id,
        service_id,
        payload.prices,
        actor_id=payload.actor_id,
        item_type=payload.item_type,
    )
    return ApplyClientPricesResponse(applied=result.applied, closed=result.closed)


@router.get("/clients/{client_id}/prices", response_model=List[ClientPriceResponse])
async def list_current_client_prices(
    client_id: int = Path(..., gt=0),
    item_type: Optional[ItemType] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    """
    List every current client price of a client.
    """
    return await SqlCatalogStore(db).list_client_prices(client_id, item_type)


@router.get(
    "/clients/{client_id}/services/{service_id}/prices/history",
    response_model=List[ClientPriceResponse],
)
async def client_price_history(
    client_id: int = Path(..., gt=0),
    service_id: int = Path(..., gt=0),
    rate_id: Optional[int] = Query(None, gt=0),
    vehicle_type_id: Optional[int] = Query(None, gt=0),
    db: AsyncSession = Depends(get_db),
):
    """
    List all client price versions for a service, oldest first.
    """
    return await list_override_history(
        db, client_id, service_id, rate_id=rate_id, vehicle_type_id=vehicle_type_id
    )


@router.get(
    "/clients/{client_id}/services/{service_id}/prices/as-of",
    response_model=ClientPriceResponse,
)
async def client_price_as_of(
    client_id: int = Path(..., gt=0),
    service_id: int = Path(..., gt=0),
    rate_id: int = Query(..., gt=0),
    vehicle_type_id: int = Query(..., gt=0),
    at: datetime = Query(..., description="Instant to look up (UTC)"),
    db: AsyncSession = Depends(get_db),
):
    """
    Get the client price version that was in effect at `at`.
    """
    version = await price_as_of(db, client_id, service_id, rate_id, vehicle_type_id, at)
    if version is None:
        raise ResourceNotFoundError("Client price", f"{client_id}/{service_id}/{rate_id}/{vehicle_type_id}")
    return version
