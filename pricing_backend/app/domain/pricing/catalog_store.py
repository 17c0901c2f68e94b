"""
Catalog Store.

Read contract the pricing domain uses to reach services, base prices and
client prices, plus its SQLAlchemy implementation.
"""

from typing import List, Optional, Protocol

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from pricing_backend.app.models.service import Service
from pricing_backend.app.models.rate_price import RatePrice
from pricing_backend.app.models.client_price import ClientPrice
from pricing_backend.app.models.enums import ItemType


class CatalogStore(Protocol):
    async def get_service(self, service_id: int) -> Optional[Service]:
        ...

    async def list_base_prices(
        self,
        service_id: int,
        rate_id: Optional[int] = None,
        vehicle_type_id: Optional[int] = None,
    ) -> List[RatePrice]:
        ...

    async def list_active_overrides(self, client_id: int, service_id: int) -> List[ClientPrice]:
        ...

    async def list_client_prices(self, client_id: int, item_type: Optional[ItemType] = None) -> List[ClientPrice]:
        ...


class SqlCatalogStore:
    """CatalogStore backed by an async SQLAlchemy session."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_service(self, service_id: int) -> Optional[Service]:
        """
        Get a service that has not been soft-deleted.

        Returns:
            Service or None
        """
        result = await self.db.execute(
            select(Service).where(
                Service.id == service_id,
                Service.exists == True  # noqa: E712
            )
        )
        return result.scalar_one_or_none()

    async def list_base_prices(
        self,
        service_id: int,
        rate_id: Optional[int] = None,
        vehicle_type_id: Optional[int] = None,
    ) -> List[RatePrice]:
        """
        List active base prices of a service, cheapest first.

        Rate and vehicle type and their catalog metadata are eager loaded.
        """
        query = (
            select(RatePrice)
            .options(selectinload(RatePrice.rate), selectinload(RatePrice.vehicle_type))
            .where(
                RatePrice.service_id == service_id,
                RatePrice.active == True,  # noqa: E712
                RatePrice.exists == True,  # noqa: E712
            )
        )
        if rate_id is not None:
            query = query.where(RatePrice.rate_id == rate_id)
        if vehicle_type_id is not None:
            query = query.where(RatePrice.vehicle_type_id == vehicle_type_id)

        result = await self.db.execute(query.order_by(RatePrice.price.asc(), RatePrice.id.asc()))
        return list(result.scalars().all())

    async def list_active_overrides(self, client_id: int, service_id: int) -> List[ClientPrice]:
        """List the current, active client prices of a client for one service."""
        result = await self.db.execute(
            select(ClientPrice).where(
                ClientPrice.client_id == client_id,
                ClientPrice.item_type == ItemType.SERVICES,
                ClientPrice.item_id == service_id,
                ClientPrice.valid_until.is_(None),
                ClientPrice.active == True,  # noqa: E712
                ClientPrice.exists == True,  # noqa: E712
            )
        )
        return list(result.scalars().all())

    async def list_client_prices(self, client_id: int, item_type: Optional[ItemType] = None) -> List[ClientPrice]:
        """List every current, active client price of a client."""
        query = select(ClientPrice).where(
            ClientPrice.client_id == client_id,
            ClientPrice.valid_until.is_(None),
            ClientPrice.active == True,  # noqa: E712
            ClientPrice.exists == True,  # noqa: E712
        )
        if item_type is not None:
            query = query.where(ClientPrice.item_type == item_type)

        result = await self.db.execute(query.order_by(ClientPrice.item_id, ClientPrice.id))
        return list(result.scalars().all())
