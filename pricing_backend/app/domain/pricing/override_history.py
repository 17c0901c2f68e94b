"""
Client price history.

Closed client price versions are never changed, so "what did client X pay
for service Y on date Z" is answered by the version whose
[valid_from, valid_until) interval contains Z.
"""

from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from pricing_backend.app.models.client_price import ClientPrice
from pricing_backend.app.models.enums import ItemType


async def list_override_history(
    db: AsyncSession,
    client_id: int,
    service_id: int,
    rate_id: Optional[int] = None,
    vehicle_type_id: Optional[int] = None,
    item_type: ItemType = ItemType.SERVICES,
) -> List[ClientPrice]:
    """
    List every version of a client's prices for one item, oldest first.
    """
    query = select(ClientPrice).where(
        ClientPrice.client_id == client_id,
        ClientPrice.item_type == item_type,
        ClientPrice.item_id == service_id,
    )
    if rate_id is not None:
        query = query.where(ClientPrice.rate_id == rate_id)
    if vehicle_type_id is not None:
        query = query.where(ClientPrice.vehicle_type_id == vehicle_type_id)

    result = await db.execute(query.order_by(ClientPrice.valid_from.asc(), ClientPrice.id.asc()))
    return list(result.scalars().all())


async def price_as_of(
    db: AsyncSession,
    client_id: int,
    service_id: int,
    rate_id: int,
    vehicle_type_id: int,
    at: datetime,
    item_type: ItemType = ItemType.SERVICES,
) -> Optional[ClientPrice]:
    """
    Find the client price version in effect at `at`.

    A naive `at` is read as UTC.

    Returns:
        The covering version, or None if the client had no price then
    """
    if at.tzinfo is None:
        at = at.replace(tzinfo=timezone.utc)
    else:
        at = at.astimezone(timezone.utc)

    result = await db.execute(
        select(ClientPrice)
        .where(
            ClientPrice.client_id == client_id,
            ClientPrice.item_type == item_type,
            ClientPrice.item_id == service_id,
            ClientPrice.rate_id == rate_id,
            ClientPrice.vehicle_type_id == vehicle_type_id,
            ClientPrice.exists == True,  # noqa: E712
            ClientPrice.valid_from <= at,
            or_(ClientPrice.valid_until.is_(None), ClientPrice.valid_until > at),
        )
        .order_by(ClientPrice.valid_from.desc(), ClientPrice.id.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()
