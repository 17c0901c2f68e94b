"""
Client price history and point-in-time lookup tests.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from pricing_backend.app.domain.pricing.catalog_store import SqlCatalogStore
from pricing_backend.app.domain.pricing.override_history import list_override_history, price_as_of
from pricing_backend.app.domain.pricing.override_writer import ClientOverrideWriter
from pricing_backend.app.models.client_price import ClientPrice
from pricing_backend.app.models.enums import ItemType

CLIENT_ID = 310


async def set_price(session, catalog, price, vehicle="sedan", client_id=CLIENT_ID):
    return await ClientOverrideWriter(session).apply_client_overrides(
        client_id,
        catalog["service"].id,
        [{"rate_id": catalog["economico"].id, "vehicle_type_id": catalog[vehicle].id, "price": price}],
        actor_id=1,
    )


@pytest.mark.asyncio
async def test_history_lists_versions_oldest_first(db_session, catalog):
    for price in (1000, 1200, 1100):
        await set_price(db_session, catalog, price)

    history = await list_override_history(db_session, CLIENT_ID, catalog["service"].id)

    assert [v.price for v in history] == [Decimal("1000.00"), Decimal("1200.00"), Decimal("1100.00")]
    assert [v.is_current for v in history] == [False, False, True]


@pytest.mark.asyncio
async def test_history_filters_by_vehicle_type(db_session, catalog):
    await set_price(db_session, catalog, 1000, vehicle="sedan")
    await set_price(db_session, catalog, 1400, vehicle="suburban")

    history = await list_override_history(
        db_session, CLIENT_ID, catalog["service"].id, vehicle_type_id=catalog["suburban"].id
    )

    # The second batch closed the Sedan price and created the Suburban one
    assert [(v.vehicle_type_id, v.price) for v in history] == [(catalog["suburban"].id, Decimal("1400.00"))]


@pytest.mark.asyncio
async def test_price_as_of_returns_version_in_effect(db_session, catalog):
    service_id = catalog["service"].id
    key = (catalog["economico"].id, catalog["sedan"].id)

    before_first = datetime.now(timezone.utc) - timedelta(seconds=1)
    await set_price(db_session, catalog, 1000)
    between = datetime.now(timezone.utc)
    await set_price(db_session, catalog, 1200)
    after_second = datetime.now(timezone.utc) + timedelta(seconds=1)

    assert await price_as_of(db_session, CLIENT_ID, service_id, *key, before_first) is None

    first = await price_as_of(db_session, CLIENT_ID, service_id, *key, between)
    assert first.price == Decimal("1000.00")

    second = await price_as_of(db_session, CLIENT_ID, service_id, *key, after_second)
    assert second.price == Decimal("1200.00")
    assert second.is_current


@pytest.mark.asyncio
async def test_price_as_of_accepts_any_utc_offset(db_session, catalog):
    service_id = catalog["service"].id
    key = (catalog["economico"].id, catalog["sedan"].id)
    mexico_city = timezone(timedelta(hours=-6))

    await set_price(db_session, catalog, 1000)
    between = datetime.now(timezone.utc)
    await set_price(db_session, catalog, 1200)
    now_local = datetime.now(mexico_city) + timedelta(seconds=1)

    first = await price_as_of(db_session, CLIENT_ID, service_id, *key, between.astimezone(mexico_city))
    assert first.price == Decimal("1000.00")

    current = await price_as_of(db_session, CLIENT_ID, service_id, *key, now_local)
    assert current.price == Decimal("1200.00")
    assert current.is_current

    # Naive instants are UTC
    naive = await price_as_of(db_session, CLIENT_ID, service_id, *key, between.replace(tzinfo=None))
    assert naive.price == Decimal("1000.00")


@pytest.mark.asyncio
async def test_price_as_of_after_removal_is_none(db_session, catalog):
    service_id = catalog["service"].id
    key = (catalog["economico"].id, catalog["sedan"].id)
    await set_price(db_session, catalog, 1000)
    await set_price(db_session, catalog, 0)

    assert await price_as_of(
        db_session, CLIENT_ID, service_id, *key, datetime.now(timezone.utc) + timedelta(seconds=1)
    ) is None


@pytest.mark.asyncio
async def test_list_client_prices_returns_only_current_versions(db_session, catalog):
    await set_price(db_session, catalog, 1000)
    await set_price(db_session, catalog, 1200)
    await set_price(db_session, catalog, 700, client_id=CLIENT_ID + 1)

    current = await SqlCatalogStore(db_session).list_client_prices(CLIENT_ID, ItemType.SERVICES)

    assert [v.price for v in current] == [Decimal("1200.00")]
    assert await SqlCatalogStore(db_session).list_client_prices(CLIENT_ID, ItemType.TOURS) == []


@pytest.mark.parametrize("price, base_price, discount, is_discount, is_markup", [
    (Decimal("850.00"), Decimal("1000.00"), Decimal("15.00"), True, False),
    (Decimal("1100.00"), Decimal("1000.00"), Decimal("-10.00"), False, True),
    (Decimal("1000.00"), Decimal("1000.00"), Decimal("0.00"), False, False),
    (Decimal("900.00"), None, Decimal("0.00"), False, False),
])
def test_discount_against_snapshot(price, base_price, discount, is_discount, is_markup):
    version = ClientPrice(client_id=CLIENT_ID, item_id=1, rate_id=1, vehicle_type_id=1,
                          price=price, base_price=base_price)

    assert version.discount_percentage() == discount
    assert version.is_discount() is is_discount
    assert version.is_markup() is is_markup
