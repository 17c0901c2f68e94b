"""
Base price lookup strategies.

Resolution tries these tiers in order and keeps the first non-empty result:
1. ExactBasePriceStrategy    - service + requested rate + requested vehicle
2. AnyRateBasePriceStrategy  - requested rate had no prices: drop the rate
                               filter so the caller still gets a price
"""

from typing import Dict, Iterable, List, Sequence, Tuple

from pricing_backend.app.domain.pricing.catalog_store import CatalogStore
from pricing_backend.app.domain.pricing.types import PriceQuery
from pricing_backend.app.models.client_price import ClientPrice
from pricing_backend.app.models.rate_price import RatePrice


class PriceLookupStrategy:
    """One resolution tier."""

    name = "base"

    def applies_to(self, query: PriceQuery) -> bool:
        return True

    def rate_filter(self, query: PriceQuery):
        """Rate id this tier filters base prices on, or None."""
        return query.rate_id

    async def find_base_prices(self, store: CatalogStore, query: PriceQuery) -> List[RatePrice]:
        raise NotImplementedError


class ExactBasePriceStrategy(PriceLookupStrategy):
    name = "exact"

    async def find_base_prices(self, store: CatalogStore, query: PriceQuery) -> List[RatePrice]:
        return await store.list_base_prices(
            query.service_id,
            rate_id=query.rate_id,
            vehicle_type_id=query.vehicle_type_id,
        )


class AnyRateBasePriceStrategy(PriceLookupStrategy):
    name = "any_rate"

    def applies_to(self, query: PriceQuery) -> bool:
        return query.rate_id is not None

    def rate_filter(self, query: PriceQuery):
        return None

    async def find_base_prices(self, store: CatalogStore, query: PriceQuery) -> List[RatePrice]:
        return await store.list_base_prices(
            query.service_id,
            vehicle_type_id=query.vehicle_type_id,
        )


DEFAULT_STRATEGIES: Tuple[PriceLookupStrategy, ...] = (
    ExactBasePriceStrategy(),
    AnyRateBasePriceStrategy(),
)


def index_overrides(overrides: Iterable[ClientPrice]) -> Dict[Tuple[int, int], ClientPrice]:
    """Index client prices by (rate_id, vehicle_type_id)."""
    return {(override.rate_id, override.vehicle_type_id): override for override in overrides}


def find_orphan_overrides(
    base_prices: Sequence[RatePrice],
    overrides: Iterable[ClientPrice],
) -> List[ClientPrice]:
    """
    Client prices whose (rate, vehicle type) has no base price row.

    Resolution cannot surface these: the base row carries the vehicle and
    rate metadata every resolved price is anchored on.
    """
    anchored = {(base.rate_id, base.vehicle_type_id) for base in base_prices}
    return [o for o in overrides if (o.rate_id, o.vehicle_type_id) not in anchored]
