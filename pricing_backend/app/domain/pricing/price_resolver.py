"""
Price Resolver (Domain Logic).

Computes the prices a caller should see for a service.

Flow:
1. Service must exist (not soft-deleted), else no pricing
2. Base prices from the first lookup tier that returns rows
3. Client prices layered over matching base prices
4. Client prices without a base row are reported, never returned

Resolution never raises for missing data or store failures: the caller
gets an empty list ("no pricing available") and operators get a
structured diagnostic event.
"""

import logging
from typing import List, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError

from pricing_backend.app.core.config import settings
from pricing_backend.app.core.observability import DiagnosticEvent, log_diagnostic
from pricing_backend.app.core.reliability import (
    CircuitBreaker, CircuitOpenError, DeadlineExceededError, call_with_timeout
)
from pricing_backend.app.domain.pricing.catalog_store import CatalogStore
from pricing_backend.app.domain.pricing.strategies import (
    DEFAULT_STRATEGIES, PriceLookupStrategy, find_orphan_overrides, index_overrides
)
from pricing_backend.app.domain.pricing.types import (
    PriceQuery, RateInfo, ResolvedPrice, VehicleTypeInfo, to_money
)
from pricing_backend.app.models.client_price import ClientPrice
from pricing_backend.app.models.rate_price import RatePrice

logger = logging.getLogger(__name__)

# Shared by every resolver in the process
store_circuit_breaker = CircuitBreaker(
    failure_threshold=settings.store_failure_threshold,
    reset_timeout=settings.store_reset_timeout_seconds,
)


class PriceResolver:

    def __init__(
        self,
        store: CatalogStore,
        strategies: Sequence[PriceLookupStrategy] = DEFAULT_STRATEGIES,
        timeout_seconds: Optional[float] = None,
        circuit_breaker: Optional[CircuitBreaker] = None,
    ):
        self.store = store
        self.strategies = tuple(strategies)
        if timeout_seconds is None:
            timeout_seconds = settings.resolution_timeout_seconds
        self.timeout_seconds = timeout_seconds
        self.circuit_breaker = circuit_breaker or store_circuit_breaker

    async def resolve(
        self,
        service_id: int,
        client_id: Optional[int] = None,
        rate_id: Optional[int] = None,
        vehicle_type_id: Optional[int] = None,
    ) -> List[ResolvedPrice]:
        """
        Resolve the prices of a service for an optional client.

        Args:
            service_id: Service to price
            client_id: Client whose negotiated prices apply, if any
            rate_id: Restrict to one rate (falls back to all rates when empty)
            vehicle_type_id: Restrict to one vehicle type

        Returns:
            One ResolvedPrice per (rate, vehicle type), cheapest first;
            empty when no pricing is available
        """
        query = PriceQuery(
            service_id=service_id,
            client_id=client_id,
            rate_id=rate_id,
            vehicle_type_id=vehicle_type_id,
        )

        # The deadline runs inside the breaker so each failure counts once
        try:
            return await self.circuit_breaker.call(self._resolve_within_deadline, query)
        except DeadlineExceededError:
            self._degraded(query, reason="timeout")
        except CircuitOpenError:
            self._degraded(query, reason="circuit_open")
        except (SQLAlchemyError, OSError) as exc:
            self._degraded(query, reason="store_error", error=f"{type(exc).__name__}: {exc}")

        return []

    async def _resolve_within_deadline(self, query: PriceQuery) -> List[ResolvedPrice]:
        return await call_with_timeout(self._resolve(query), self.timeout_seconds)

    async def _resolve(self, query: PriceQuery) -> List[ResolvedPrice]:
        service = await self.store.get_service(query.service_id)
        if service is None:
            logger.debug("Service %s not found, no pricing", query.service_id)
            return []

        overrides: List[ClientPrice] = []
        if query.client_id is not None:
            overrides = await self.store.list_active_overrides(query.client_id, query.service_id)

        base_prices: List[RatePrice] = []
        winning = None
        for strategy in self.strategies:
            if not strategy.applies_to(query):
                continue
            base_prices = await strategy.find_base_prices(self.store, query)
            if base_prices:
                winning = strategy
                break

        if winning is not None and winning is not self.strategies[0]:
            logger.info(
                "Price tier fallback",
                extra={"service_id": query.service_id, "rate_id": query.rate_id, "tier": winning.name}
            )

        self._report_orphans(query, winning, base_prices, overrides)

        by_key = index_overrides(overrides)
        resolved = [self._layer(base, by_key.get((base.rate_id, base.vehicle_type_id))) for base in base_prices]
        # Stable: equal prices keep catalog order
        return sorted(resolved, key=lambda price: price.final_price)

    def _layer(self, base: RatePrice, override: Optional[ClientPrice]) -> ResolvedPrice:
        catalog_price = to_money(base.price)
        vehicle_type = base.vehicle_type
        rate = base.rate

        if override is None:
            final_price = catalog_price
            base_price = catalog_price
            currency = base.currency
        else:
            final_price = to_money(override.price)
            base_price = to_money(override.base_price) if override.base_price is not None else catalog_price
            currency = override.currency

        return ResolvedPrice(
            vehicle_type=VehicleTypeInfo(
                id=vehicle_type.id,
                name=vehicle_type.name,
                code=vehicle_type.code,
                capacity=vehicle_type.default_capacity or 4,
            ),
            rate=RateInfo(id=rate.id, name=rate.name),
            final_price=final_price,
            base_price=base_price,
            is_client_price=override is not None,
            currency=currency or settings.default_currency,
        )

    def _report_orphans(
        self,
        query: PriceQuery,
        winning: Optional[PriceLookupStrategy],
        base_prices: List[RatePrice],
        overrides: List[ClientPrice],
    ) -> None:
        if not overrides:
            return

        rate_filter = winning.rate_filter(query) if winning is not None else query.rate_id
        in_scope = [
            o for o in overrides
            if (rate_filter is None or o.rate_id == rate_filter)
            and (query.vehicle_type_id is None or o.vehicle_type_id == query.vehicle_type_id)
        ]
        orphans = find_orphan_overrides(base_prices, in_scope)
        if orphans:
            log_diagnostic(
                DiagnosticEvent.ORPHAN_OVERRIDES,
                level=logging.INFO,
                service_id=query.service_id,
                client_id=query.client_id,
                client_price_ids=[o.id for o in orphans],
            )

    def _degraded(self, query: PriceQuery, reason: str, error: Optional[str] = None) -> None:
        log_diagnostic(
            DiagnosticEvent.RESOLUTION_DEGRADED,
            level=logging.ERROR,
            reason=reason,
            error=error,
            service_id=query.service_id,
            client_id=query.client_id,
            rate_id=query.rate_id,
            vehicle_type_id=query.vehicle_type_id,
        )
