"""
Client price write path.

Applies the complete desired set of client prices for one client and one
item, versioning instead of updating:

1. Validate the whole batch (nothing is written if any entry is invalid)
2. Load the current versions of every key
3. Close current versions that are replaced or no longer wanted
4. Insert new current versions
5. Commit once

Closes are compare-and-swap updates (only rows still current match) and
inserts are checked by the partial unique index on current versions, so a
concurrent writer makes the whole batch fail with OverrideConflictError
instead of leaving two current versions of a key.
"""

import asyncio
import logging
import weakref
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple

from pydantic import ValidationError
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from pricing_backend.app.core.config import settings
from pricing_backend.app.core.exceptions import (
    AppException, OverrideConflictError, PriceValidationError, ResourceNotFoundError, StoreUnavailableError
)
from pricing_backend.app.core.observability import DiagnosticEvent, log_diagnostic
from pricing_backend.app.domain.pricing.types import ApplyResult, to_money
from pricing_backend.app.models.client_price import ClientPrice
from pricing_backend.app.models.enums import ItemType
from pricing_backend.app.models.rate import Rate
from pricing_backend.app.models.service import Service
from pricing_backend.app.models.vehicle_type import VehicleType
from pricing_backend.app.schemas.pricing import ClientPriceInput

logger = logging.getLogger(__name__)

PriceKey = Tuple[int, int]

# One writer at a time per (client, item type, item) inside this process
_key_locks: "weakref.WeakValueDictionary[tuple, asyncio.Lock]" = weakref.WeakValueDictionary()


def _key_lock(client_id: int, item_type: ItemType, item_id: int) -> asyncio.Lock:
    key = (client_id, item_type, item_id)
    lock = _key_locks.get(key)
    if lock is None:
        lock = asyncio.Lock()
        _key_locks[key] = lock
    return lock


def validate_client_prices(overrides: Iterable[Any]) -> List[ClientPriceInput]:
    """
    Validate a client price batch.

    Accepts ClientPriceInput instances or plain mappings.

    Raises:
        PriceValidationError: listing every invalid entry
    """
    entries: List[ClientPriceInput] = []
    errors: List[Dict[str, Any]] = []
    seen: Dict[PriceKey, int] = {}

    for index, raw in enumerate(overrides or []):
        try:
            entry = raw if isinstance(raw, ClientPriceInput) else ClientPriceInput.model_validate(raw)
        except ValidationError as exc:
            for err in exc.errors():
                errors.append({
                    "index": index,
                    "field": ".".join(str(part) for part in err.get("loc", ())),
                    "message": err.get("msg"),
                })
            continue

        key = (entry.rate_id, entry.vehicle_type_id)
        if key in seen:
            errors.append({
                "index": index,
                "field": "rate_id,vehicle_type_id",
                "message": f"duplicate of entry {seen[key]}",
            })
            continue
        seen[key] = index
        entries.append(entry)

    if errors:
        raise PriceValidationError(errors=errors)
    return entries


def _wants_price(entry: ClientPriceInput) -> bool:
    # Missing or zero price means "no client price for this key"
    return entry.price is not None and entry.price > 0


class ClientOverrideWriter:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def apply_client_overrides(
        self,
        client_id: int,
        service_id: int,
        overrides: Iterable[Any],
        actor_id: Optional[int],
        item_type: ItemType = ItemType.SERVICES,
    ) -> ApplyResult:
        """
        Replace the current client prices of (client, item) with `overrides`.

        Args:
            client_id: Client the prices are negotiated for
            service_id: Item id (a service for ItemType.SERVICES)
            overrides: Complete desired set; keys left out are closed
            actor_id: User applying the change
            item_type: Item family of `service_id`

        Returns:
            ApplyResult with inserted and closed version counts

        Raises:
            PriceValidationError: malformed batch or unknown rate/vehicle type
            ResourceNotFoundError: service does not exist
            OverrideConflictError: a concurrent writer changed current versions
            StoreUnavailableError: any other store failure (rolled back)
        """
        entries = validate_client_prices(overrides)

        async with _key_lock(client_id, item_type, service_id):
            try:
                await self._check_references(service_id, item_type, entries)
                result = await self._apply(client_id, service_id, item_type, entries, actor_id)
                await self.db.commit()
            except AppException as exc:
                await self.db.rollback()
                log_diagnostic(
                    DiagnosticEvent.OVERRIDES_REJECTED,
                    client_id=client_id,
                    service_id=service_id,
                    error_code=exc.error_code,
                )
                raise
            except IntegrityError as exc:
                await self.db.rollback()
                log_diagnostic(
                    DiagnosticEvent.OVERRIDES_REJECTED,
                    client_id=client_id,
                    service_id=service_id,
                    error_code="ERR_CONFLICT_001",
                )
                raise OverrideConflictError(client_id, service_id, reason="current_version_exists") from exc
            except SQLAlchemyError as exc:
                await self.db.rollback()
                logger.error(
                    "Client price batch failed for client %s service %s: %s",
                    client_id, service_id, exc,
                    exc_info=True,
                )
                raise StoreUnavailableError("apply_client_overrides", exc) from exc

        log_diagnostic(
            DiagnosticEvent.OVERRIDES_APPLIED,
            level=logging.INFO,
            client_id=client_id,
            service_id=service_id,
            item_type=item_type.value,
            actor_id=actor_id,
            applied=result.applied,
            closed=result.closed,
        )
        return result

    async def _check_references(
        self,
        service_id: int,
        item_type: ItemType,
        entries: List[ClientPriceInput],
    ) -> None:
        if item_type == ItemType.SERVICES:
            service = await self.db.scalar(
                select(Service.id).where(Service.id == service_id, Service.exists == True)  # noqa: E712
            )
            if service is None:
                raise ResourceNotFoundError("Service", service_id)

        wanted = [entry for entry in entries if _wants_price(entry)]
        if not wanted:
            return

        rate_ids = {entry.rate_id for entry in wanted}
        vehicle_type_ids = {entry.vehicle_type_id for entry in wanted}

        # Soft-deleted catalog rows cannot be priced
        known_rates = set((await self.db.scalars(
            select(Rate.id).where(Rate.id.in_(rate_ids), Rate.exists == True)  # noqa: E712
        )).all())
        known_vehicle_types = set((await self.db.scalars(
            select(VehicleType.id).where(
                VehicleType.id.in_(vehicle_type_ids),
                VehicleType.exists == True,  # noqa: E712
            )
        )).all())

        errors = []
        for entry in wanted:
            if entry.rate_id not in known_rates:
                errors.append({"field": "rate_id", "message": f"Rate {entry.rate_id} does not exist"})
            if entry.vehicle_type_id not in known_vehicle_types:
                errors.append({
                    "field": "vehicle_type_id",
                    "message": f"Vehicle type {entry.vehicle_type_id} does not exist",
                })
        if errors:
            raise PriceValidationError(message="Unknown catalog reference", errors=errors)

    async def _load_current(self, client_id: int, item_type: ItemType, item_id: int) -> Dict[PriceKey, ClientPrice]:
        result = await self.db.execute(
            select(ClientPrice).where(
                ClientPrice.client_id == client_id,
                ClientPrice.item_type == item_type,
                ClientPrice.item_id == item_id,
                ClientPrice.valid_until.is_(None),
            )
        )
        return {row.key: row for row in result.scalars().all()}

    async def _apply(
        self,
        client_id: int,
        item_id: int,
        item_type: ItemType,
        entries: List[ClientPriceInput],
        actor_id: Optional[int],
    ) -> ApplyResult:
        now = datetime.now(timezone.utc)
        current = await self._load_current(client_id, item_type, item_id)

        to_close: List[ClientPrice] = []
        to_insert: List[ClientPriceInput] = []
        for entry in entries:
            existing = current.pop((entry.rate_id, entry.vehicle_type_id), None)
            if existing is not None:
                to_close.append(existing)
            if _wants_price(entry):
                to_insert.append(entry)

        # Current versions missing from the batch are no longer wanted
        to_close.extend(current.values())

        # Closes go first so the unique index only sees one current version
        for row in to_close:
            await self._close_version(row, actor_id, now)

        for entry in to_insert:
            self.db.add(ClientPrice(
                client_id=client_id,
                item_type=item_type,
                item_id=item_id,
                rate_id=entry.rate_id,
                vehicle_type_id=entry.vehicle_type_id,
                price=to_money(entry.price),
                base_price=to_money(entry.base_price) if entry.base_price is not None else None,
                currency=settings.default_currency,
                notes=entry.notes,
                valid_from=now,
                valid_until=None,
                active=True,
                exists=True,
                created_by=actor_id,
                last_modified_by=actor_id,
            ))
        await self.db.flush()  # IntegrityError if another writer inserted first

        return ApplyResult(applied=len(to_insert), closed=len(to_close))

    async def _close_version(self, row: ClientPrice, actor_id: Optional[int], closed_at: datetime) -> None:
        result = await self.db.execute(
            update(ClientPrice)
            .where(ClientPrice.id == row.id, ClientPrice.valid_until.is_(None))
            .values(valid_until=closed_at, active=False, last_modified_by=actor_id)
            .execution_options(synchronize_session="evaluate")
        )
        if result.rowcount != 1:
            raise OverrideConflictError(row.client_id, row.item_id, reason="version_already_closed")
