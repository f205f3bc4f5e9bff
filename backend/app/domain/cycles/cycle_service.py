"""
Cycle Lifecycle Manager (Domain Logic).

Orchestrates creation, update, closing and cascading deletion of cycles and
the freights, fuelings and expenses recorded against them.

Every operation follows the same order:
1. Load the cycle (ResourceNotFoundError)
2. Access control (ForbiddenError), no write happens on denial
3. Input validation (InputValidationError)
4. Reference resolution (InvalidReferenceError)
5. Evidence upload to the blob store, then the row write (StorageError)

A photo stored before a failed row write is an orphan; the caller sees the
StorageError and treats the whole operation as failed.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from backend.app.core.actor import Actor
from backend.app.core.exceptions import (
    ForbiddenError,
    InputValidationError,
    InvalidReferenceError,
    ResourceNotFoundError,
    StorageError,
)
from backend.app.core.guards import cycle_guard
from backend.app.db.session import new_id
from backend.app.domain.finance.calculator import (
    compute_commission,
    compute_freight_value,
    compute_fueling_total,
)
from backend.app.domain.inputs import parse_input
from backend.app.models.cycle import Cycle
from backend.app.models.cycle_enums import CycleStatus, RecordKind
from backend.app.models.enums import UserRole
from backend.app.models.expense import Expense
from backend.app.models.freight import Freight
from backend.app.models.fueling import Fueling
from backend.app.schemas.cycle import (
    CycleCreate,
    CycleUpdate,
    ExpenseCreate,
    ExpenseUpdate,
    FreightCreate,
    FreightUpdate,
    FuelingCreate,
    FuelingUpdate,
)
from backend.app.services.blob_store import BlobStore, PhotoUpload, blob_path, has_photo
from backend.app.store.entity_store import CYCLE_CHILD_KINDS, EntityKind, EntityStore

logger = logging.getLogger("freight.cycles")

CYCLE_BUCKET = "cycles"
FREIGHT_BUCKET = "freights"
FUELING_BUCKET = "fuelings"
EXPENSE_BUCKET = "expenses"


@dataclass
class FreightPhotos:
    departure: Optional[PhotoUpload] = None
    arrival: Optional[PhotoUpload] = None


@dataclass
class FuelingPhotos:
    odometer: Optional[PhotoUpload] = None
    receipt: Optional[PhotoUpload] = None


def _missing_photo(field: str, message: str) -> InputValidationError:
    return InputValidationError(message, details={"field": field})


class CycleService:
    """
    Cycle lifecycle and child-record operations.

    Usage:
        service = CycleService(EntityStore(db), get_blob_store())
        cycle = await service.create_cycle(actor, payload, photo)
    """

    def __init__(self, store: EntityStore, blobs: BlobStore):
        self.store = store
        self.blobs = blobs

    # Helpers

    async def _load_cycle(self, cycle_id: str) -> Cycle:
        cycle = await self.store.get(EntityKind.CYCLE, cycle_id)
        if cycle is None:
            raise ResourceNotFoundError("Cycle", cycle_id)
        return cycle

    async def _load_child(self, kind: EntityKind, record_id: str, label: str):
        record = await self.store.get(kind, record_id)
        if record is None:
            raise ResourceNotFoundError(label, record_id)
        cycle = await self._load_cycle(record.cycle_id)
        return record, cycle

    async def _resolve_assignment(
        self,
        admin_id: str,
        driver_id: Optional[str] = None,
        car_id: Optional[str] = None,
    ) -> None:
        if driver_id is not None:
            driver = await self.store.get(EntityKind.USER, driver_id)
            if driver is None or driver.role != UserRole.DRIVER or driver.admin_id != admin_id:
                raise InvalidReferenceError("Driver", driver_id)
        if car_id is not None:
            car = await self.store.get(EntityKind.VEHICLE, car_id)
            if car is None or car.admin_id != admin_id:
                raise InvalidReferenceError("Vehicle", car_id)

    async def _upload(self, cycle: Cycle, bucket: str, label: str, photo: PhotoUpload) -> str:
        ref = await self.blobs.upload(bucket, blob_path(f"{cycle.admin_id}/{cycle.id}", label, photo), photo)
        return ref.url

    # Cycles

    async def create_cycle(self, actor: Actor, data: Any, departure_photo: Optional[PhotoUpload]) -> Cycle:
        """
        Open a new cycle for the acting admin.

        Requires a departure odometer reading and its photo; the driver must
        be linked to the admin and the vehicle owned by it.
        """
        cycle_guard.enforce_admin(actor, "open cycles")
        payload = parse_input(CycleCreate, data)
        if not has_photo(departure_photo):
            raise _missing_photo("departure_photo", "A photo of the departure odometer is required")

        await self._resolve_assignment(actor.id, payload.driver_id, payload.car_id)

        cycle = Cycle(
            id=new_id(),
            admin_id=actor.id,
            driver_id=payload.driver_id,
            car_id=payload.car_id,
            description=payload.description,
            departure_at=payload.departure_at,
            departure_odometer=payload.departure_odometer,
            status=CycleStatus.OPEN,
        )
        cycle.departure_photo_ref = await self._upload(cycle, CYCLE_BUCKET, "departure", departure_photo)
        cycle = await self.store.insert(EntityKind.CYCLE, cycle)

        logger.info("Cycle %s opened by admin %s (driver=%s, car=%s)", cycle.id, actor.id, cycle.driver_id, cycle.car_id)
        return cycle

    async def get_cycle(self, actor: Actor, cycle_id: str) -> Cycle:
        cycle = await self._load_cycle(cycle_id)
        cycle_guard.enforce_view(actor, cycle)
        return cycle

    async def list_cycles(self, actor: Actor, status: Optional[CycleStatus] = None) -> List[Cycle]:
        """Admins see their cycles; drivers see the cycles assigned to them."""
        driver_id = actor.id if actor.is_driver else None
        return await self.store.list_cycles(actor.owner_id, driver_id=driver_id, status=status)

    async def update_cycle(
        self,
        actor: Actor,
        cycle_id: str,
        patch: Any,
        new_photo: Optional[PhotoUpload] = None,
    ) -> Cycle:
        """Apply a partial update. The photo is replaced only when a new one is supplied."""
        cycle = await self._load_cycle(cycle_id)
        cycle_guard.enforce_mutation(actor, cycle, "update")
        changes = parse_input(CycleUpdate, patch).model_dump(exclude_unset=True)

        await self._resolve_assignment(cycle.admin_id, changes.get("driver_id"), changes.get("car_id"))

        if has_photo(new_photo):
            changes["departure_photo_ref"] = await self._upload(cycle, CYCLE_BUCKET, "departure", new_photo)
        if not changes:
            return cycle

        updated = await self.store.update(EntityKind.CYCLE, cycle_id, changes)
        logger.info("Cycle %s updated by %s (%s)", cycle_id, actor.id, ", ".join(sorted(changes)))
        return updated

    async def close_cycle(self, actor: Actor, cycle_id: str) -> Cycle:
        """
        OPEN -> CLOSED, owning admin only.

        Closing an already closed cycle is rejected so the caller knows
        nothing changed.
        """
        cycle = await self._load_cycle(cycle_id)
        if not actor.is_admin or actor.id != cycle.admin_id:
            raise ForbiddenError("Only the owning administrator can close this cycle", details={"cycle_id": cycle_id})
        if cycle.status != CycleStatus.OPEN:
            raise ForbiddenError("Cycle is already closed", details={"cycle_id": cycle_id})

        closed = await self.store.update(
            EntityKind.CYCLE,
            cycle_id,
            {"status": CycleStatus.CLOSED, "closed_at": datetime.now(timezone.utc)},
        )
        logger.info("Cycle %s closed by admin %s", cycle_id, actor.id)
        return closed

    async def delete_cycle(self, actor: Actor, cycle_id: str) -> None:
        """Delete a cycle with all its freights, fuelings and expenses."""
        cycle = await self._load_cycle(cycle_id)
        if not actor.is_admin or actor.id != cycle.admin_id:
            raise ForbiddenError("Only the owning administrator can delete this cycle", details={"cycle_id": cycle_id})

        await self.store.delete(EntityKind.CYCLE, cycle_id)

        leftovers = [kind.value for kind in CYCLE_CHILD_KINDS if await self.store.list(kind, cycle_id)]
        if leftovers or await self.store.get(EntityKind.CYCLE, cycle_id) is not None:
            logger.error("Cascade delete of cycle %s left rows behind: %s", cycle_id, leftovers)
            raise StorageError("Cycle could not be fully deleted", details={"cycle_id": cycle_id, "remaining": leftovers})

        logger.info("Cycle %s deleted by admin %s", cycle_id, actor.id)

    # Freights

    async def list_freights(self, actor: Actor, cycle_id: str) -> List[Freight]:
        cycle = await self.get_cycle(actor, cycle_id)
        return await self.store.list(EntityKind.FREIGHT, cycle.id)

    async def add_freight(
        self,
        actor: Actor,
        cycle_id: str,
        data: Any,
        photos: Optional[FreightPhotos] = None,
    ) -> Freight:
        """
        Record a freight.

        The departure scale photo is always required; an arrival weight needs
        its own photo. The admin's current commission percentage is copied
        onto the freight and used for its commission value.
        """
        photos = photos or FreightPhotos()
        cycle = await self._load_cycle(cycle_id)
        cycle_guard.enforce_mutation(actor, cycle, "add freight")
        payload = parse_input(FreightCreate, data)

        if not has_photo(photos.departure):
            raise _missing_photo("departure_photo", "A photo of the departure weight is required")
        if payload.arrival_weight is not None and not has_photo(photos.arrival):
            raise _missing_photo("arrival_photo", "An arrival weight needs a photo of the arrival weighing")

        commission = await self.store.get_commission_settings(cycle.admin_id)
        value = compute_freight_value(payload.departure_weight, payload.rate_per_ton)

        freight = Freight(
            id=new_id(),
            cycle_id=cycle.id,
            value=value,
            commission_percent=commission.commission_percentage,
            commission_value=compute_commission(value, commission.commission_percentage),
            **payload.model_dump(),
        )
        freight.departure_photo_ref = await self._upload(cycle, FREIGHT_BUCKET, "departure", photos.departure)
        if has_photo(photos.arrival):
            freight.arrival_photo_ref = await self._upload(cycle, FREIGHT_BUCKET, "arrival", photos.arrival)

        freight = await self.store.insert(EntityKind.FREIGHT, freight)
        logger.info("Freight %s added to cycle %s by %s (value=%.2f)", freight.id, cycle.id, actor.id, freight.value)
        return freight

    async def update_freight(
        self,
        actor: Actor,
        freight_id: str,
        patch: Any,
        photos: Optional[FreightPhotos] = None,
    ) -> Freight:
        """
        Edit a freight and recompute its value and commission.

        The commission percentage captured at creation is kept; later
        changes to the admin's settings never reach existing freights.
        """
        photos = photos or FreightPhotos()
        freight, cycle = await self._load_child(EntityKind.FREIGHT, freight_id, "Freight")
        cycle_guard.enforce_mutation(actor, cycle, "update freight")
        changes = parse_input(FreightUpdate, patch).model_dump(exclude_unset=True)

        arrival_weight = changes.get("arrival_weight", freight.arrival_weight)
        if arrival_weight is not None and not (has_photo(photos.arrival) or freight.arrival_photo_ref):
            raise _missing_photo("arrival_photo", "An arrival weight needs a photo of the arrival weighing")

        weight = changes.get("departure_weight", freight.departure_weight)
        rate = changes.get("rate_per_ton", freight.rate_per_ton)
        changes["value"] = compute_freight_value(weight, rate)
        changes["commission_value"] = compute_commission(changes["value"], freight.commission_percent)

        if has_photo(photos.departure):
            changes["departure_photo_ref"] = await self._upload(cycle, FREIGHT_BUCKET, "departure", photos.departure)
        if has_photo(photos.arrival):
            changes["arrival_photo_ref"] = await self._upload(cycle, FREIGHT_BUCKET, "arrival", photos.arrival)

        updated = await self.store.update(EntityKind.FREIGHT, freight_id, changes)
        logger.info("Freight %s updated by %s", freight_id, actor.id)
        return updated

    async def delete_freight(self, actor: Actor, freight_id: str) -> None:
        freight, cycle = await self._load_child(EntityKind.FREIGHT, freight_id, "Freight")
        cycle_guard.enforce_mutation(actor, cycle, "delete freight")
        await self.store.delete(EntityKind.FREIGHT, freight.id)
        logger.info("Freight %s deleted from cycle %s by %s", freight_id, cycle.id, actor.id)

    # Fuelings

    async def list_fuelings(self, actor: Actor, cycle_id: str) -> List[Fueling]:
        cycle = await self.get_cycle(actor, cycle_id)
        await self._enforce_kind(actor, RecordKind.FUELINGS)
        return await self.store.list(EntityKind.FUELING, cycle.id)

    async def add_fueling(
        self,
        actor: Actor,
        cycle_id: str,
        data: Any,
        photos: Optional[FuelingPhotos] = None,
    ) -> Fueling:
        """Record a fueling; odometer and receipt photos are both mandatory."""
        photos = photos or FuelingPhotos()
        cycle = await self._load_cycle(cycle_id)
        cycle_guard.enforce_mutation(actor, cycle, "add fueling")
        payload = parse_input(FuelingCreate, data)

        if not has_photo(photos.odometer):
            raise _missing_photo("odometer_photo", "A photo of the odometer is required")
        if not has_photo(photos.receipt):
            raise _missing_photo("receipt_photo", "A photo of the fuel receipt is required")

        fueling = Fueling(
            id=new_id(),
            cycle_id=cycle.id,
            total=compute_fueling_total(
                payload.arla_liters,
                payload.arla_price_per_liter,
                payload.diesel_liters,
                payload.diesel_price_per_liter,
            ),
            **payload.model_dump(),
        )
        fueling.odometer_photo_ref = await self._upload(cycle, FUELING_BUCKET, "odometer", photos.odometer)
        fueling.receipt_photo_ref = await self._upload(cycle, FUELING_BUCKET, "receipt", photos.receipt)

        fueling = await self.store.insert(EntityKind.FUELING, fueling)
        logger.info("Fueling %s added to cycle %s by %s (total=%.2f)", fueling.id, cycle.id, actor.id, fueling.total)
        return fueling

    async def update_fueling(
        self,
        actor: Actor,
        fueling_id: str,
        patch: Any,
        photos: Optional[FuelingPhotos] = None,
    ) -> Fueling:
        photos = photos or FuelingPhotos()
        fueling, cycle = await self._load_child(EntityKind.FUELING, fueling_id, "Fueling")
        cycle_guard.enforce_mutation(actor, cycle, "update fueling")
        changes = parse_input(FuelingUpdate, patch).model_dump(exclude_unset=True)

        merged = {
            field: changes.get(field, getattr(fueling, field))
            for field in ("arla_liters", "arla_price_per_liter", "diesel_liters", "diesel_price_per_liter")
        }
        changes["total"] = compute_fueling_total(
            merged["arla_liters"],
            merged["arla_price_per_liter"],
            merged["diesel_liters"],
            merged["diesel_price_per_liter"],
        )

        if has_photo(photos.odometer):
            changes["odometer_photo_ref"] = await self._upload(cycle, FUELING_BUCKET, "odometer", photos.odometer)
        if has_photo(photos.receipt):
            changes["receipt_photo_ref"] = await self._upload(cycle, FUELING_BUCKET, "receipt", photos.receipt)

        updated = await self.store.update(EntityKind.FUELING, fueling_id, changes)
        logger.info("Fueling %s updated by %s", fueling_id, actor.id)
        return updated

    async def delete_fueling(self, actor: Actor, fueling_id: str) -> None:
        fueling, cycle = await self._load_child(EntityKind.FUELING, fueling_id, "Fueling")
        cycle_guard.enforce_mutation(actor, cycle, "delete fueling")
        await self.store.delete(EntityKind.FUELING, fueling.id)
        logger.info("Fueling %s deleted from cycle %s by %s", fueling_id, cycle.id, actor.id)

    # Expenses

    async def list_expenses(self, actor: Actor, cycle_id: str) -> List[Expense]:
        cycle = await self.get_cycle(actor, cycle_id)
        await self._enforce_kind(actor, RecordKind.EXPENSES)
        return await self.store.list(EntityKind.EXPENSE, cycle.id)

    async def add_expense(
        self,
        actor: Actor,
        cycle_id: str,
        data: Any,
        receipt_photo: Optional[PhotoUpload] = None,
    ) -> Expense:
        """Record an expense; the receipt photo is optional."""
        cycle = await self._load_cycle(cycle_id)
        cycle_guard.enforce_mutation(actor, cycle, "add expense")
        payload = parse_input(ExpenseCreate, data)

        expense = Expense(id=new_id(), cycle_id=cycle.id, **payload.model_dump())
        if has_photo(receipt_photo):
            expense.receipt_photo_ref = await self._upload(cycle, EXPENSE_BUCKET, "receipt", receipt_photo)

        expense = await self.store.insert(EntityKind.EXPENSE, expense)
        logger.info("Expense %s added to cycle %s by %s (value=%.2f)", expense.id, cycle.id, actor.id, expense.value)
        return expense

    async def update_expense(
        self,
        actor: Actor,
        expense_id: str,
        patch: Any,
        receipt_photo: Optional[PhotoUpload] = None,
    ) -> Expense:
        expense, cycle = await self._load_child(EntityKind.EXPENSE, expense_id, "Expense")
        cycle_guard.enforce_mutation(actor, cycle, "update expense")
        changes: Dict[str, Any] = parse_input(ExpenseUpdate, patch).model_dump(exclude_unset=True)

        if has_photo(receipt_photo):
            changes["receipt_photo_ref"] = await self._upload(cycle, EXPENSE_BUCKET, "receipt", receipt_photo)
        if not changes:
            return expense

        updated = await self.store.update(EntityKind.EXPENSE, expense_id, changes)
        logger.info("Expense %s updated by %s", expense_id, actor.id)
        return updated

    async def delete_expense(self, actor: Actor, expense_id: str) -> None:
        expense, cycle = await self._load_child(EntityKind.EXPENSE, expense_id, "Expense")
        cycle_guard.enforce_mutation(actor, cycle, "delete expense")
        await self.store.delete(EntityKind.EXPENSE, expense.id)
        logger.info("Expense %s deleted from cycle %s by %s", expense_id, cycle.id, actor.id)

    async def _enforce_kind(self, actor: Actor, kind: RecordKind) -> None:
        if actor.is_driver:
            permissions = await self.store.get_driver_permissions(actor.id)
            cycle_guard.enforce_kind(actor, kind, permissions)
