"""
Fleet registry (Domain Logic).

Vehicles and tire history of an administrator, plus the global list of
tire brands.
"""

import logging
from typing import Any, List

from backend.app.core.actor import Actor
from backend.app.core.exceptions import (
    ForbiddenError,
    InputValidationError,
    InvalidReferenceError,
    ResourceNotFoundError,
)
from backend.app.core.guards import cycle_guard
from backend.app.domain.inputs import parse_input
from backend.app.models.cycle_enums import RecordKind
from backend.app.models.tire import TireBrand, TireChange
from backend.app.models.vehicle import Vehicle
from backend.app.schemas.fleet import TireBrandCreate, TireChangeCreate, VehicleCreate, VehicleUpdate
from backend.app.store.entity_store import EntityKind, EntityStore

logger = logging.getLogger("freight.fleet")


class FleetService:

    def __init__(self, store: EntityStore):
        self.store = store

    async def _owned_vehicle(self, actor: Actor, vehicle_id: str) -> Vehicle:
        vehicle = await self.store.get(EntityKind.VEHICLE, vehicle_id)
        if vehicle is None:
            raise ResourceNotFoundError("Vehicle", vehicle_id)
        if vehicle.admin_id != actor.id:
            raise ForbiddenError("Access denied. You do not have permission to access this vehicle.")
        return vehicle

    # Vehicles

    async def list_vehicles(self, actor: Actor) -> List[Vehicle]:
        """Vehicles of the actor's admin (drivers see their admin's fleet)."""
        return await self.store.list(EntityKind.VEHICLE, actor.owner_id)

    async def create_vehicle(self, actor: Actor, data: Any) -> Vehicle:
        cycle_guard.enforce_admin(actor, "register vehicles")
        payload = parse_input(VehicleCreate, data)
        vehicle = Vehicle(admin_id=actor.id, **payload.model_dump())
        vehicle = await self.store.insert(EntityKind.VEHICLE, vehicle)
        logger.info("Vehicle %s (%s) registered by admin %s", vehicle.id, vehicle.plate, actor.id)
        return vehicle

    async def update_vehicle(self, actor: Actor, vehicle_id: str, patch: Any) -> Vehicle:
        cycle_guard.enforce_admin(actor, "edit vehicles")
        vehicle = await self._owned_vehicle(actor, vehicle_id)
        changes = parse_input(VehicleUpdate, patch).model_dump(exclude_unset=True)
        if not changes:
            return vehicle
        return await self.store.update(EntityKind.VEHICLE, vehicle_id, changes)

    async def delete_vehicle(self, actor: Actor, vehicle_id: str) -> None:
        """Vehicles still referenced by a cycle or a tire change cannot be removed."""
        cycle_guard.enforce_admin(actor, "delete vehicles")
        vehicle = await self._owned_vehicle(actor, vehicle_id)
        if await self.store.count_cycles_for_vehicle(vehicle.id):
            raise InvalidReferenceError("Vehicle", vehicle.id)
        if await self.store.count_tire_changes_for_vehicle(vehicle.id):
            raise InvalidReferenceError("Vehicle", vehicle.id)
        await self.store.delete(EntityKind.VEHICLE, vehicle.id)
        logger.info("Vehicle %s deleted by admin %s", vehicle_id, actor.id)

    # Tire brands

    async def list_tire_brands(self) -> List[TireBrand]:
        return await self.store.list(EntityKind.TIRE_BRAND, None)

    async def create_tire_brand(self, actor: Actor, data: Any) -> TireBrand:
        cycle_guard.enforce_admin(actor, "register tire brands")
        payload = parse_input(TireBrandCreate, data)
        name = payload.name.strip()
        if not name:
            raise InputValidationError("Tire brand name cannot be blank", details={"field": "name"})
        if await self.store.find_tire_brand(name) is not None:
            raise InputValidationError(f"Tire brand '{name}' already exists", details={"field": "name"})
        return await self.store.insert(EntityKind.TIRE_BRAND, TireBrand(name=name))

    # Tire changes

    async def list_tire_changes(self, actor: Actor) -> List[TireChange]:
        if actor.is_driver:
            permissions = await self.store.get_driver_permissions(actor.id)
            cycle_guard.enforce_kind(actor, RecordKind.TIRE_CHANGES, permissions)
        return await self.store.list(EntityKind.TIRE_CHANGE, actor.owner_id)

    async def record_tire_change(self, actor: Actor, data: Any) -> TireChange:
        """Append a tire replacement to the history; entries are never edited."""
        cycle_guard.enforce_admin(actor, "record tire changes")
        payload = parse_input(TireChangeCreate, data)

        car = await self.store.get(EntityKind.VEHICLE, payload.car_id)
        if car is None or car.admin_id != actor.id:
            raise InvalidReferenceError("Vehicle", payload.car_id)
        if await self.store.get(EntityKind.TIRE_BRAND, payload.brand_id) is None:
            raise InvalidReferenceError("Tire brand", payload.brand_id)

        change = TireChange(admin_id=actor.id, **payload.model_dump())
        change = await self.store.insert(EntityKind.TIRE_CHANGE, change)
        logger.info("Tire change %s recorded on vehicle %s", change.id, car.id)
        return change
