"""
Account settings (Domain Logic).

Commission percentage per administrator and visibility flags per driver.
"""

import logging
from typing import Any, List

from backend.app.core.actor import Actor
from backend.app.core.exceptions import ForbiddenError, InvalidReferenceError
from backend.app.core.guards import cycle_guard
from backend.app.domain.inputs import parse_input
from backend.app.models.account_settings import CommissionSettings, DriverPermissions
from backend.app.models.enums import UserRole
from backend.app.models.user import User
from backend.app.schemas.account import CommissionSettingsUpdate, DriverPermissionsUpdate
from backend.app.store.entity_store import EntityKind, EntityStore

logger = logging.getLogger("freight.settings")


class SettingsService:

    def __init__(self, store: EntityStore):
        self.store = store

    async def get_commission_settings(self, actor: Actor) -> CommissionSettings:
        """Drivers read their admin's percentage."""
        return await self.store.get_commission_settings(actor.owner_id)

    async def update_commission_settings(self, actor: Actor, data: Any) -> CommissionSettings:
        """
        Change the percentage applied to freights recorded from now on.

        Existing freights keep the percentage they were created with.
        """
        cycle_guard.enforce_admin(actor, "change commission settings")
        payload = parse_input(CommissionSettingsUpdate, data)
        record = await self.store.save_commission_settings(actor.id, payload.commission_percentage)
        logger.info("Commission for admin %s set to %.2f%%", actor.id, record.commission_percentage)
        return record

    async def list_drivers(self, actor: Actor) -> List[User]:
        cycle_guard.enforce_admin(actor, "list drivers")
        return await self.store.list(EntityKind.USER, actor.id, role=UserRole.DRIVER)

    async def _linked_driver(self, actor: Actor, driver_id: str) -> User:
        driver = await self.store.get(EntityKind.USER, driver_id)
        if driver is None or driver.role != UserRole.DRIVER or driver.admin_id != actor.id:
            raise InvalidReferenceError("Driver", driver_id)
        return driver

    async def get_driver_permissions(self, actor: Actor, driver_id: str) -> DriverPermissions:
        if actor.is_driver:
            if actor.id != driver_id:
                raise ForbiddenError("Drivers can only read their own permissions")
        else:
            await self._linked_driver(actor, driver_id)
        return await self.store.get_driver_permissions(driver_id)

    async def update_driver_permissions(self, actor: Actor, driver_id: str, data: Any) -> DriverPermissions:
        cycle_guard.enforce_admin(actor, "change driver permissions")
        await self._linked_driver(actor, driver_id)
        flags = parse_input(DriverPermissionsUpdate, data).model_dump(exclude_none=True)
        record = await self.store.save_driver_permissions(driver_id, flags)
        logger.info("Permissions for driver %s updated by admin %s: %s", driver_id, actor.id, flags)
        return record
