"""
Entity Store Adapter.

Typed get/list/insert/update/delete over the SQLAlchemy async session for
every entity kind, plus the two keyed settings maps. List operations are
always scoped by the owning admin or parent cycle. Any SQLAlchemy failure
is rolled back and surfaced as StorageError.
"""

import enum
import logging
from datetime import datetime
from functools import wraps
from typing import Any, Dict, List, Optional

from sqlalchemy import select, delete, desc
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.config import settings
from backend.app.core.exceptions import StorageError
from backend.app.models.user import User
from backend.app.models.vehicle import Vehicle
from backend.app.models.tire import TireBrand, TireChange
from backend.app.models.cycle import Cycle
from backend.app.models.cycle_enums import CycleStatus
from backend.app.models.freight import Freight
from backend.app.models.fueling import Fueling
from backend.app.models.expense import Expense
from backend.app.models.account_settings import CommissionSettings, DriverPermissions

logger = logging.getLogger("freight.store")


class EntityKind(str, enum.Enum):
    """Entity collections managed by the store."""
    USER = "USER"
    VEHICLE = "VEHICLE"
    TIRE_BRAND = "TIRE_BRAND"
    TIRE_CHANGE = "TIRE_CHANGE"
    CYCLE = "CYCLE"
    FREIGHT = "FREIGHT"
    FUELING = "FUELING"
    EXPENSE = "EXPENSE"


# kind -> (model, scope column used by list())
ENTITY_REGISTRY = {
    EntityKind.USER: (User, "admin_id"),
    EntityKind.VEHICLE: (Vehicle, "admin_id"),
    EntityKind.TIRE_BRAND: (TireBrand, None),
    EntityKind.TIRE_CHANGE: (TireChange, "admin_id"),
    EntityKind.CYCLE: (Cycle, "admin_id"),
    EntityKind.FREIGHT: (Freight, "cycle_id"),
    EntityKind.FUELING: (Fueling, "cycle_id"),
    EntityKind.EXPENSE: (Expense, "cycle_id"),
}

CYCLE_CHILD_KINDS = (EntityKind.FREIGHT, EntityKind.FUELING, EntityKind.EXPENSE)


def storage_operation(func):
    """Roll back and translate database errors into StorageError."""
    @wraps(func)
    async def wrapper(self, *args, **kwargs):
        try:
            return await func(self, *args, **kwargs)
        except SQLAlchemyError as exc:
            await self.db.rollback()
            logger.error("Store operation %s failed: %s", func.__name__, exc)
            raise StorageError(
                "Storage operation failed, please try again",
                details={"operation": func.__name__}
            ) from exc
    return wrapper


class EntityStore:
    """
    Persistence adapter used by every domain service.

    Each write commits its own transaction; delete() of a cycle removes the
    cycle and all of its freights, fuelings and expenses in one transaction.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    @staticmethod
    def model_for(kind: EntityKind):
        return ENTITY_REGISTRY[kind][0]

    @storage_operation
    async def get(self, kind: EntityKind, entity_id: str) -> Optional[Any]:
        if not entity_id:
            return None
        return await self.db.get(self.model_for(kind), entity_id)

    @storage_operation
    async def list(self, kind: EntityKind, scope_key: Optional[str], **filters) -> List[Any]:
        """
        List entities of a kind within an owner/parent scope.

        Extra keyword filters are equality matches; None values are ignored.
        Returns an empty list when nothing matches.
        """
        model, scope_column = ENTITY_REGISTRY[kind]
        query = select(model)
        if scope_column is not None:
            query = query.where(getattr(model, scope_column) == scope_key)
        for field, value in filters.items():
            if value is not None:
                query = query.where(getattr(model, field) == value)
        query = query.order_by(model.created_at)

        result = await self.db.execute(query)
        return list(result.scalars().all())

    @storage_operation
    async def insert(self, kind: EntityKind, entity: Any) -> Any:
        self.db.add(entity)
        await self.db.commit()
        await self.db.refresh(entity)
        return entity

    @storage_operation
    async def update(self, kind: EntityKind, entity_id: str, patch: Dict[str, Any]) -> Optional[Any]:
        entity = await self.db.get(self.model_for(kind), entity_id)
        if entity is None:
            return None
        for field, value in patch.items():
            setattr(entity, field, value)
        await self.db.commit()
        await self.db.refresh(entity)
        return entity

    @storage_operation
    async def delete(self, kind: EntityKind, entity_id: str) -> None:
        if kind == EntityKind.CYCLE:
            # Children first, same transaction
            for child_kind in CYCLE_CHILD_KINDS:
                child = self.model_for(child_kind)
                await self.db.execute(delete(child).where(child.cycle_id == entity_id))
        model = self.model_for(kind)
        await self.db.execute(delete(model).where(model.id == entity_id))
        await self.db.commit()

    @storage_operation
    async def list_cycles(
        self,
        admin_id: str,
        driver_id: Optional[str] = None,
        status: Optional[CycleStatus] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[Cycle]:
        """Cycles of an admin, newest departure first, with optional filters."""
        query = select(Cycle).where(Cycle.admin_id == admin_id)
        if driver_id is not None:
            query = query.where(Cycle.driver_id == driver_id)
        if status is not None:
            query = query.where(Cycle.status == status)
        if start is not None:
            query = query.where(Cycle.departure_at >= start)
        if end is not None:
            query = query.where(Cycle.departure_at <= end)
        query = query.order_by(desc(Cycle.departure_at), desc(Cycle.created_at))

        result = await self.db.execute(query)
        return list(result.scalars().all())

    @storage_operation
    async def find_tire_brand(self, name: str) -> Optional[TireBrand]:
        result = await self.db.execute(select(TireBrand).where(TireBrand.name == name))
        return result.scalar_one_or_none()

    @storage_operation
    async def find_user_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    @storage_operation
    async def count_cycles_for_vehicle(self, car_id: str) -> int:
        result = await self.db.execute(select(Cycle.id).where(Cycle.car_id == car_id))
        return len(result.scalars().all())

    @storage_operation
    async def count_tire_changes_for_vehicle(self, car_id: str) -> int:
        result = await self.db.execute(select(TireChange.id).where(TireChange.car_id == car_id))
        return len(result.scalars().all())

    # Keyed settings maps

    @storage_operation
    async def get_commission_settings(self, admin_id: str) -> CommissionSettings:
        """Stored settings, or an unsaved default record when absent."""
        record = await self.db.get(CommissionSettings, admin_id)
        if record is None:
            return CommissionSettings(
                admin_id=admin_id,
                commission_percentage=settings.default_commission_percentage,
            )
        return record

    @storage_operation
    async def save_commission_settings(self, admin_id: str, commission_percentage: float) -> CommissionSettings:
        record = await self.db.get(CommissionSettings, admin_id)
        if record is None:
            record = CommissionSettings(admin_id=admin_id, commission_percentage=commission_percentage)
            self.db.add(record)
        else:
            record.commission_percentage = commission_percentage
        await self.db.commit()
        await self.db.refresh(record)
        return record

    @storage_operation
    async def get_driver_permissions(self, driver_id: str) -> DriverPermissions:
        """Stored permissions, or an unsaved all-true record when absent."""
        record = await self.db.get(DriverPermissions, driver_id)
        if record is None:
            return DriverPermissions(
                driver_id=driver_id,
                view_tire_changes=True,
                view_fuelings=True,
                view_expenses=True,
            )
        return record

    @storage_operation
    async def save_driver_permissions(self, driver_id: str, flags: Dict[str, bool]) -> DriverPermissions:
        record = await self.db.get(DriverPermissions, driver_id)
        if record is None:
            record = DriverPermissions(
                driver_id=driver_id,
                view_tire_changes=True,
                view_fuelings=True,
                view_expenses=True,
            )
            self.db.add(record)
        for field, value in flags.items():
            setattr(record, field, value)
        await self.db.commit()
        await self.db.refresh(record)
        return record
