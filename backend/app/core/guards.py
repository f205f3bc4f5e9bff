"""
Security guards for role-based and cycle-status-based access control.

can_mutate() is the single rule deciding whether an actor may change a
cycle or any of its freights, fuelings and expenses. The FastAPI
dependencies at the bottom gate whole endpoints by role.
"""

import logging
from typing import List
from fastapi import Depends, HTTPException, status
from backend.app.core.actor import Actor
from backend.app.core.dependencies import get_current_actor
from backend.app.core.exceptions import ForbiddenError
from backend.app.models.enums import UserRole
from backend.app.models.cycle_enums import CycleStatus, RecordKind

logger = logging.getLogger("freight.access")


def can_mutate(actor: Actor, cycle) -> bool:
    """
    Decide whether actor may change cycle (or its child records).

    Admins may mutate any cycle they own, whatever its status.
    Drivers may mutate only OPEN cycles they are assigned to, under the
    admin they are linked to. Closed cycles stay read-only to drivers.
    """
    if actor.is_admin:
        return actor.id == cycle.admin_id

    if actor.is_driver:
        return (
            cycle.status == CycleStatus.OPEN
            and actor.id == cycle.driver_id
            and actor.admin_id == cycle.admin_id
        )

    return False


def can_view_cycle(actor: Actor, cycle) -> bool:
    """Owning admin, or the assigned driver of that admin."""
    if actor.is_admin:
        return actor.id == cycle.admin_id
    if actor.is_driver:
        return actor.id == cycle.driver_id and actor.admin_id == cycle.admin_id
    return False


def can_view_kind(actor: Actor, kind: RecordKind, permissions) -> bool:
    """
    Driver visibility of optional record kinds.

    Freights are always visible; tire changes, fuelings and expenses follow
    the driver's permission flags. Admins see everything.
    """
    if not actor.is_driver or kind == RecordKind.FREIGHTS:
        return True

    flags = {
        RecordKind.TIRE_CHANGES: permissions.view_tire_changes,
        RecordKind.FUELINGS: permissions.view_fuelings,
        RecordKind.EXPENSES: permissions.view_expenses,
    }
    return bool(flags.get(kind, False))


class CycleGuard:
    """
    Raises ForbiddenError where the predicates above deny access.

    Usage:
        cycle_guard.enforce_mutation(actor, cycle)
    """

    def enforce_mutation(self, actor: Actor, cycle, action: str = "modify"):
        if not can_mutate(actor, cycle):
            logger.warning(
                "Denied %s on cycle %s for %s %s (status=%s)",
                action, cycle.id, actor.role.value, actor.id, cycle.status.value
            )
            if actor.is_driver and cycle.status == CycleStatus.CLOSED:
                message = "This cycle is closed and can no longer be changed by drivers"
            else:
                message = "You do not have permission to change this cycle"
            raise ForbiddenError(message, details={"cycle_id": cycle.id, "action": action})

    def enforce_view(self, actor: Actor, cycle):
        if not can_view_cycle(actor, cycle):
            raise ForbiddenError(
                "You do not have permission to access this cycle",
                details={"cycle_id": cycle.id}
            )

    def enforce_kind(self, actor: Actor, kind: RecordKind, permissions):
        if not can_view_kind(actor, kind, permissions):
            raise ForbiddenError(
                f"Viewing {kind.value.lower().replace('_', ' ')} is disabled for this driver",
                details={"kind": kind.value}
            )

    def enforce_admin(self, actor: Actor, action: str = "perform this action"):
        if not actor.is_admin:
            raise ForbiddenError(f"Only administrators can {action}")


cycle_guard = CycleGuard()


def require_role(allowed_roles: List[UserRole]):
    """
    Dependency factory for role-based access control.

    Usage:
        @router.get("/vehicles")
        async def list_vehicles(actor: Actor = Depends(require_role([UserRole.ADMIN]))):
            ...

    Raises:
        HTTPException 403 if the actor's role is not in allowed_roles
    """
    async def role_checker(actor: Actor = Depends(get_current_actor)) -> Actor:
        if actor.role not in allowed_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied. Required role: {', '.join([r.value for r in allowed_roles])}"
            )
        return actor

    return role_checker


def require_admin(actor: Actor = Depends(get_current_actor)) -> Actor:
    """Dependency for admin-only endpoints."""
    if not actor.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required"
        )
    return actor
