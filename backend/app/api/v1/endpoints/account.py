"""
Account API Endpoints.

Commission settings of an administrator and the drivers linked to it.
"""

from typing import List
from fastapi import APIRouter, Depends, Path
from backend.app.api.v1.deps import get_settings_service
from backend.app.core.actor import Actor
from backend.app.core.dependencies import get_current_actor
from backend.app.core.guards import require_admin
from backend.app.domain.accounts.settings_service import SettingsService
from backend.app.schemas.account import (
    CommissionSettingsResponse,
    CommissionSettingsUpdate,
    DriverPermissionsResponse,
    DriverPermissionsUpdate,
    DriverResponse,
)

router = APIRouter(tags=["Account"])


@router.get("/settings/commission", response_model=CommissionSettingsResponse)
async def get_commission_settings(
    actor: Actor = Depends(get_current_actor),
    service: SettingsService = Depends(get_settings_service)
):
    return CommissionSettingsResponse.model_validate(await service.get_commission_settings(actor))


@router.put("/settings/commission", response_model=CommissionSettingsResponse)
async def update_commission_settings(
    settings_data: CommissionSettingsUpdate,
    actor: Actor = Depends(require_admin),
    service: SettingsService = Depends(get_settings_service)
):
    """Set the percentage applied to freights recorded from now on."""
    record = await service.update_commission_settings(actor, settings_data)
    return CommissionSettingsResponse.model_validate(record)


@router.get("/drivers", response_model=List[DriverResponse])
async def list_drivers(
    actor: Actor = Depends(require_admin),
    service: SettingsService = Depends(get_settings_service)
):
    return [DriverResponse.model_validate(d) for d in await service.list_drivers(actor)]


@router.get("/drivers/{driver_id}/permissions", response_model=DriverPermissionsResponse)
async def get_driver_permissions(
    driver_id: str = Path(..., description="Driver ID"),
    actor: Actor = Depends(get_current_actor),
    service: SettingsService = Depends(get_settings_service)
):
    return DriverPermissionsResponse.model_validate(await service.get_driver_permissions(actor, driver_id))


@router.patch("/drivers/{driver_id}/permissions", response_model=DriverPermissionsResponse)
async def update_driver_permissions(
    permissions_data: DriverPermissionsUpdate,
    driver_id: str = Path(..., description="Driver ID"),
    actor: Actor = Depends(require_admin),
    service: SettingsService = Depends(get_settings_service)
):
    record = await service.update_driver_permissions(actor, driver_id, permissions_data)
    return DriverPermissionsResponse.model_validate(record)
