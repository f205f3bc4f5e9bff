"""
Fleet API Endpoints.

Vehicles, tire brands and tire change history.
"""

from typing import List
from fastapi import APIRouter, Depends, Path, status
from backend.app.api.v1.deps import get_fleet_service
from backend.app.core.actor import Actor
from backend.app.core.dependencies import get_current_actor
from backend.app.core.guards import require_admin
from backend.app.domain.fleet.fleet_service import FleetService
from backend.app.schemas.fleet import (
    TireBrandCreate,
    TireBrandResponse,
    TireChangeCreate,
    TireChangeResponse,
    VehicleCreate,
    VehicleListResponse,
    VehicleResponse,
    VehicleUpdate,
)

router = APIRouter(tags=["Fleet"])


@router.get("/vehicles", response_model=VehicleListResponse)
async def list_vehicles(
    actor: Actor = Depends(get_current_actor),
    service: FleetService = Depends(get_fleet_service)
):
    vehicles = await service.list_vehicles(actor)
    return VehicleListResponse(
        vehicles=[VehicleResponse.model_validate(v) for v in vehicles],
        total=len(vehicles)
    )


@router.post("/vehicles", response_model=VehicleResponse, status_code=status.HTTP_201_CREATED)
async def create_vehicle(
    vehicle_data: VehicleCreate,
    actor: Actor = Depends(require_admin),
    service: FleetService = Depends(get_fleet_service)
):
    return VehicleResponse.model_validate(await service.create_vehicle(actor, vehicle_data))


@router.patch("/vehicles/{vehicle_id}", response_model=VehicleResponse)
async def update_vehicle(
    vehicle_data: VehicleUpdate,
    vehicle_id: str = Path(..., description="Vehicle ID"),
    actor: Actor = Depends(require_admin),
    service: FleetService = Depends(get_fleet_service)
):
    return VehicleResponse.model_validate(await service.update_vehicle(actor, vehicle_id, vehicle_data))


@router.delete("/vehicles/{vehicle_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_vehicle(
    vehicle_id: str = Path(..., description="Vehicle ID"),
    actor: Actor = Depends(require_admin),
    service: FleetService = Depends(get_fleet_service)
):
    """Delete a vehicle that no cycle references."""
    await service.delete_vehicle(actor, vehicle_id)


@router.get("/tire-brands", response_model=List[TireBrandResponse])
async def list_tire_brands(
    actor: Actor = Depends(get_current_actor),
    service: FleetService = Depends(get_fleet_service)
):
    return [TireBrandResponse.model_validate(b) for b in await service.list_tire_brands()]


@router.post("/tire-brands", response_model=TireBrandResponse, status_code=status.HTTP_201_CREATED)
async def create_tire_brand(
    brand_data: TireBrandCreate,
    actor: Actor = Depends(require_admin),
    service: FleetService = Depends(get_fleet_service)
):
    return TireBrandResponse.model_validate(await service.create_tire_brand(actor, brand_data))


@router.get("/tire-changes", response_model=List[TireChangeResponse])
async def list_tire_changes(
    actor: Actor = Depends(get_current_actor),
    service: FleetService = Depends(get_fleet_service)
):
    """Tire history; drivers need the tire changes permission."""
    return [TireChangeResponse.model_validate(c) for c in await service.list_tire_changes(actor)]


@router.post("/tire-changes", response_model=TireChangeResponse, status_code=status.HTTP_201_CREATED)
async def record_tire_change(
    change_data: TireChangeCreate,
    actor: Actor = Depends(require_admin),
    service: FleetService = Depends(get_fleet_service)
):
    return TireChangeResponse.model_validate(await service.record_tire_change(actor, change_data))
