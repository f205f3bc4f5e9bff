"""
Cycle API Endpoints.

Cycles and the freights, fuelings and expenses recorded against them.
Mutating endpoints take multipart/form-data: a JSON `payload` field plus
photo file fields. Access rules live in the cycle service.
"""

from typing import Optional
from fastapi import APIRouter, Depends, File, Form, Path, Query, UploadFile, status
from backend.app.api.v1.deps import get_cycle_service, parse_payload, read_photo
from backend.app.core.actor import Actor
from backend.app.core.dependencies import get_current_actor
from backend.app.core.guards import require_admin
from backend.app.domain.cycles.cycle_service import CycleService, FreightPhotos, FuelingPhotos
from backend.app.models.cycle_enums import CycleStatus
from backend.app.schemas.cycle import (
    CycleListResponse,
    CycleResponse,
    ExpenseResponse,
    FreightResponse,
    FuelingResponse,
)

router = APIRouter(tags=["Cycles"])


# Cycles

@router.post("/cycles", response_model=CycleResponse, status_code=status.HTTP_201_CREATED)
async def create_cycle(
    payload: str = Form(..., description="JSON CycleCreate"),
    departure_photo: Optional[UploadFile] = File(None),
    actor: Actor = Depends(require_admin),
    service: CycleService = Depends(get_cycle_service)
):
    """Open a cycle (Admin only). The departure odometer photo is mandatory."""
    cycle = await service.create_cycle(actor, parse_payload(payload), await read_photo(departure_photo))
    return CycleResponse.model_validate(cycle)


@router.get("/cycles", response_model=CycleListResponse)
async def list_cycles(
    status_filter: Optional[CycleStatus] = Query(None, alias="status"),
    actor: Actor = Depends(get_current_actor),
    service: CycleService = Depends(get_cycle_service)
):
    """List the admin's cycles, or the cycles assigned to the calling driver."""
    cycles = await service.list_cycles(actor, status=status_filter)
    return CycleListResponse(
        cycles=[CycleResponse.model_validate(c) for c in cycles],
        total=len(cycles)
    )


@router.get("/cycles/{cycle_id}", response_model=CycleResponse)
async def get_cycle(
    cycle_id: str = Path(..., description="Cycle ID"),
    actor: Actor = Depends(get_current_actor),
    service: CycleService = Depends(get_cycle_service)
):
    return CycleResponse.model_validate(await service.get_cycle(actor, cycle_id))


@router.patch("/cycles/{cycle_id}", response_model=CycleResponse)
async def update_cycle(
    cycle_id: str = Path(..., description="Cycle ID"),
    payload: Optional[str] = Form(None, description="JSON CycleUpdate"),
    departure_photo: Optional[UploadFile] = File(None),
    actor: Actor = Depends(get_current_actor),
    service: CycleService = Depends(get_cycle_service)
):
    """Update a cycle. Drivers may only edit open cycles assigned to them."""
    cycle = await service.update_cycle(
        actor, cycle_id, parse_payload(payload), await read_photo(departure_photo)
    )
    return CycleResponse.model_validate(cycle)


@router.post("/cycles/{cycle_id}/close", response_model=CycleResponse)
async def close_cycle(
    cycle_id: str = Path(..., description="Cycle ID"),
    actor: Actor = Depends(get_current_actor),
    service: CycleService = Depends(get_cycle_service)
):
    """Close an open cycle (owning Admin only)."""
    return CycleResponse.model_validate(await service.close_cycle(actor, cycle_id))


@router.delete("/cycles/{cycle_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_cycle(
    cycle_id: str = Path(..., description="Cycle ID"),
    actor: Actor = Depends(get_current_actor),
    service: CycleService = Depends(get_cycle_service)
):
    """Delete a cycle together with its freights, fuelings and expenses."""
    await service.delete_cycle(actor, cycle_id)


# Freights

@router.get("/cycles/{cycle_id}/freights", response_model=list[FreightResponse])
async def list_freights(
    cycle_id: str = Path(...),
    actor: Actor = Depends(get_current_actor),
    service: CycleService = Depends(get_cycle_service)
):
    freights = await service.list_freights(actor, cycle_id)
    return [FreightResponse.model_validate(f) for f in freights]


@router.post("/cycles/{cycle_id}/freights", response_model=FreightResponse, status_code=status.HTTP_201_CREATED)
async def add_freight(
    cycle_id: str = Path(...),
    payload: str = Form(..., description="JSON FreightCreate"),
    departure_photo: Optional[UploadFile] = File(None),
    arrival_photo: Optional[UploadFile] = File(None),
    actor: Actor = Depends(get_current_actor),
    service: CycleService = Depends(get_cycle_service)
):
    photos = FreightPhotos(departure=await read_photo(departure_photo), arrival=await read_photo(arrival_photo))
    freight = await service.add_freight(actor, cycle_id, parse_payload(payload), photos)
    return FreightResponse.model_validate(freight)


@router.patch("/freights/{freight_id}", response_model=FreightResponse)
async def update_freight(
    freight_id: str = Path(...),
    payload: Optional[str] = Form(None, description="JSON FreightUpdate"),
    departure_photo: Optional[UploadFile] = File(None),
    arrival_photo: Optional[UploadFile] = File(None),
    actor: Actor = Depends(get_current_actor),
    service: CycleService = Depends(get_cycle_service)
):
    photos = FreightPhotos(departure=await read_photo(departure_photo), arrival=await read_photo(arrival_photo))
    freight = await service.update_freight(actor, freight_id, parse_payload(payload), photos)
    return FreightResponse.model_validate(freight)


@router.delete("/freights/{freight_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_freight(
    freight_id: str = Path(...),
    actor: Actor = Depends(get_current_actor),
    service: CycleService = Depends(get_cycle_service)
):
    await service.delete_freight(actor, freight_id)


# Fuelings

@router.get("/cycles/{cycle_id}/fuelings", response_model=list[FuelingResponse])
async def list_fuelings(
    cycle_id: str = Path(...),
    actor: Actor = Depends(get_current_actor),
    service: CycleService = Depends(get_cycle_service)
):
    fuelings = await service.list_fuelings(actor, cycle_id)
    return [FuelingResponse.model_validate(f) for f in fuelings]


@router.post("/cycles/{cycle_id}/fuelings", response_model=FuelingResponse, status_code=status.HTTP_201_CREATED)
async def add_fueling(
    cycle_id: str = Path(...),
    payload: str = Form(..., description="JSON FuelingCreate"),
    odometer_photo: Optional[UploadFile] = File(None),
    receipt_photo: Optional[UploadFile] = File(None),
    actor: Actor = Depends(get_current_actor),
    service: CycleService = Depends(get_cycle_service)
):
    photos = FuelingPhotos(odometer=await read_photo(odometer_photo), receipt=await read_photo(receipt_photo))
    fueling = await service.add_fueling(actor, cycle_id, parse_payload(payload), photos)
    return FuelingResponse.model_validate(fueling)


@router.patch("/fuelings/{fueling_id}", response_model=FuelingResponse)
async def update_fueling(
    fueling_id: str = Path(...),
    payload: Optional[str] = Form(None, description="JSON FuelingUpdate"),
    odometer_photo: Optional[UploadFile] = File(None),
    receipt_photo: Optional[UploadFile] = File(None),
    actor: Actor = Depends(get_current_actor),
    service: CycleService = Depends(get_cycle_service)
):
    photos = FuelingPhotos(odometer=await read_photo(odometer_photo), receipt=await read_photo(receipt_photo))
    fueling = await service.update_fueling(actor, fueling_id, parse_payload(payload), photos)
    return FuelingResponse.model_validate(fueling)


@router.delete("/fuelings/{fueling_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_fueling(
    fueling_id: str = Path(...),
    actor: Actor = Depends(get_current_actor),
    service: CycleService = Depends(get_cycle_service)
):
    await service.delete_fueling(actor, fueling_id)


# Expenses

@router.get("/cycles/{cycle_id}/expenses", response_model=list[ExpenseResponse])
async def list_expenses(
    cycle_id: str = Path(...),
    actor: Actor = Depends(get_current_actor),
    service: CycleService = Depends(get_cycle_service)
):
    expenses = await service.list_expenses(actor, cycle_id)
    return [ExpenseResponse.model_validate(e) for e in expenses]


@router.post("/cycles/{cycle_id}/expenses", response_model=ExpenseResponse, status_code=status.HTTP_201_CREATED)
async def add_expense(
    cycle_id: str = Path(...),
    payload: str = Form(..., description="JSON ExpenseCreate"),
    receipt_photo: Optional[UploadFile] = File(None),
    actor: Actor = Depends(get_current_actor),
    service: CycleService = Depends(get_cycle_service)
):
    expense = await service.add_expense(actor, cycle_id, parse_payload(payload), await read_photo(receipt_photo))
    return ExpenseResponse.model_validate(expense)


@router.patch("/expenses/{expense_id}", response_model=ExpenseResponse)
async def update_expense(
    expense_id: str = Path(...),
    payload: Optional[str] = Form(None, description="JSON ExpenseUpdate"),
    receipt_photo: Optional[UploadFile] = File(None),
    actor: Actor = Depends(get_current_actor),
    service: CycleService = Depends(get_cycle_service)
):
    expense = await service.update_expense(actor, expense_id, parse_payload(payload), await read_photo(receipt_photo))
    return ExpenseResponse.model_validate(expense)


@router.delete("/expenses/{expense_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_expense(
    expense_id: str = Path(...),
    actor: Actor = Depends(get_current_actor),
    service: CycleService = Depends(get_cycle_service)
):
    await service.delete_expense(actor, expense_id)
