"""
Vehicle and tire Pydantic schemas.

Defines request and response models for the fleet registry.
"""

from pydantic import BaseModel, ConfigDict, Field
from datetime import date, datetime
from typing import Optional, List
from backend.app.models.cycle_enums import TirePosition


class VehicleCreate(BaseModel):
    """Schema for registering a vehicle."""
    plate: str = Field(..., min_length=1, max_length=20, description="License plate")
    brand: str = Field(..., min_length=1, max_length=100)
    model: Optional[str] = Field(None, max_length=100)
    year: Optional[int] = Field(None, ge=1900, le=2100)


class VehicleUpdate(BaseModel):
    """Schema for updating an existing vehicle."""
    model_config = ConfigDict(extra="forbid")

    plate: Optional[str] = Field(None, min_length=1, max_length=20)
    brand: Optional[str] = Field(None, min_length=1, max_length=100)
    model: Optional[str] = Field(None, max_length=100)
    year: Optional[int] = Field(None, ge=1900, le=2100)


class VehicleResponse(BaseModel):
    id: str
    admin_id: str
    plate: str
    brand: str
    model: Optional[str]
    year: Optional[int]
    created_at: datetime

    class Config:
        from_attributes = True


class VehicleListResponse(BaseModel):
    vehicles: List[VehicleResponse]
    total: int


class TireBrandCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)


class TireBrandResponse(BaseModel):
    id: str
    name: str

    class Config:
        from_attributes = True


class TireChangeCreate(BaseModel):
    """Schema for recording a tire replacement."""
    car_id: str = Field(..., min_length=1)
    brand_id: str = Field(..., min_length=1)
    position: TirePosition
    odometer_at_change: float = Field(..., ge=0)
    change_date: date


class TireChangeResponse(BaseModel):
    id: str
    admin_id: str
    car_id: str
    brand_id: str
    position: TirePosition
    odometer_at_change: float
    change_date: date

    class Config:
        from_attributes = True
