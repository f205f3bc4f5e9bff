"""
Cycle, freight, fueling and expense Pydantic schemas.

Create/Update schemas double as the domain input contract: the cycle
service validates raw payloads against them once, at its boundary.
Update schemas forbid unknown fields so derived values (freight value,
commission, fueling total) and the cycle status cannot be patched directly.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from datetime import date as date_cls, datetime
from typing import Optional, List
from backend.app.models.cycle_enums import CycleStatus


def _reject_null(value):
    if value is None:
        raise ValueError("field cannot be cleared")
    return value


# Cycles

class CycleCreate(BaseModel):
    """Schema for opening a new cycle."""
    description: str = Field(..., min_length=1, max_length=255)
    driver_id: str = Field(..., min_length=1, description="Driver linked to the admin")
    car_id: str = Field(..., min_length=1, description="Vehicle owned by the admin")
    departure_at: datetime
    departure_odometer: float = Field(..., ge=0, description="Odometer reading at departure (km)")


class CycleUpdate(BaseModel):
    """Schema for patching a cycle. Status changes go through close."""
    model_config = ConfigDict(extra="forbid")

    description: Optional[str] = Field(None, min_length=1, max_length=255)
    driver_id: Optional[str] = Field(None, min_length=1)
    car_id: Optional[str] = Field(None, min_length=1)
    departure_at: Optional[datetime] = None
    departure_odometer: Optional[float] = Field(None, ge=0)

    check_not_null = field_validator(
        "description", "driver_id", "car_id", "departure_at", "departure_odometer"
    )(_reject_null)


class CycleResponse(BaseModel):
    """Schema for cycle response."""
    id: str
    admin_id: str
    driver_id: str
    car_id: str
    description: str
    departure_at: datetime
    departure_odometer: float
    departure_photo_ref: str
    status: CycleStatus
    closed_at: Optional[datetime]
    created_at: datetime

    class Config:
        from_attributes = True


class CycleListResponse(BaseModel):
    cycles: List[CycleResponse]
    total: int


# Freights

class FreightCreate(BaseModel):
    """Schema for recording a freight. Weights in kg, rate per metric ton."""
    date: Optional[date_cls] = Field(default_factory=date_cls.today)
    origin: Optional[str] = Field(None, max_length=255)
    destination: Optional[str] = Field(None, max_length=255)
    departure_weight: float = Field(..., ge=0)
    arrival_weight: Optional[float] = Field(None, ge=0)
    rate_per_ton: float = Field(..., ge=0)
    loss_value: float = Field(0.0, ge=0, description="Money lost to cargo shortfall")


class FreightUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    date: Optional[date_cls] = None
    origin: Optional[str] = Field(None, max_length=255)
    destination: Optional[str] = Field(None, max_length=255)
    departure_weight: Optional[float] = Field(None, ge=0)
    arrival_weight: Optional[float] = Field(None, ge=0)
    rate_per_ton: Optional[float] = Field(None, ge=0)
    loss_value: Optional[float] = Field(None, ge=0)

    check_not_null = field_validator("departure_weight", "rate_per_ton", "loss_value")(_reject_null)


class FreightResponse(BaseModel):
    id: str
    cycle_id: str
    date: Optional[date_cls]
    origin: Optional[str]
    destination: Optional[str]
    departure_weight: float
    arrival_weight: Optional[float]
    rate_per_ton: float
    value: float
    commission_percent: float
    commission_value: float
    loss_value: float
    departure_photo_ref: str
    arrival_photo_ref: Optional[str]

    class Config:
        from_attributes = True


# Fuelings

class FuelingCreate(BaseModel):
    """Schema for recording a fueling. Either fuel line may be zero."""
    date: Optional[date_cls] = Field(default_factory=date_cls.today)
    station: Optional[str] = Field(None, max_length=255)
    odometer: Optional[float] = Field(None, ge=0)
    arla_liters: float = Field(0.0, ge=0)
    arla_price_per_liter: float = Field(0.0, ge=0)
    diesel_liters: float = Field(0.0, ge=0)
    diesel_price_per_liter: float = Field(0.0, ge=0)


class FuelingUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    date: Optional[date_cls] = None
    station: Optional[str] = Field(None, max_length=255)
    odometer: Optional[float] = Field(None, ge=0)
    arla_liters: Optional[float] = Field(None, ge=0)
    arla_price_per_liter: Optional[float] = Field(None, ge=0)
    diesel_liters: Optional[float] = Field(None, ge=0)
    diesel_price_per_liter: Optional[float] = Field(None, ge=0)

    check_not_null = field_validator(
        "arla_liters", "arla_price_per_liter", "diesel_liters", "diesel_price_per_liter"
    )(_reject_null)


class FuelingResponse(BaseModel):
    id: str
    cycle_id: str
    date: Optional[date_cls]
    station: Optional[str]
    odometer: Optional[float]
    arla_liters: float
    arla_price_per_liter: float
    diesel_liters: float
    diesel_price_per_liter: float
    total: float
    odometer_photo_ref: str
    receipt_photo_ref: str

    class Config:
        from_attributes = True


# Expenses

class ExpenseCreate(BaseModel):
    date: date_cls
    description: str = Field(..., min_length=1, max_length=255)
    value: float = Field(..., ge=0)


class ExpenseUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    date: Optional[date_cls] = None
    description: Optional[str] = Field(None, min_length=1, max_length=255)
    value: Optional[float] = Field(None, ge=0)

    check_not_null = field_validator("date", "description", "value")(_reject_null)


class ExpenseResponse(BaseModel):
    id: str
    cycle_id: str
    date: date_cls
    description: str
    value: float
    receipt_photo_ref: Optional[str]

    class Config:
        from_attributes = True
