"""
Account settings and driver management schemas.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional


class CommissionSettingsUpdate(BaseModel):
    commission_percentage: float = Field(..., ge=0, le=100)


class CommissionSettingsResponse(BaseModel):
    admin_id: str
    commission_percentage: float

    class Config:
        from_attributes = True


class DriverPermissionsUpdate(BaseModel):
    """Flags left out keep their current value."""
    view_tire_changes: Optional[bool] = None
    view_fuelings: Optional[bool] = None
    view_expenses: Optional[bool] = None


class DriverPermissionsResponse(BaseModel):
    driver_id: str
    view_tire_changes: bool
    view_fuelings: bool
    view_expenses: bool

    class Config:
        from_attributes = True


class DriverResponse(BaseModel):
    id: str
    name: str
    email: str
    phone: Optional[str]
    admin_id: str
    is_active: bool
    trial_ends_at: Optional[datetime] = None

    class Config:
        from_attributes = True
