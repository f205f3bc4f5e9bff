"""
Dashboard and financial summary schemas.
"""

import enum
from pydantic import BaseModel, Field, computed_field, model_validator
from datetime import datetime
from typing import List, Optional
from backend.app.core.config import settings
from backend.app.domain.finance.money import round_money
from backend.app.models.cycle_enums import CycleStatus


class FinancialTotals(BaseModel):
    """Money totals over one cycle or a set of cycles."""
    freight_total: float = 0.0
    commission_total: float = 0.0
    loss_total: float = 0.0
    fueling_total: float = 0.0
    expense_total: float = 0.0

    @computed_field
    @property
    def net_total(self) -> float:
        """Freight revenue left after commission, losses, fuel and expenses."""
        return round_money(
            self.freight_total - self.commission_total - self.loss_total
            - self.fueling_total - self.expense_total
        )

    def __add__(self, other: "FinancialTotals") -> "FinancialTotals":
        return FinancialTotals(
            freight_total=round_money(self.freight_total + other.freight_total),
            commission_total=round_money(self.commission_total + other.commission_total),
            loss_total=round_money(self.loss_total + other.loss_total),
            fueling_total=round_money(self.fueling_total + other.fueling_total),
            expense_total=round_money(self.expense_total + other.expense_total),
        )


class StatusFilter(str, enum.Enum):
    """Cycle status selector for dashboards."""
    OPEN = "OPEN"
    CLOSED = "CLOSED"
    ALL = "ALL"

    def as_cycle_status(self) -> Optional[CycleStatus]:
        if self == StatusFilter.ALL:
            return None
        return CycleStatus(self.value)


class DashboardFilters(BaseModel):
    """Optional filters; the date range applies to cycle departure_at (inclusive)."""
    status: StatusFilter = StatusFilter.ALL
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    recent_limit: int = Field(default_factory=lambda: settings.recent_cycles_limit, ge=1, le=100)

    @model_validator(mode="after")
    def check_range(self):
        if self.start and self.end and self.start > self.end:
            raise ValueError("start must not be after end")
        return self


class CycleBreakdown(BaseModel):
    """Per-cycle line of the recent cycles view."""
    cycle_id: str
    description: str
    status: CycleStatus
    driver_id: str
    car_id: str
    departure_at: datetime
    totals: FinancialTotals


class FinancialSummary(BaseModel):
    """Dashboard payload."""
    totals: FinancialTotals
    cycle_count: int
    open_cycle_count: int
    closed_cycle_count: int
    recent_cycles: List[CycleBreakdown]
