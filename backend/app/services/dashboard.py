"""
Dashboard Aggregator.

Builds the financial summary shown on the dashboard by running the
financial calculator over every cycle in the actor's scope.
Focused on READ-ONLY operations.
"""

from typing import Any, Optional

from backend.app.core.actor import Actor
from backend.app.domain.finance.calculator import aggregate_cycle, aggregate_portfolio
from backend.app.domain.inputs import parse_input
from backend.app.models.cycle_enums import CycleStatus
from backend.app.schemas.dashboard import (
    CycleBreakdown,
    DashboardFilters,
    FinancialSummary,
)
from backend.app.store.entity_store import EntityKind, EntityStore


class DashboardService:

    def __init__(self, store: EntityStore):
        self.store = store

    async def build_summary(self, actor: Actor, filters: Optional[Any] = None) -> FinancialSummary:
        """
        Aggregate totals over the actor's cycles.

        Scope:
            ADMIN  - every cycle the admin owns
            DRIVER - cycles of the linked admin assigned to this driver

        Zero cycles in scope yields all-zero totals.
        """
        filters = parse_input(DashboardFilters, filters)
        cycles = await self.store.list_cycles(
            actor.owner_id,
            driver_id=actor.id if actor.is_driver else None,
            status=filters.status.as_cycle_status(),
            start=filters.start,
            end=filters.end,
        )

        breakdowns = []
        for cycle in cycles:
            totals = aggregate_cycle(
                await self.store.list(EntityKind.FREIGHT, cycle.id),
                await self.store.list(EntityKind.FUELING, cycle.id),
                await self.store.list(EntityKind.EXPENSE, cycle.id),
            )
            breakdowns.append(CycleBreakdown(
                cycle_id=cycle.id,
                description=cycle.description,
                status=cycle.status,
                driver_id=cycle.driver_id,
                car_id=cycle.car_id,
                departure_at=cycle.departure_at,
                totals=totals,
            ))

        # list_cycles already returns newest departure first
        return FinancialSummary(
            totals=aggregate_portfolio(b.totals for b in breakdowns),
            cycle_count=len(cycles),
            open_cycle_count=sum(1 for c in cycles if c.status == CycleStatus.OPEN),
            closed_cycle_count=sum(1 for c in cycles if c.status == CycleStatus.CLOSED),
            recent_cycles=breakdowns[:filters.recent_limit],
        )
