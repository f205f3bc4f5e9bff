"""
Financial Calculator (Domain Logic).

Pure functions deriving freight value, driver commission and fueling totals,
and rolling cycle records up into totals. No I/O, no database access.

Aggregation accepts ORM rows or plain mappings and treats missing or
non-numeric fields as zero, so malformed legacy records never break a
dashboard.
"""

import math
from typing import Any, Iterable, Mapping

from backend.app.domain.finance.money import round_money
from backend.app.schemas.dashboard import FinancialTotals

KG_PER_TON = 1000


def compute_freight_value(departure_weight_kg: float, rate_per_ton: float) -> float:
    """Freight revenue: weight (kg) times rate (per metric ton) / 1000."""
    return round_money(departure_weight_kg * rate_per_ton / KG_PER_TON)


def compute_commission(value: float, commission_percent: float) -> float:
    """Driver commission on a freight value."""
    return round_money(value * commission_percent / 100)


def compute_fueling_total(
    arla_liters: float,
    arla_price: float,
    diesel_liters: float,
    diesel_price: float,
) -> float:
    """Cost of one fueling: ARLA line plus diesel line."""
    return round_money(arla_liters * arla_price + diesel_liters * diesel_price)


def _to_number(raw: Any) -> float:
    if raw is None or isinstance(raw, bool):
        return 0.0
    try:
        number = float(raw)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(number) or math.isinf(number):
        return 0.0
    return number


def _field(record: Any, name: str) -> float:
    if isinstance(record, Mapping):
        return _to_number(record.get(name))
    return _to_number(getattr(record, name, None))


def _sum_field(records: Iterable[Any], name: str) -> float:
    return round_money(sum(_field(record, name) for record in records))


def aggregate_cycle(
    freights: Iterable[Any],
    fuelings: Iterable[Any],
    expenses: Iterable[Any],
) -> FinancialTotals:
    """Totals of one cycle's freights, fuelings and expenses."""
    freights = list(freights or [])
    return FinancialTotals(
        freight_total=_sum_field(freights, "value"),
        commission_total=_sum_field(freights, "commission_value"),
        loss_total=_sum_field(freights, "loss_value"),
        fueling_total=_sum_field(fuelings or [], "total"),
        expense_total=_sum_field(expenses or [], "value"),
    )


def aggregate_portfolio(per_cycle_totals: Iterable[FinancialTotals]) -> FinancialTotals:
    """Element-wise sum of per-cycle totals; all zeros when there are none."""
    portfolio = FinancialTotals()
    for totals in per_cycle_totals:
        portfolio = portfolio + totals
    return portfolio
