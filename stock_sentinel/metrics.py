"""Derived-Metrics Engine.

Joins the item cost dataset with aggregated sales and computes
replenishment and pricing indicators for every cost row, then sorts
items into decision buckets.

Per-item formulas:
- Daily sales = annual units sold / 365
- Lead time: 28 days for ReCert stock, 21 days for new
- Safety stock = daily sales × max(7, lead time / 2)
- Reorder point = daily sales × lead time + safety stock
- Days of inventory = on-hand / daily sales (infinite with no sales)
- EOQ = sqrt(2 × annual units × ordering cost / holding cost); items
  with no holding cost or no sales get a 3-month supply instead
- Price headroom = max(0, unit cost / (1 − target margin) − unit price)

The engine is a pure function of (cost rows, sales map, thresholds). It
keeps no state between calls and never mutates its inputs.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .config import SentinelSettings, get_settings
from .ingestion.models import CostItem, SalesAggregate

logger = logging.getLogger("sentinel.metrics")

DAYS_PER_YEAR = 365

# Supplier lead times (days)
LEAD_TIME_RECERT = 28
LEAD_TIME_NEW = 21

# Safety stock never covers fewer than this many days of demand
MIN_SAFETY_DAYS = 7

# Cold-start EOQ: months of supply ordered when EOQ is undefined
COLD_START_SUPPLY_MONTHS = 3

# Stockout tiers: (max days until stockout, min on-hand cost)
CRITICAL_STOCKOUT_DAYS = 30
CRITICAL_STOCKOUT_COST = 1000.0
WARNING_STOCKOUT_DAYS = 60
WARNING_STOCKOUT_COST = 500.0

# Price opportunities only on items with meaningful revenue
PRICE_OPPORTUNITY_MIN_REVENUE = 5000.0

# Share of slow + dead inventory value targeted for release
WORKING_CAPITAL_TARGET = 0.25


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves rounded up.

    ``round()`` rounds halves to even (``round(10.5) == 10``); lead-time
    and EOQ figures use conventional rounding.
    """
    return math.floor(value + 0.5)


# ---------------------------------------------------------------------------
# Thresholds
# ---------------------------------------------------------------------------


class Thresholds(BaseModel):
    """Caller-tunable classification parameters."""

    model_config = ConfigDict(frozen=True)

    slow_cost: float = 400.0
    dead_cost: float = 200.0
    slow_days: float = 180.0
    target_margin: float = 0.30
    ordering_cost: float = 50.0
    holding_cost_rate: float = 0.25

    @field_validator(
        "slow_cost", "dead_cost", "slow_days", "ordering_cost", "holding_cost_rate"
    )
    @classmethod
    def _non_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError("must be non-negative")
        return v

    @field_validator("target_margin")
    @classmethod
    def _margin_fraction(cls, v: float) -> float:
        if not 0 <= v < 1:
            raise ValueError("target_margin must be in [0, 1)")
        return v

    @classmethod
    def from_settings(cls, settings: SentinelSettings | None = None) -> Thresholds:
        """Default thresholds from environment configuration."""
        s = settings or get_settings()
        return cls(
            slow_cost=s.slow_cost,
            dead_cost=s.dead_cost,
            slow_days=s.slow_days,
            target_margin=s.target_margin,
            ordering_cost=s.ordering_cost,
            holding_cost_rate=s.holding_cost_rate,
        )


# ---------------------------------------------------------------------------
# Sales key matching
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SalesKeyStrategy:
    """One way of deriving a sales-map key from a cost row."""

    name: str
    derive: Callable[[CostItem], str]


# Tried in order; the first key present in the sales map wins. Sales
# exports key items either by bare code, by code plus condition suffix,
# or by the full "CODE : Name" label.
SALES_KEY_STRATEGIES: tuple[SalesKeyStrategy, ...] = (
    SalesKeyStrategy("item_code", lambda item: item.item_code),
    SalesKeyStrategy("new_suffix", lambda item: f"{item.item_code}-New"),
    SalesKeyStrategy("recert_suffix", lambda item: f"{item.item_code}-ReCert"),
    SalesKeyStrategy("full_item", lambda item: item.full_item),
)


def resolve_sales(
    item: CostItem,
    sales_map: Mapping[str, SalesAggregate],
    strategies: Sequence[SalesKeyStrategy] = SALES_KEY_STRATEGIES,
) -> tuple[str | None, SalesAggregate | None]:
    """Find the sales aggregate for a cost row.

    Returns:
        (matched key, aggregate), or (None, None) when no key matches.
    """
    for strategy in strategies:
        key = strategy.derive(item)
        agg = sales_map.get(key)
        if agg is not None:
            return key, agg
    return None, None


# ---------------------------------------------------------------------------
# Derived items
# ---------------------------------------------------------------------------


class DerivedItem(CostItem):
    """Cost row extended with sales velocity and replenishment figures.

    ``sales_key`` is None when no sales record matched. Such items are
    treated as having zero annual sales, the same as items that matched
    a record with no units sold.
    """

    sales_key: str | None = None
    annual_sales: float = 0.0
    daily_sales: float = 0.0
    lead_time_days: int = LEAD_TIME_NEW
    safety_stock: float = 0.0
    reorder_point: float = 0.0
    days_of_inventory: float = math.inf
    days_until_stockout: float = math.inf
    holding_cost: float = 0.0
    eoq: int = 0
    target_price: float = 0.0
    price_delta: float = 0.0
    annual_impact: float = 0.0

    @property
    def has_sales_data(self) -> bool:
        return self.sales_key is not None


def derive_item(
    item: CostItem,
    sales_map: Mapping[str, SalesAggregate],
    thresholds: Thresholds,
) -> DerivedItem:
    """Compute all per-item indicators for one cost row."""
    key, agg = resolve_sales(item, sales_map)
    annual_sales = float(agg.total_qty_sold) if agg is not None else 0.0
    daily_sales = annual_sales / DAYS_PER_YEAR

    if daily_sales > 0:
        days_of_inventory = item.quantity / daily_sales
    else:
        days_of_inventory = math.inf

    lead_time = LEAD_TIME_RECERT if item.is_recert else LEAD_TIME_NEW
    safety_stock = daily_sales * max(MIN_SAFETY_DAYS, round_half_up(lead_time / 2))
    reorder_point = daily_sales * lead_time + safety_stock

    holding_cost = item.unit_cost * thresholds.holding_cost_rate
    if holding_cost > 0 and annual_sales > 0:
        eoq = round_half_up(
            math.sqrt(2 * annual_sales * thresholds.ordering_cost / holding_cost)
        )
    else:
        eoq = round_half_up(annual_sales / 12 * COLD_START_SUPPLY_MONTHS)

    if item.unit_cost > 0:
        target_price = item.unit_cost / (1 - thresholds.target_margin)
    else:
        target_price = 0.0
    price_delta = max(0.0, target_price - item.unit_price)

    return DerivedItem(
        **item.model_dump(),
        sales_key=key,
        annual_sales=annual_sales,
        daily_sales=daily_sales,
        lead_time_days=lead_time,
        safety_stock=safety_stock,
        reorder_point=reorder_point,
        days_of_inventory=days_of_inventory,
        days_until_stockout=days_of_inventory,
        holding_cost=holding_cost,
        eoq=eoq,
        target_price=target_price,
        price_delta=price_delta,
        annual_impact=price_delta * annual_sales,
    )


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------


def is_slow_mover(item: DerivedItem, t: Thresholds) -> bool:
    return (
        item.total_cost > t.slow_cost
        and (item.days_of_inventory > t.slow_days or item.annual_sales == 0)
        and item.quantity > 0
    )


def is_dead_stock(item: DerivedItem, t: Thresholds) -> bool:
    return (
        item.annual_sales == 0 and item.total_cost > t.dead_cost and item.quantity > 0
    )


def is_critical_stockout(item: DerivedItem) -> bool:
    return (
        math.isfinite(item.days_until_stockout)
        and item.days_until_stockout <= CRITICAL_STOCKOUT_DAYS
        and item.total_cost > CRITICAL_STOCKOUT_COST
    )


def is_warning_stockout(item: DerivedItem) -> bool:
    return (
        CRITICAL_STOCKOUT_DAYS < item.days_until_stockout <= WARNING_STOCKOUT_DAYS
        and item.total_cost > WARNING_STOCKOUT_COST
    )


def is_price_opportunity(item: DerivedItem) -> bool:
    return (
        item.price_delta > 0
        and item.annual_sales > 0
        and item.total_revenue > PRICE_OPPORTUNITY_MIN_REVENUE
    )


# ---------------------------------------------------------------------------
# Summaries
# ---------------------------------------------------------------------------


class CostSummary(BaseModel):
    """Headline figures over the whole cost dataset."""

    item_count: int = 0
    avg_margin: float = 0.0
    total_profit: float = 0.0
    total_revenue: float = 0.0
    losing_items: int = 0


class WorkingCapital(BaseModel):
    """Cash tied up in slow and dead inventory."""

    slow_mover_value: float = 0.0
    dead_stock_value: float = 0.0

    @property
    def reduction_target(self) -> float:
        """Conservative release target across both buckets."""
        return WORKING_CAPITAL_TARGET * (self.slow_mover_value + self.dead_stock_value)


def summarize_costs(items: Sequence[CostItem]) -> CostSummary:
    """Average margin, totals and loss-making count for cost rows."""
    if not items:
        return CostSummary()
    return CostSummary(
        item_count=len(items),
        avg_margin=sum(i.profit_margin for i in items) / len(items),
        total_profit=sum(i.total_profit for i in items),
        total_revenue=sum(i.total_revenue for i in items),
        losing_items=sum(1 for i in items if i.profit_margin < 0),
    )


class DerivedMetrics(BaseModel):
    """Every derived item plus the classified result sets."""

    thresholds: Thresholds
    items: list[DerivedItem] = Field(default_factory=list)
    slow_movers: list[DerivedItem] = Field(default_factory=list)
    dead_stock: list[DerivedItem] = Field(default_factory=list)
    critical_stockouts: list[DerivedItem] = Field(default_factory=list)
    warning_stockouts: list[DerivedItem] = Field(default_factory=list)
    price_opps: list[DerivedItem] = Field(default_factory=list)
    summary: CostSummary = Field(default_factory=CostSummary)
    top_profit: list[DerivedItem] = Field(default_factory=list)
    top_losses: list[DerivedItem] = Field(default_factory=list)
    working_capital: WorkingCapital = Field(default_factory=WorkingCapital)

    @property
    def unmatched_items(self) -> list[DerivedItem]:
        """Items with no sales record under any key strategy."""
        return [i for i in self.items if not i.has_sales_data]

    def bucket(self, name: str) -> list[DerivedItem]:
        """Look up a classified result set by name."""
        if name not in BUCKETS:
            raise KeyError(f"Unknown bucket '{name}'. Available: {', '.join(BUCKETS)}")
        return getattr(self, name)


BUCKETS = (
    "slow_movers",
    "dead_stock",
    "critical_stockouts",
    "warning_stockouts",
    "price_opps",
)


def compute_derived_metrics(
    cost_items: Sequence[CostItem],
    sales_map: Mapping[str, SalesAggregate],
    thresholds: Thresholds | None = None,
    top_n: int = 10,
) -> DerivedMetrics | None:
    """Derive and classify every cost row.

    Args:
        cost_items: Item cost dataset.
        sales_map: Sales aggregates keyed by item (may be empty).
        thresholds: Classification parameters; defaults from settings.
        top_n: Length of the top profit / loss rankings.

    Returns:
        DerivedMetrics, or None when there is no cost data.
    """
    if not cost_items:
        return None
    t = thresholds or Thresholds.from_settings()

    items = [derive_item(item, sales_map, t) for item in cost_items]

    # list.sort is stable: ties keep cost-file order
    slow_movers = sorted(
        (i for i in items if is_slow_mover(i, t)),
        key=lambda i: i.total_cost,
        reverse=True,
    )
    dead_stock = sorted(
        (i for i in items if is_dead_stock(i, t)),
        key=lambda i: i.total_cost,
        reverse=True,
    )
    critical = sorted(
        (i for i in items if is_critical_stockout(i)),
        key=lambda i: i.days_until_stockout,
    )
    warning = sorted(
        (i for i in items if is_warning_stockout(i)),
        key=lambda i: i.days_until_stockout,
    )
    price_opps = sorted(
        (i for i in items if is_price_opportunity(i)),
        key=lambda i: i.annual_impact,
        reverse=True,
    )

    by_profit = sorted(items, key=lambda i: i.total_profit, reverse=True)
    top_losses = list(reversed(by_profit[-top_n:])) if top_n > 0 else []

    metrics = DerivedMetrics(
        thresholds=t,
        items=items,
        slow_movers=slow_movers,
        dead_stock=dead_stock,
        critical_stockouts=critical,
        warning_stockouts=warning,
        price_opps=price_opps,
        summary=summarize_costs(cost_items),
        top_profit=by_profit[:top_n],
        top_losses=top_losses,
        working_capital=WorkingCapital(
            slow_mover_value=sum(i.total_cost for i in slow_movers),
            dead_stock_value=sum(i.total_cost for i in dead_stock),
        ),
    )

    logger.debug(
        "Derived %d items (%d matched sales): %d slow, %d dead, %d critical, "
        "%d warning, %d price opportunities",
        len(items),
        len(items) - len(metrics.unmatched_items),
        len(slow_movers),
        len(dead_stock),
        len(critical),
        len(warning),
        len(price_opps),
    )
    return metrics
