"""Work order cost accumulation.

Parts are costed at the unit price frozen on each usage record, never at the
current catalog price, so closed orders keep a stable cost in reports.
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Protocol


class CostedUsage(Protocol):
    quantity: int
    unit_price: Decimal


@dataclass(frozen=True)
class CostBreakdown:
    parts: Decimal
    labor: Decimal
    hours: Decimal

    @property
    def total(self) -> Decimal:
        return self.parts + self.labor


def parts_cost(usages: Iterable[CostedUsage]) -> Decimal:
    """Sum of quantity * frozen unit price."""
    return sum((Decimal(u.quantity) * Decimal(u.unit_price) for u in usages), Decimal("0"))


def labor_cost(hours: Decimal) -> Decimal:
    """Labor is not billed yet.

    The rate rule (which rate, per technician or flat) is still undefined, so
    hours are tracked but contribute nothing to the order total.
    """
    return Decimal("0")


def compute_cost(tasks) -> CostBreakdown:
    """Cost every part usage under every task of an order."""
    usages = [usage for task in tasks for usage in task.part_usages]
    hours = sum((Decimal(t.hours_worked or 0) for t in tasks), Decimal("0"))
    return CostBreakdown(parts=parts_cost(usages), labor=labor_cost(hours), hours=hours)
