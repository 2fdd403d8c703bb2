"""Tests for work order cost accumulation."""
from decimal import Decimal
from types import SimpleNamespace

from fleetops.services.costing import compute_cost, labor_cost, parts_cost


def usage(quantity, unit_price):
    return SimpleNamespace(quantity=quantity, unit_price=Decimal(unit_price))


def task(hours, *usages):
    return SimpleNamespace(hours_worked=Decimal(hours), part_usages=list(usages))


class TestPartsCost:
    """Tests for parts_cost."""

    def test_sums_quantity_times_frozen_price(self):
        assert parts_cost([usage(2, "12.50"), usage(1, "40.00")]) == Decimal("65.00")

    def test_empty(self):
        assert parts_cost([]) == Decimal("0")

    def test_exact_decimal(self):
        """No float drift on cents."""
        assert parts_cost([usage(3, "0.10")]) == Decimal("0.30")


class TestLaborCost:
    def test_hours_not_billed(self):
        assert labor_cost(Decimal("7.5")) == Decimal("0")


class TestComputeCost:
    """Tests for compute_cost over an order's tasks."""

    def test_all_tasks_counted(self):
        tasks = [
            task("1.5", usage(2, "12.50")),
            task("2", usage(1, "40.00"), usage(4, "3.25")),
        ]
        cost = compute_cost(tasks)
        assert cost.parts == Decimal("78.00")
        assert cost.labor == Decimal("0")
        assert cost.hours == Decimal("3.5")
        assert cost.total == Decimal("78.00")

    def test_no_tasks(self):
        cost = compute_cost([])
        assert cost.total == Decimal("0")
