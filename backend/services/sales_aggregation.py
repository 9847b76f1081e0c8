"""Pure food & beverage sales aggregation over menu order snapshots."""

from __future__ import annotations

from collections import Counter
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Iterator, Mapping

from backend.domain.models import NO_TOP_MENU, MenuOrder, SalesRow


def iter_dates(start: date, end: date) -> Iterator[date]:
    """Yield every calendar date in ``[start, end]``; nothing when start > end."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


_CENTS = Decimal("0.01")


def mean_half_up(total: int, count: int) -> float:
    """Exact ``total / count`` rounded half-up to two decimals."""
    return float((Decimal(total) / Decimal(count)).quantize(_CENTS, rounding=ROUND_HALF_UP))


def orders_by_date(orders: Iterable[MenuOrder]) -> dict[date, list[MenuOrder]]:
    grouped: dict[date, list[MenuOrder]] = {}
    for order in orders:
        grouped.setdefault(order.order_time.date(), []).append(order)
    return grouped


def sales_count_by_date(
    grouped_orders: Mapping[date, list[MenuOrder]],
) -> dict[date, Counter[str]]:
    """Units sold per menu name per date; a name repeated in one order counts twice."""
    return {
        order_date: Counter(name for order in orders for name in order.food_names)
        for order_date, orders in grouped_orders.items()
    }


def total_sales_by_date(grouped_orders: Mapping[date, list[MenuOrder]]) -> dict[date, int]:
    return {
        order_date: sum(order.total_price for order in orders)
        for order_date, orders in grouped_orders.items()
    }


def average_sales_in_range(
    totals: Mapping[date, int],
    start: date,
    end: date,
) -> float:
    """Mean revenue over the dates in range that have at least one order.

    Dates without orders are left out of the denominator rather than counted
    as zero-revenue days.
    """
    in_range = [amount for order_date, amount in totals.items() if start <= order_date <= end]
    if not in_range:
        return 0.0
    return mean_half_up(sum(in_range), len(in_range))


def top_menu(counts: Mapping[str, int] | None) -> str:
    """Best seller by units; ties go to the lexicographically smallest name."""
    if not counts:
        return NO_TOP_MENU
    best = max(counts.values())
    return min(name for name, units in counts.items() if units == best)


def build_sales_table(
    totals: Mapping[date, int],
    counts: Mapping[date, Mapping[str, int]],
    start: date,
    end: date,
) -> list[SalesRow]:
    return [
        SalesRow(
            date=day,
            total_sales=totals.get(day, 0),
            top_menu=top_menu(counts.get(day)),
        )
        for day in iter_dates(start, end)
    ]
