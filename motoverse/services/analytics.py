"""Dashboard analytics over the order history.

Everything here is a pure function of its inputs. Orders and products are
frozen models, so the heavier aggregations are memoized on the snapshot
itself. Only the trend and growth figures depend on "now", and they take it
as an argument (defaulting to the current local time).
"""

from collections import defaultdict
from datetime import date, datetime, timedelta
from functools import lru_cache
from typing import Dict, List, Optional, Sequence, Tuple

from motoverse.core.config import LOW_STOCK_THRESHOLD
from motoverse.models.schemas import (
    DEFAULT_CATEGORY,
    Category,
    CategorySales,
    DashboardMetrics,
    Growth,
    Order,
    OrderStatus,
    Product,
    RevenuePoint,
    TopProduct,
)

GROWTH_WINDOW = timedelta(days=30)


def _now(now: Optional[datetime]) -> datetime:
    return (now or datetime.now()).astimezone()


def _local_day(moment: datetime) -> date:
    return moment.astimezone().date()


def calculate_total_revenue(orders: Sequence[Order]) -> float:
    return sum((o.total for o in orders), 0.0)


def orders_between(orders: Sequence[Order], start: datetime, end: datetime) -> List[Order]:
    """Orders placed in the half-open window (start, end]."""
    return [o for o in orders if start < o.created_at <= end]


def revenue_between(orders: Sequence[Order], start: datetime, end: datetime) -> float:
    return calculate_total_revenue(orders_between(orders, start, end))


# --- Revenue trend ---

@lru_cache(maxsize=32)
def _revenue_trend(orders: Tuple[Order, ...], days: int, today: date) -> Tuple[RevenuePoint, ...]:
    first = today - timedelta(days=days - 1)
    buckets: Dict[date, List[float]] = {first + timedelta(days=i): [0.0, 0] for i in range(days)}
    for order in orders:
        bucket = buckets.get(_local_day(order.created_at))
        if bucket is not None:
            bucket[0] += order.total
            bucket[1] += 1
    return tuple(
        RevenuePoint(day=day, label=f"{day:%b} {day.day}", revenue=revenue, orders=count)
        for day, (revenue, count) in buckets.items()
    )


def revenue_trend(orders: Sequence[Order], days: int = 30, now: Optional[datetime] = None) -> List[RevenuePoint]:
    """Daily revenue and order counts for the trailing ``days`` calendar days, oldest first."""
    if days < 1:
        raise ValueError("days must be positive")
    return list(_revenue_trend(tuple(orders), days, _now(now).date()))


# --- Category split ---

@lru_cache(maxsize=32)
def _sales_by_category(orders: Tuple[Order, ...], products: Tuple[Product, ...]) -> Tuple[CategorySales, ...]:
    category_of = {p.id: p.category for p in products}
    revenue: Dict[Category, float] = {c: 0.0 for c in Category}
    for order in orders:
        for item in order.items:
            revenue[category_of.get(item.id, DEFAULT_CATEGORY)] += item.line_total

    total = sum(revenue.values())
    return tuple(
        CategorySales(category=c, value=v, percentage=(v / total) * 100 if total > 0 else 0.0)
        for c, v in revenue.items()
    )


def sales_by_category(orders: Sequence[Order], products: Sequence[Product]) -> List[CategorySales]:
    return list(_sales_by_category(tuple(orders), tuple(products)))


# --- Top products ---

@lru_cache(maxsize=32)
def _top_products(orders: Tuple[Order, ...], limit: int) -> Tuple[TopProduct, ...]:
    stats: Dict[str, dict] = {}
    for order in orders:
        for item in order.items:
            entry = stats.setdefault(item.id, {"name": item.product.name, "revenue": 0.0, "quantity": 0})
            entry["revenue"] += item.line_total
            entry["quantity"] += item.quantity

    ranked = sorted(stats.items(), key=lambda kv: kv[1]["revenue"], reverse=True)
    return tuple(TopProduct(id=pid, **entry) for pid, entry in ranked[:limit])


def top_products(orders: Sequence[Order], limit: int = 5) -> List[TopProduct]:
    return list(_top_products(tuple(orders), limit))


# --- Growth ---

def calculate_growth(current: float, previous: float) -> float:
    if previous == 0:
        return 100.0 if current > 0 else 0.0
    return ((current - previous) / previous) * 100


def growth(orders: Sequence[Order], now: Optional[datetime] = None) -> Growth:
    """Last 30 days against the 30 days before that."""
    end = _now(now)
    start = end - GROWTH_WINDOW
    before = start - GROWTH_WINDOW
    return Growth(
        revenue=calculate_growth(revenue_between(orders, start, end), revenue_between(orders, before, start)),
        orders=calculate_growth(len(orders_between(orders, start, end)), len(orders_between(orders, before, start))),
    )


# --- Summary ---

def dashboard_metrics(
    orders: Sequence[Order],
    products: Sequence[Product],
    now: Optional[datetime] = None,
    low_stock_threshold: int = LOW_STOCK_THRESHOLD,
) -> DashboardMetrics:
    total_revenue = calculate_total_revenue(orders)
    total_orders = len(orders)
    trend = growth(orders, now)
    return DashboardMetrics(
        total_revenue=total_revenue,
        total_orders=total_orders,
        average_order_value=total_revenue / total_orders if total_orders else 0.0,
        products_in_stock=sum(p.stock for p in products),
        low_stock_count=sum(1 for p in products if 0 < p.stock < low_stock_threshold),
        pending_orders=sum(1 for o in orders if o.status == OrderStatus.PENDING),
        revenue_growth=trend.revenue,
        orders_growth=trend.orders,
    )


def revenue_split(orders: Sequence[Order]) -> Dict[str, float]:
    # orders carry no channel yet, everything is placed online
    return {"online": calculate_total_revenue(orders), "instore": 0.0}
