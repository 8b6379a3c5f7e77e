# Overview: Service-layer operations for reporting; profit & loss rollups over the sales history.

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Iterable

from ..models import Customer, Product, Sale
from ..time_utils import local_date, local_today
from .inventory_service import low_stock_products


RECENT_TRANSACTIONS_LIMIT = 10


class ReportError(Exception):
    """Raised when report generation fails."""
    pass


class Period(str, Enum):
    ALL = "all"
    THIS_MONTH = "thisMonth"
    LAST_MONTH = "lastMonth"
    THIS_YEAR = "thisYear"
    CUSTOM = "custom"


def parse_period(value: str | None) -> Period:
    if not value:
        return Period.ALL
    try:
        return Period(value)
    except ValueError:
        allowed = ", ".join(p.value for p in Period)
        raise ReportError(f"period must be one of: {allowed}")


def margin_pct(profit_cents: int, sales_cents: int) -> float:
    """Profit as a percentage of sales; 0.0 when there were no sales."""
    if sales_cents > 0:
        return round(profit_cents / sales_cents * 100.0, 2)
    return 0.0


def period_bounds(
    period: Period,
    today: date,
    start: date | None = None,
    end: date | None = None,
) -> tuple[date | None, date | None]:
    """
    Inclusive (first_day, last_day) for a period; None means unbounded.

    A custom period missing either bound is not filtered at all.
    """
    if period is Period.THIS_MONTH:
        return today.replace(day=1), None
    if period is Period.LAST_MONTH:
        first_this_month = today.replace(day=1)
        last_prev_month = first_this_month - timedelta(days=1)
        return last_prev_month.replace(day=1), last_prev_month
    if period is Period.THIS_YEAR:
        return date(today.year, 1, 1), None
    if period is Period.CUSTOM and start and end:
        return start, end
    return None, None


def filter_sales(
    sales: Iterable[Sale],
    period: Period,
    start: date | None = None,
    end: date | None = None,
    *,
    today: date | None = None,
    tz_name: str = "UTC",
) -> list[Sale]:
    """Sales whose calendar date (in tz_name) falls inside the period."""
    sales = list(sales)
    first, last = period_bounds(period, today or local_today(tz_name), start, end)
    if first is None and last is None:
        return sales

    kept = []
    for sale in sales:
        if sale.created_at is None:
            continue
        day = local_date(sale.created_at, tz_name)
        if first is not None and day < first:
            continue
        if last is not None and day > last:
            continue
        kept.append(sale)
    return kept


@dataclass
class MonthlyBucket:
    year: int
    month: int
    sales_cents: int = 0
    cost_cents: int = 0
    profit_cents: int = 0
    transactions: int = 0

    @property
    def key(self) -> tuple[int, int]:
        return self.year, self.month

    @property
    def label(self) -> str:
        return f"{calendar.month_name[self.month]} {self.year}"

    @property
    def margin_pct(self) -> float:
        return margin_pct(self.profit_cents, self.sales_cents)

    def to_dict(self) -> dict:
        return {
            "month": f"{self.year:04d}-{self.month:02d}",
            "label": self.label,
            "sales_cents": self.sales_cents,
            "cost_cents": self.cost_cents,
            "profit_cents": self.profit_cents,
            "transactions": self.transactions,
            "margin_pct": self.margin_pct,
        }


def monthly_breakdown(sales: Iterable[Sale], *, tz_name: str = "UTC") -> list[MonthlyBucket]:
    """Group by (year, month) and return buckets oldest first."""
    buckets: dict[tuple[int, int], MonthlyBucket] = {}
    for sale in sales:
        if sale.created_at is None:
            continue
        day = local_date(sale.created_at, tz_name)
        bucket = buckets.get((day.year, day.month))
        if bucket is None:
            bucket = buckets[(day.year, day.month)] = MonthlyBucket(year=day.year, month=day.month)
        bucket.sales_cents += sale.total_amount_cents
        bucket.cost_cents += sale.total_cost_cents
        bucket.profit_cents += sale.profit_cents
        bucket.transactions += 1

    return [buckets[key] for key in sorted(buckets)]


def summarize(sales: Iterable[Sale]) -> dict:
    sales = list(sales)
    total_sales = sum(s.total_amount_cents for s in sales)
    total_cost = sum(s.total_cost_cents for s in sales)
    total_profit = sum(s.profit_cents for s in sales)
    return {
        "transactions": len(sales),
        "total_sales_cents": total_sales,
        "total_cost_cents": total_cost,
        "total_profit_cents": total_profit,
        "profit_margin_pct": margin_pct(total_profit, total_sales),
    }


def profit_and_loss(
    sales: Iterable[Sale],
    period: Period = Period.ALL,
    start: date | None = None,
    end: date | None = None,
    *,
    today: date | None = None,
    tz_name: str = "UTC",
) -> dict:
    filtered = filter_sales(sales, period, start, end, today=today, tz_name=tz_name)
    recent = sorted(filtered, key=lambda s: s.created_at or datetime.min, reverse=True)
    return {
        "period": period.value,
        "start": start.isoformat() if start else None,
        "end": end.isoformat() if end else None,
        "summary": summarize(filtered),
        "monthly": [bucket.to_dict() for bucket in monthly_breakdown(filtered, tz_name=tz_name)],
        "recent_transactions": [
            {
                "id": s.id,
                "customer_name": s.customer_name,
                "date": s.to_dict()["created_at"],
                "total_amount_cents": s.total_amount_cents,
                "total_cost_cents": s.total_cost_cents,
                "profit_cents": s.profit_cents,
            }
            for s in recent[:RECENT_TRANSACTIONS_LIMIT]
        ],
    }


def dashboard_stats(
    customers: Iterable[Customer],
    products: Iterable[Product],
    sales: Iterable[Sale],
    *,
    low_stock_threshold: int = 0,
) -> dict:
    products = list(products)
    sales = list(sales)
    return {
        "customers": len(list(customers)),
        "products": len(products),
        "sales": len(sales),
        "revenue_cents": sum(s.total_amount_cents for s in sales),
        "low_stock": [p.to_dict() for p in low_stock_products(products, low_stock_threshold)],
    }
