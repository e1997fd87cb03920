from __future__ import annotations

import calendar
from dataclasses import dataclass, field
from datetime import date, tzinfo
from typing import Iterable, Optional

from categories import get_category
from models import Granularity, TransactionType, ViewMode
from periods import Period, to_local
from schemas import TransactionRecord

WEEKDAY_LABELS = ("周一", "周二", "周三", "周四", "周五", "周六", "周日")


@dataclass(frozen=True)
class CategorySlice:
    category: str
    label: str
    amount: float
    percent: float


@dataclass
class TrendBucket:
    label: str
    income: float = 0.0
    expense: float = 0.0

    def add(self, record: TransactionRecord) -> None:
        if record.type == TransactionType.income:
            self.income += record.amount
        else:
            self.expense += record.amount


@dataclass(frozen=True)
class Statistics:
    period: Period
    view_mode: ViewMode
    total_income: float
    total_expense: float
    balance: float
    category_breakdown: list[CategorySlice] = field(default_factory=list)
    trend: list[TrendBucket] = field(default_factory=list)


@dataclass(frozen=True)
class DayGroup:
    day: date
    items: list[TransactionRecord]
    income: float
    expense: float


def filter_period(
    transactions: Iterable[TransactionRecord], period: Period
) -> list[TransactionRecord]:
    return [txn for txn in transactions if period.contains(txn.date)]


def totals(transactions: Iterable[TransactionRecord]) -> tuple[float, float]:
    income = 0.0
    expense = 0.0
    for txn in transactions:
        if txn.type == TransactionType.income:
            income += txn.amount
        elif txn.type == TransactionType.expense:
            expense += txn.amount
    return income, expense


def category_breakdown(
    transactions: Iterable[TransactionRecord], txn_type: TransactionType
) -> list[CategorySlice]:
    """Per-category sums for one kind, largest first.

    Equal amounts are ordered by category id.
    """
    sums: dict[str, float] = {}
    for txn in transactions:
        if txn.type != txn_type:
            continue
        sums[txn.category] = sums.get(txn.category, 0.0) + txn.amount

    total = sum(sums.values())
    ordered = sorted(sums.items(), key=lambda item: (-item[1], item[0]))
    breakdown = []
    for category_id, amount in ordered:
        percent = (amount / total * 100) if total else 0.0
        breakdown.append(
            CategorySlice(
                category=category_id,
                label=get_category(category_id).label,
                amount=amount,
                percent=percent,
            )
        )
    return breakdown


def trend_series(
    transactions: Iterable[TransactionRecord],
    period: Period,
    *,
    today: date,
    tz: Optional[tzinfo] = None,
) -> list[TrendBucket]:
    granularity = period.granularity

    if granularity == Granularity.day:
        income, expense = totals(transactions)
        return [TrendBucket("今日", income, expense)]

    if granularity == Granularity.week:
        buckets = [TrendBucket(label) for label in WEEKDAY_LABELS]
        for txn in transactions:
            buckets[to_local(txn.date, tz).weekday()].add(txn)
        return buckets

    if granularity == Granularity.month:
        year, month = period.first_day.year, period.first_day.month
        limit = calendar.monthrange(year, month)[1]
        if (today.year, today.month) == (year, month):
            limit = today.day
        buckets = [TrendBucket(f"{month}/{day}") for day in range(1, limit + 1)]
        for txn in transactions:
            day = to_local(txn.date, tz).day
            # later days of the current month are left out of the chart
            if day <= limit:
                buckets[day - 1].add(txn)
        return buckets

    buckets = [TrendBucket(f"{month}月") for month in range(1, 13)]
    for txn in transactions:
        buckets[to_local(txn.date, tz).month - 1].add(txn)
    return buckets


def aggregate(
    transactions: Iterable[TransactionRecord],
    period: Period,
    view_mode: ViewMode,
    *,
    today: date,
    tz: Optional[tzinfo] = None,
) -> Statistics:
    filtered = filter_period(transactions, period)
    income, expense = totals(filtered)
    view_mode = ViewMode(view_mode)

    breakdown: list[CategorySlice] = []
    if view_mode == ViewMode.expense:
        breakdown = category_breakdown(filtered, TransactionType.expense)
    elif view_mode == ViewMode.income:
        breakdown = category_breakdown(filtered, TransactionType.income)

    return Statistics(
        period=period,
        view_mode=view_mode,
        total_income=income,
        total_expense=expense,
        balance=income - expense,
        category_breakdown=breakdown,
        trend=trend_series(filtered, period, today=today, tz=tz),
    )


def group_by_day(
    transactions: Iterable[TransactionRecord], *, tz: Optional[tzinfo] = None
) -> list[DayGroup]:
    """Groups for the list view, newest day first.

    Items keep the order they come in, so pass them in display order.
    """
    groups: dict[date, list[TransactionRecord]] = {}
    for txn in transactions:
        groups.setdefault(to_local(txn.date, tz).date(), []).append(txn)

    result = []
    for day in sorted(groups, reverse=True):
        income, expense = totals(groups[day])
        result.append(DayGroup(day=day, items=groups[day], income=income, expense=expense))
    return result
