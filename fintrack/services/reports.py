"""Report aggregation over a user's transactions.

All functions here are pure: callers fetch the rows (normally with
``UserTransactions.in_range``) and every call recomputes from scratch.
"""

import math
from collections import defaultdict
from datetime import date, timedelta

from fintrack.db.sqlite import UserTransactions
from fintrack.models import (
    UNCATEGORIZED,
    CategoryBreakdown,
    DashboardOverview,
    FinancialSummary,
    MonthlyReport,
    Transaction,
    TransactionType,
    TrendPeriod,
    TrendPoint,
)

RECENT_TRANSACTIONS = 5


def _category(txn: Transaction) -> str:
    return txn.category or UNCATEGORIZED


def _percent(amount: float, total: float) -> int:
    """Whole-number share of ``total``; halves round up."""
    return math.floor(amount / total * 100 + 0.5)


def _week_start(day: date) -> date:
    """Sunday on or before ``day``."""
    return day - timedelta(days=(day.weekday() + 1) % 7)


def period_key(day: date, period: TrendPeriod) -> str:
    """Fixed-width period key, so lexical order is chronological order."""
    if period == TrendPeriod.DAILY:
        return day.isoformat()
    if period == TrendPeriod.WEEKLY:
        return _week_start(day).isoformat()
    return day.strftime("%Y-%m")


def top_category(amounts: dict[str, float]) -> tuple[str | None, float]:
    """Highest-spending category; equal amounts go to the lexically first name."""
    best: str | None = None
    best_amount = 0.0
    for category in sorted(amounts):
        if amounts[category] > best_amount:
            best, best_amount = category, amounts[category]
    return best, best_amount


def monthly_report(transactions: list[Transaction]) -> list[MonthlyReport]:
    """Income, expenses and top expense category per calendar month, newest first."""
    monthly: dict[str, dict] = defaultdict(
        lambda: {"income": 0.0, "expenses": 0.0, "count": 0, "categories": defaultdict(float)}
    )
    labels: dict[str, str] = {}

    for t in transactions:
        month_key = t.date.strftime("%Y-%m")
        labels[month_key] = t.date.strftime("%B %Y")
        data = monthly[month_key]
        data["count"] += 1
        if t.type == TransactionType.INCOME:
            data["income"] += t.amount
        else:
            data["expenses"] += t.amount
            data["categories"][_category(t)] += t.amount

    result = []
    for month_key, data in sorted(monthly.items(), reverse=True):
        category, category_amount = top_category(data["categories"])
        result.append(
            MonthlyReport(
                month=month_key,
                label=labels[month_key],
                total_income=data["income"],
                total_expenses=data["expenses"],
                net_income=data["income"] - data["expenses"],
                transaction_count=data["count"],
                top_category=category,
                top_category_amount=category_amount,
            )
        )
    return result


def category_breakdown(
    transactions: list[Transaction], type: TransactionType = TransactionType.EXPENSE
) -> list[CategoryBreakdown]:
    """Share of one transaction type per category, largest first."""
    amounts: dict[str, float] = defaultdict(float)
    counts: dict[str, int] = defaultdict(int)

    for t in transactions:
        if t.type != type:
            continue
        category = _category(t)
        amounts[category] += t.amount
        counts[category] += 1

    total = sum(amounts.values())
    if total <= 0:
        return []

    rows = [
        CategoryBreakdown(
            category=category,
            amount=amount,
            transactions=counts[category],
            percentage=_percent(amount, total),
        )
        for category, amount in amounts.items()
    ]
    rows.sort(key=lambda row: (-row.amount, row.category))
    return rows


def trend_data(transactions: list[Transaction], period: TrendPeriod = TrendPeriod.MONTHLY) -> list[TrendPoint]:
    """Income/expense series bucketed by day, week or month, oldest first."""
    buckets: dict[str, dict] = defaultdict(lambda: {"income": 0.0, "expenses": 0.0, "count": 0})

    for t in transactions:
        data = buckets[period_key(t.date, period)]
        data["count"] += 1
        if t.type == TransactionType.INCOME:
            data["income"] += t.amount
        else:
            data["expenses"] += t.amount

    return [
        TrendPoint(
            period=key,
            income=data["income"],
            expenses=data["expenses"],
            transactions=data["count"],
            net=data["income"] - data["expenses"],
        )
        for key, data in sorted(buckets.items())
    ]


def financial_summary(transactions: list[Transaction]) -> FinancialSummary:
    """Totals for the range plus the mean transaction amount."""
    total_income = sum(t.amount for t in transactions if t.type == TransactionType.INCOME)
    total_expenses = sum(t.amount for t in transactions if t.type == TransactionType.EXPENSE)
    count = len(transactions)
    average = (total_income + total_expenses) / count if count else 0.0

    return FinancialSummary(
        total_income=total_income,
        total_expenses=total_expenses,
        net_income=total_income - total_expenses,
        total_transactions=count,
        avg_transaction=round(average, 2),
    )


def dashboard_overview(store: UserTransactions, today: date | None = None) -> DashboardOverview:
    """Current month's income and expenses plus the latest transactions."""
    today = today or date.today()
    month_start = today.replace(day=1)
    if today.month == 12:
        month_end = date(today.year, 12, 31)
    else:
        month_end = date(today.year, today.month + 1, 1) - timedelta(days=1)

    summary = financial_summary(store.in_range(month_start, month_end))
    return DashboardOverview(
        month=month_start.strftime("%Y-%m"),
        income=summary.total_income,
        expenses=summary.total_expenses,
        balance=summary.net_income,
        recent_transactions=store.recent(RECENT_TRANSACTIONS),
    )
