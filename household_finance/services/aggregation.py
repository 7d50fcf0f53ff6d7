"""Derived views over a single user's expenses.

Every function here is pure: callers load the owner-scoped rows and pass
them in together with an explicit month or date range.
"""
import uuid
from datetime import date
from typing import Dict, Iterable, List, Optional

from sqlmodel import SQLModel

from ..models.category import Category
from ..models.expense import Expense
from ..schemas import ExpenseRead
from .periods import days_in_month, in_month, month_key, previous_month


RECENT_EXPENSES_LIMIT = 5
TREND_MONTHS = 6
TOP_CATEGORIES_LIMIT = 5

UNCATEGORIZED_NAME = "Uncategorized"
UNCATEGORIZED_ICON = "📦"
UNCATEGORIZED_COLOR = "#A0A0A0"


class CategoryTotal(SQLModel):
    category_id: uuid.UUID
    name: str
    icon: str
    color: str
    total: float = 0.0


class DashboardStats(SQLModel):
    month: str
    total_month: float
    total_prev_month: float
    daily_average: float
    expense_count: int
    category_breakdown: List[CategoryTotal]
    recent_expenses: List[ExpenseRead]


class BreakdownItem(SQLModel):
    name: str
    amount: float
    percentage: float


class DailyTotal(SQLModel):
    day: date
    amount: float


class Report(SQLModel):
    start_date: date
    end_date: date
    category_id: Optional[uuid.UUID] = None
    total: float
    count: int
    average: float
    category_breakdown: List[BreakdownItem]
    payment_method_breakdown: List[BreakdownItem]
    daily_breakdown: List[DailyTotal]
    expenses: List[ExpenseRead]


class MonthlyTrend(SQLModel):
    month: str
    amount: float


class TopCategory(SQLModel):
    category_id: uuid.UUID
    name: str
    icon: str
    total: float
    count: int


class UserStats(SQLModel):
    total_expenses: int
    total_amount: float
    categories_used: int
    days_active: int
    monthly_trends: List[MonthlyTrend]
    max_monthly_amount: float
    top_categories: List[TopCategory]


def safe_percentage(part: float, whole: float) -> float:
    if not whole:
        return 0.0
    return part / whole * 100


def _category_index(categories: Iterable[Category]) -> Dict[uuid.UUID, Category]:
    return {c.id: c for c in categories}


def _category_name(category: Optional[Category]) -> str:
    return category.name if category is not None else UNCATEGORIZED_NAME


def expenses_in_month(expenses: Iterable[Expense], month: str) -> List[Expense]:
    return [e for e in expenses if in_month(e.expense_date, month)]


def filter_expenses(
    expenses: Iterable[Expense],
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    category_id: Optional[uuid.UUID] = None,
) -> List[Expense]:
    """Apply the optional inclusive date range and category filter."""
    selected = []
    for expense in expenses:
        if start_date is not None and expense.expense_date < start_date:
            continue
        if end_date is not None and expense.expense_date > end_date:
            continue
        if category_id is not None and expense.category_id != category_id:
            continue
        selected.append(expense)
    return selected


def sort_by_date_desc(expenses: Iterable[Expense]) -> List[Expense]:
    # sorted() is stable with reverse=True, so same-day rows keep input order
    return sorted(expenses, key=lambda e: e.expense_date, reverse=True)


def dashboard_stats(
    expenses: Iterable[Expense],
    categories: Iterable[Category],
    month: str,
) -> DashboardStats:
    expenses = list(expenses)
    by_id = _category_index(categories)

    month_expenses = expenses_in_month(expenses, month)
    prev_expenses = expenses_in_month(expenses, previous_month(month))

    total_month = sum(e.amount for e in month_expenses)
    total_prev_month = sum(e.amount for e in prev_expenses)

    breakdown: Dict[uuid.UUID, CategoryTotal] = {}
    for expense in month_expenses:
        entry = breakdown.get(expense.category_id)
        if entry is None:
            category = by_id.get(expense.category_id)
            entry = CategoryTotal(
                category_id=expense.category_id,
                name=_category_name(category),
                icon=category.icon if category is not None else UNCATEGORIZED_ICON,
                color=category.color if category is not None else UNCATEGORIZED_COLOR,
            )
            breakdown[expense.category_id] = entry
        entry.total += expense.amount

    return DashboardStats(
        month=month,
        total_month=total_month,
        total_prev_month=total_prev_month,
        daily_average=total_month / days_in_month(month),
        expense_count=len(month_expenses),
        category_breakdown=list(breakdown.values()),
        recent_expenses=[
            ExpenseRead.model_validate(e)
            for e in sort_by_date_desc(month_expenses)[:RECENT_EXPENSES_LIMIT]
        ],
    )


def _breakdown(totals: Dict[str, float], total: float) -> List[BreakdownItem]:
    items = [
        BreakdownItem(name=name, amount=amount, percentage=safe_percentage(amount, total))
        for name, amount in totals.items()
    ]
    return sorted(items, key=lambda item: item.amount, reverse=True)


def build_report(
    expenses: Iterable[Expense],
    categories: Iterable[Category],
    start_date: date,
    end_date: date,
    category_id: Optional[uuid.UUID] = None,
) -> Report:
    by_id = _category_index(categories)
    selected = filter_expenses(expenses, start_date, end_date, category_id)

    total = sum(e.amount for e in selected)
    count = len(selected)

    category_totals: Dict[str, float] = {}
    method_totals: Dict[str, float] = {}
    daily_totals: Dict[date, float] = {}
    for expense in selected:
        name = _category_name(by_id.get(expense.category_id))
        category_totals[name] = category_totals.get(name, 0.0) + expense.amount
        method_totals[expense.payment_method] = (
            method_totals.get(expense.payment_method, 0.0) + expense.amount
        )
        daily_totals[expense.expense_date] = (
            daily_totals.get(expense.expense_date, 0.0) + expense.amount
        )

    return Report(
        start_date=start_date,
        end_date=end_date,
        category_id=category_id,
        total=total,
        count=count,
        average=total / count if count else 0.0,
        category_breakdown=_breakdown(category_totals, total),
        payment_method_breakdown=_breakdown(method_totals, total),
        daily_breakdown=[
            DailyTotal(day=day, amount=amount)
            for day, amount in sorted(daily_totals.items())
        ],
        expenses=[ExpenseRead.model_validate(e) for e in sort_by_date_desc(selected)],
    )


def user_stats(expenses: Iterable[Expense], categories: Iterable[Category]) -> UserStats:
    """Lifetime statistics over every expense the user owns."""
    expenses = list(expenses)
    by_id = _category_index(categories)

    monthly: Dict[str, float] = {}
    for expense in expenses:
        key = month_key(expense.expense_date)
        monthly[key] = monthly.get(key, 0.0) + expense.amount

    # Most recent populated months, not calendar months relative to today
    trends = [
        MonthlyTrend(month=key, amount=amount)
        for key, amount in sorted(monthly.items())
    ][-TREND_MONTHS:]

    top: Dict[uuid.UUID, TopCategory] = {}
    for expense in expenses:
        entry = top.get(expense.category_id)
        if entry is None:
            category = by_id.get(expense.category_id)
            entry = TopCategory(
                category_id=expense.category_id,
                name=_category_name(category),
                icon=category.icon if category is not None else UNCATEGORIZED_ICON,
                total=0.0,
                count=0,
            )
            top[expense.category_id] = entry
        entry.total += expense.amount
        entry.count += 1

    return UserStats(
        total_expenses=len(expenses),
        total_amount=sum(e.amount for e in expenses),
        categories_used=len({e.category_id for e in expenses}),
        days_active=len({e.expense_date for e in expenses}),
        monthly_trends=trends,
        max_monthly_amount=max([t.amount for t in trends] + [1]),
        top_categories=sorted(top.values(), key=lambda c: c.total, reverse=True)[
            :TOP_CATEGORIES_LIMIT
        ],
    )
