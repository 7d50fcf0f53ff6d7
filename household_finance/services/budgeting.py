"""Spend-versus-limit evaluation for monthly category budgets."""
import uuid
from typing import Dict, Iterable, List, Optional

from sqlmodel import SQLModel

from ..models.budget import Budget
from ..models.category import Category
from ..models.expense import Expense
from .aggregation import UNCATEGORIZED_COLOR, UNCATEGORIZED_ICON, UNCATEGORIZED_NAME, safe_percentage
from .periods import in_month


EXCEEDED = "exceeded"
WARNING = "warning"
CAUTION = "caution"
SAFE = "safe"

# Lower bounds are inclusive: 80.0 is caution, 90.0 warning, 100.0 exceeded
THRESHOLDS = (
    (100.0, EXCEEDED),
    (90.0, WARNING),
    (80.0, CAUTION),
)
ALERT_THRESHOLD = 80.0


class BudgetCategory(SQLModel):
    id: Optional[uuid.UUID] = None
    name: str
    icon: str
    color: str


class BudgetStatus(SQLModel):
    id: uuid.UUID
    category_id: uuid.UUID
    month: str
    limit: float
    category: BudgetCategory
    spent: float
    remaining: float
    percentage: float
    display_percentage: float
    status: str


class BudgetAlert(SQLModel):
    budget_id: uuid.UUID
    category_id: uuid.UUID
    category_name: str
    category_icon: str
    category_color: str
    spent: float
    limit: float
    percentage: float
    type: str


def classify(percentage: float) -> str:
    for bound, status in THRESHOLDS:
        if percentage >= bound:
            return status
    return SAFE


def spent_for(budget: Budget, expenses: Iterable[Expense]) -> float:
    return sum(
        e.amount
        for e in expenses
        if e.category_id == budget.category_id and in_month(e.expense_date, budget.month)
    )


def _budget_category(category: Optional[Category]) -> BudgetCategory:
    if category is None:
        return BudgetCategory(
            name=UNCATEGORIZED_NAME, icon=UNCATEGORIZED_ICON, color=UNCATEGORIZED_COLOR
        )
    return BudgetCategory(
        id=category.id, name=category.name, icon=category.icon, color=category.color
    )


def evaluate_budget(
    budget: Budget,
    expenses: Iterable[Expense],
    category: Optional[Category] = None,
) -> BudgetStatus:
    """Recompute spent/remaining/status for one budget from current expenses.

    ``percentage`` is left unclamped so overspending past 100% stays visible;
    ``display_percentage`` is capped at 100 for progress bars. A zero limit
    reports 0%.
    """
    spent = spent_for(budget, expenses)
    percentage = safe_percentage(spent, budget.limit)
    return BudgetStatus(
        id=budget.id,
        category_id=budget.category_id,
        month=budget.month,
        limit=budget.limit,
        category=_budget_category(category),
        spent=spent,
        remaining=budget.limit - spent,
        percentage=percentage,
        display_percentage=min(percentage, 100.0),
        status=classify(percentage),
    )


def evaluate_budgets(
    budgets: Iterable[Budget],
    expenses: Iterable[Expense],
    categories: Iterable[Category],
) -> List[BudgetStatus]:
    expenses = list(expenses)
    by_id: Dict[uuid.UUID, Category] = {c.id: c for c in categories}
    return [evaluate_budget(b, expenses, by_id.get(b.category_id)) for b in budgets]


def budget_alerts(
    budgets: Iterable[Budget],
    expenses: Iterable[Expense],
    categories: Iterable[Category],
) -> List[BudgetAlert]:
    alerts = []
    for status in evaluate_budgets(budgets, expenses, categories):
        if status.percentage < ALERT_THRESHOLD:
            continue
        alerts.append(
            BudgetAlert(
                budget_id=status.id,
                category_id=status.category_id,
                category_name=status.category.name,
                category_icon=status.category.icon,
                category_color=status.category.color,
                spent=status.spent,
                limit=status.limit,
                percentage=status.percentage,
                type=status.status,
            )
        )
    return alerts
