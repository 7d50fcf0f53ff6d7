import uuid
from datetime import date
from typing import Optional

from sqlmodel import SQLModel

from ..models.savings_goal import SavingsGoal
from .aggregation import safe_percentage


COMPLETED = "completed"
OVERDUE = "overdue"
URGENT = "urgent"
ACTIVE = "active"

URGENT_WITHIN_DAYS = 30


class SavingsGoalProgress(SQLModel):
    id: uuid.UUID
    name: str
    target_amount: float
    current_amount: float
    target_date: date
    description: Optional[str] = None
    percentage: float
    remaining: float
    days_remaining: int
    status: str


def goal_status(percentage: float, days_remaining: int) -> str:
    if percentage >= 100:
        return COMPLETED
    if days_remaining < 0:
        return OVERDUE
    if days_remaining <= URGENT_WITHIN_DAYS:
        return URGENT
    return ACTIVE


def goal_progress(goal: SavingsGoal, today: date) -> SavingsGoalProgress:
    percentage = safe_percentage(goal.current_amount, goal.target_amount)
    days_remaining = (goal.target_date - today).days
    return SavingsGoalProgress(
        id=goal.id,
        name=goal.name,
        target_amount=goal.target_amount,
        current_amount=goal.current_amount,
        target_date=goal.target_date,
        description=goal.description,
        percentage=min(percentage, 100.0),
        remaining=goal.target_amount - goal.current_amount,
        days_remaining=days_remaining,
        status=goal_status(percentage, days_remaining),
    )


def apply_progress(current_amount: float, delta: float) -> float:
    """Apply a signed deposit/withdrawal; the balance never drops below zero."""
    return max(0.0, current_amount + delta)
