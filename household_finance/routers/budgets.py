import logging
import uuid
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import Field, Session, SQLModel, select

from ..core.ownership import get_owned_or_404, list_owned
from ..core.security import get_current_user
from ..database import get_session
from ..models.budget import Budget
from ..models.category import Category
from ..models.expense import Expense
from ..models.user import User
from ..schemas import BudgetRead
from ..services.budgeting import BudgetAlert, BudgetStatus, budget_alerts, evaluate_budgets
from ..services.periods import is_valid_month, resolve_month

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/budgets",
    tags=["budgets"],
)


class BudgetCreate(SQLModel):
    category_id: uuid.UUID
    month: str = Field(min_length=7, max_length=7)
    limit: float = Field(gt=0)


def _month_budgets(session: Session, user: User, month: str) -> List[Budget]:
    stmt = (
        select(Budget)
        .where(Budget.user_id == user.id, Budget.month == month)
        .order_by(Budget.created_at.asc())
    )
    return list(session.exec(stmt).all())


@router.get(
    "",
    response_model=List[BudgetStatus],
    status_code=status.HTTP_200_OK,
)
def list_budgets(
    month: Optional[str] = None,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    """Budgets for ``month`` (default: current month) with spent/remaining/status."""
    if month and not is_valid_month(month):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid month")
    target = resolve_month(month)
    return evaluate_budgets(
        _month_budgets(session, current_user, target),
        list_owned(session, Expense, current_user),
        list_owned(session, Category, current_user),
    )


@router.get(
    "/alerts",
    response_model=List[BudgetAlert],
    status_code=status.HTTP_200_OK,
)
def list_budget_alerts(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    """Current-month budgets at or above 80% of their limit."""
    target = resolve_month(None)
    return budget_alerts(
        _month_budgets(session, current_user, target),
        list_owned(session, Expense, current_user),
        list_owned(session, Category, current_user),
    )


@router.post(
    "",
    response_model=BudgetRead,
    status_code=status.HTTP_201_CREATED,
)
def upsert_budget(
    payload: BudgetCreate,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    """Create the budget for (category, month) or update the existing limit."""
    if not is_valid_month(payload.month):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid month")
    get_owned_or_404(session, Category, payload.category_id, current_user, "Category")

    now = datetime.utcnow()

    existing = session.exec(
        select(Budget).where(
            Budget.user_id == current_user.id,
            Budget.month == payload.month,
            Budget.category_id == payload.category_id,
        )
    ).first()

    if existing is None:
        b = Budget(
            id=uuid.uuid4(),
            user_id=current_user.id,
            month=payload.month,
            category_id=payload.category_id,
            limit=payload.limit,
            created_at=now,
            updated_at=now,
        )
        session.add(b)
        session.commit()
        session.refresh(b)
        logger.info("Created budget %s for %s", b.id, b.month)
        return b

    existing.limit = payload.limit
    existing.updated_at = now
    session.add(existing)
    session.commit()
    session.refresh(existing)
    logger.info("Updated budget %s limit for %s", existing.id, existing.month)
    return existing


@router.delete(
    "/{budget_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
def delete_budget(
    budget_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    b = get_owned_or_404(session, Budget, budget_id, current_user, "Budget")
    session.delete(b)
    session.commit()
    return None
