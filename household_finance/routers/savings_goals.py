import uuid
from datetime import date, datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import Field, Session, SQLModel

from ..core.ownership import get_owned_or_404, list_owned
from ..core.security import get_current_user
from ..database import get_session
from ..models.savings_goal import SavingsGoal
from ..models.user import User
from ..schemas import SavingsGoalRead
from ..services.savings import SavingsGoalProgress, apply_progress, goal_progress


router = APIRouter(
    prefix="/savings-goals",
    tags=["savings-goals"],
)


class SavingsGoalCreate(SQLModel):
    name: str = Field(min_length=1, max_length=120)
    target_amount: float = Field(gt=0)
    target_date: date
    description: Optional[str] = Field(default=None, max_length=255)


class SavingsGoalUpdate(SQLModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=120)
    target_amount: Optional[float] = Field(default=None, gt=0)
    target_date: Optional[date] = None
    description: Optional[str] = Field(default=None, max_length=255)


class SavingsProgressIn(SQLModel):
    # Signed: positive deposits, negative withdrawals
    amount: float


@router.get(
    "",
    response_model=List[SavingsGoalProgress],
)
def list_savings_goals(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    today = date.today()
    return [goal_progress(g, today) for g in list_owned(session, SavingsGoal, current_user)]


@router.post(
    "",
    response_model=SavingsGoalRead,
    status_code=status.HTTP_201_CREATED,
)
def create_savings_goal(
    payload: SavingsGoalCreate,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    now = datetime.utcnow()
    goal = SavingsGoal(
        user_id=current_user.id,
        name=payload.name,
        target_amount=payload.target_amount,
        current_amount=0,
        target_date=payload.target_date,
        description=payload.description,
        created_at=now,
        updated_at=now,
    )
    session.add(goal)
    session.commit()
    session.refresh(goal)
    return goal


@router.post(
    "/{goal_id}/progress",
    response_model=SavingsGoalRead,
)
def update_savings_progress(
    goal_id: uuid.UUID,
    payload: SavingsProgressIn,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    goal = get_owned_or_404(session, SavingsGoal, goal_id, current_user, "Savings goal")
    goal.current_amount = apply_progress(goal.current_amount, payload.amount)
    goal.updated_at = datetime.utcnow()
    session.add(goal)
    session.commit()
    session.refresh(goal)
    return goal


@router.patch(
    "/{goal_id}",
    response_model=SavingsGoalRead,
)
def update_savings_goal(
    goal_id: uuid.UUID,
    payload: SavingsGoalUpdate,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    goal = get_owned_or_404(session, SavingsGoal, goal_id, current_user, "Savings goal")

    updates = payload.model_dump(exclude_unset=True, exclude_none=True)
    if not updates:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No fields to update")

    for key, value in updates.items():
        setattr(goal, key, value)
    goal.updated_at = datetime.utcnow()
    session.add(goal)
    session.commit()
    session.refresh(goal)
    return goal


@router.delete(
    "/{goal_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
def delete_savings_goal(
    goal_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    goal = get_owned_or_404(session, SavingsGoal, goal_id, current_user, "Savings goal")
    session.delete(goal)
    session.commit()
    return None
