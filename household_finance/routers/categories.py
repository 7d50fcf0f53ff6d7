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
from ..schemas import CategoryRead
from ..services.lifecycle import seed_default_categories

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/categories",
    tags=["categories"],
)


class CategoryCreate(SQLModel):
    name: str = Field(min_length=1, max_length=50)
    icon: str = Field(default="📦", min_length=1, max_length=16)
    color: str = Field(default="#A0A0A0", min_length=1, max_length=16)


class CategoryUpdate(SQLModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=50)
    icon: Optional[str] = Field(default=None, min_length=1, max_length=16)
    color: Optional[str] = Field(default=None, min_length=1, max_length=16)


@router.get(
    "",
    response_model=List[CategoryRead],
)
def list_categories(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    return list_owned(session, Category, current_user)


@router.post(
    "",
    response_model=CategoryRead,
    status_code=status.HTTP_201_CREATED,
)
def create_category(
    payload: CategoryCreate,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    now = datetime.utcnow()
    category = Category(
        user_id=current_user.id,
        name=payload.name,
        icon=payload.icon,
        color=payload.color,
        is_default=False,
        created_at=now,
        updated_at=now,
    )
    session.add(category)
    session.commit()
    session.refresh(category)
    return category


@router.post(
    "/defaults",
    response_model=List[CategoryRead],
    status_code=status.HTTP_201_CREATED,
)
def create_default_categories(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    """Insert the default catalog. Clients call this only while the list is empty."""
    return seed_default_categories(session, current_user)


@router.patch(
    "/{category_id}",
    response_model=CategoryRead,
)
def update_category(
    category_id: uuid.UUID,
    payload: CategoryUpdate,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    category = get_owned_or_404(session, Category, category_id, current_user, "Category")

    updates = payload.model_dump(exclude_unset=True, exclude_none=True)
    if not updates:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No fields to update")

    for key, value in updates.items():
        setattr(category, key, value)
    category.updated_at = datetime.utcnow()
    session.add(category)
    session.commit()
    session.refresh(category)
    return category


@router.delete(
    "/{category_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
def delete_category(
    category_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    category = get_owned_or_404(session, Category, category_id, current_user, "Category")

    in_use = session.exec(
        select(Expense.id).where(
            Expense.user_id == current_user.id,
            Expense.category_id == category.id,
        )
    ).first()
    if in_use is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Cannot delete a category that has expenses",
        )

    # Budgets have no meaning without their category
    budgets = session.exec(
        select(Budget).where(
            Budget.user_id == current_user.id,
            Budget.category_id == category.id,
        )
    ).all()
    for budget in budgets:
        session.delete(budget)
    session.flush()

    session.delete(category)
    session.commit()
    logger.info("Deleted category %s and %d budgets", category_id, len(budgets))
    return None
