import logging
import uuid
from datetime import datetime, date
from pathlib import Path
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Response, status, UploadFile, File
from sqlmodel import SQLModel, Field, Session

from ..config import settings
from ..database import get_session
from ..models.category import Category
from ..models.expense import Expense
from ..models.user import User
from ..core.ownership import get_owned_or_404, list_owned
from ..core.security import get_current_user
from ..schemas import CategoryRead, ExpenseRead, ExpenseWithCategory
from ..services.aggregation import (
    DashboardStats,
    Report,
    build_report,
    dashboard_stats,
    filter_expenses,
    sort_by_date_desc,
)
from ..services.csv_export import expenses_to_csv
from ..services.lifecycle import discard_receipt
from ..services.periods import resolve_month

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/expenses",
    tags=["expenses"],
)

# ─────────────────────────────
#   SCHEMAS
# ─────────────────────────────

class ExpenseBase(SQLModel):
    name: str = Field(min_length=1, max_length=120)
    amount: float = Field(gt=0)
    category_id: uuid.UUID
    expense_date: date
    payment_method: str = Field(min_length=1, max_length=50)
    description: Optional[str] = Field(default=None, max_length=255)
    tags: Optional[List[str]] = None


class ExpenseCreate(ExpenseBase):
    pass


class ExpenseUpdate(SQLModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=120)
    amount: Optional[float] = Field(default=None, gt=0)
    category_id: Optional[uuid.UUID] = None
    expense_date: Optional[date] = None
    payment_method: Optional[str] = Field(default=None, min_length=1, max_length=50)
    description: Optional[str] = Field(default=None, max_length=255)
    tags: Optional[List[str]] = None


# ─────────────────────────────
#   HELPERS
# ─────────────────────────────

def _categories_by_id(session: Session, user: User) -> dict:
    return {c.id: c for c in list_owned(session, Category, user)}


def _check_range(start_date: Optional[date], end_date: Optional[date]) -> None:
    if start_date and end_date and start_date > end_date:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="start_date must be on or before end_date",
        )


def _resolve_month_or_400(month: Optional[str]) -> str:
    try:
        return resolve_month(month)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid month")


# ─────────────────────────────
#   ENDPOINTS
# ─────────────────────────────

@router.get(
    "",
    response_model=List[ExpenseWithCategory],
)
def list_expenses(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    category_id: Optional[uuid.UUID] = None,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    """
    List the caller's expenses, newest first, each joined with its category.

    - start_date / end_date are inclusive and optional.
    - category_id narrows to a single category.
    """
    _check_range(start_date, end_date)
    categories = _categories_by_id(session, current_user)
    expenses = filter_expenses(
        list_owned(session, Expense, current_user), start_date, end_date, category_id
    )

    result = []
    for expense in sort_by_date_desc(expenses):
        item = ExpenseWithCategory.model_validate(expense)
        category = categories.get(expense.category_id)
        if category is not None:
            item.category = CategoryRead.model_validate(category)
        result.append(item)
    return result


@router.post(
    "",
    response_model=ExpenseRead,
    status_code=status.HTTP_201_CREATED,
)
def create_expense(
    expense_in: ExpenseCreate,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    get_owned_or_404(session, Category, expense_in.category_id, current_user, "Category")

    now = datetime.utcnow()
    expense = Expense(
        id=uuid.uuid4(),
        user_id=current_user.id,
        name=expense_in.name,
        amount=expense_in.amount,
        category_id=expense_in.category_id,
        expense_date=expense_in.expense_date,
        payment_method=expense_in.payment_method,
        description=expense_in.description,
        tags=expense_in.tags,
        created_at=now,
        updated_at=now,
    )

    session.add(expense)
    session.commit()
    session.refresh(expense)
    return expense


@router.get(
    "/dashboard",
    response_model=DashboardStats,
)
def get_dashboard_stats(
    month: Optional[str] = None,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    """Monthly totals, category breakdown and latest expenses (month defaults to the current one)."""
    target = _resolve_month_or_400(month)
    return dashboard_stats(
        list_owned(session, Expense, current_user),
        list_owned(session, Category, current_user),
        target,
    )


@router.get(
    "/report",
    response_model=Report,
)
def get_report(
    start_date: date,
    end_date: date,
    category_id: Optional[uuid.UUID] = None,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    _check_range(start_date, end_date)
    return build_report(
        list_owned(session, Expense, current_user),
        list_owned(session, Category, current_user),
        start_date,
        end_date,
        category_id,
    )


@router.get("/report.csv")
def export_report_csv(
    start_date: date,
    end_date: date,
    category_id: Optional[uuid.UUID] = None,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    _check_range(start_date, end_date)
    expenses = filter_expenses(
        list_owned(session, Expense, current_user), start_date, end_date, category_id
    )
    content = expenses_to_csv(sort_by_date_desc(expenses), _categories_by_id(session, current_user))
    filename = f"expense-report-{start_date.isoformat()}-{end_date.isoformat()}.csv"
    return Response(
        content=content,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get(
    "/{expense_id}",
    response_model=ExpenseRead,
)
def get_expense(
    expense_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    return get_owned_or_404(session, Expense, expense_id, current_user, "Expense")


@router.patch(
    "/{expense_id}",
    response_model=ExpenseRead,
)
def update_expense(
    expense_id: uuid.UUID,
    expense_in: ExpenseUpdate,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    """Partially update an expense; only fields present in the body change."""
    expense = get_owned_or_404(session, Expense, expense_id, current_user, "Expense")

    updates = expense_in.model_dump(exclude_unset=True, exclude_none=True)
    if not updates:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No fields to update",
        )
    if "category_id" in updates:
        get_owned_or_404(session, Category, updates["category_id"], current_user, "Category")

    for key, value in updates.items():
        setattr(expense, key, value)
    expense.updated_at = datetime.utcnow()
    session.add(expense)
    session.commit()
    session.refresh(expense)
    return expense


@router.delete(
    "/{expense_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
def delete_expense(
    expense_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    expense = get_owned_or_404(session, Expense, expense_id, current_user, "Expense")
    receipt_path = expense.receipt_path
    session.delete(expense)
    session.commit()
    discard_receipt(receipt_path)
    return None


MAX_UPLOAD_BYTES = 10 * 1024 * 1024  # 10 MB
RECEIPT_EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "application/pdf": ".pdf",
}


@router.post(
    "/{expense_id}/receipt",
    response_model=ExpenseRead,
    status_code=status.HTTP_200_OK,
)
def upload_receipt(
    expense_id: uuid.UUID,
    file: UploadFile = File(...),
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    """Attach a receipt (JPEG, PNG or PDF up to 10 MB) to an expense.

    Files land in ``{uploads_dir}/{user_id}/{expense_id}_{uuid}.{ext}``.
    """
    expense = get_owned_or_404(session, Expense, expense_id, current_user, "Expense")

    content_type = (file.content_type or "").lower()
    ext = RECEIPT_EXTENSIONS.get(content_type)
    if ext is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Unsupported file type")

    data = file.file.read(MAX_UPLOAD_BYTES + 1)
    if len(data) == 0:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Empty file")
    if len(data) > MAX_UPLOAD_BYTES:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="File too large (max 10MB)")

    base_dir = Path(settings.uploads_dir) / str(current_user.id)
    base_dir.mkdir(parents=True, exist_ok=True)
    save_path = base_dir / f"{expense_id}_{uuid.uuid4().hex}{ext}"
    save_path.write_bytes(data)

    previous = expense.receipt_path
    expense.receipt_path = save_path.as_posix()
    expense.updated_at = datetime.utcnow()
    session.add(expense)
    session.commit()
    session.refresh(expense)
    if previous and previous != expense.receipt_path:
        discard_receipt(previous)
    logger.info("Stored receipt for expense %s at %s", expense.id, expense.receipt_path)
    return expense
