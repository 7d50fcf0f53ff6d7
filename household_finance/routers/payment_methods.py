from datetime import datetime
from typing import List

from fastapi import APIRouter, Depends, status
from sqlmodel import Field, Session, SQLModel

from ..core.ownership import list_owned
from ..core.security import get_current_user
from ..database import get_session
from ..models.payment_method import PaymentMethod
from ..models.user import User
from ..schemas import PaymentMethodRead
from ..services.lifecycle import seed_default_payment_methods


router = APIRouter(
    prefix="/payment-methods",
    tags=["payment-methods"],
)


class PaymentMethodCreate(SQLModel):
    name: str = Field(min_length=1, max_length=50)
    icon: str = Field(default="💳", min_length=1, max_length=16)


@router.get(
    "",
    response_model=List[PaymentMethodRead],
)
def list_payment_methods(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    return list_owned(session, PaymentMethod, current_user)


@router.post(
    "",
    response_model=PaymentMethodRead,
    status_code=status.HTTP_201_CREATED,
)
def create_payment_method(
    payload: PaymentMethodCreate,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    method = PaymentMethod(
        user_id=current_user.id,
        name=payload.name,
        icon=payload.icon,
        is_default=False,
        created_at=datetime.utcnow(),
    )
    session.add(method)
    session.commit()
    session.refresh(method)
    return method


@router.post(
    "/defaults",
    response_model=List[PaymentMethodRead],
    status_code=status.HTTP_201_CREATED,
)
def create_default_payment_methods(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    return seed_default_payment_methods(session, current_user)
