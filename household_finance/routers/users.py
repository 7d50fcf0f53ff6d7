import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Response
from sqlmodel import Field, Session, SQLModel

from ..core.ownership import list_owned
from ..core.security import ACCESS_TOKEN_COOKIE, get_current_user
from ..database import get_session
from ..models.category import Category
from ..models.expense import Expense
from ..models.user import User
from ..schemas import Preferences, SuccessOut, UserDataExport
from ..services.aggregation import UserStats, user_stats
from ..services.lifecycle import (
    delete_account,
    export_user_data,
    get_preferences,
    save_preferences,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/users/me",
    tags=["users"],
)


class ProfileUpdate(SQLModel):
    name: Optional[str] = Field(default=None, max_length=120)
    phone: Optional[str] = Field(default=None, max_length=40)
    preferences: Optional[Preferences] = None


@router.patch(
    "/profile",
    response_model=SuccessOut,
)
def update_profile(
    payload: ProfileUpdate,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    """Update name/phone on the user and/or replace the stored preferences."""
    fields = payload.model_fields_set

    if "name" in fields or "phone" in fields:
        if "name" in fields:
            current_user.name = payload.name
        if "phone" in fields:
            current_user.phone = payload.phone
        current_user.updated_at = datetime.utcnow()
        session.add(current_user)

    if payload.preferences is not None:
        save_preferences(session, current_user, payload.preferences)

    session.commit()
    return SuccessOut(success=True)


@router.get(
    "/preferences",
    response_model=Preferences,
)
def read_preferences(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    return get_preferences(session, current_user)


@router.get(
    "/stats",
    response_model=UserStats,
)
def read_user_stats(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    return user_stats(
        list_owned(session, Expense, current_user),
        list_owned(session, Category, current_user),
    )


@router.get(
    "/export",
    response_model=UserDataExport,
)
def export_data(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    return export_user_data(session, current_user, datetime.now(timezone.utc))


@router.delete(
    "",
    response_model=SuccessOut,
)
def remove_account(
    response: Response,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    """Delete the caller's account and every row it owns."""
    delete_account(session, current_user)
    response.delete_cookie(key=ACCESS_TOKEN_COOKIE, path="/")
    return SuccessOut(success=True)
