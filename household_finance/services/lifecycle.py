"""Per-user data lifecycle: default seeding, export snapshots and account removal."""
import logging
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from sqlmodel import Session, select

from ..config import settings
from ..core.ownership import list_owned
from ..models.budget import Budget
from ..models.category import Category
from ..models.expense import Expense
from ..models.payment_method import PaymentMethod
from ..models.savings_goal import SavingsGoal
from ..models.user import User
from ..models.user_profile import UserProfile
from ..schemas import (
    BudgetRead,
    CategoryRead,
    ExpenseRead,
    ExportedUser,
    PaymentMethodRead,
    Preferences,
    SavingsGoalRead,
    UserDataExport,
)

logger = logging.getLogger(__name__)


DEFAULT_CATEGORIES = (
    {"name": "Food", "icon": "🍽️", "color": "#FF6B6B"},
    {"name": "Transport", "icon": "🚗", "color": "#4ECDC4"},
    {"name": "Housing", "icon": "🏠", "color": "#45B7D1"},
    {"name": "Health", "icon": "⚕️", "color": "#96CEB4"},
    {"name": "Education", "icon": "📚", "color": "#FFEAA7"},
    {"name": "Leisure", "icon": "🎮", "color": "#DDA0DD"},
    {"name": "Clothing", "icon": "👕", "color": "#98D8C8"},
    {"name": "Other", "icon": "📦", "color": "#A0A0A0"},
)

DEFAULT_PAYMENT_METHODS = (
    {"name": "Cash", "icon": "💵"},
    {"name": "Debit Card", "icon": "💳"},
    {"name": "Credit Card", "icon": "💳"},
    {"name": "PIX", "icon": "📱"},
    {"name": "Bank Transfer", "icon": "🏦"},
    {"name": "Bank Slip", "icon": "📄"},
)


def default_preferences() -> Preferences:
    return Preferences(
        currency=settings.default_currency,
        language=settings.default_language,
        timezone=settings.default_timezone,
    )


def seed_default_categories(session: Session, user: User) -> List[Category]:
    """Insert the default category catalog for ``user``.

    Inserts unconditionally; callers only seed when the user has no
    categories yet. Seeding twice leaves two copies of the catalog.
    """
    created = [
        Category(user_id=user.id, is_default=True, **item) for item in DEFAULT_CATEGORIES
    ]
    session.add_all(created)
    session.commit()
    for category in created:
        session.refresh(category)
    logger.info("Seeded %d default categories for user %s", len(created), user.id)
    return created


def seed_default_payment_methods(session: Session, user: User) -> List[PaymentMethod]:
    """Insert the default payment method catalog; same caller contract as categories."""
    created = [
        PaymentMethod(user_id=user.id, is_default=True, **item)
        for item in DEFAULT_PAYMENT_METHODS
    ]
    session.add_all(created)
    session.commit()
    for method in created:
        session.refresh(method)
    logger.info("Seeded %d default payment methods for user %s", len(created), user.id)
    return created


def get_profile(session: Session, user: User) -> Optional[UserProfile]:
    return session.exec(select(UserProfile).where(UserProfile.user_id == user.id)).first()


def get_preferences(session: Session, user: User) -> Preferences:
    profile = get_profile(session, user)
    if profile is None or not profile.preferences:
        return default_preferences()
    return Preferences.model_validate(profile.preferences)


def save_preferences(session: Session, user: User, preferences: Preferences) -> UserProfile:
    """Store ``preferences``, creating the profile row on first write."""
    now = datetime.utcnow()
    profile = get_profile(session, user)
    if profile is None:
        profile = UserProfile(user_id=user.id, created_at=now)
    profile.preferences = preferences.model_dump()
    profile.updated_at = now
    session.add(profile)
    return profile


def export_user_data(session: Session, user: User, now: datetime) -> UserDataExport:
    profile = get_profile(session, user)
    preferences = None
    if profile is not None and profile.preferences:
        preferences = Preferences.model_validate(profile.preferences)

    return UserDataExport(
        export_date=now,
        user=ExportedUser(
            email=user.email,
            name=user.name,
            phone=user.phone,
            preferences=preferences,
        ),
        expenses=[ExpenseRead.model_validate(e) for e in list_owned(session, Expense, user)],
        categories=[CategoryRead.model_validate(c) for c in list_owned(session, Category, user)],
        budgets=[BudgetRead.model_validate(b) for b in list_owned(session, Budget, user)],
        savings_goals=[
            SavingsGoalRead.model_validate(g) for g in list_owned(session, SavingsGoal, user)
        ],
        payment_methods=[
            PaymentMethodRead.model_validate(m) for m in list_owned(session, PaymentMethod, user)
        ],
    )


def discard_receipt(receipt_path: Optional[str]) -> None:
    """Remove a stored receipt file; a file that is already gone is ignored."""
    if not receipt_path:
        return
    Path(receipt_path).unlink(missing_ok=True)
    logger.info("Removed receipt %s", receipt_path)


# Dependent rows first so foreign keys to categories and users stay satisfied.
ACCOUNT_COLLECTIONS = (Expense, Budget, SavingsGoal, Category, PaymentMethod, UserProfile)


def delete_account(session: Session, user: User) -> int:
    """Delete every row owned by ``user`` and then the user itself.

    Receipt files attached to the user's expenses are removed from disk too.

    This is a sequential sweep without rollback across collections. A failure
    part-way leaves the remaining rows in place.
    """
    deleted = 0
    user_id = user.id
    for model in ACCOUNT_COLLECTIONS:
        rows = list_owned(session, model, user)
        for row in rows:
            if model is Expense:
                discard_receipt(row.receipt_path)
            session.delete(row)
        session.commit()
        deleted += len(rows)
        logger.info("Deleted %d %s rows for user %s", len(rows), model.__tablename__, user_id)

    session.delete(user)
    session.commit()
    logger.info("Deleted user %s", user_id)
    return deleted
