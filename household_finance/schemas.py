import uuid
from datetime import date, datetime
from typing import List, Optional

from sqlmodel import SQLModel, Field


class NotificationSettings(SQLModel):
    budget_alerts: bool = True
    weekly_reports: bool = True
    monthly_reports: bool = True
    goal_reminders: bool = True


class PrivacySettings(SQLModel):
    share_data: bool = False
    analytics: bool = True
    marketing: bool = False


class Preferences(SQLModel):
    currency: str = Field(min_length=3, max_length=3)
    language: str = Field(min_length=2, max_length=10)
    timezone: str = Field(min_length=1, max_length=64)
    notifications: NotificationSettings = Field(default_factory=NotificationSettings)
    privacy: PrivacySettings = Field(default_factory=PrivacySettings)


class UserRead(SQLModel):
    id: uuid.UUID
    email: str
    name: Optional[str] = None
    phone: Optional[str] = None
    default_currency: str
    created_at: datetime
    updated_at: datetime


class CategoryRead(SQLModel):
    id: uuid.UUID
    name: str
    icon: str
    color: str
    is_default: bool


class PaymentMethodRead(SQLModel):
    id: uuid.UUID
    name: str
    icon: str
    is_default: bool


class ExpenseRead(SQLModel):
    id: uuid.UUID
    user_id: uuid.UUID
    name: str
    amount: float
    category_id: uuid.UUID
    expense_date: date
    payment_method: str
    description: Optional[str] = None
    tags: Optional[List[str]] = None
    receipt_path: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class ExpenseWithCategory(ExpenseRead):
    category: Optional[CategoryRead] = None


class BudgetRead(SQLModel):
    id: uuid.UUID
    category_id: uuid.UUID
    month: str
    limit: float
    created_at: datetime
    updated_at: datetime


class SavingsGoalRead(SQLModel):
    id: uuid.UUID
    name: str
    target_amount: float
    current_amount: float
    target_date: date
    description: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class ExportedUser(SQLModel):
    email: str
    name: Optional[str] = None
    phone: Optional[str] = None
    preferences: Optional[Preferences] = None


class UserDataExport(SQLModel):
    export_date: datetime
    user: ExportedUser
    expenses: List[ExpenseRead]
    categories: List[CategoryRead]
    budgets: List[BudgetRead]
    savings_goals: List[SavingsGoalRead]
    payment_methods: List[PaymentMethodRead]


class SuccessOut(SQLModel):
    success: bool = True
