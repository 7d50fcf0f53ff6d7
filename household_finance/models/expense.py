import uuid
from datetime import datetime, date
from typing import List, Optional

from sqlalchemy import Column, Index, JSON
from sqlmodel import SQLModel, Field


class Expense(SQLModel, table=True):
    __tablename__ = "expenses"
    __table_args__ = (
        Index("ix_expenses_user_date", "user_id", "expense_date"),
        Index("ix_expenses_user_category", "user_id", "category_id"),
    )

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True, index=True)

    user_id: uuid.UUID = Field(
        foreign_key="users.id",
        index=True
    )

    name: str = Field(max_length=120)
    amount: float
    category_id: uuid.UUID = Field(foreign_key="categories.id")
    expense_date: date = Field(default_factory=date.today)

    # Matched against payment method names on input only, not a foreign key
    payment_method: str = Field(max_length=50)

    description: Optional[str] = Field(default=None, max_length=255)
    tags: Optional[List[str]] = Field(default=None, sa_column=Column(JSON))
    receipt_path: Optional[str] = Field(default=None)

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
