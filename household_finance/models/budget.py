import uuid
from datetime import datetime

from sqlalchemy import Index
from sqlmodel import SQLModel, Field


class Budget(SQLModel, table=True):
    __tablename__ = "budgets"
    __table_args__ = (Index("ix_budgets_user_month", "user_id", "month"),)

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True, index=True)

    user_id: uuid.UUID = Field(foreign_key="users.id", index=True)

    # YYYY-MM (e.g. 2026-02)
    month: str = Field(min_length=7, max_length=7)

    category_id: uuid.UUID = Field(foreign_key="categories.id", index=True)

    limit: float = Field(gt=0)

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
