import uuid
from datetime import datetime

from sqlmodel import SQLModel, Field


class PaymentMethod(SQLModel, table=True):
    __tablename__ = "payment_methods"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True, index=True)

    user_id: uuid.UUID = Field(foreign_key="users.id", index=True)

    name: str = Field(max_length=50)
    icon: str = Field(default="💳", max_length=16)
    is_default: bool = Field(default=False)

    created_at: datetime = Field(default_factory=datetime.utcnow)
