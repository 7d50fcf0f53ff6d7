import uuid
from typing import Type, TypeVar

from fastapi import HTTPException, status
from sqlmodel import Session, SQLModel, select

from ..models.user import User

ModelT = TypeVar("ModelT", bound=SQLModel)


def get_owned_or_404(
    session: Session,
    model: Type[ModelT],
    record_id: uuid.UUID,
    user: User,
    label: str,
) -> ModelT:
    """Load ``record_id`` if ``user`` owns it.

    A missing row and a row owned by someone else produce the same 404 so
    callers cannot discover other users' ids.
    """
    record = session.get(model, record_id)
    if record is None or record.user_id != user.id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{label} not found")
    return record


def list_owned(session: Session, model: Type[ModelT], user: User) -> list:
    return list(session.exec(select(model).where(model.user_id == user.id)).all())
