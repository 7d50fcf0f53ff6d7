import os

# Must be set before the application modules create their engine
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET", "test-secret")

import uuid  # noqa: E402
from datetime import date  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import event  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402
from sqlmodel import Session, SQLModel, create_engine  # noqa: E402

from household_finance.config import settings  # noqa: E402
from household_finance.database import _enable_sqlite_foreign_keys, get_session  # noqa: E402
from household_finance.main import app  # noqa: E402
from household_finance.models.category import Category  # noqa: E402
from household_finance.models.expense import Expense  # noqa: E402
from household_finance.models.user import User  # noqa: E402


@pytest.fixture()
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    event.listen(eng, "connect", _enable_sqlite_foreign_keys)
    SQLModel.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture()
def session(engine):
    with Session(engine) as s:
        yield s


@pytest.fixture()
def uploads_dir(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "uploads_dir", str(tmp_path / "uploads"))
    return tmp_path / "uploads"


@pytest.fixture()
def client(engine):
    def _session_override():
        with Session(engine) as s:
            yield s

    app.dependency_overrides[get_session] = _session_override
    yield TestClient(app)
    app.dependency_overrides.clear()


def make_user(session: Session, email: str = "ana@example.com") -> User:
    user = User(email=email, hashed_password="x")
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


def make_category(name: str = "Food", user_id: uuid.UUID = None, **kwargs) -> Category:
    return Category(user_id=user_id or uuid.uuid4(), name=name, icon="🍽️", color="#FF6B6B", **kwargs)


def make_expense(
    category: Category,
    amount: float,
    day: str,
    payment_method: str = "Cash",
    name: str = "expense",
) -> Expense:
    return Expense(
        user_id=category.user_id,
        name=name,
        amount=amount,
        category_id=category.id,
        expense_date=date.fromisoformat(day),
        payment_method=payment_method,
    )


def register(client: TestClient, email: str, password: str = "secret123") -> dict:
    """Register ``email`` and return bearer auth headers for it."""
    resp = client.post("/auth/register", json={"email": email, "password": password})
    assert resp.status_code == 201, resp.text
    resp = client.post("/auth/token", data={"username": email, "password": password})
    assert resp.status_code == 200, resp.text
    return {"Authorization": f"Bearer {resp.json()['access_token']}"}
