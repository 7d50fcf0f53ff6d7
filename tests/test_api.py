from datetime import date
from pathlib import Path

import pytest

from household_finance.routers import expenses as expenses_router

from conftest import register

PNG_BYTES = b"\x89PNG\r\n\x1a\nreceipt"


def _seed_categories(client, headers) -> dict:
    resp = client.post("/categories/defaults", headers=headers)
    assert resp.status_code == 201, resp.text
    return {c["name"]: c for c in resp.json()}


def _add_expense(client, headers, category_id: str, amount: float, day: str, **extra):
    body = {
        "name": extra.pop("name", "expense"),
        "amount": amount,
        "category_id": category_id,
        "expense_date": day,
        "payment_method": extra.pop("payment_method", "Cash"),
        **extra,
    }
    resp = client.post("/expenses", json=body, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()


@pytest.mark.parametrize(
    "method, path",
    [
        ("get", "/budgets"),
        ("get", "/budgets/alerts"),
        ("get", "/categories"),
        ("get", "/expenses"),
        ("get", "/expenses/dashboard"),
        ("get", "/payment-methods"),
        ("get", "/savings-goals"),
        ("get", "/users/me/stats"),
        ("get", "/users/me/export"),
        ("delete", "/users/me"),
    ],
)
def test_operations_require_authentication(client, method: str, path: str) -> None:
    resp = getattr(client, method)(path)
    assert resp.status_code == 401


def test_invalid_token_rejected(client) -> None:
    resp = client.get("/categories", headers={"Authorization": "Bearer not-a-token"})
    assert resp.status_code == 401


def test_login_cookie_authenticates(client) -> None:
    register(client, "ana@example.com")
    resp = client.post("/auth/login", json={"email": "ana@example.com", "password": "secret123"})
    assert resp.status_code == 200

    assert client.get("/auth/me").json()["email"] == "ana@example.com"


def test_duplicate_registration_conflicts(client) -> None:
    register(client, "ana@example.com")
    resp = client.post("/auth/register", json={"email": "ana@example.com", "password": "secret123"})
    assert resp.status_code == 409


def test_ownership_isolation(client) -> None:
    ana = register(client, "ana@example.com")
    bia = register(client, "bia@example.com")
    bia_food = _seed_categories(client, bia)["Food"]
    bia_expense = _add_expense(client, bia, bia_food["id"], 10, "2024-01-05")

    assert client.get("/expenses", headers=ana).json() == []
    assert client.get("/categories", headers=ana).json() == []

    assert client.get(f"/expenses/{bia_expense['id']}", headers=ana).status_code == 404
    assert client.patch(
        f"/expenses/{bia_expense['id']}", json={"amount": 1}, headers=ana
    ).status_code == 404
    assert client.delete(f"/expenses/{bia_expense['id']}", headers=ana).status_code == 404
    assert client.delete(f"/categories/{bia_food['id']}", headers=ana).status_code == 404

    # Referencing another user's category is refused as well
    resp = client.post(
        "/expenses",
        json={
            "name": "x",
            "amount": 5,
            "category_id": bia_food["id"],
            "expense_date": "2024-01-05",
            "payment_method": "Cash",
        },
        headers=ana,
    )
    assert resp.status_code == 404

    assert client.get(f"/expenses/{bia_expense['id']}", headers=bia).json()["amount"] == 10


def test_category_with_expenses_cannot_be_deleted(client) -> None:
    ana = register(client, "ana@example.com")
    categories = _seed_categories(client, ana)
    food = categories["Food"]
    expense = _add_expense(client, ana, food["id"], 10, "2024-01-05")

    assert client.delete(f"/categories/{food['id']}", headers=ana).status_code == 409

    assert client.delete(f"/expenses/{expense['id']}", headers=ana).status_code == 204
    assert client.delete(f"/categories/{food['id']}", headers=ana).status_code == 204


def test_update_expense_patches_given_fields_only(client) -> None:
    ana = register(client, "ana@example.com")
    food = _seed_categories(client, ana)["Food"]
    expense = _add_expense(client, ana, food["id"], 10, "2024-01-05", description="bread")

    resp = client.patch(f"/expenses/{expense['id']}", json={"amount": 12.5}, headers=ana)

    assert resp.status_code == 200
    body = resp.json()
    assert body["amount"] == 12.5
    assert body["description"] == "bread"
    assert client.patch(f"/expenses/{expense['id']}", json={}, headers=ana).status_code == 400


def test_list_expenses_filters_and_sorts(client) -> None:
    ana = register(client, "ana@example.com")
    categories = _seed_categories(client, ana)
    food, health = categories["Food"], categories["Health"]
    _add_expense(client, ana, food["id"], 10, "2024-01-05")
    _add_expense(client, ana, food["id"], 20, "2024-01-25")
    _add_expense(client, ana, health["id"], 30, "2024-01-15")
    _add_expense(client, ana, food["id"], 40, "2024-02-01")

    resp = client.get(
        "/expenses",
        params={"start_date": "2024-01-01", "end_date": "2024-01-31", "category_id": food["id"]},
        headers=ana,
    )

    rows = resp.json()
    assert [r["amount"] for r in rows] == [20, 10]
    assert rows[0]["category"]["name"] == "Food"


def test_budget_upsert_and_status(client) -> None:
    ana = register(client, "ana@example.com")
    food = _seed_categories(client, ana)["Food"]
    _add_expense(client, ana, food["id"], 100, "2024-01-05")
    _add_expense(client, ana, food["id"], 50, "2024-01-20")

    first = client.post(
        "/budgets", json={"category_id": food["id"], "month": "2024-01", "limit": 200}, headers=ana
    ).json()
    second = client.post(
        "/budgets", json={"category_id": food["id"], "month": "2024-01", "limit": 120}, headers=ana
    ).json()
    assert first["id"] == second["id"]

    budgets = client.get("/budgets", params={"month": "2024-01"}, headers=ana).json()

    assert len(budgets) == 1
    assert budgets[0]["spent"] == 150
    assert budgets[0]["remaining"] == -30
    assert budgets[0]["percentage"] == pytest.approx(125.0)
    assert budgets[0]["display_percentage"] == 100
    assert budgets[0]["status"] == "exceeded"


def test_budget_rejects_bad_input(client) -> None:
    ana = register(client, "ana@example.com")
    food = _seed_categories(client, ana)["Food"]

    bad_month = client.post(
        "/budgets", json={"category_id": food["id"], "month": "2024-13", "limit": 10}, headers=ana
    )
    zero_limit = client.post(
        "/budgets", json={"category_id": food["id"], "month": "2024-01", "limit": 0}, headers=ana
    )

    assert bad_month.status_code == 400
    assert zero_limit.status_code == 422
    assert client.get("/budgets", params={"month": "January"}, headers=ana).status_code == 400


def test_budget_alerts_for_current_month(client) -> None:
    ana = register(client, "ana@example.com")
    categories = _seed_categories(client, ana)
    today = date.today()
    month = today.strftime("%Y-%m")
    for name, spent in (("Food", 95), ("Health", 10)):
        client.post(
            "/budgets",
            json={"category_id": categories[name]["id"], "month": month, "limit": 100},
            headers=ana,
        )
        _add_expense(client, ana, categories[name]["id"], spent, today.isoformat())

    alerts = client.get("/budgets/alerts", headers=ana).json()

    assert [(a["category_name"], a["type"]) for a in alerts] == [("Food", "warning")]


def test_dashboard_and_report_endpoints(client) -> None:
    ana = register(client, "ana@example.com")
    food = _seed_categories(client, ana)["Food"]
    _add_expense(client, ana, food["id"], 100, "2024-01-05")
    _add_expense(client, ana, food["id"], 50, "2024-01-20")

    dashboard = client.get("/expenses/dashboard", params={"month": "2024-01"}, headers=ana).json()
    assert dashboard["total_month"] == 150
    assert dashboard["expense_count"] == 2
    assert dashboard["category_breakdown"][0]["name"] == "Food"

    report = client.get(
        "/expenses/report",
        params={"start_date": "2024-01-01", "end_date": "2024-01-31"},
        headers=ana,
    ).json()
    assert report["total"] == 150
    assert report["count"] == 2
    assert report["average"] == 75
    assert report["category_breakdown"] == [{"name": "Food", "amount": 150, "percentage": 100.0}]

    inverted = client.get(
        "/expenses/report",
        params={"start_date": "2024-02-01", "end_date": "2024-01-01"},
        headers=ana,
    )
    assert inverted.status_code == 400


def test_report_csv_export(client) -> None:
    ana = register(client, "ana@example.com")
    food = _seed_categories(client, ana)["Food"]
    _add_expense(client, ana, food["id"], 12.5, "2024-01-05", name="=SUM(A1)")

    resp = client.get(
        "/expenses/report.csv",
        params={"start_date": "2024-01-01", "end_date": "2024-01-31"},
        headers=ana,
    )

    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/csv")
    lines = resp.text.strip().splitlines()
    assert lines[0] == "Date,Name,Category,Amount,Payment Method,Description"
    assert lines[1] == "2024-01-05,\t=SUM(A1),Food,12.50,Cash,"


def test_savings_goal_flow(client) -> None:
    ana = register(client, "ana@example.com")
    goal = client.post(
        "/savings-goals",
        json={"name": "Trip", "target_amount": 1000, "target_date": "2999-01-01"},
        headers=ana,
    ).json()
    assert goal["current_amount"] == 0

    client.post(f"/savings-goals/{goal['id']}/progress", json={"amount": 300}, headers=ana)
    resp = client.post(f"/savings-goals/{goal['id']}/progress", json={"amount": -500}, headers=ana)
    assert resp.json()["current_amount"] == 0

    client.post(f"/savings-goals/{goal['id']}/progress", json={"amount": 250}, headers=ana)
    goals = client.get("/savings-goals", headers=ana).json()
    assert goals[0]["percentage"] == pytest.approx(25.0)
    assert goals[0]["status"] == "active"

    assert client.delete(f"/savings-goals/{goal['id']}", headers=ana).status_code == 204
    assert client.get("/savings-goals", headers=ana).json() == []


def test_profile_and_preferences(client) -> None:
    ana = register(client, "ana@example.com")

    defaults = client.get("/users/me/preferences", headers=ana).json()
    assert defaults["notifications"]["budget_alerts"] is True

    prefs = {
        "currency": "USD",
        "language": "en-US",
        "timezone": "UTC",
        "notifications": {
            "budget_alerts": False,
            "weekly_reports": True,
            "monthly_reports": True,
            "goal_reminders": False,
        },
        "privacy": {"share_data": False, "analytics": False, "marketing": False},
    }
    resp = client.patch(
        "/users/me/profile", json={"name": "Ana", "preferences": prefs}, headers=ana
    )
    assert resp.json() == {"success": True}

    assert client.get("/users/me/preferences", headers=ana).json() == prefs
    assert client.get("/auth/me", headers=ana).json()["name"] == "Ana"


def test_user_stats_and_export(client) -> None:
    ana = register(client, "ana@example.com")
    food = _seed_categories(client, ana)["Food"]
    _add_expense(client, ana, food["id"], 100, "2024-01-05")
    _add_expense(client, ana, food["id"], 50, "2024-02-20")

    stats = client.get("/users/me/stats", headers=ana).json()
    assert stats["total_expenses"] == 2
    assert stats["monthly_trends"] == [
        {"month": "2024-01", "amount": 100},
        {"month": "2024-02", "amount": 50},
    ]

    snapshot = client.get("/users/me/export", headers=ana).json()
    assert snapshot["user"]["email"] == "ana@example.com"
    assert len(snapshot["expenses"]) == 2
    assert len(snapshot["categories"]) == 8


def test_delete_account_removes_everything(client) -> None:
    ana = register(client, "ana@example.com")
    food = _seed_categories(client, ana)["Food"]
    client.post("/payment-methods/defaults", headers=ana)
    _add_expense(client, ana, food["id"], 100, "2024-01-05")

    resp = client.delete("/users/me", headers=ana)
    assert resp.json() == {"success": True}

    # The token now points to a user that no longer exists
    assert client.get("/categories", headers=ana).status_code == 401
    login = client.post("/auth/token", data={"username": "ana@example.com", "password": "secret123"})
    assert login.status_code == 401


def _upload_receipt(client, headers, expense_id: str, content: bytes = PNG_BYTES, kind: str = "image/png"):
    return client.post(
        f"/expenses/{expense_id}/receipt",
        files={"file": ("receipt.png", content, kind)},
        headers=headers,
    )


def test_deleting_category_removes_its_budgets(client) -> None:
    ana = register(client, "ana@example.com")
    food = _seed_categories(client, ana)["Food"]
    client.post(
        "/budgets", json={"category_id": food["id"], "month": "2024-01", "limit": 100}, headers=ana
    )

    # Foreign keys are enforced, so a leftover budget would fail the delete
    assert client.delete(f"/categories/{food['id']}", headers=ana).status_code == 204

    assert client.get("/budgets", params={"month": "2024-01"}, headers=ana).json() == []
    names = [c["name"] for c in client.get("/categories", headers=ana).json()]
    assert "Food" not in names


def test_update_category(client) -> None:
    ana = register(client, "ana@example.com")
    food = _seed_categories(client, ana)["Food"]

    resp = client.patch(f"/categories/{food['id']}", json={"name": "Groceries"}, headers=ana)

    assert resp.status_code == 200
    body = resp.json()
    assert body["name"] == "Groceries"
    assert body["color"] == food["color"]
    assert body["is_default"] is True
    assert client.patch(f"/categories/{food['id']}", json={}, headers=ana).status_code == 400


def test_payment_methods(client) -> None:
    ana = register(client, "ana@example.com")

    seeded = client.post("/payment-methods/defaults", headers=ana)
    assert seeded.status_code == 201
    assert [m["name"] for m in seeded.json()] == [
        "Cash",
        "Debit Card",
        "Credit Card",
        "PIX",
        "Bank Transfer",
        "Bank Slip",
    ]
    assert all(m["is_default"] for m in seeded.json())

    created = client.post("/payment-methods", json={"name": "Meal Voucher", "icon": "🎟️"}, headers=ana)
    assert created.status_code == 201
    assert created.json()["is_default"] is False

    methods = client.get("/payment-methods", headers=ana).json()
    assert len(methods) == 7
    assert "Meal Voucher" in {m["name"] for m in methods}


def test_update_savings_goal(client) -> None:
    ana = register(client, "ana@example.com")
    goal = client.post(
        "/savings-goals",
        json={"name": "Trip", "target_amount": 1000, "target_date": "2999-01-01"},
        headers=ana,
    ).json()

    resp = client.patch(
        f"/savings-goals/{goal['id']}", json={"target_amount": 2000, "description": "Japan"}, headers=ana
    )

    assert resp.status_code == 200
    body = resp.json()
    assert body["target_amount"] == 2000
    assert body["description"] == "Japan"
    assert body["name"] == "Trip"
    assert client.patch(f"/savings-goals/{goal['id']}", json={}, headers=ana).status_code == 400


def test_report_category_filter(client) -> None:
    ana = register(client, "ana@example.com")
    categories = _seed_categories(client, ana)
    _add_expense(client, ana, categories["Food"]["id"], 100, "2024-01-05")
    _add_expense(client, ana, categories["Health"]["id"], 40, "2024-01-07")

    report = client.get(
        "/expenses/report",
        params={
            "start_date": "2024-01-01",
            "end_date": "2024-01-31",
            "category_id": categories["Health"]["id"],
        },
        headers=ana,
    ).json()

    assert report["total"] == 40
    assert report["count"] == 1
    assert [b["name"] for b in report["category_breakdown"]] == ["Health"]


def test_dashboard_for_first_month_of_year_one(client) -> None:
    ana = register(client, "ana@example.com")

    resp = client.get("/expenses/dashboard", params={"month": "0001-01"}, headers=ana)

    assert resp.status_code == 200
    assert resp.json()["total_prev_month"] == 0
    year_zero = client.get("/expenses/dashboard", params={"month": "0000-05"}, headers=ana)
    assert year_zero.status_code == 400


def test_receipt_upload_stores_file(client, uploads_dir) -> None:
    ana = register(client, "ana@example.com")
    food = _seed_categories(client, ana)["Food"]
    expense = _add_expense(client, ana, food["id"], 10, "2024-01-05")

    resp = _upload_receipt(client, ana, expense["id"])

    assert resp.status_code == 200
    stored = Path(resp.json()["receipt_path"])
    assert stored.read_bytes() == PNG_BYTES
    assert stored.suffix == ".png"
    assert stored.parent.parent == uploads_dir
    assert stored.name.startswith(expense["id"])


def test_receipt_upload_rejects_bad_files(client, uploads_dir, monkeypatch) -> None:
    ana = register(client, "ana@example.com")
    food = _seed_categories(client, ana)["Food"]
    expense = _add_expense(client, ana, food["id"], 10, "2024-01-05")

    wrong_type = _upload_receipt(client, ana, expense["id"], b"hello", "text/plain")
    empty = _upload_receipt(client, ana, expense["id"], b"")
    monkeypatch.setattr(expenses_router, "MAX_UPLOAD_BYTES", 4)
    too_big = _upload_receipt(client, ana, expense["id"])

    assert wrong_type.status_code == 400
    assert empty.status_code == 400
    assert too_big.status_code == 400
    assert client.get(f"/expenses/{expense['id']}", headers=ana).json()["receipt_path"] is None


def test_replacing_receipt_removes_previous_file(client, uploads_dir) -> None:
    ana = register(client, "ana@example.com")
    food = _seed_categories(client, ana)["Food"]
    expense = _add_expense(client, ana, food["id"], 10, "2024-01-05")

    first = Path(_upload_receipt(client, ana, expense["id"]).json()["receipt_path"])
    second = Path(_upload_receipt(client, ana, expense["id"]).json()["receipt_path"])

    assert first != second
    assert not first.exists()
    assert second.exists()


def test_deleting_expense_removes_receipt(client, uploads_dir) -> None:
    ana = register(client, "ana@example.com")
    food = _seed_categories(client, ana)["Food"]
    expense = _add_expense(client, ana, food["id"], 10, "2024-01-05")
    stored = Path(_upload_receipt(client, ana, expense["id"]).json()["receipt_path"])

    assert client.delete(f"/expenses/{expense['id']}", headers=ana).status_code == 204

    assert not stored.exists()


def test_deleting_account_removes_receipts(client, uploads_dir) -> None:
    ana = register(client, "ana@example.com")
    food = _seed_categories(client, ana)["Food"]
    expense = _add_expense(client, ana, food["id"], 10, "2024-01-05")
    stored = Path(_upload_receipt(client, ana, expense["id"]).json()["receipt_path"])

    assert client.delete("/users/me", headers=ana).json() == {"success": True}

    assert not stored.exists()
