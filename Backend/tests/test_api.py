import pytest

API = "/api/v1"


async def category_id_by_name(client, headers, name):
    response = await client.get(f"{API}/categories", headers=headers)
    assert response.status_code == 200
    return next(c["id"] for c in response.json() if c["name"] == name)


@pytest.mark.asyncio
async def test_register_seeds_default_categories(client, auth_headers):
    response = await client.get(f"{API}/categories", headers=auth_headers)

    assert response.status_code == 200
    names = {c["name"] for c in response.json()}
    assert len(names) == 9
    assert {"Transport", "Food & Dining", "Other"} <= names


@pytest.mark.asyncio
async def test_duplicate_registration_rejected(client, auth_headers):
    response = await client.post(
        f"{API}/auth/register",
        json={"email": "jean@example.com", "password": "another1"},
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_login_and_profile(client, auth_headers):
    response = await client.post(
        f"{API}/auth/token",
        data={"username": "jean@example.com", "password": "secret123"},
    )
    assert response.status_code == 200
    token = response.json()["access_token"]

    me = await client.get(f"{API}/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["full_name"] == "Jean"

    bad = await client.post(f"{API}/auth/token", data={"username": "jean@example.com", "password": "wrong"})
    assert bad.status_code == 401


@pytest.mark.asyncio
async def test_requires_authentication(client):
    response = await client.get(f"{API}/analytics/summary")
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_expense_budget_flow(client, auth_headers):
    food_id = await category_id_by_name(client, auth_headers, "Food & Dining")
    transport_id = await category_id_by_name(client, auth_headers, "Transport")

    budget = await client.post(
        f"{API}/budgets",
        headers=auth_headers,
        json={
            "name": "Groceries",
            "amount": "10000",
            "category_id": food_id,
            "start_date": "2026-01-01",
            "end_date": "2026-01-31",
        },
    )
    assert budget.status_code == 201
    budget_id = budget.json()["id"]

    for amount, category_id, day in [("7000", food_id, "05"), ("5000", food_id, "20"), ("3000", transport_id, "12")]:
        response = await client.post(
            f"{API}/expenses",
            headers=auth_headers,
            json={"amount": amount, "category_id": category_id, "expense_date": f"2026-01-{day}"},
        )
        assert response.status_code == 201

    summary = await client.get(f"{API}/analytics/summary", params={"month": "2026-01"}, headers=auth_headers)
    assert summary.status_code == 200
    body = summary.json()
    assert body["window_start"] == "2026-01-01"
    assert body["statistics"]["transaction_count"] == 3
    assert body["statistics"]["most_frequent_category_name"] == "Food & Dining"
    assert body["breakdown"][0]["name"] == "Food & Dining"
    assert body["breakdown"][0]["percentage_of_total"] == pytest.approx(80.0)

    status = await client.get(f"{API}/analytics/budgets/{budget_id}", headers=auth_headers)
    assert status.status_code == 200
    assert status.json()["percentage_used"] == pytest.approx(120.0)
    assert status.json()["is_exceeded"] is True
    assert status.json()["band"] == "over_budget"

    # The 7000 expense crossed 70%, nothing yet; 12000 crossed 100%
    notifications = await client.get(f"{API}/notifications", headers=auth_headers)
    titles = [n["title"] for n in notifications.json()]
    assert titles == ["Budget Exceeded!"]

    overview = await client.get(f"{API}/dashboard/overview", params={"month": "2026-01"}, headers=auth_headers)
    assert overview.status_code == 200
    dashboard = overview.json()
    assert dashboard["expenses_this_month"] == 3
    assert dashboard["budgets_exceeded"] == 1
    assert dashboard["exceeded_budgets"][0]["category_name"] == "Food & Dining"
    assert dashboard["budget_used_percentage"] == pytest.approx(150.0)
    assert dashboard["budget_used_band"] == "over_budget"
    assert len(dashboard["recent_expenses"]) == 3


@pytest.mark.asyncio
async def test_zero_budget_rejected(client, auth_headers):
    food_id = await category_id_by_name(client, auth_headers, "Food & Dining")

    response = await client.post(
        f"{API}/budgets",
        headers=auth_headers,
        json={
            "name": "Nothing",
            "amount": "0",
            "category_id": food_id,
            "start_date": "2026-01-01",
            "end_date": "2026-01-31",
        },
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_inverted_window_is_unprocessable(client, auth_headers):
    response = await client.get(
        f"{API}/analytics/statistics",
        params={"start": "2026-01-31", "end": "2026-01-01"},
        headers=auth_headers,
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_bad_month_selector(client, auth_headers):
    response = await client.get(f"{API}/analytics/breakdown", params={"month": "2026-13"}, headers=auth_headers)
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_expense_with_foreign_category_rejected(client, auth_headers):
    response = await client.post(
        f"{API}/expenses",
        headers=auth_headers,
        json={
            "amount": "10",
            "category_id": "00000000-0000-0000-0000-000000000000",
            "expense_date": "2026-01-02",
        },
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Category not found"


@pytest.mark.asyncio
async def test_deleting_category_uncategorizes_expenses(client, auth_headers):
    transport_id = await category_id_by_name(client, auth_headers, "Transport")
    created = await client.post(
        f"{API}/expenses",
        headers=auth_headers,
        json={"amount": "250", "category_id": transport_id, "expense_date": "2026-01-02"},
    )
    expense_id = created.json()["id"]

    deleted = await client.delete(f"{API}/categories/{transport_id}", headers=auth_headers)
    assert deleted.status_code == 204

    expense = await client.get(f"{API}/expenses/{expense_id}", headers=auth_headers)
    assert expense.json()["category_id"] is None

    stats = await client.get(f"{API}/analytics/statistics", params={"month": "2026-01"}, headers=auth_headers)
    assert stats.json()["largest_expense"]["category_name"] == "Uncategorized"


async def create_budget_and_expense(client, headers):
    food_id = await category_id_by_name(client, headers, "Food & Dining")
    budget = await client.post(
        f"{API}/budgets",
        headers=headers,
        json={
            "name": "Groceries",
            "amount": "10000",
            "category_id": food_id,
            "start_date": "2026-01-01",
            "end_date": "2026-01-31",
        },
    )
    expense = await client.post(
        f"{API}/expenses",
        headers=headers,
        json={"amount": "250", "category_id": food_id, "expense_date": "2026-01-02"},
    )
    return budget.json()["id"], expense.json()["id"]


@pytest.mark.asyncio
@pytest.mark.parametrize("field", ["name", "amount", "category_id", "period", "start_date", "end_date"])
async def test_budget_update_rejects_null_for_required_field(client, auth_headers, field):
    budget_id, _ = await create_budget_and_expense(client, auth_headers)

    response = await client.put(f"{API}/budgets/{budget_id}", headers=auth_headers, json={field: None})
    assert response.status_code == 422

    # The session is still usable and the budget unchanged
    budget = await client.get(f"{API}/budgets/{budget_id}", headers=auth_headers)
    assert budget.status_code == 200
    assert budget.json()["amount"] in ("10000", "10000.00")
    assert budget.json()["start_date"] == "2026-01-01"


@pytest.mark.asyncio
@pytest.mark.parametrize("field", ["amount", "expense_date"])
async def test_expense_update_rejects_null_for_required_field(client, auth_headers, field):
    _, expense_id = await create_budget_and_expense(client, auth_headers)

    response = await client.put(f"{API}/expenses/{expense_id}", headers=auth_headers, json={field: None})
    assert response.status_code == 422

    expense = await client.get(f"{API}/expenses/{expense_id}", headers=auth_headers)
    assert expense.status_code == 200
    assert expense.json()["expense_date"] == "2026-01-02"


@pytest.mark.asyncio
async def test_expense_update_can_clear_category(client, auth_headers):
    _, expense_id = await create_budget_and_expense(client, auth_headers)

    response = await client.put(f"{API}/expenses/{expense_id}", headers=auth_headers, json={"category_id": None})
    assert response.status_code == 200
    assert response.json()["category_id"] is None
