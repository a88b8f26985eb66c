from datetime import date, timedelta

import pytest

from conftest import add_expense, add_revenue
from gestao_financeira.core.timezone_utils import today_in_brazil
from gestao_financeira.models.category import Category, CategoryType
from gestao_financeira.models.transaction import Expense, Revenue


def category_id(db, cat_type, name):
    return db.query(Category).filter(Category.type == cat_type, Category.name == name).one().id


def test_categories_seeded_and_filtered(client, user_headers):
    revenue_cats = client.get("/categories?type=revenue", headers=user_headers).json()
    expense_cats = client.get("/categories?type=expense", headers=user_headers).json()

    assert {c["type"] for c in revenue_cats} == {"revenue"}
    assert "Vendas" in [c["name"] for c in revenue_cats]
    assert "Aluguel" in [c["name"] for c in expense_cats]


def test_create_revenue_uses_selected_company(client, db, user_headers, company):
    vendas = category_id(db, CategoryType.revenue, "Vendas")
    resp = client.post("/revenues", json={
        "description": "Venda balcão",
        "amount": 150.5,
        "date": "2025-03-10",
        "category_id": vendas,
    }, headers=user_headers)

    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["company_id"] == company.id
    assert body["status"] == "pendente"
    assert body["amount"] == 150.5
    assert body["category_name"] == "Vendas"


@pytest.mark.parametrize("amount", [0, -10])
def test_amount_must_be_positive(client, user_headers, company, amount):
    resp = client.post("/expenses", json={"description": "Conta", "amount": amount, "date": "2025-03-10"},
                       headers=user_headers)
    assert resp.status_code == 422


def test_category_type_must_match_table(client, db, user_headers, company):
    aluguel = category_id(db, CategoryType.expense, "Aluguel")
    resp = client.post("/revenues", json={
        "description": "Errado", "amount": 10, "date": "2025-03-10", "category_id": aluguel,
    }, headers=user_headers)
    assert resp.status_code == 400


def test_create_without_any_company(client, user_headers):
    resp = client.post("/expenses", json={"description": "Conta", "amount": 10, "date": "2025-03-10"},
                       headers=user_headers)
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Nenhuma empresa selecionada"


def test_list_filters_and_sorting(client, db, user_headers, company):
    add_expense(db, company, 30, date(2025, 1, 5), status="pendente")
    add_expense(db, company, 80, date(2025, 1, 20))
    add_expense(db, company, 55, date(2025, 2, 1))

    resp = client.get(f"/expenses?company_id={company.id}&start=2025-01-01&end=2025-01-31", headers=user_headers)
    assert [e["amount"] for e in resp.json()] == [80.0, 30.0]

    resp = client.get("/expenses?status=pendente", headers=user_headers)
    assert [e["amount"] for e in resp.json()] == [30.0]

    resp = client.get("/expenses?sortKey=amount&sortDir=asc", headers=user_headers)
    assert [e["amount"] for e in resp.json()] == [30.0, 55.0, 80.0]

    resp = client.get("/expenses?limit=2&page=2", headers=user_headers)
    assert len(resp.json()) == 1


def test_update_and_delete_are_admin_only(client, db, admin_headers, user_headers, company):
    row = add_revenue(db, company, 100, date(2025, 4, 1))

    assert client.put(f"/revenues/{row.id}", json={"amount": 120}, headers=user_headers).status_code == 403
    assert client.delete(f"/revenues/{row.id}", headers=user_headers).status_code == 403

    resp = client.put(f"/revenues/{row.id}", json={"amount": 120, "status": "recebido"}, headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json()["amount"] == 120.0
    assert resp.json()["description"] == "Venda"

    assert client.delete(f"/revenues/{row.id}", headers=admin_headers).status_code == 200
    assert client.get(f"/revenues/{row.id}", headers=admin_headers).status_code == 404


def test_month_view_tags_types(client, db, user_headers, company):
    add_revenue(db, company, 100, date(2025, 5, 2))
    add_expense(db, company, 40, date(2025, 5, 3))
    add_expense(db, company, 40, date(2025, 6, 3))

    resp = client.get("/transactions?month=2025-05", headers=user_headers)
    assert resp.status_code == 200
    assert [(t["type"], t["amount"]) for t in resp.json()] == [("revenue", 100.0), ("expense", 40.0)]

    assert client.get("/transactions?month=2025-5x", headers=user_headers).status_code == 400


def test_quick_add_is_pending(client, db, user_headers, company):
    resp = client.post("/transactions", json={
        "type": "expense", "description": "Gás", "amount": 95, "date": "2025-05-12",
    }, headers=user_headers)
    assert resp.status_code == 200, resp.text
    assert resp.json()["type"] == "expense"
    assert resp.json()["status"] == "pendente"
    assert db.query(Expense).count() == 1


def test_month_options(client, user_headers):
    options = client.get("/transactions/months", headers=user_headers).json()
    assert len(options) == 24
    current = today_in_brazil()
    assert options[0]["value"] == current.strftime("%Y-%m")


def test_saldo_anterior_endpoint(client, db, user, user_headers, company):
    add_revenue(db, company, 1000, date(2025, 1, 5))
    add_revenue(db, company, 500, date(2025, 1, 6))
    add_expense(db, company, 300, date(2025, 1, 7))

    resp = client.post("/transactions/saldo-anterior",
                       json={"company_id": company.id, "start_month": "2025-01", "months": 2},
                       headers=user_headers)
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["success"] is True
    assert body["created"] == 1
    assert body["months"][0]["balance"] == 1200.0

    row = db.query(Revenue).filter(Revenue.date == date(2025, 2, 1)).one()
    assert row.user_id == user.id

    bad = client.post("/transactions/saldo-anterior", json={"start_month": "2025-99"}, headers=user_headers)
    assert bad.status_code == 400


def test_pendencies_sorted_by_days_overdue(client, db, user_headers, company):
    today = today_in_brazil()
    add_revenue(db, company, 10, today - timedelta(days=3), status="pendente", description="Cliente A")
    add_expense(db, company, 20, today - timedelta(days=10), status="pendente", description="Fornecedor")
    add_expense(db, company, 30, today + timedelta(days=5), status="pendente", description="Futuro")
    add_expense(db, company, 40, today - timedelta(days=1), status="pago")

    items = client.get("/pendencies", headers=user_headers).json()
    assert [i["description"] for i in items] == ["Fornecedor", "Cliente A", "Futuro"]
    assert [i["days_overdue"] for i in items] == [10, 3, 0]

    only_revenues = client.get("/pendencies?type=revenue", headers=user_headers).json()
    assert [i["type"] for i in only_revenues] == ["revenue"]

    stats = client.get("/pendencies/stats", headers=user_headers).json()
    assert stats == {
        "total": 3,
        "overdue": 2,
        "revenue_pending": 1,
        "expense_pending": 2,
        "total_revenue": 10.0,
        "total_expense": 50.0,
    }


def test_settle_and_delete_pendency(client, db, admin_headers, user_headers, company):
    revenue = add_revenue(db, company, 10, date(2025, 1, 1), status="pendente")
    expense = add_expense(db, company, 20, date(2025, 1, 1), status="pendente")

    assert client.post(f"/pendencies/revenue/{revenue.id}/settle", headers=user_headers).status_code == 403

    resp = client.post(f"/pendencies/revenue/{revenue.id}/settle", headers=admin_headers)
    assert resp.json()["status"] == "recebido"
    resp = client.post(f"/pendencies/expense/{expense.id}/settle", headers=admin_headers)
    assert resp.json()["status"] == "pago"

    again = client.post(f"/pendencies/expense/{expense.id}/settle", headers=admin_headers)
    assert again.status_code == 400

    assert client.delete(f"/pendencies/expense/{expense.id}", headers=admin_headers).status_code == 200
    db.expire_all()
    assert db.query(Expense).count() == 0


@pytest.mark.parametrize("field", ["amount", "description", "date", "status"])
def test_update_rejects_explicit_null(client, db, admin_headers, company, field):
    row = add_revenue(db, company, 100, date(2025, 4, 1))

    resp = client.put(f"/revenues/{row.id}", json={field: None}, headers=admin_headers)

    assert resp.status_code == 422
    db.expire_all()
    stored = db.query(Revenue).filter(Revenue.id == row.id).one()
    assert stored.amount == 100
    assert stored.description == "Venda"


@pytest.mark.parametrize("payload", [
    {"start_month": "2025-01", "months": 500},
    {"start_month": "9999-10", "months": 12},
])
def test_saldo_anterior_endpoint_rejects_out_of_range_runs(client, db, user_headers, company, payload):
    add_revenue(db, company, 100, date(2025, 1, 5))
    add_revenue(db, company, 100, date(9999, 10, 5))

    resp = client.post("/transactions/saldo-anterior", json=payload, headers=user_headers)

    assert resp.status_code in (400, 422)
    db.expire_all()
    assert db.query(Revenue).filter(Revenue.description.ilike("%saldo anterior%")).count() == 0


@pytest.mark.parametrize("path", ["/transactions/months", "/cashflow/months"])
def test_month_options_require_login(client, path):
    assert client.get(path).status_code == 401
