from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from conftest import add_expense, add_revenue
from gestao_financeira.models.transaction import Revenue
from gestao_financeira.services import saldo_anterior
from gestao_financeira.services.saldo_anterior import (
    ACTION_CREATED, ACTION_ERROR, ACTION_EXISTS, ACTION_ZERO,
    SALDO_ANTERIOR_DESCRIPTION, generate_saldo_anterior,
)


def saldo_rows(db, company):
    return (
        db.query(Revenue)
        .filter(Revenue.company_id == company.id, Revenue.description == SALDO_ANTERIOR_DESCRIPTION)
        .order_by(Revenue.date)
        .all()
    )


def test_balance_is_booked_on_first_day_of_next_month(db, company, admin):
    add_revenue(db, company, 1000, date(2025, 1, 5))
    add_revenue(db, company, 500, date(2025, 1, 20))
    add_expense(db, company, 300, date(2025, 1, 10))

    result = generate_saldo_anterior(db, company.id, "2025-01", user_id=admin.id, months=1)

    assert result.success
    assert result.created == 1
    month = result.months[0]
    assert (month.summed_month, month.target_month) == ("2025-01", "2025-02")
    assert month.balance == 1200.0
    rows = saldo_rows(db, company)
    assert len(rows) == 1
    assert rows[0].date == date(2025, 2, 1)
    assert Decimal(rows[0].amount) == Decimal("1200.00")
    assert rows[0].status == "recebido"
    assert rows[0].user_id == admin.id


def test_existing_saldo_in_target_month_blocks_insert(db, company):
    add_revenue(db, company, 800, date(2025, 3, 2))
    existing = add_revenue(db, company, 50, date(2025, 4, 1), description="SALDO ANTERIOR manual")

    result = generate_saldo_anterior(db, company.id, "2025-03", months=1)

    assert result.months[0].action == ACTION_EXISTS
    assert result.months[0].revenue_id == existing.id
    assert result.created == 0
    assert db.query(Revenue).filter(Revenue.date == date(2025, 4, 1)).count() == 1


def test_zero_balance_inserts_nothing(db, company):
    add_revenue(db, company, 250, date(2025, 5, 3))
    add_expense(db, company, 250, date(2025, 5, 4))

    result = generate_saldo_anterior(db, company.id, "2025-05", months=1)

    assert result.months[0].action == ACTION_ZERO
    assert saldo_rows(db, company) == []


def test_saldo_anterior_rows_are_excluded_from_sums(db, company):
    add_revenue(db, company, 100, date(2025, 6, 1), description="Saldo Anterior conta")
    add_revenue(db, company, 40, date(2025, 6, 15), description="saldo anterior ajuste")
    add_revenue(db, company, 300, date(2025, 6, 10))

    result = generate_saldo_anterior(db, company.id, "2025-06", months=1)

    assert result.months[0].revenues == 300.0
    assert result.months[0].balance == 300.0


def test_second_run_inserts_nothing(db, company):
    add_revenue(db, company, 900, date(2025, 1, 8))
    add_expense(db, company, 100, date(2025, 2, 8))

    first = generate_saldo_anterior(db, company.id, "2025-01", months=3)
    second = generate_saldo_anterior(db, company.id, "2025-01", months=3)

    assert first.created == 2
    assert second.created == 0
    assert [m.action for m in second.months][:2] == [ACTION_EXISTS, ACTION_EXISTS]
    assert len(saldo_rows(db, company)) == 2


def test_each_month_is_gated_independently(db, company):
    add_revenue(db, company, 1000, date(2025, 1, 10))
    add_revenue(db, company, 700, date(2025, 3, 10))
    add_revenue(db, company, 10, date(2025, 4, 1), description="Saldo anterior (manual)")
    add_expense(db, company, 200, date(2025, 5, 10))

    result = generate_saldo_anterior(db, company.id, "2025-01", months=12)

    assert len(result.months) == 12
    actions = [m.action for m in result.months]
    assert actions[0] == ACTION_CREATED
    assert actions[1] == ACTION_ZERO
    assert actions[2] == ACTION_EXISTS
    assert actions[4] == ACTION_CREATED
    assert result.months[4].balance == -200.0
    assert result.months[-1].target_month == "2026-01"
    dates = [r.date for r in saldo_rows(db, company)]
    assert dates == [date(2025, 2, 1), date(2025, 6, 1)]


def test_cancelled_rows_never_count(db, company):
    add_revenue(db, company, 500, date(2025, 7, 1))
    add_revenue(db, company, 999, date(2025, 7, 2), status="cancelado")
    add_expense(db, company, 999, date(2025, 7, 3), status="cancelado")

    result = generate_saldo_anterior(db, company.id, "2025-07", months=1)

    assert result.months[0].balance == 500.0


def test_cash_basis_counts_only_settled_rows(db, company):
    add_revenue(db, company, 500, date(2025, 8, 1), status="recebido")
    add_revenue(db, company, 300, date(2025, 8, 2), status="pendente")
    add_expense(db, company, 100, date(2025, 8, 3), status="pago")
    add_expense(db, company, 50, date(2025, 8, 4), status="pendente")

    accrual = generate_saldo_anterior(db, company.id, "2025-08", months=1, basis="competencia")
    assert accrual.months[0].balance == 650.0

    db.query(Revenue).filter(Revenue.description == SALDO_ANTERIOR_DESCRIPTION).delete()
    db.commit()

    cash = generate_saldo_anterior(db, company.id, "2025-08", months=1, basis="caixa")
    assert cash.months[0].balance == 400.0


def test_database_error_in_one_month_does_not_stop_the_rest(db, company, monkeypatch):
    add_revenue(db, company, 100, date(2025, 1, 10))
    add_revenue(db, company, 200, date(2025, 2, 10))
    real_find_existing = saldo_anterior.find_existing

    def flaky(session, company_id, target_day):
        if target_day == date(2025, 2, 1):
            raise OperationalError("SELECT", {}, Exception("conexão perdida"))
        return real_find_existing(session, company_id, target_day)

    monkeypatch.setattr(saldo_anterior, "find_existing", flaky)

    result = generate_saldo_anterior(db, company.id, "2025-01", months=2)

    assert not result.success
    assert "1 de 2" in result.message
    assert [m.action for m in result.months] == [ACTION_ERROR, ACTION_CREATED]
    assert [r.date for r in saldo_rows(db, company)] == [date(2025, 3, 1)]


@pytest.mark.parametrize("kwargs", [
    {"start_month": "2025-13"},
    {"start_month": "janeiro"},
    {"start_month": "2025-01", "months": 0},
    {"start_month": "2025-01", "basis": "mensal"},
    {"start_month": "2025-01", "months": 121},
])
def test_invalid_arguments_raise(db, company, kwargs):
    with pytest.raises(ValueError):
        generate_saldo_anterior(db, company.id, **kwargs)


def test_range_past_year_9999_is_rejected_before_any_write(db, company):
    add_revenue(db, company, 100, date(9999, 10, 5))

    with pytest.raises(ValueError):
        generate_saldo_anterior(db, company.id, "9999-10", months=12)

    assert saldo_rows(db, company) == []


def test_last_representable_month_still_runs(db, company):
    add_revenue(db, company, 100, date(9999, 11, 5))

    result = generate_saldo_anterior(db, company.id, "9999-11", months=1)

    assert result.success
    assert result.months[0].target_month == "9999-12"
