"""Read-side aggregation: fetch rows in a date range, reduce to sums, group.

Every screen of the dashboard (home, cash flow, reports, pendencies) is one
of these reductions over the ``revenues`` and ``expenses`` tables of a
single company.
"""
from collections import OrderedDict
from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from gestao_financeira.core.money import to_decimal, sum_amounts
from gestao_financeira.core.periods import (
    format_month, month_label, month_range, month_short_label,
)
from gestao_financeira.core.timezone_utils import days_overdue, today_in_brazil
from gestao_financeira.models.transaction import Expense, Revenue, StatusEnum

SALDO_ANTERIOR_PATTERN = "%saldo anterior%"
SEM_CATEGORIA = "Sem categoria"

BASIS_ACCRUAL = "competencia"
BASIS_CASH = "caixa"
BASES = (BASIS_ACCRUAL, BASIS_CASH)


def _basis_filter(model, basis: str):
    if basis not in BASES:
        raise ValueError(f"base inválida: {basis!r}")
    if basis == BASIS_CASH:
        return model.status == model.settled_status
    return model.status != StatusEnum.cancelado.value


def range_query(db: Session, model, company_id: int, start: date, end: date,
                basis: str = BASIS_ACCRUAL, exclude_saldo_anterior: bool = False):
    """Rows of one company dated within [start, end] that count under ``basis``."""
    q = (
        db.query(model)
        .filter(model.company_id == company_id)
        .filter(model.date >= start, model.date <= end)
        .filter(_basis_filter(model, basis))
    )
    if exclude_saldo_anterior:
        q = q.filter(~model.description.ilike(SALDO_ANTERIOR_PATTERN))
    return q


def total_in_range(db: Session, model, company_id: int, start: date, end: date,
                   basis: str = BASIS_ACCRUAL, exclude_saldo_anterior: bool = False) -> Decimal:
    q = range_query(db, model, company_id, start, end, basis, exclude_saldo_anterior)
    total = q.with_entities(func.coalesce(func.sum(model.amount), 0)).scalar()
    return to_decimal(total)


def month_totals(db: Session, company_id: int, first_day: date, basis: str = BASIS_ACCRUAL) -> dict:
    start, end = month_range(first_day)
    revenues = total_in_range(db, Revenue, company_id, start, end, basis)
    expenses = total_in_range(db, Expense, company_id, start, end, basis)
    return {
        "month": format_month(first_day),
        "label": month_short_label(first_day),
        "revenues": float(revenues),
        "expenses": float(expenses),
    }


def monthly_series(db: Session, company_id: int, months: Iterable[date]) -> List[dict]:
    return [month_totals(db, company_id, m) for m in months]


def group_by_category(rows) -> List[dict]:
    """Sum amounts per category name, in first-seen order."""
    totals = OrderedDict()
    for r in rows:
        name = r.category_name or SEM_CATEGORIA
        totals[name] = totals.get(name, Decimal("0.00")) + to_decimal(r.amount)
    return [{"name": name, "value": float(value)} for name, value in totals.items()]


def recent_transactions(db: Session, company_id: int, per_table: int = 5, limit: int = 8) -> List[dict]:
    """Latest entries of both tables merged by date, newest first."""
    combined = []
    for model in (Revenue, Expense):
        rows = (
            db.query(model)
            .filter(model.company_id == company_id)
            .order_by(model.date.desc(), model.id.desc())
            .limit(per_table)
            .all()
        )
        combined.extend(
            {
                "id": r.id,
                "description": r.description,
                "amount": float(to_decimal(r.amount)),
                "date": r.date,
                "type": model.kind,
            }
            for r in rows
        )
    combined.sort(key=lambda t: t["date"], reverse=True)
    return combined[:limit]


def daily_cash_flow(db: Session, company_id: int, first_day: date) -> dict:
    """Per-day revenues/expenses of a month with the running balance.

    Every calendar day gets an entry, including days without movement, so a
    line chart has no gaps.
    """
    start, end = month_range(first_day)
    days = OrderedDict()
    d = start
    while d <= end:
        days[d] = {"revenues": Decimal("0.00"), "expenses": Decimal("0.00")}
        d += timedelta(days=1)

    revenues = range_query(db, Revenue, company_id, start, end).all()
    expenses = range_query(db, Expense, company_id, start, end).all()
    for r in revenues:
        days[r.date]["revenues"] += to_decimal(r.amount)
    for e in expenses:
        days[e.date]["expenses"] += to_decimal(e.amount)

    running = Decimal("0.00")
    out = []
    for day, values in days.items():
        running += values["revenues"] - values["expenses"]
        out.append({
            "date": day.strftime("%d/%m"),
            "revenues": float(values["revenues"]),
            "expenses": float(values["expenses"]),
            "balance": float(running),
        })

    total_revenues = sum_amounts(revenues)
    total_expenses = sum_amounts(expenses)
    return {
        "company_id": company_id,
        "month": format_month(first_day),
        "month_label": month_label(first_day),
        "total_revenues": float(total_revenues),
        "total_expenses": float(total_expenses),
        "balance": float(total_revenues - total_expenses),
        "days": out,
    }


def pending_items(db: Session, company_id: int, kind: str = "all", today: Optional[date] = None) -> List[dict]:
    """Rows still 'pendente', most overdue first."""
    today = today or today_in_brazil()
    items = []
    for model in (Revenue, Expense):
        if kind not in ("all", model.kind):
            continue
        rows = (
            db.query(model)
            .filter(model.company_id == company_id, model.status == StatusEnum.pendente.value)
            .order_by(model.date.asc())
            .all()
        )
        for r in rows:
            items.append({
                "id": r.id,
                "description": r.description,
                "amount": float(to_decimal(r.amount)),
                "date": r.date,
                "type": model.kind,
                "status": r.status,
                "days_overdue": days_overdue(r.date, today),
            })
    # stable sort keeps date order among equally overdue rows
    items.sort(key=lambda i: i["days_overdue"], reverse=True)
    return items


def pendency_stats(db: Session, company_id: int, today: Optional[date] = None) -> dict:
    items = pending_items(db, company_id, "all", today)
    revenues = [i for i in items if i["type"] == Revenue.kind]
    expenses = [i for i in items if i["type"] == Expense.kind]
    return {
        "total": len(items),
        "overdue": sum(1 for i in items if i["days_overdue"] > 0),
        "revenue_pending": len(revenues),
        "expense_pending": len(expenses),
        "total_revenue": float(sum_amounts(revenues)),
        "total_expense": float(sum_amounts(expenses)),
    }
