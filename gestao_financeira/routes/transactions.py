import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from typing import List, Optional
from sqlalchemy.orm import Session

from gestao_financeira.core.periods import current_month, format_month, month_options, month_range, parse_month
from gestao_financeira.db.session import get_db
from gestao_financeira.models.company import Company
from gestao_financeira.models.transaction import MODELS_BY_KIND
from gestao_financeira.schemas.report import SaldoAnteriorRequest, SaldoAnteriorResult
from gestao_financeira.schemas.transaction import MonthTransaction, QuickTransactionCreate, TransactionRead
from gestao_financeira.services.auth import get_current_user
from gestao_financeira.services.companies import current_company, resolve_company_id
from gestao_financeira.services.saldo_anterior import generate_saldo_anterior
from gestao_financeira.services import ledger

router = APIRouter(prefix="/transactions", tags=["Transactions"])
logger = logging.getLogger(__name__)

MONTH_OPTIONS = 24


def _month_or_400(value: Optional[str]):
    if not value:
        return current_month()
    try:
        return parse_month(value)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


def _tagged(row, kind: str) -> MonthTransaction:
    data = TransactionRead.model_validate(row).model_dump()
    return MonthTransaction(type=kind, **data)


@router.get("/months")
def list_months(current_user=Depends(get_current_user)):
    return month_options(MONTH_OPTIONS)


@router.get("", response_model=List[MonthTransaction])
@router.get("/", response_model=List[MonthTransaction])
def list_month_transactions(
    month: Optional[str] = Query(None, description="YYYY-MM"),
    company: Company = Depends(current_company),
    db: Session = Depends(get_db),
):
    """Revenues then expenses of one month, each ordered by date."""
    start, end = month_range(_month_or_400(month))
    out = []
    for kind, model in MODELS_BY_KIND.items():
        rows = (
            db.query(model)
            .filter(model.company_id == company.id)
            .filter(model.date >= start, model.date <= end)
            .order_by(model.date.asc(), model.id.asc())
            .all()
        )
        out.extend(_tagged(r, kind) for r in rows)
    return out


@router.post("", response_model=MonthTransaction)
@router.post("/", response_model=MonthTransaction)
def create_transaction(payload: QuickTransactionCreate, db: Session = Depends(get_db), current_user=Depends(get_current_user)):
    company_id = resolve_company_id(db, current_user, payload.company_id)
    model = MODELS_BY_KIND[payload.type]
    row = ledger.create_entry(
        db, model, company_id, current_user,
        description=payload.description,
        amount=payload.amount,
        date=payload.date,
        status="pendente",
    )
    return _tagged(row, payload.type)


@router.post("/saldo-anterior", response_model=SaldoAnteriorResult)
def run_saldo_anterior(payload: SaldoAnteriorRequest, db: Session = Depends(get_db), current_user=Depends(get_current_user)):
    company_id = resolve_company_id(db, current_user, payload.company_id)
    start_month = payload.start_month or format_month(current_month())
    try:
        result = generate_saldo_anterior(
            db, company_id, start_month,
            user_id=current_user.id, months=payload.months, basis=payload.basis,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not result.success:
        logger.warning("saldo anterior run for company=%s finished with errors", company_id)
    return result.as_dict()
