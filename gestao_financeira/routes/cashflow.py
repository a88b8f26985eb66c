from fastapi import APIRouter, Depends, HTTPException, Query
from typing import Optional
from sqlalchemy.orm import Session

from gestao_financeira.core.periods import current_month, month_options, parse_month
from gestao_financeira.db.session import get_db
from gestao_financeira.models.company import Company
from gestao_financeira.schemas.report import CashFlowSummary
from gestao_financeira.services.auth import get_current_user
from gestao_financeira.services.companies import current_company
from gestao_financeira.services.summaries import daily_cash_flow

router = APIRouter(prefix="/cashflow", tags=["Cash flow"])

MONTH_OPTIONS = 12


@router.get("/months")
def list_months(current_user=Depends(get_current_user)):
    return month_options(MONTH_OPTIONS)


@router.get("", response_model=CashFlowSummary)
@router.get("/", response_model=CashFlowSummary)
def get_cash_flow(
    month: Optional[str] = Query(None, description="YYYY-MM"),
    company: Company = Depends(current_company),
    db: Session = Depends(get_db),
):
    try:
        first_day = parse_month(month) if month else current_month()
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    try:
        return daily_cash_flow(db, company.id, first_day)
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))
