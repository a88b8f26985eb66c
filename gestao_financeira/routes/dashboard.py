from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from gestao_financeira.core.periods import current_month, last_months, month_label
from gestao_financeira.db.session import get_db
from gestao_financeira.models.company import Company
from gestao_financeira.schemas.report import DashboardSummary
from gestao_financeira.services.companies import current_company
from gestao_financeira.services.summaries import month_totals, monthly_series, recent_transactions

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])

SERIES_MONTHS = 6


@router.get("", response_model=DashboardSummary)
@router.get("/", response_model=DashboardSummary)
def get_dashboard(company: Company = Depends(current_company), db: Session = Depends(get_db)):
    try:
        month = current_month()
        totals = month_totals(db, company.id, month)
        return {
            "company_id": company.id,
            "month": totals["month"],
            "month_label": month_label(month),
            "total_revenues": totals["revenues"],
            "total_expenses": totals["expenses"],
            "balance": round(totals["revenues"] - totals["expenses"], 2),
            "recent_transactions": recent_transactions(db, company.id),
            "monthly": monthly_series(db, company.id, last_months(SERIES_MONTHS, month)),
        }
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))
