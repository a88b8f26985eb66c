import logging

from fastapi import APIRouter, Depends, HTTPException, Response
from typing import Literal
from sqlalchemy.orm import Session

from gestao_financeira.core.money import to_decimal
from gestao_financeira.core.periods import current_month, last_months, month_label, month_range, year_range
from gestao_financeira.db.session import get_db
from gestao_financeira.models.company import Company
from gestao_financeira.models.transaction import Expense, Revenue
from gestao_financeira.schemas.report import ReportSummary
from gestao_financeira.services.companies import current_company
from gestao_financeira.services.report_export import ReportData, content_disposition, export_filename, render_pdf, render_txt
from gestao_financeira.services.summaries import group_by_category, monthly_series, range_query, total_in_range

router = APIRouter(prefix="/reports", tags=["Reports"])
logger = logging.getLogger(__name__)

Period = Literal["month", "year"]
COMPARISON_MONTHS = 6

MEDIA_TYPES = {
    "pdf": "application/pdf",
    "txt": "text/plain; charset=utf-8",
}


def build_report(db: Session, company: Company, period: str) -> dict:
    """Totals and category breakdowns of the current month or year."""
    month = current_month()
    if period == "year":
        start, end = year_range(month)
        label = str(month.year)
    else:
        start, end = month_range(month)
        label = month_label(month)

    revenues = total_in_range(db, Revenue, company.id, start, end)
    expenses = total_in_range(db, Expense, company.id, start, end)
    return {
        "company_id": company.id,
        "company_name": company.name,
        "period": period,
        "period_label": label,
        "start": start,
        "end": end,
        "total_revenues": float(revenues),
        "total_expenses": float(expenses),
        "balance": float(to_decimal(revenues - expenses)),
        "revenues_by_category": group_by_category(range_query(db, Revenue, company.id, start, end).all()),
        "expenses_by_category": group_by_category(range_query(db, Expense, company.id, start, end).all()),
        "monthly_comparison": monthly_series(db, company.id, last_months(COMPARISON_MONTHS, month)),
    }


@router.get("", response_model=ReportSummary)
@router.get("/", response_model=ReportSummary)
def get_report(period: Period = "month", company: Company = Depends(current_company), db: Session = Depends(get_db)):
    try:
        return build_report(db, company, period)
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/export")
def export_report(
    period: Period = "month",
    format: Literal["pdf", "txt"] = "pdf",
    company: Company = Depends(current_company),
    db: Session = Depends(get_db),
):
    try:
        summary = build_report(db, company, period)
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))

    title = "Relatório Mensal" if period == "month" else "Relatório Anual"
    report = ReportData(
        title=title,
        company=company.name,
        period=summary["period_label"],
        revenues=summary["total_revenues"],
        expenses=summary["total_expenses"],
        balance=summary["balance"],
        sections=[
            ("Receitas por categoria", [(c["name"], c["value"]) for c in summary["revenues_by_category"]]),
            ("Despesas por categoria", [(c["name"], c["value"]) for c in summary["expenses_by_category"]]),
        ],
    )
    if format == "pdf":
        content = render_pdf(report)
    else:
        content = render_txt(report).encode("utf-8")

    filename = export_filename(company.name, format)
    logger.info("exported %s report for company=%s as %s", period, company.id, filename)
    return Response(
        content=content,
        media_type=MEDIA_TYPES[format],
        headers={"Content-Disposition": content_disposition(filename)},
    )
