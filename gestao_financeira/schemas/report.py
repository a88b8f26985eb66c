from pydantic import BaseModel, Field
from typing import List, Literal, Optional
import datetime as dt


class CategoryTotal(BaseModel):
    name: str
    value: float


class MonthlyTotals(BaseModel):
    month: str
    label: str
    revenues: float
    expenses: float


class RecentTransaction(BaseModel):
    id: int
    description: str
    amount: float
    date: dt.date
    type: Literal["revenue", "expense"]


class DashboardSummary(BaseModel):
    company_id: int
    month: str
    month_label: str
    total_revenues: float
    total_expenses: float
    balance: float
    recent_transactions: List[RecentTransaction]
    monthly: List[MonthlyTotals]


class DailyCashFlow(BaseModel):
    date: str
    revenues: float
    expenses: float
    balance: float


class CashFlowSummary(BaseModel):
    company_id: int
    month: str
    month_label: str
    total_revenues: float
    total_expenses: float
    balance: float
    days: List[DailyCashFlow]


class ReportSummary(BaseModel):
    company_id: int
    company_name: str
    period: Literal["month", "year"]
    period_label: str
    start: dt.date
    end: dt.date
    total_revenues: float
    total_expenses: float
    balance: float
    revenues_by_category: List[CategoryTotal]
    expenses_by_category: List[CategoryTotal]
    monthly_comparison: List[MonthlyTotals]


class SaldoAnteriorRequest(BaseModel):
    company_id: Optional[int] = None
    start_month: Optional[str] = None
    months: Optional[int] = Field(None, ge=1, le=120)
    basis: Optional[Literal["competencia", "caixa"]] = None


class SaldoAnteriorMonth(BaseModel):
    summed_month: str
    target_month: str
    revenues: float
    expenses: float
    balance: float
    action: Literal["created", "exists", "zero", "error"]
    revenue_id: Optional[int] = None


class SaldoAnteriorResult(BaseModel):
    success: bool
    message: str
    created: int
    months: List[SaldoAnteriorMonth]
