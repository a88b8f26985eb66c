from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Literal, Optional
import datetime as dt

Status = Literal["pendente", "recebido", "pago", "cancelado"]
Kind = Literal["revenue", "expense"]


class TransactionBase(BaseModel):
    description: str = Field(min_length=1, max_length=255)
    amount: float
    date: dt.date
    status: Status = "pendente"
    category_id: Optional[int] = None
    notes: Optional[str] = None

    @field_validator("amount")
    @classmethod
    def positive_amount(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("O valor deve ser maior que zero")
        return round(v, 2)


class TransactionCreate(TransactionBase):
    company_id: Optional[int] = None


class TransactionUpdate(BaseModel):
    description: Optional[str] = Field(default=None, min_length=1, max_length=255)
    amount: Optional[float] = None
    date: Optional[dt.date] = None
    status: Optional[Status] = None
    category_id: Optional[int] = None
    notes: Optional[str] = None

    @field_validator("description", "amount", "date", "status")
    @classmethod
    def not_null(cls, v):
        # omitted means unchanged; an explicit null would blank a NOT NULL column
        if v is None:
            raise ValueError("campo não pode ser nulo")
        return v

    @field_validator("amount")
    @classmethod
    def positive_amount(cls, v: Optional[float]) -> Optional[float]:
        if v is not None and v <= 0:
            raise ValueError("O valor deve ser maior que zero")
        return v


class TransactionRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    company_id: int
    user_id: Optional[int] = None
    description: str
    # carry-forward rows may be negative, so no positivity check on reads
    amount: float
    date: dt.date
    status: str
    category_id: Optional[int] = None
    category_name: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None


class MonthTransaction(TransactionRead):
    type: Kind


class QuickTransactionCreate(BaseModel):
    """Entry added from the month editing screen: always starts 'pendente'."""

    type: Kind
    company_id: Optional[int] = None
    description: str = Field(min_length=1, max_length=255)
    amount: float
    date: dt.date

    @field_validator("amount")
    @classmethod
    def positive_amount(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("O valor deve ser maior que zero")
        return round(v, 2)


class PendingItem(BaseModel):
    id: int
    description: str
    amount: float
    date: dt.date
    type: Kind
    status: str
    days_overdue: int


class PendencyStats(BaseModel):
    total: int = 0
    overdue: int = 0
    revenue_pending: int = 0
    expense_pending: int = 0
    total_revenue: float = 0.0
    total_expense: float = 0.0
