from sqlalchemy import Column, Integer, String, DateTime, Date, Text, Numeric, ForeignKey
from sqlalchemy.orm import declared_attr, relationship
from sqlalchemy.sql import func
from gestao_financeira.db.session import Base
import enum


class StatusEnum(str, enum.Enum):
    pendente = "pendente"
    recebido = "recebido"
    pago = "pago"
    cancelado = "cancelado"


class TransactionMixin:
    """Columns shared by revenues and expenses; the two tables never mix rows."""

    id = Column(Integer, primary_key=True, index=True)
    description = Column(String(255), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False, default=0)
    date = Column(Date, nullable=False, index=True)
    # kept as a plain string so legacy rows with unexpected values still load
    status = Column(String(20), nullable=False, default=StatusEnum.pendente.value, server_default=StatusEnum.pendente.value)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    @declared_attr
    def company_id(cls):
        return Column(Integer, ForeignKey("companies.id"), index=True, nullable=False)

    @declared_attr
    def user_id(cls):
        return Column(Integer, ForeignKey("users.id"), nullable=True)

    @declared_attr
    def category_id(cls):
        return Column(Integer, ForeignKey("categories.id"), nullable=True)

    @declared_attr
    def category(cls):
        return relationship("Category", lazy="joined")

    @property
    def category_name(self):
        return self.category.name if self.category is not None else None


class Revenue(TransactionMixin, Base):
    __tablename__ = "revenues"

    kind = "revenue"
    settled_status = StatusEnum.recebido.value


class Expense(TransactionMixin, Base):
    __tablename__ = "expenses"

    kind = "expense"
    settled_status = StatusEnum.pago.value


MODELS_BY_KIND = {
    Revenue.kind: Revenue,
    Expense.kind: Expense,
}
