"""Carry-forward balance ("Saldo anterior") generator.

Walks ``months`` consecutive months starting at ``start_month``. For each
summed month M it computes ``revenues - expenses`` (ignoring earlier
carry-forward rows) and, unless the company already has a "saldo anterior"
revenue on the 1st of month M + 1, books that balance there as a received
revenue.

The existence check and the insert are two separate statements: two runs
overlapping in time can both see "no row" and both insert. Callers run it
from a single request at a time.
"""
import logging
from dataclasses import dataclass, field, asdict
from datetime import date
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from gestao_financeira.core.config import settings
from gestao_financeira.core.money import format_brl
from gestao_financeira.core.periods import add_months, format_month, month_label, month_range, parse_month
from gestao_financeira.models.transaction import Expense, Revenue, StatusEnum
from gestao_financeira.services.summaries import (
    BASES, SALDO_ANTERIOR_PATTERN, total_in_range,
)

logger = logging.getLogger(__name__)

SALDO_ANTERIOR_DESCRIPTION = "Saldo anterior conta"
# The balance of month M is booked on the 1st of month M + TARGET_OFFSET.
TARGET_OFFSET = 1
MAX_MONTHS = 120

ACTION_CREATED = "created"
ACTION_EXISTS = "exists"
ACTION_ZERO = "zero"
ACTION_ERROR = "error"


@dataclass
class MonthOutcome:
    summed_month: str
    target_month: str
    revenues: float = 0.0
    expenses: float = 0.0
    balance: float = 0.0
    action: str = ACTION_ZERO
    revenue_id: Optional[int] = None


@dataclass
class GenerationResult:
    success: bool
    message: str
    months: List[MonthOutcome] = field(default_factory=list)

    @property
    def created(self) -> int:
        return sum(1 for m in self.months if m.action == ACTION_CREATED)

    def as_dict(self) -> dict:
        return {
            "success": self.success,
            "message": self.message,
            "created": self.created,
            "months": [asdict(m) for m in self.months],
        }


def month_balance(db: Session, company_id: int, first_day: date, basis: str):
    """(revenues, expenses, balance) of one month, carry-forward rows excluded."""
    start, end = month_range(first_day)
    revenues = total_in_range(db, Revenue, company_id, start, end, basis, exclude_saldo_anterior=True)
    expenses = total_in_range(db, Expense, company_id, start, end, basis)
    return revenues, expenses, revenues - expenses


def find_existing(db: Session, company_id: int, target_day: date) -> Optional[Revenue]:
    return (
        db.query(Revenue)
        .filter(Revenue.company_id == company_id)
        .filter(Revenue.date == target_day)
        .filter(Revenue.description.ilike(SALDO_ANTERIOR_PATTERN))
        .first()
    )


def _process_month(db: Session, company_id: int, summed: date, basis: str,
                   user_id: Optional[int]) -> MonthOutcome:
    target = add_months(summed, TARGET_OFFSET)
    revenues, expenses, balance = month_balance(db, company_id, summed, basis)
    outcome = MonthOutcome(
        summed_month=format_month(summed),
        target_month=format_month(target),
        revenues=float(revenues),
        expenses=float(expenses),
        balance=float(balance),
    )

    existing = find_existing(db, company_id, target)
    if existing is not None:
        outcome.action = ACTION_EXISTS
        outcome.revenue_id = existing.id
        logger.info(
            "Saldo anterior já existe para empresa=%s em %s (id=%s); mantido",
            company_id, month_label(target), existing.id,
        )
        return outcome

    if balance == Decimal("0"):
        outcome.action = ACTION_ZERO
        logger.info("Saldo zero em %s para empresa=%s; nada a lançar", month_label(summed), company_id)
        return outcome

    row = Revenue(
        company_id=company_id,
        user_id=user_id,
        description=SALDO_ANTERIOR_DESCRIPTION,
        amount=balance,
        date=target,
        status=StatusEnum.recebido.value,
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    outcome.action = ACTION_CREATED
    outcome.revenue_id = row.id
    logger.info(
        "Saldo anterior de %s criado para %s (empresa=%s, id=%s)",
        format_brl(balance), month_label(target), company_id, row.id,
    )
    return outcome


def generate_saldo_anterior(db: Session, company_id: int, start_month: str,
                            user_id: Optional[int] = None, months: Optional[int] = None,
                            basis: Optional[str] = None) -> GenerationResult:
    """Book carry-forward balances for ``months`` consecutive months.

    A database error in one month is logged and rolled back; the loop moves
    on to the next month and the result reports ``success=False``.
    Invalid arguments (bad month string, unknown basis, months outside
    1..MAX_MONTHS, a range running past year 9999) raise ValueError before
    anything is read or written.
    """
    first = parse_month(start_month)
    months = settings.SALDO_ANTERIOR_MONTHS if months is None else int(months)
    basis = (basis or settings.SALDO_ANTERIOR_BASIS).lower()
    if months < 1 or months > MAX_MONTHS:
        raise ValueError(f"a quantidade de meses deve estar entre 1 e {MAX_MONTHS}")
    if basis not in BASES:
        raise ValueError(f"base inválida: {basis!r}")
    try:
        # the whole range must be representable before anything is written
        add_months(first, months - 1 + TARGET_OFFSET)
    except (ValueError, OverflowError):
        raise ValueError(f"período fora do intervalo suportado: {start_month} + {months} meses")

    logger.info(
        "Gerando saldos anteriores: empresa=%s inicio=%s meses=%s base=%s usuario=%s",
        company_id, start_month, months, basis, user_id,
    )
    outcomes = []
    failed = 0
    summed = first
    for _ in range(months):
        try:
            outcomes.append(_process_month(db, company_id, summed, basis, user_id))
        except SQLAlchemyError:
            db.rollback()
            failed += 1
            logger.exception("Erro ao gerar saldo anterior de %s para empresa=%s", format_month(summed), company_id)
            outcomes.append(MonthOutcome(
                summed_month=format_month(summed),
                target_month=format_month(add_months(summed, TARGET_OFFSET)),
                action=ACTION_ERROR,
            ))
        summed = add_months(summed, 1)

    if failed:
        message = f"Erro ao gerar saldos anteriores ({failed} de {months} meses falharam)"
    else:
        message = "Saldos anteriores gerados com sucesso!"
    return GenerationResult(success=failed == 0, message=message, months=outcomes)
