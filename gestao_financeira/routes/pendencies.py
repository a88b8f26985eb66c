import logging

from fastapi import APIRouter, Depends, HTTPException
from typing import List, Literal
from sqlalchemy.orm import Session

from gestao_financeira.db.session import get_db
from gestao_financeira.models.company import Company
from gestao_financeira.models.transaction import MODELS_BY_KIND, StatusEnum
from gestao_financeira.schemas.transaction import PendencyStats, PendingItem, TransactionRead
from gestao_financeira.services.auth import require_admin
from gestao_financeira.services.companies import current_company
from gestao_financeira.services.summaries import pending_items, pendency_stats
from gestao_financeira.services import ledger

router = APIRouter(prefix="/pendencies", tags=["Pendencies"])
logger = logging.getLogger(__name__)

Kind = Literal["revenue", "expense"]


@router.get("", response_model=List[PendingItem])
@router.get("/", response_model=List[PendingItem])
def list_pendencies(
    type: Literal["all", "revenue", "expense"] = "all",
    company: Company = Depends(current_company),
    db: Session = Depends(get_db),
):
    try:
        return pending_items(db, company.id, type)
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/stats", response_model=PendencyStats)
def get_pendency_stats(company: Company = Depends(current_company), db: Session = Depends(get_db)):
    try:
        return pendency_stats(db, company.id)
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/{kind}/{entry_id}/settle", response_model=TransactionRead)
def settle_pendency(kind: Kind, entry_id: int, db: Session = Depends(get_db), current_user=Depends(require_admin)):
    """Mark a pending row as received (revenue) or paid (expense)."""
    model = MODELS_BY_KIND[kind]
    row = ledger.get_entry(db, model, entry_id, current_user)
    if row.status != StatusEnum.pendente.value:
        raise HTTPException(status_code=400, detail="Lançamento não está pendente")
    row = ledger.update_entry(db, row, {"status": model.settled_status})
    logger.info("settled %s id=%s as %s", kind, entry_id, model.settled_status)
    return row


@router.delete("/{kind}/{entry_id}")
def delete_pendency(kind: Kind, entry_id: int, db: Session = Depends(get_db), current_user=Depends(require_admin)):
    model = MODELS_BY_KIND[kind]
    row = ledger.get_entry(db, model, entry_id, current_user)
    ledger.delete_entry(db, row)
    return {"detail": "Pendência removida com sucesso"}
