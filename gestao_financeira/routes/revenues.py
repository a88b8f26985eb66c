from datetime import date
from fastapi import APIRouter, Depends, HTTPException, Query
from typing import List, Optional
from sqlalchemy.orm import Session

from gestao_financeira.db.session import get_db
from gestao_financeira.models.company import Company
from gestao_financeira.models.transaction import Revenue
from gestao_financeira.schemas.transaction import Status, TransactionCreate, TransactionRead, TransactionUpdate
from gestao_financeira.services.auth import get_current_user, require_admin
from gestao_financeira.services.companies import current_company, resolve_company_id
from gestao_financeira.services import ledger

router = APIRouter(prefix="/revenues", tags=["Revenues"])


@router.post("", response_model=TransactionRead)
@router.post("/", response_model=TransactionRead)
def create_revenue(payload: TransactionCreate, db: Session = Depends(get_db), current_user=Depends(get_current_user)):
    company_id = resolve_company_id(db, current_user, payload.company_id)
    return ledger.create_entry(
        db, Revenue, company_id, current_user,
        **payload.model_dump(exclude={"company_id"}),
    )


@router.get("", response_model=List[TransactionRead])
@router.get("/", response_model=List[TransactionRead])
def list_revenues(
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=1000),
    start: Optional[date] = None,
    end: Optional[date] = None,
    status: Optional[Status] = None,
    category_id: Optional[int] = None,
    sortKey: Optional[str] = "date",
    sortDir: Optional[str] = "desc",
    company: Company = Depends(current_company),
    db: Session = Depends(get_db),
):
    try:
        return ledger.list_entries(
            db, Revenue, company.id, start=start, end=end, status=status,
            category_id=category_id, sort_key=sortKey, sort_dir=sortDir,
            page=page, limit=limit,
        )
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/{revenue_id}", response_model=TransactionRead)
def get_revenue(revenue_id: int, db: Session = Depends(get_db), current_user=Depends(get_current_user)):
    return ledger.get_entry(db, Revenue, revenue_id, current_user)


@router.put("/{revenue_id}", response_model=TransactionRead)
def update_revenue(revenue_id: int, payload: TransactionUpdate, db: Session = Depends(get_db), current_user=Depends(require_admin)):
    row = ledger.get_entry(db, Revenue, revenue_id, current_user)
    return ledger.update_entry(db, row, payload.model_dump(exclude_unset=True))


@router.delete("/{revenue_id}")
def delete_revenue(revenue_id: int, db: Session = Depends(get_db), current_user=Depends(require_admin)):
    row = ledger.get_entry(db, Revenue, revenue_id, current_user)
    ledger.delete_entry(db, row)
    return {"detail": "Receita removida com sucesso"}
