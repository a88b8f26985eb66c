import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List, Optional

from gestao_financeira.db.session import get_db
from gestao_financeira.models.company import Company as CompanyModel
from gestao_financeira.models.transaction import Expense, Revenue
from gestao_financeira.models.user import User as UserModel
from gestao_financeira.schemas.company import CompanyCreate, CompanyRead, SelectCompanyRequest
from gestao_financeira.services.auth import get_current_user, require_admin
from gestao_financeira.services import companies as company_service

router = APIRouter(prefix="/companies", tags=["Companies"])
logger = logging.getLogger(__name__)


@router.get("", response_model=List[CompanyRead])
@router.get("/", response_model=List[CompanyRead])
def list_companies(db: Session = Depends(get_db), current_user=Depends(get_current_user)):
    try:
        return company_service.list_visible_companies(db, current_user)
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.post("", response_model=CompanyRead)
@router.post("/", response_model=CompanyRead)
def create_company(payload: CompanyCreate, db: Session = Depends(get_db), current_user=Depends(require_admin)):
    try:
        company = CompanyModel(
            name=payload.name,
            cnpj=payload.cnpj,
            phone=payload.phone,
            email=payload.email,
            address=payload.address,
            city=payload.city,
            user_id=current_user.id,
        )
        db.add(company)
        db.flush()
        # a newly created company becomes the working company
        current_user.selected_company_id = company.id
        db.add(current_user)
        db.commit()
        db.refresh(company)
        return company
    except Exception as e:
        db.rollback()
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/selected", response_model=Optional[CompanyRead])
def get_selected_company(db: Session = Depends(get_db), current_user=Depends(get_current_user)):
    return company_service.selected_company(db, current_user)


@router.put("/selected", response_model=CompanyRead)
def set_selected_company(payload: SelectCompanyRequest, db: Session = Depends(get_db), current_user=Depends(get_current_user)):
    return company_service.select_company(db, current_user, payload.company_id)


@router.get("/{company_id}", response_model=CompanyRead)
def get_company(company_id: int, db: Session = Depends(get_db), current_user=Depends(get_current_user)):
    return company_service.get_company_for_user(db, company_id, current_user)


@router.put("/{company_id}", response_model=CompanyRead)
def update_company(company_id: int, payload: CompanyCreate, db: Session = Depends(get_db), current_user=Depends(require_admin)):
    company = company_service.get_company_for_user(db, company_id, current_user)
    try:
        company.name = payload.name
        company.cnpj = payload.cnpj
        company.phone = payload.phone
        company.email = payload.email
        company.address = payload.address
        company.city = payload.city
        db.add(company)
        db.commit()
        db.refresh(company)
        return company
    except Exception as e:
        db.rollback()
        raise HTTPException(status_code=500, detail=str(e))


@router.delete("/{company_id}")
def delete_company(company_id: int, db: Session = Depends(get_db), current_user=Depends(require_admin)):
    """Delete a company together with all of its revenues and expenses."""
    company = company_service.get_company_for_user(db, company_id, current_user)
    try:
        revenues = db.query(Revenue).filter(Revenue.company_id == company.id).delete(synchronize_session=False)
        expenses = db.query(Expense).filter(Expense.company_id == company.id).delete(synchronize_session=False)
        # selections pointing at it fall back to the newest remaining company on next read
        db.query(UserModel).filter(UserModel.selected_company_id == company.id).update(
            {UserModel.selected_company_id: None}, synchronize_session=False
        )
        db.delete(company)
        db.commit()
    except Exception as e:
        db.rollback()
        raise HTTPException(status_code=500, detail=str(e))
    logger.info("deleted company id=%s with %s revenues and %s expenses", company_id, revenues, expenses)
    return {"detail": "Empresa removida com sucesso"}
