from typing import List, Optional

from fastapi import Depends, HTTPException, Query
from sqlalchemy.orm import Session

from gestao_financeira.db.session import get_db
from gestao_financeira.models.company import Company
from gestao_financeira.models.user import User
from gestao_financeira.services.auth import get_current_user


def visible_companies_query(db: Session, user: User):
    """Companies the user may read.

    Every signed-in user reads every company of the install; only admins
    create, edit or delete them (see the route guards).
    """
    return db.query(Company)


def list_visible_companies(db: Session, user: User) -> List[Company]:
    return visible_companies_query(db, user).order_by(Company.created_at.desc(), Company.id.desc()).all()


def get_company_for_user(db: Session, company_id: int, user: User) -> Company:
    company = visible_companies_query(db, user).filter(Company.id == company_id).first()
    if not company:
        raise HTTPException(status_code=404, detail="Empresa não encontrada")
    return company


def selected_company(db: Session, user: User) -> Optional[Company]:
    """Stored selection when still visible, else the newest visible company.

    The fallback is persisted so the next request sees the same company,
    matching how the selection survived page reloads on the client.
    """
    if user.selected_company_id is not None:
        company = visible_companies_query(db, user).filter(Company.id == user.selected_company_id).first()
        if company:
            return company
    company = visible_companies_query(db, user).order_by(Company.created_at.desc(), Company.id.desc()).first()
    new_id = company.id if company else None
    if user.selected_company_id != new_id:
        user.selected_company_id = new_id
        db.add(user)
        db.commit()
    return company


def select_company(db: Session, user: User, company_id: int) -> Company:
    company = get_company_for_user(db, company_id, user)
    user.selected_company_id = company.id
    db.add(user)
    db.commit()
    return company


def resolve_company_id(db: Session, user: User, company_id: Optional[int]) -> int:
    """Explicit company (checked for visibility) or the user's selected one."""
    if company_id is not None:
        return get_company_for_user(db, company_id, user).id
    company = selected_company(db, user)
    if company is None:
        raise HTTPException(status_code=400, detail="Nenhuma empresa selecionada")
    return company.id


def current_company(
    company_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Company:
    """Route dependency: the company a read endpoint works on."""
    return get_company_for_user(db, resolve_company_id(db, current_user, company_id), current_user)
