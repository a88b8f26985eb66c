"""Shared write-side helpers for the revenues and expenses tables."""
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from gestao_financeira.core.money import to_decimal
from gestao_financeira.models.category import Category
from gestao_financeira.models.company import Company
from gestao_financeira.models.user import User
from gestao_financeira.services.companies import visible_companies_query

NOT_FOUND = {
    "revenue": "Receita não encontrada",
    "expense": "Despesa não encontrada",
}


def check_category(db: Session, model, category_id: Optional[int]):
    if category_id is None:
        return
    category = db.query(Category).filter(Category.id == category_id).first()
    if not category:
        raise HTTPException(status_code=404, detail="Categoria não encontrada")
    cat_type = getattr(category.type, "value", category.type)
    if cat_type != model.kind:
        raise HTTPException(status_code=400, detail="Categoria não pertence a este tipo de lançamento")


def get_entry(db: Session, model, entry_id: int, user: User):
    """Row of ``model`` whose company the user may see, else 404."""
    row = db.query(model).filter(model.id == entry_id).first()
    if row is not None:
        visible = visible_companies_query(db, user).filter(Company.id == row.company_id).first()
        if visible is None:
            row = None
    if not row:
        raise HTTPException(status_code=404, detail=NOT_FOUND[model.kind])
    return row


def create_entry(db: Session, model, company_id: int, user: User, **fields):
    check_category(db, model, fields.get("category_id"))
    row = model(company_id=company_id, user_id=user.id, **fields)
    row.amount = to_decimal(row.amount)
    try:
        db.add(row)
        db.commit()
        db.refresh(row)
    except Exception as e:
        db.rollback()
        raise HTTPException(status_code=500, detail=str(e))
    return row


def update_entry(db: Session, row, changes: dict):
    if "category_id" in changes:
        check_category(db, type(row), changes["category_id"])
    for key, value in changes.items():
        if key == "amount":
            value = to_decimal(value)
        setattr(row, key, value)
    try:
        db.add(row)
        db.commit()
        db.refresh(row)
    except Exception as e:
        db.rollback()
        raise HTTPException(status_code=500, detail=str(e))
    return row


def delete_entry(db: Session, row):
    try:
        db.delete(row)
        db.commit()
    except Exception as e:
        db.rollback()
        raise HTTPException(status_code=500, detail=str(e))


def list_entries(db: Session, model, company_id: int, start=None, end=None, status=None,
                 category_id=None, sort_key="date", sort_dir="desc", page=1, limit=50):
    q = db.query(model).filter(model.company_id == company_id)
    if start:
        q = q.filter(model.date >= start)
    if end:
        q = q.filter(model.date <= end)
    if status:
        q = q.filter(model.status == status)
    if category_id is not None:
        q = q.filter(model.category_id == category_id)

    column = model.amount if sort_key in ("amount", "value") else model.date
    if sort_dir == "asc":
        q = q.order_by(column.asc(), model.id.asc())
    else:
        q = q.order_by(column.desc(), model.id.desc())

    offset = (page - 1) * limit
    return q.offset(offset).limit(limit).all()
