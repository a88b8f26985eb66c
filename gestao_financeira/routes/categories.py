from fastapi import APIRouter, Depends, HTTPException
from typing import List, Literal, Optional
from sqlalchemy.orm import Session

from gestao_financeira.db.session import get_db
from gestao_financeira.models.category import Category, CategoryType
from gestao_financeira.schemas.category import CategoryRead
from gestao_financeira.services.auth import get_current_user

router = APIRouter(prefix="/categories", tags=["Categories"])


@router.get("", response_model=List[CategoryRead])
@router.get("/", response_model=List[CategoryRead])
def list_categories(
    type: Optional[Literal["revenue", "expense"]] = None,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    try:
        q = db.query(Category)
        if type:
            q = q.filter(Category.type == CategoryType(type))
        return q.order_by(Category.name.asc()).all()
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))
