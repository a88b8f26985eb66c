from fastapi import APIRouter, Depends, HTTPException
from typing import List
from sqlalchemy.orm import Session

from gestao_financeira.db.session import get_db
from gestao_financeira.models.user import User as UserModel, RoleEnum
from gestao_financeira.schemas.user import UserRead, UserUpdate
from gestao_financeira.services.auth import get_password_hash, require_admin

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("", response_model=List[UserRead])
@router.get("/", response_model=List[UserRead])
def list_users(db: Session = Depends(get_db), current_user=Depends(require_admin)):
    try:
        return db.query(UserModel).order_by(UserModel.id.desc()).limit(200).all()
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.patch("/{user_id}", response_model=UserRead)
def update_user(user_id: int, user_in: UserUpdate, db: Session = Depends(get_db), current_user=Depends(require_admin)):
    target = db.query(UserModel).filter(UserModel.id == user_id).first()
    if not target:
        raise HTTPException(status_code=404, detail="Usuário não encontrado")

    if user_in.papel is not None:
        if user_in.papel not in {r.value for r in RoleEnum}:
            raise HTTPException(status_code=400, detail="Papel inválido")
        # an admin demoting themself could leave the install without admins
        if target.id == current_user.id and user_in.papel != RoleEnum.admin.value:
            raise HTTPException(status_code=400, detail="Não é possível remover o próprio acesso de administrador")
        target.papel = RoleEnum(user_in.papel)
    if user_in.nome is not None:
        target.nome = user_in.nome
    if user_in.password:
        target.senha_hash = get_password_hash(user_in.password)

    try:
        db.add(target)
        db.commit()
        db.refresh(target)
    except Exception as e:
        db.rollback()
        raise HTTPException(status_code=500, detail=str(e))
    return target
