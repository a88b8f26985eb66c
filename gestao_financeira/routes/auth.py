import logging

from fastapi import APIRouter, Depends, HTTPException, Response, Request
from jose import JWTError
from sqlalchemy.orm import Session

from gestao_financeira.db.session import get_db
from gestao_financeira.models.session import Session as SessionModel
from gestao_financeira.models.user import User as UserModel, RoleEnum
from gestao_financeira.schemas.user import UserCreate, UserRead, Token, LoginRequest, Permissions
from gestao_financeira.services import auth as auth_service

router = APIRouter(prefix="/auth", tags=["Auth"])
logger = logging.getLogger(__name__)

REFRESH_COOKIE = "refresh_token"


def _set_refresh_cookie(response: Response, token: str):
    # secure should be True behind HTTPS in production
    response.set_cookie(
        key=REFRESH_COOKIE,
        value=token,
        httponly=True,
        secure=False,
        samesite="lax",
        max_age=auth_service.settings.REFRESH_TOKEN_EXPIRE_DAYS * 24 * 3600,
        path="/",
    )


def _session_from_cookie(request: Request, db: Session):
    token = request.cookies.get(REFRESH_COOKIE)
    if not token:
        raise HTTPException(status_code=401, detail="Token de refresh ausente")
    try:
        payload = auth_service.decode_token(token)
    except JWTError:
        raise HTTPException(status_code=401, detail="Token de refresh inválido")
    if payload.get("type") != "refresh" or not payload.get("jti") or not payload.get("sub"):
        raise HTTPException(status_code=401, detail="Token de refresh inválido")
    ses = db.query(SessionModel).filter(SessionModel.jti == payload["jti"]).first()
    return payload, ses


@router.post("/register", response_model=UserRead)
def register(user_in: UserCreate, db: Session = Depends(get_db)):
    email = user_in.email.strip().lower()
    if db.query(UserModel).filter(UserModel.email == email).first():
        raise HTTPException(status_code=400, detail="Email já registrado")

    # the first account of a fresh install administers it
    is_first = db.query(UserModel.id).first() is None
    user = UserModel(
        email=email,
        nome=user_in.nome,
        senha_hash=auth_service.get_password_hash(user_in.password),
        papel=RoleEnum.admin if is_first else RoleEnum.user,
    )
    try:
        db.add(user)
        db.commit()
        db.refresh(user)
    except Exception as e:
        db.rollback()
        raise HTTPException(status_code=500, detail=str(e))
    logger.info("registered user id=%s role=%s", user.id, auth_service.role_value(user))
    return user


@router.post("/login", response_model=Token)
def login(form_data: LoginRequest, response: Response, db: Session = Depends(get_db)):
    user = auth_service.authenticate_user(db, form_data.email, form_data.password)
    if not user:
        raise HTTPException(status_code=400, detail="Email ou senha incorretos")
    try:
        access_token, refresh_token = auth_service.open_session(db, user)
    except Exception as e:
        db.rollback()
        raise HTTPException(status_code=500, detail=str(e))
    _set_refresh_cookie(response, refresh_token)
    return {"access_token": access_token, "token_type": "bearer"}


@router.post("/refresh", response_model=Token)
def refresh_token(request: Request, response: Response, db: Session = Depends(get_db)):
    payload, ses = _session_from_cookie(request, db)
    if not auth_service.session_is_active(ses):
        raise HTTPException(status_code=401, detail="Token de refresh revogado ou expirado")
    user = db.query(UserModel).filter(UserModel.email == payload["sub"]).first()
    if user is None:
        raise HTTPException(status_code=401, detail="Token de refresh inválido")

    # rotate: the old session is revoked and a new one issued
    try:
        ses.revoked = True
        db.add(ses)
        access_token, new_refresh = auth_service.open_session(db, user)
    except Exception as e:
        db.rollback()
        raise HTTPException(status_code=500, detail=str(e))
    _set_refresh_cookie(response, new_refresh)
    return {"access_token": access_token, "token_type": "bearer"}


@router.post("/logout")
def logout(request: Request, response: Response, db: Session = Depends(get_db)):
    """Revoke the refresh session; access tokens bound to it stop working too."""
    if request.cookies.get(REFRESH_COOKIE):
        try:
            _, ses = _session_from_cookie(request, db)
        except HTTPException:
            ses = None
        if ses is not None and not ses.revoked:
            ses.revoked = True
            db.add(ses)
            db.commit()
    response.delete_cookie(REFRESH_COOKIE, path="/")
    return {"ok": True}


@router.get("/me", response_model=UserRead)
def read_users_me(current_user=Depends(auth_service.get_current_user)):
    return current_user


@router.get("/permissions", response_model=Permissions)
def read_permissions(current_user=Depends(auth_service.get_current_user)):
    return auth_service.permissions_for(current_user)
