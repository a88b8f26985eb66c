from datetime import datetime, timedelta, timezone
import uuid
from typing import Optional
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from gestao_financeira.core.config import settings
from gestao_financeira.models.user import User, RoleEnum
from gestao_financeira.models.session import Session as SessionModel
from gestao_financeira.db.session import get_db

# pbkdf2_sha256 has no 72-byte password limit, unlike bcrypt
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")


def verify_password(plain_password, hashed_password):
    if not hashed_password:
        return False
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password):
    return pwd_context.hash(password)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_aware(dt: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands DateTime(timezone=True) back naive
    if dt is not None and dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None, jti: Optional[str] = None):
    to_encode = data.copy()
    expire = _utcnow() + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    # an access token carries the jti of the refresh session it came from, so
    # revoking the session (logout) also invalidates it
    to_encode.update({"exp": expire, "type": "access"})
    if jti:
        to_encode["sid"] = jti
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def create_refresh_token(data: dict, expires_delta: Optional[timedelta] = None):
    to_encode = data.copy()
    expire = _utcnow() + (expires_delta or timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS))
    jti = str(uuid.uuid4())
    to_encode.update({"exp": expire, "jti": jti, "type": "refresh"})
    encoded = jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
    return encoded, jti, expire


def decode_token(token: str) -> dict:
    """Decode and verify a JWT. Raises JWTError on bad signature or expiry."""
    return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])


def open_session(db: Session, user: User):
    """Issue an access/refresh pair and persist the refresh session."""
    refresh_token, jti, refresh_expires = create_refresh_token(data={"sub": user.email})
    db.add(SessionModel(jti=jti, user_email=user.email, expires_at=refresh_expires))
    db.commit()
    access_token = create_access_token(data={"sub": user.email}, jti=jti)
    return access_token, refresh_token


def session_is_active(ses: Optional[SessionModel]) -> bool:
    if ses is None or ses.revoked:
        return False
    expires_at = _as_aware(ses.expires_at)
    return not (expires_at and expires_at < _utcnow())


def authenticate_user(db: Session, email: str, password: str):
    user = db.query(User).filter(User.email == email.strip().lower()).first()
    if not user:
        return False
    if not verify_password(password, user.senha_hash):
        return False
    return user


def get_current_user(token: str = Depends(oauth2_scheme), db: Session = Depends(get_db)):
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Não foi possível validar as credenciais",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = decode_token(token)
    except JWTError:
        raise credentials_exception
    email = payload.get("sub")
    if email is None or payload.get("type") != "access":
        raise credentials_exception
    user = db.query(User).filter(User.email == email).first()
    if user is None:
        raise credentials_exception
    sid = payload.get("sid")
    if sid:
        ses = db.query(SessionModel).filter(SessionModel.jti == sid).first()
        if not session_is_active(ses):
            raise credentials_exception
    return user


def role_value(user) -> str:
    role = getattr(user, 'papel', None)
    return role.value if hasattr(role, 'value') else str(role)


def require_roles(*roles: str):
    """Return a dependency that ensures the current user has one of the provided roles.

    Usage in a route:
        @router.delete('/revenues/{revenue_id}')
        def delete_revenue(current_user=Depends(require_roles('admin'))):
            ...
    """
    def role_checker(current_user=Depends(get_current_user)):
        if role_value(current_user) not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Privilégios insuficientes",
            )
        return current_user

    return role_checker


require_admin = require_roles(RoleEnum.admin.value)


def permissions_for(user) -> dict:
    """Everyone views; only admins edit or delete."""
    is_admin = role_value(user) == RoleEnum.admin.value
    return {
        "can_view": True,
        "can_edit": is_admin,
        "can_delete": is_admin,
        "is_admin": is_admin,
        "user_id": getattr(user, "id", None),
    }
