from sqlalchemy import Column, Integer, String, DateTime, Boolean
from sqlalchemy.sql import func
from gestao_financeira.db.session import Base


class Session(Base):
    """Refresh-token session; revoking it ends the login."""

    __tablename__ = "sessions"

    id = Column(Integer, primary_key=True, index=True)
    jti = Column(String(128), unique=True, index=True, nullable=False)
    user_email = Column(String(255), index=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    expires_at = Column(DateTime(timezone=True), nullable=False)
    revoked = Column(Boolean, default=False, nullable=False)
