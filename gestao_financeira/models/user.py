from sqlalchemy import Column, Integer, String, DateTime, Enum
from sqlalchemy.sql import func
from gestao_financeira.db.session import Base
import enum


class RoleEnum(str, enum.Enum):
    admin = "admin"
    user = "user"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    nome = Column(String(255), nullable=True)
    senha_hash = Column(String(255), nullable=False)
    # admin edits/deletes; user only views and launches entries
    papel = Column(Enum(RoleEnum), nullable=False, default=RoleEnum.user, server_default=RoleEnum.user.value)
    # server-side replacement for the browser's selectedCompanyId
    selected_company_id = Column(Integer, nullable=True)
    criado_em = Column(DateTime(timezone=True), server_default=func.now())

    @property
    def is_admin(self) -> bool:
        role = getattr(self.papel, "value", self.papel)
        return role == RoleEnum.admin.value
