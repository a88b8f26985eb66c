from pydantic import BaseModel, EmailStr, Field, field_validator
from pydantic import ConfigDict
from typing import Optional
import datetime


class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6)
    nome: Optional[str] = None


class UserUpdate(BaseModel):
    nome: Optional[str] = None
    papel: Optional[str] = None
    password: Optional[str] = Field(default=None, min_length=6)


class UserRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: EmailStr
    nome: Optional[str] = None
    papel: str
    selected_company_id: Optional[int] = None
    criado_em: Optional[datetime.datetime] = None

    @field_validator("papel", mode="before")
    @classmethod
    def role_as_text(cls, v):
        return getattr(v, "value", v)


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class LoginRequest(BaseModel):
    email: str
    password: str


class Permissions(BaseModel):
    can_view: bool = True
    can_edit: bool
    can_delete: bool
    is_admin: bool
    user_id: Optional[int] = None
