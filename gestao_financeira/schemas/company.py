from pydantic import BaseModel, ConfigDict, field_validator
from typing import Optional
from datetime import datetime


class CompanyBase(BaseModel):
    name: str
    cnpj: str
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None

    @field_validator("name", "cnpj")
    @classmethod
    def required_text(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("Nome e CNPJ são obrigatórios")
        return v


class CompanyCreate(CompanyBase):
    pass


class CompanyRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    cnpj: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    user_id: Optional[int] = None
    created_at: Optional[datetime] = None


class SelectCompanyRequest(BaseModel):
    company_id: int
