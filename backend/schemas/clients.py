from pydantic import BaseModel, field_validator
from typing import Optional
from datetime import datetime


class ClientBase(BaseModel):
    company_name: str
    contact_person: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    alternate_phone: Optional[str] = None
    address: Optional[str] = None
    backend_base_url: Optional[str] = None
    api_user_name: Optional[str] = None


class ClientCreate(ClientBase):
    api_password: Optional[str] = None


class ClientUpdate(BaseModel):
    company_name: Optional[str] = None
    contact_person: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    alternate_phone: Optional[str] = None
    address: Optional[str] = None
    backend_base_url: Optional[str] = None
    api_user_name: Optional[str] = None
    api_password: Optional[str] = None


class Client(ClientBase):
    """Read model; the API password is never echoed back."""
    id: int
    status: str
    license_configured: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ClientIntegrationBase(BaseModel):
    label: str
    value: str

    @field_validator("label", "value")
    @classmethod
    def strip_and_require(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v


class ClientIntegrationCreate(ClientIntegrationBase):
    client_id: int


class ClientIntegrationUpdate(BaseModel):
    label: Optional[str] = None
    value: Optional[str] = None

    @field_validator("label", "value")
    @classmethod
    def strip_and_require(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v


class ClientIntegration(ClientIntegrationBase):
    id: int
    client_id: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
