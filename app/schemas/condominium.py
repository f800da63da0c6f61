"""
Condo Billing - Condominium Schemas
"""
from pydantic import BaseModel, Field
from typing import Optional


class CondominiumCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=255)
    cnpj: Optional[str] = Field(None, max_length=20, description="CNPJ (com ou sem máscara)")
    city: Optional[str] = Field(None, max_length=120)
    state: Optional[str] = Field(None, min_length=2, max_length=2)


class CondominiumResponse(BaseModel):
    id: str
    owner_id: str
    name: str
    cnpj: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    created_at: Optional[str] = None
    subscription: Optional[dict] = None
