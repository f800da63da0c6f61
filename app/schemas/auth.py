"""
Condo Billing - Auth Schemas
"""
from pydantic import BaseModel, EmailStr, Field
from typing import List, Literal, Optional


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6)


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: dict


class UserResponse(BaseModel):
    id: str
    email: str
    full_name: Optional[str] = None
    is_active: bool
    roles: List[str] = []
    condominium_ids: List[str] = []
    last_login_at: Optional[str] = None
    created_at: Optional[str] = None


class InvoiceSortPreference(BaseModel):
    invoice_sort_field: Literal["due_date", "created_at", "amount", "invoice_number"]
    invoice_sort_direction: Literal["asc", "desc"]


class InvoiceSortPreferenceUpdate(BaseModel):
    invoice_sort_field: Optional[Literal["due_date", "created_at", "amount", "invoice_number"]] = None
    invoice_sort_direction: Optional[Literal["asc", "desc"]] = None
