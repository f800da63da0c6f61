"""
Condo Billing - Payment Schemas
"""
from pydantic import BaseModel, EmailStr, Field
from typing import Literal, Optional


class PixRequest(BaseModel):
    invoice_id: str
    payer_email: EmailStr
    payer_name: str = Field(..., min_length=2, max_length=255)
    payer_document_type: Optional[Literal["CPF", "CNPJ"]] = None
    payer_document_number: str = Field(..., min_length=11, max_length=20)


class PixResponse(BaseModel):
    payment_id: str
    status: str
    qr_code: Optional[str] = None
    qr_code_base64: Optional[str] = None
    ticket_url: Optional[str] = None
    expiration_date: Optional[str] = None
