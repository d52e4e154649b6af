from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from aurelo.models.enums import InvoiceStatusEnum


class LineItemCreate(BaseModel):
    description: str
    quantity: Decimal = Field(ge=0)
    rate: Decimal = Field(ge=0)
    session_ids: list[str] = []


class InvoiceCreate(BaseModel):
    client_id: int
    line_items: list[LineItemCreate] = Field(min_length=1)
    due_date: datetime
    tax_rate: Decimal = Field(default=Decimal("0"), ge=0, le=1)
    currency: str = Field(default="USD", min_length=3, max_length=3)
    issued_date: Optional[datetime] = None
    notes: Optional[str] = None
    payment_terms: Optional[str] = None
    created_from_sessions: Optional[list[str]] = None


class InvoiceBatchCreate(BaseModel):
    invoices: list[InvoiceCreate] = Field(min_length=1)


class InvoiceStatusUpdate(BaseModel):
    status: InvoiceStatusEnum
    paid_date: Optional[datetime] = None


class InvoiceRead(BaseModel):
    id: int
    workspace_id: int
    client_id: int
    number: str
    status: str
    line_items: list[dict]
    subtotal: Decimal
    tax_rate: Decimal
    tax_amount: Decimal
    total: Decimal
    currency: str
    issued_date: datetime
    due_date: datetime
    paid_date: Optional[datetime] = None
    notes: Optional[str] = None
    payment_terms: Optional[str] = None
    stripe_invoice_id: Optional[str] = None
    stripe_payment_url: Optional[str] = None
    created_from_sessions: Optional[list[str]] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
