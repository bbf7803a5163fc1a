"""Pydantic request schemas used by the API.

Layout payloads are plain dicts parsed by scheve_cms.layout so that every
problem is reported in one go; the schemas here cover students and invoices.
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field


class StudentIn(BaseModel):
    """Create/replace payload for a student record."""
    name: Optional[str] = Field(default=None, max_length=200)
    student_number: Optional[str] = Field(default=None, max_length=64)
    address: Optional[str] = None
    email: Optional[str] = Field(default=None, max_length=320)
    phone_number: Optional[str] = Field(default=None, max_length=64)
    emergency_contact: Optional[str] = None
    bank_name: Optional[str] = Field(default=None, max_length=200)
    account_number: Optional[str] = Field(default=None, max_length=64)
    date_of_registration: Optional[datetime] = None
    registration_document_path: Optional[str] = None


class BatchInvoiceRequest(BaseModel):
    """One invoice with the same amount/description for every listed student."""
    student_ids: List[str] = Field(min_length=1)
    description: Optional[str] = Field(default=None, max_length=500)
    amount_total: Decimal = Field(gt=0)
    vat: Decimal = Field(ge=0, le=100)
