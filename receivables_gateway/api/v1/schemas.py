"""Pydantic schemas for API responses"""

from datetime import datetime
from pydantic import BaseModel
from typing import Optional


class IssuanceRecordResponse(BaseModel):
    """Boleto issuance record for one installment"""

    id: int
    installment_id: int
    provider: str
    external_id: Optional[str] = None
    barcode: Optional[str] = None
    digitable_line: Optional[str] = None
    document_url: Optional[str] = None
    status: str
    error_message: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ErrorResponse(BaseModel):
    """Body of every non-2xx response"""

    status: int
    message: str
