"""Domain models - pure Python dataclasses and enums representing business entities"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Dict


class InstallmentStatus(str, Enum):
    """Lifecycle of a single installment"""

    PENDING = "PENDING"
    OVERDUE = "OVERDUE"
    PAID = "PAID"
    PAID_LATE = "PAID_LATE"
    CANCELED = "CANCELED"

    @property
    def is_terminal(self) -> bool:
        return self in (InstallmentStatus.PAID, InstallmentStatus.PAID_LATE, InstallmentStatus.CANCELED)


class IssuanceStatus(str, Enum):
    """State of a boleto issuance record"""

    ISSUED = "ISSUED"
    ERROR = "ERROR"
    PAID = "PAID"
    CANCELLED = "CANCELLED"


class ProviderId(str, Enum):
    """Supported banks, valued by name; `code` is the FEBRABAN bank code"""

    INTER = "INTER"
    ITAU = "ITAU"
    BRADESCO = "BRADESCO"
    BANCO_DO_BRASIL = "BANCO_DO_BRASIL"

    @property
    def code(self) -> str:
        return _BANK_CODES[self]


_BANK_CODES = {
    ProviderId.INTER: "077",
    ProviderId.ITAU: "341",
    ProviderId.BRADESCO: "237",
    ProviderId.BANCO_DO_BRASIL: "001",
}


@dataclass
class AccessToken:
    """OAuth2 bearer token with its absolute expiry (epoch seconds)"""

    value: str
    expires_at: float

    def is_valid(self, now: float, margin_seconds: float = 0) -> bool:
        return now < self.expires_at - margin_seconds


@dataclass
class RawResponse:
    """Bank HTTP response kept verbatim for auditing"""

    status_code: int
    body: str


@dataclass
class IssuanceRequest:
    """Provider-neutral request to issue a boleto for one installment"""

    installment_id: int
    amount: Decimal
    due_date: date
    payer_name: str
    payer_document: str
    payer_phone: str | None = None
    description: str | None = None
    late_fee_rate: Decimal | None = None
    monthly_interest_rate: Decimal | None = None


@dataclass
class IssuanceResult:
    """Provider-neutral outcome of an issuance attempt"""

    success: bool
    external_id: str | None = None
    barcode: str | None = None
    digitable_line: str | None = None
    document_url: str | None = None
    raw_response: str | None = None
    error_message: str | None = None

    @classmethod
    def failure(cls, error_message: str, raw_response: str | None = None) -> "IssuanceResult":
        return cls(success=False, error_message=error_message, raw_response=raw_response)


@dataclass
class ScheduledInstallment:
    """Single payment in an installment plan, before persistence"""

    sequence_number: int
    total_installments: int
    due_date: date
    amount: Decimal
    status: InstallmentStatus


@dataclass
class AccrualBreakdown:
    """Intermediate values of an overdue amount computation"""

    days_overdue: int
    late_fee: Decimal
    daily_interest_rate: Decimal
    interest: Decimal
    overdue_amount: Decimal

    def as_log_fields(self) -> Dict[str, Any]:
        return {
            "days_overdue": self.days_overdue,
            "late_fee": str(self.late_fee),
            "interest": str(self.interest),
            "overdue_amount": str(self.overdue_amount),
        }
