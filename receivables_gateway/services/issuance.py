"""Boleto issuance use case - idempotent issue, retry after failure, lookup"""

import logging
import time
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from receivables_gateway.domain.exceptions import (
    InstallmentNotFoundError,
    InvalidInstallmentError,
    IssuanceAlreadyExistsError,
    IssuanceConflictError,
    IssuanceRecordNotFoundError,
)
from receivables_gateway.domain.models import IssuanceRequest, IssuanceResult, IssuanceStatus, ProviderId
from receivables_gateway.infrastructure.database.models import INSTALLMENT_UNIQUE_CONSTRAINT, Installment, IssuanceRecord
from receivables_gateway.infrastructure.database.repositories import InstallmentRepository, IssuanceRecordRepository
from receivables_gateway.infrastructure.database.session import unit_of_work
from receivables_gateway.infrastructure.observability.logging import log_issuance
from receivables_gateway.infrastructure.observability.metrics import record_issuance
from receivables_gateway.infrastructure.providers.registry import StrategyRegistry


def validate_installment(installment: Installment) -> None:
    """
    Check the installment can be sent to a bank.

    Raises:
        InvalidInstallmentError: Naming the first violated field
    """
    if installment.original_amount is None or installment.original_amount <= 0:
        raise InvalidInstallmentError("original_amount", "Installment amount must be positive")
    if installment.due_date is None:
        raise InvalidInstallmentError("due_date", "Installment due date is missing")
    if not installment.payer_name:
        raise InvalidInstallmentError("payer_name", "Payer name is missing")
    if not installment.payer_document:
        raise InvalidInstallmentError("payer_document", "Payer document is missing")


def build_issuance_request(installment: Installment) -> IssuanceRequest:
    """Assemble the provider-neutral request from the installment, its plan and its client"""
    plan = installment.plan
    client = installment.client
    return IssuanceRequest(
        installment_id=installment.id,
        amount=installment.original_amount,
        due_date=installment.due_date,
        payer_name=installment.payer_name,
        payer_document=installment.payer_document,
        payer_phone=plan.payer_phone if plan is not None else None,
        description=plan.name if plan is not None else None,
        late_fee_rate=client.late_fee_rate,
        monthly_interest_rate=client.monthly_interest_rate,
    )


# PostgreSQL names the violated constraint, SQLite names the column
INSTALLMENT_CONFLICT_MARKERS = (
    INSTALLMENT_UNIQUE_CONSTRAINT,
    "UNIQUE constraint failed: issuance_record.installment_id",
)


def _is_installment_conflict(error: IntegrityError) -> bool:
    """Unique violation on the installment reference, not a foreign key or other constraint"""
    message = str(error.orig)
    return any(marker in message for marker in INSTALLMENT_CONFLICT_MARKERS)


class IssuanceOrchestrator:
    """
    Issues boletos for installments, one record per installment.

    A failed provider call is persisted as an ERROR record and returned, not
    raised. Concurrent issuance for the same installment is decided by the
    unique constraint on the record's installment reference.
    """

    def __init__(self, db: Session, registry: StrategyRegistry, request_id: str | None = None):
        self.db = db
        self.registry = registry
        self.request_id = request_id
        self.installments = InstallmentRepository(db)
        self.records = IssuanceRecordRepository(db)

    async def issue(self, installment_id: int, provider: ProviderId) -> IssuanceRecord:
        """
        Issue the first boleto for an installment.

        Raises:
            InstallmentNotFoundError: Installment does not exist
            IssuanceAlreadyExistsError: A record already exists, whatever its status
            InvalidInstallmentError: Installment data is incomplete
            UnsupportedProviderError: No strategy for the provider
        """
        with unit_of_work(self.db):
            return await self._issue(installment_id, provider)

    async def retry_issue(self, installment_id: int, provider: ProviderId) -> IssuanceRecord:
        """
        Replace an ERROR record with a fresh issuance attempt.

        Without a record this behaves like `issue`. The deletion and the new
        attempt share one transaction, so a failing attempt keeps the old record.

        Raises:
            IssuanceConflictError: The existing record is not in ERROR
        """
        logging.info("Retrying boleto issuance", extra={"installment_id": installment_id, "request_id": self.request_id})

        with unit_of_work(self.db):
            installment = self.installments.get_by_id(installment_id)
            if installment is None:
                raise InstallmentNotFoundError(f"Installment not found: {installment_id}")

            existing = self.records.get_by_installment(installment_id)
            if existing is not None and existing.status != IssuanceStatus.ERROR:
                raise IssuanceConflictError(f"Boleto already issued for installment {installment_id}")

            if existing is not None:
                self.records.delete(existing)

            return await self._issue(installment_id, provider)

    def get_by_installment(self, installment_id: int) -> IssuanceRecord:
        """
        Raises:
            InstallmentNotFoundError: Installment does not exist
            IssuanceRecordNotFoundError: Installment has no boleto
        """
        if self.installments.get_by_id(installment_id) is None:
            raise InstallmentNotFoundError(f"Installment not found: {installment_id}")

        record = self.records.get_by_installment(installment_id)
        if record is None:
            raise IssuanceRecordNotFoundError(f"No boleto for installment {installment_id}")
        return record

    async def _issue(self, installment_id: int, provider: ProviderId) -> IssuanceRecord:
        start_time = time.time()
        logging.info(
            "Starting boleto issuance",
            extra={"installment_id": installment_id, "provider": provider.value, "request_id": self.request_id},
        )

        # 1. Load installment with plan and client
        installment = self.installments.get_for_issuance(installment_id)
        if installment is None:
            raise InstallmentNotFoundError(f"Installment not found: {installment_id}")

        # 2. First issuance is one-shot
        if self.records.exists_for_installment(installment_id):
            raise IssuanceAlreadyExistsError(f"Boleto already exists for installment {installment_id}")

        # 3. Validate before touching the network
        validate_installment(installment)

        # 4. Provider-neutral request
        request = build_issuance_request(installment)

        # 5. Delegate to the bank strategy
        strategy = self.registry.resolve(provider)
        result = await strategy.issue(request)

        # 6. Persist either outcome
        record = self._to_record(installment_id, provider, result)
        try:
            self.records.add(record)
        except IntegrityError as e:
            if _is_installment_conflict(e):
                raise IssuanceAlreadyExistsError(f"Boleto already exists for installment {installment_id}") from e
            raise

        duration_ms = (time.time() - start_time) * 1000
        record_issuance(provider.value, result.success)
        log_issuance(installment_id, provider.value, record.status.value, record.external_id, duration_ms, self.request_id)

        return record

    @staticmethod
    def _to_record(installment_id: int, provider: ProviderId, result: IssuanceResult) -> IssuanceRecord:
        return IssuanceRecord(
            installment_id=installment_id,
            provider=provider,
            external_id=result.external_id,
            barcode=result.barcode,
            digitable_line=result.digitable_line,
            document_url=result.document_url,
            status=IssuanceStatus.ISSUED if result.success else IssuanceStatus.ERROR,
            raw_response=result.raw_response,
            error_message=result.error_message,
        )
