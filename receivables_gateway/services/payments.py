"""Installment payment recording and cancellation"""

import logging
from datetime import date
from typing import Callable
from sqlalchemy.orm import Session

from receivables_gateway.domain.exceptions import InstallmentNotFoundError
from receivables_gateway.domain.installments import ensure_transition, status_for_payment
from receivables_gateway.domain.models import InstallmentStatus
from receivables_gateway.infrastructure.database.models import Installment
from receivables_gateway.infrastructure.database.repositories import InstallmentRepository
from receivables_gateway.infrastructure.database.session import unit_of_work
from receivables_gateway.utils.date_utils import business_today


class PaymentService:
    """Applies terminal status changes to installments"""

    def __init__(self, db: Session, today: Callable[[], date] | None = None):
        self.db = db
        self.today = today or business_today
        self.installments = InstallmentRepository(db)

    def mark_as_paid(self, installment_id: int, payment_date: date | None = None) -> Installment:
        """
        Record a payment: PAID on or before the due date, PAID_LATE after it.

        Raises:
            InstallmentNotFoundError: Installment does not exist
            InvalidStatusTransitionError: Installment is already paid or canceled
        """
        payment_date = payment_date or self.today()
        with unit_of_work(self.db):
            installment = self._load(installment_id)
            target = status_for_payment(installment.due_date, payment_date)
            ensure_transition(installment.status, target)
            installment.payment_date = payment_date
            installment.status = target

        logging.info(
            "Installment paid",
            extra={"installment_id": installment_id, "installment_status": target.value},
        )
        return installment

    def cancel(self, installment_id: int) -> Installment:
        """
        Raises:
            InstallmentNotFoundError: Installment does not exist
            InvalidStatusTransitionError: Installment is already in a terminal state
        """
        with unit_of_work(self.db):
            installment = self._load(installment_id)
            ensure_transition(installment.status, InstallmentStatus.CANCELED)
            installment.status = InstallmentStatus.CANCELED

        logging.info("Installment canceled", extra={"installment_id": installment_id})
        return installment

    def _load(self, installment_id: int) -> Installment:
        installment = self.installments.get_by_id(installment_id)
        if installment is None:
            raise InstallmentNotFoundError(f"Installment not found: {installment_id}")
        return installment
