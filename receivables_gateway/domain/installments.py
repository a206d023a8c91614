"""Installment schedule generation and status transitions"""

from datetime import date
from decimal import Decimal
from typing import List
from receivables_gateway.domain.exceptions import InvalidStatusTransitionError
from receivables_gateway.domain.models import InstallmentStatus, ScheduledInstallment
from receivables_gateway.utils.date_utils import add_months, business_today


def initial_status(due_date: date, today: date) -> InstallmentStatus:
    """Installments created with a past due date start OVERDUE"""
    return InstallmentStatus.OVERDUE if due_date < today else InstallmentStatus.PENDING


def generate_installment_schedule(
    monthly_amount: Decimal,
    num_installments: int,
    first_due_date: date,
    today: date | None = None,
) -> List[ScheduledInstallment]:
    """
    Generate monthly installments of equal value.

    Requirements:
    - Sequence numbers run from 1 to num_installments
    - Due dates are one calendar month apart, starting at first_due_date
      (day clamped to month end: Jan 31 -> Feb 28 -> Mar 31)
    - Each installment starts PENDING, or OVERDUE if its due date has passed

    Raises:
        ValueError: On non-positive amount or installment count
    """
    if monthly_amount <= 0:
        raise ValueError("Installment amount must be positive")
    if num_installments < 1:
        raise ValueError("A plan needs at least one installment")

    if today is None:
        today = business_today()

    installments = []
    for i in range(num_installments):
        due_date = add_months(first_due_date, i)
        installments.append(
            ScheduledInstallment(
                sequence_number=i + 1,
                total_installments=num_installments,
                due_date=due_date,
                amount=monthly_amount,
                status=initial_status(due_date, today),
            )
        )

    return installments


def status_for_payment(due_date: date, payment_date: date) -> InstallmentStatus:
    """PAID when paid on or before the due date, PAID_LATE otherwise"""
    return InstallmentStatus.PAID_LATE if due_date < payment_date else InstallmentStatus.PAID


def ensure_transition(current: InstallmentStatus, target: InstallmentStatus) -> None:
    """
    Enforce the installment status machine.

    PENDING -> OVERDUE -> {PAID, PAID_LATE}; PENDING -> {PAID, PAID_LATE};
    CANCELED from any non-terminal state. Terminal states never change.
    """
    if current.is_terminal:
        raise InvalidStatusTransitionError(f"Installment is already {current.value}")
    if target == InstallmentStatus.PENDING or (
        target == InstallmentStatus.OVERDUE and current != InstallmentStatus.PENDING
    ):
        raise InvalidStatusTransitionError(f"Cannot move installment from {current.value} to {target.value}")
