"""Overdue amount computation - late fee plus prorated daily interest"""

from datetime import date
from decimal import Decimal, ROUND_HALF_UP

from receivables_gateway.domain.models import AccrualBreakdown
from receivables_gateway.utils.date_utils import days_between

CENTS = Decimal("0.01")
DAILY_RATE_PRECISION = Decimal("0.0000000001")  # 10 fractional digits
DAYS_PER_MONTH = Decimal(30)


def compute_overdue_amount(
    original_amount: Decimal,
    late_fee_rate: Decimal | None,
    monthly_interest_rate: Decimal | None,
    days_overdue: int,
) -> AccrualBreakdown:
    """
    Compute the amount now due for an overdue installment.

    Requirements:
    - Late fee is a one-time percentage of the original amount
    - Daily interest = monthly rate / 30 (fixed, not calendar month length),
      rounded half-up to 10 fractional digits
    - Always recomputed from the original amount, never compounded
    - Final amount rounded half-up to cents

    Example:
        100.00 at 2% fee and 3% a month, 10 days late
        fee 2.00 + interest 100 * 0.0010000000 * 10 = 1.00 -> 103.00
    """
    late_fee_rate = late_fee_rate if late_fee_rate is not None else Decimal(0)
    monthly_interest_rate = monthly_interest_rate if monthly_interest_rate is not None else Decimal(0)

    late_fee = original_amount * late_fee_rate
    daily_interest_rate = (monthly_interest_rate / DAYS_PER_MONTH).quantize(
        DAILY_RATE_PRECISION, rounding=ROUND_HALF_UP
    )
    interest = original_amount * daily_interest_rate * days_overdue
    overdue_amount = (original_amount + late_fee + interest).quantize(CENTS, rounding=ROUND_HALF_UP)

    return AccrualBreakdown(
        days_overdue=days_overdue,
        late_fee=late_fee,
        daily_interest_rate=daily_interest_rate,
        interest=interest,
        overdue_amount=overdue_amount,
    )


def days_overdue(due_date: date, today: date) -> int:
    """Days elapsed since the due date; zero or negative when not late"""
    return days_between(due_date, today)


def needs_update(
    stored_amount: Decimal | None,
    stored_date: date | None,
    new_amount: Decimal,
    today: date,
) -> bool:
    """An accrual is written only when the amount changed or was computed on another day"""
    return stored_amount is None or stored_amount != new_amount or stored_date != today
