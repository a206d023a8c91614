"""Unit tests for overdue amount computation"""

from datetime import date
from decimal import Decimal
from receivables_gateway.domain.accrual import compute_overdue_amount, days_overdue, needs_update


def test_compute_overdue_amount_reference_case():
    """Test 100.00 at 2% fee and 3% a month, 10 days late"""
    breakdown = compute_overdue_amount(Decimal("100.00"), Decimal("0.02"), Decimal("0.03"), 10)

    assert breakdown.late_fee == Decimal("2.00")
    assert breakdown.daily_interest_rate == Decimal("0.0010000000")
    assert breakdown.interest == Decimal("1.00")
    assert breakdown.overdue_amount == Decimal("103.00")
    assert breakdown.days_overdue == 10


def test_compute_overdue_amount_null_rates_are_zero():
    """Test missing rates contribute nothing"""
    breakdown = compute_overdue_amount(Decimal("100.00"), None, None, 30)

    assert breakdown.late_fee == 0
    assert breakdown.interest == 0
    assert breakdown.overdue_amount == Decimal("100.00")


def test_compute_overdue_amount_fee_only():
    """Test late fee without interest"""
    breakdown = compute_overdue_amount(Decimal("150.00"), Decimal("0.02"), None, 45)
    assert breakdown.overdue_amount == Decimal("153.00")


def test_compute_overdue_amount_daily_rate_rounding():
    """Test daily rate rounded half-up to 10 digits, total to cents"""
    # 0.01 / 30 = 0.000333333333... -> 0.0003333333
    breakdown = compute_overdue_amount(Decimal("333.33"), Decimal("0"), Decimal("0.01"), 7)

    assert breakdown.daily_interest_rate == Decimal("0.0003333333")
    # 333.33 * 0.0003333333 * 7 = 0.77776658...
    assert breakdown.overdue_amount == Decimal("334.11")


def test_compute_overdue_amount_uses_30_day_month():
    """Test interest does not depend on calendar month length"""
    breakdown = compute_overdue_amount(Decimal("1000.00"), None, Decimal("0.03"), 31)
    assert breakdown.overdue_amount == Decimal("1031.00")


def test_compute_overdue_amount_is_not_compounded():
    """Test recomputation from the original amount gives the same value"""
    first = compute_overdue_amount(Decimal("100.00"), Decimal("0.02"), Decimal("0.03"), 10)
    second = compute_overdue_amount(Decimal("100.00"), Decimal("0.02"), Decimal("0.03"), 10)
    assert first.overdue_amount == second.overdue_amount


def test_days_overdue():
    """Test elapsed days from the due date"""
    assert days_overdue(date(2026, 3, 5), date(2026, 3, 15)) == 10
    assert days_overdue(date(2026, 3, 15), date(2026, 3, 15)) == 0
    assert days_overdue(date(2026, 3, 20), date(2026, 3, 15)) < 0


def test_needs_update():
    """Test a write is needed on first accrual, new amount or new day"""
    today = date(2026, 3, 15)
    amount = Decimal("103.00")

    assert needs_update(None, None, amount, today) is True
    assert needs_update(Decimal("102.90"), today, amount, today) is True
    assert needs_update(amount, date(2026, 3, 14), amount, today) is True
    assert needs_update(amount, today, amount, today) is False
