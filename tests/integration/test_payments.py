"""Integration tests for payment recording and cancellation"""

import pytest
from datetime import date, datetime, timezone
from unittest.mock import patch
from receivables_gateway.domain.exceptions import InstallmentNotFoundError, InvalidStatusTransitionError
from receivables_gateway.domain.models import InstallmentStatus
from receivables_gateway.services.payments import PaymentService

pytestmark = pytest.mark.integration


def test_mark_as_paid_on_time(db, make_installment):
    """Test payment on the due date"""
    installment = make_installment(due_date=date(2026, 4, 10), status=InstallmentStatus.PENDING)

    paid = PaymentService(db).mark_as_paid(installment.id, payment_date=date(2026, 4, 10))

    assert paid.status == InstallmentStatus.PAID
    assert paid.payment_date == date(2026, 4, 10)


def test_mark_as_paid_late(db, make_installment):
    """Test payment of an overdue installment"""
    installment = make_installment(due_date=date(2026, 4, 10), status=InstallmentStatus.OVERDUE)

    paid = PaymentService(db).mark_as_paid(installment.id, payment_date=date(2026, 4, 20))

    assert paid.status == InstallmentStatus.PAID_LATE


def test_mark_as_paid_twice(db, make_installment):
    """Test terminal states reject a second payment"""
    installment = make_installment(due_date=date(2026, 4, 10), status=InstallmentStatus.PENDING)
    service = PaymentService(db)
    service.mark_as_paid(installment.id, payment_date=date(2026, 4, 1))

    with pytest.raises(InvalidStatusTransitionError):
        service.mark_as_paid(installment.id, payment_date=date(2026, 4, 2))

    db.refresh(installment)
    assert installment.payment_date == date(2026, 4, 1)


def test_cancel(db, make_installment):
    """Test cancellation of an open installment"""
    installment = make_installment(status=InstallmentStatus.PENDING)

    canceled = PaymentService(db).cancel(installment.id)

    assert canceled.status == InstallmentStatus.CANCELED


def test_cancel_paid_installment(db, make_installment):
    """Test a paid installment cannot be canceled"""
    installment = make_installment(status=InstallmentStatus.PAID)

    with pytest.raises(InvalidStatusTransitionError):
        PaymentService(db).cancel(installment.id)


def test_payment_installment_not_found(db):
    """Test unknown installment"""
    with pytest.raises(InstallmentNotFoundError):
        PaymentService(db).mark_as_paid(9999)
    with pytest.raises(InstallmentNotFoundError):
        PaymentService(db).cancel(9999)


class SaoPauloEvening(datetime):
    """Host clock already on 2026-03-16 (UTC) while Sao Paulo is still on the 15th"""

    @classmethod
    def now(cls, tz=None):
        return datetime(2026, 3, 16, 1, 30, tzinfo=timezone.utc).astimezone(tz)


def test_mark_as_paid_defaults_to_sao_paulo_date(db, make_installment):
    """Test a payment late in the evening of the due date is on time"""
    installment = make_installment(due_date=date(2026, 3, 15), status=InstallmentStatus.PENDING)

    with patch("receivables_gateway.utils.date_utils.datetime", SaoPauloEvening):
        paid = PaymentService(db).mark_as_paid(installment.id)

    assert paid.status == InstallmentStatus.PAID
    assert paid.payment_date == date(2026, 3, 15)


def test_mark_as_paid_uses_injected_today(db, make_installment):
    """Test the payment date comes from the service clock"""
    installment = make_installment(due_date=date(2026, 3, 15), status=InstallmentStatus.OVERDUE)

    paid = PaymentService(db, today=lambda: date(2026, 3, 20)).mark_as_paid(installment.id)

    assert paid.status == InstallmentStatus.PAID_LATE
    assert paid.payment_date == date(2026, 3, 20)
