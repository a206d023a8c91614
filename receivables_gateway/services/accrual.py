"""Daily overdue batch - status sweep followed by fee and interest accrual"""

import logging
import time
from datetime import date
from typing import Callable
from sqlalchemy.orm import Session

from receivables_gateway.domain.accrual import compute_overdue_amount, days_overdue, needs_update
from receivables_gateway.infrastructure.database.repositories import InstallmentRepository
from receivables_gateway.infrastructure.database.session import unit_of_work
from receivables_gateway.infrastructure.observability.logging import log_accrual_summary
from receivables_gateway.infrastructure.observability.metrics import (
    accrual_failure_counter,
    accrual_updated_counter,
    status_sweep_counter,
)
from receivables_gateway.utils.date_utils import business_today


class AccrualEngine:
    """
    Recomputes the amount due on overdue installments.

    `status_sweep` must run before `run`: only installments already marked
    OVERDUE are accrued.
    """

    def __init__(self, db: Session, today: Callable[[], date] | None = None):
        self.db = db
        self.today = today or business_today
        self.installments = InstallmentRepository(db)

    def status_sweep(self) -> int:
        """Move PENDING installments past their due date to OVERDUE"""
        logging.info("Starting installment status sweep")
        with unit_of_work(self.db):
            transitioned = self.installments.mark_overdue(self.today())

        status_sweep_counter.inc(transitioned)
        logging.info("Status sweep done", extra={"transitioned": transitioned})
        return transitioned

    def run(self) -> int:
        """
        Recompute overdue amounts for every OVERDUE installment with a plan.

        Each run starts from the original amount, so repeated runs on the same
        day produce the same value. A failure on one installment is logged and
        the batch continues.

        Returns:
            Number of installments whose overdue amount was written
        """
        start_time = time.time()
        today = self.today()
        updated = 0
        failed = 0

        with unit_of_work(self.db):
            overdue = self.installments.find_overdue_with_plan()
            logging.info("Found overdue installments", extra={"count": len(overdue), "accrual_date": today.isoformat()})

            for installment in overdue:
                try:
                    elapsed = days_overdue(installment.due_date, today)
                    if elapsed <= 0:
                        continue

                    plan = installment.plan
                    breakdown = compute_overdue_amount(
                        installment.original_amount,
                        plan.late_fee_rate,
                        plan.monthly_interest_rate,
                        elapsed,
                    )

                    if needs_update(
                        installment.overdue_amount,
                        installment.overdue_amount_date,
                        breakdown.overdue_amount,
                        today,
                    ):
                        installment.overdue_amount = breakdown.overdue_amount
                        installment.overdue_amount_date = today
                        updated += 1
                        logging.debug(
                            "Overdue amount updated",
                            extra={"installment_id": installment.id, **breakdown.as_log_fields()},
                        )

                except Exception as e:
                    failed += 1
                    accrual_failure_counter.inc()
                    logging.error(
                        f"Error accruing installment {installment.id}: {e}",
                        extra={"installment_id": installment.id},
                    )

        accrual_updated_counter.inc(updated)
        log_accrual_summary(today.isoformat(), len(overdue), updated, failed, (time.time() - start_time) * 1000)
        return updated
