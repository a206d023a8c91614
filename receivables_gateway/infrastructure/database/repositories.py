"""Data access layer for receivables entities"""

from datetime import date
from decimal import Decimal
from typing import List, Optional
from sqlalchemy import select, update
from sqlalchemy.orm import Session, contains_eager, joinedload
from receivables_gateway.infrastructure.database.models import Client, Installment, InstallmentPlan, IssuanceRecord
from receivables_gateway.domain.models import InstallmentStatus, ScheduledInstallment


class InstallmentRepository:
    """Repository for installments"""

    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, installment_id: int) -> Optional[Installment]:
        return self.db.get(Installment, installment_id)

    def get_for_issuance(self, installment_id: int) -> Optional[Installment]:
        """Fetch installment with its plan and client joined in one query"""
        return (
            self.db.query(Installment)
            .options(joinedload(Installment.plan), joinedload(Installment.client))
            .filter(Installment.id == installment_id)
            .first()
        )

    def find_overdue_with_plan(self) -> List[Installment]:
        """All OVERDUE installments that belong to a plan, plan eagerly loaded"""
        return (
            self.db.query(Installment)
            .join(Installment.plan)
            .options(contains_eager(Installment.plan))
            .filter(Installment.status == InstallmentStatus.OVERDUE)
            .order_by(Installment.id)
            .all()
        )

    def mark_overdue(self, today: date) -> int:
        """Bulk transition PENDING installments past their due date to OVERDUE"""
        result = self.db.execute(
            update(Installment)
            .where(Installment.due_date < today)
            .where(Installment.status == InstallmentStatus.PENDING)
            .values(status=InstallmentStatus.OVERDUE)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount


class PlanRepository:
    """Repository for installment plans"""

    def __init__(self, db: Session):
        self.db = db

    def create_plan(
        self,
        client: Client,
        payer_name: str,
        payer_document: str,
        installments: List[ScheduledInstallment],
        payer_phone: str | None = None,
        name: str | None = None,
        late_fee_rate: Decimal | None = None,
        monthly_interest_rate: Decimal | None = None,
        note: str | None = None,
    ) -> InstallmentPlan:
        """
        Create a plan with its installments.

        Rates left as None are copied from the client's defaults at creation
        time; later changes to the client do not affect the plan.
        """
        if name is None:
            name = f"{payer_document}-{self.count_by_payer_document(payer_document) + 1}"

        db_plan = InstallmentPlan(
            client_id=client.id,
            name=name,
            payer_name=payer_name,
            payer_document=payer_document,
            payer_phone=payer_phone,
            total_installments=len(installments),
            late_fee_rate=late_fee_rate if late_fee_rate is not None else client.late_fee_rate,
            monthly_interest_rate=(
                monthly_interest_rate if monthly_interest_rate is not None else client.monthly_interest_rate
            ),
            note=note,
        )
        self.db.add(db_plan)
        self.db.flush()

        for inst in installments:
            self.db.add(
                Installment(
                    client_id=client.id,
                    plan_id=db_plan.id,
                    payer_name=payer_name,
                    payer_document=payer_document,
                    sequence_number=inst.sequence_number,
                    total_installments=inst.total_installments,
                    original_amount=inst.amount,
                    due_date=inst.due_date,
                    status=inst.status,
                    note=note,
                )
            )
        self.db.flush()

        return db_plan

    def count_by_payer_document(self, payer_document: str) -> int:
        return self.db.query(InstallmentPlan).filter(InstallmentPlan.payer_document == payer_document).count()


class IssuanceRecordRepository:
    """Repository for boleto issuance records"""

    def __init__(self, db: Session):
        self.db = db

    def get_by_installment(self, installment_id: int) -> Optional[IssuanceRecord]:
        return self.db.scalars(
            select(IssuanceRecord).where(IssuanceRecord.installment_id == installment_id)
        ).first()

    def exists_for_installment(self, installment_id: int) -> bool:
        return self.get_by_installment(installment_id) is not None

    def add(self, record: IssuanceRecord) -> IssuanceRecord:
        """Stage the record and flush so unique constraints are checked now"""
        self.db.add(record)
        self.db.flush()
        return record

    def delete(self, record: IssuanceRecord) -> None:
        self.db.delete(record)
        self.db.flush()
