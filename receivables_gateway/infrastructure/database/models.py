"""SQLAlchemy ORM models for clients, plans, installments and boletos"""

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base, relationship, validates
from sqlalchemy.sql import func

from receivables_gateway.domain.models import InstallmentStatus, IssuanceStatus, ProviderId
from receivables_gateway.utils.date_utils import business_today
from receivables_gateway.utils.names import to_title_case

Base = declarative_base()

# SQLite only autoincrements INTEGER PRIMARY KEY
Identifier = BigInteger().with_variant(Integer, "sqlite")

# One boleto per installment; concurrent issuance is decided here
INSTALLMENT_UNIQUE_CONSTRAINT = "uq_issuance_record_installment_id"


class Client(Base):
    """Client holding default fee terms for its plans"""

    __tablename__ = "client"

    id = Column(Identifier, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    address = Column(Text, nullable=False)
    phone = Column(String(15), nullable=True)
    document = Column(String(14), nullable=False, unique=True)
    bank = Column(String(100), nullable=True)
    late_fee_rate = Column(Numeric(10, 4), nullable=True)
    monthly_interest_rate = Column(Numeric(10, 4), nullable=True)

    plans = relationship("InstallmentPlan", back_populates="client")

    @validates("name")
    def normalize_name(self, key, value):
        return to_title_case(value)


class InstallmentPlan(Base):
    """Group of installments sharing a payer and fee terms"""

    __tablename__ = "installment_plan"

    id = Column(Identifier, primary_key=True, autoincrement=True)
    client_id = Column(Identifier, ForeignKey("client.id"), nullable=False, index=True)
    name = Column(String(100), nullable=True)
    payer_name = Column(String(100), nullable=False)
    payer_document = Column(String(20), nullable=False, index=True)
    payer_phone = Column(String(20), nullable=True)
    total_installments = Column(Integer, nullable=False)
    late_fee_rate = Column(Numeric(10, 4), nullable=True)
    monthly_interest_rate = Column(Numeric(10, 4), nullable=True)
    created_on = Column(Date, nullable=False, default=business_today)
    note = Column(Text, nullable=True)

    client = relationship("Client", back_populates="plans")
    installments = relationship("Installment", back_populates="plan", cascade="all, delete-orphan")


class Installment(Base):
    """Individual installment within a plan"""

    __tablename__ = "installment"
    __table_args__ = (
        CheckConstraint(
            "sequence_number >= 1 AND sequence_number <= total_installments",
            name="ck_installment_sequence_in_range",
        ),
    )

    id = Column(Identifier, primary_key=True, autoincrement=True)
    client_id = Column(Identifier, ForeignKey("client.id"), nullable=False, index=True)
    plan_id = Column(Identifier, ForeignKey("installment_plan.id", ondelete="CASCADE"), nullable=True, index=True)
    payer_name = Column(String(100), nullable=False)
    payer_document = Column(String(20), nullable=True)
    sequence_number = Column(Integer, nullable=False)
    total_installments = Column(Integer, nullable=False)
    original_amount = Column(Numeric(12, 2), nullable=False)
    overdue_amount = Column(Numeric(12, 2), nullable=True)
    overdue_amount_date = Column(Date, nullable=True)
    due_date = Column(Date, nullable=False, index=True)
    payment_date = Column(Date, nullable=True)
    status = Column(
        Enum(InstallmentStatus, native_enum=False, length=20),
        nullable=False,
        default=InstallmentStatus.PENDING,
        index=True,
    )
    note = Column(String(400), nullable=True)

    client = relationship("Client")
    plan = relationship("InstallmentPlan", back_populates="installments")


class IssuanceRecord(Base):
    """Boleto issued (or attempted) for exactly one installment"""

    __tablename__ = "issuance_record"
    __table_args__ = (UniqueConstraint("installment_id", name=INSTALLMENT_UNIQUE_CONSTRAINT),)

    id = Column(Identifier, primary_key=True, autoincrement=True)
    installment_id = Column(
        Identifier,
        ForeignKey("installment.id", ondelete="CASCADE"),
        nullable=False,
    )
    provider = Column(Enum(ProviderId, native_enum=False, length=20), nullable=False)
    external_id = Column(String(100), nullable=True, unique=True)
    barcode = Column(String(54), nullable=True)
    digitable_line = Column(String(60), nullable=True)
    document_url = Column(String(500), nullable=True)
    status = Column(Enum(IssuanceStatus, native_enum=False, length=20), nullable=False)
    raw_response = Column(Text, nullable=True)
    error_message = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())
