"""Pytest fixtures for testing"""

import itertools
import random
import pytest
from datetime import date, timedelta
from decimal import Decimal
from typing import Generator, List
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from receivables_gateway.api.main import create_app
from receivables_gateway.api.dependencies import get_registry
from receivables_gateway.domain.installments import initial_status
from receivables_gateway.domain.models import IssuanceRequest, IssuanceResult, ProviderId
from receivables_gateway.infrastructure.database.models import Base, Client, Installment, InstallmentPlan
from receivables_gateway.infrastructure.database.session import get_db
from receivables_gateway.infrastructure.providers.base import ProviderStrategy
from receivables_gateway.infrastructure.providers.mock import MockProviderStrategy
from receivables_gateway.infrastructure.providers.registry import StrategyRegistry


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autoflush=False, bind=engine)


class StubStrategy(ProviderStrategy):
    """Strategy returning a scripted result and recording every request"""

    def __init__(self, result: IssuanceResult | None = None, provider: ProviderId = ProviderId.INTER):
        self._provider = provider
        self.result = result or IssuanceResult(
            success=True,
            external_id="00012345678",
            barcode="07791000000000000000000000000000000000000000",
            digitable_line="07790.00009 00000.000000 00000.000000 1 00000000000000",
            document_url="https://bank.test/boleto.pdf",
            raw_response='{"nossoNumero": "00012345678"}',
        )
        self.requests: List[IssuanceRequest] = []

    @property
    def provider_id(self) -> ProviderId:
        return self._provider

    async def issue(self, request: IssuanceRequest) -> IssuanceResult:
        self.requests.append(request)
        return self.result


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def session_factory(db: Session) -> sessionmaker:
    """Factory for extra sessions on the test database (tables already created)"""
    return TestingSessionLocal


@pytest.fixture
def make_client(db: Session):
    """Persist clients with unique documents"""
    counter = itertools.count(1)

    def _make(
        name: str = "joão da silva",
        late_fee_rate: Decimal | None = Decimal("0.02"),
        monthly_interest_rate: Decimal | None = Decimal("0.03"),
    ) -> Client:
        client = Client(
            name=name,
            address="Rua das Flores, 100",
            phone="11999990000",
            document=f"{next(counter):011d}",
            bank="Inter",
            late_fee_rate=late_fee_rate,
            monthly_interest_rate=monthly_interest_rate,
        )
        db.add(client)
        db.commit()
        return client

    return _make


@pytest.fixture
def make_installment(db: Session, make_client):
    """Persist a one-installment plan and return the installment"""

    def _make(
        amount: Decimal = Decimal("150.00"),
        due_date: date | None = None,
        status=None,
        payer_name: str = "Maria Souza",
        payer_document: str | None = "123.456.789-09",
        payer_phone: str | None = "(11) 98765-4321",
        plan_late_fee_rate: Decimal | None = Decimal("0.02"),
        plan_monthly_interest_rate: Decimal | None = Decimal("0.03"),
        client: Client | None = None,
        with_plan: bool = True,
    ) -> Installment:
        client = client or make_client()
        due_date = due_date or date.today() + timedelta(days=10)

        plan_id = None
        if with_plan:
            plan = InstallmentPlan(
                client_id=client.id,
                name=f"{payer_document}-1",
                payer_name=payer_name,
                payer_document=payer_document or "",
                payer_phone=payer_phone,
                total_installments=1,
                late_fee_rate=plan_late_fee_rate,
                monthly_interest_rate=plan_monthly_interest_rate,
            )
            db.add(plan)
            db.flush()
            plan_id = plan.id

        installment = Installment(
            client_id=client.id,
            plan_id=plan_id,
            payer_name=payer_name,
            payer_document=payer_document,
            sequence_number=1,
            total_installments=1,
            original_amount=amount,
            due_date=due_date,
            status=status or initial_status(due_date, date.today()),
        )
        db.add(installment)
        db.commit()
        return installment

    return _make


@pytest.fixture
def mock_strategy() -> MockProviderStrategy:
    """Mock provider without artificial latency, seeded for reproducibility"""
    return MockProviderStrategy(delay_min_seconds=0, delay_max_seconds=0, rng=random.Random(42))


@pytest.fixture
def stub_strategy() -> StubStrategy:
    return StubStrategy()


@pytest.fixture
def failing_strategy() -> StubStrategy:
    return StubStrategy(
        IssuanceResult.failure("Failed to issue boleto: Bank API error: 503", raw_response="service unavailable")
    )


@pytest.fixture
def registry(mock_strategy: MockProviderStrategy) -> StrategyRegistry:
    return StrategyRegistry([mock_strategy])


@pytest.fixture
def client(db: Session, registry: StrategyRegistry) -> TestClient:
    """Create FastAPI test client with test database and mock provider"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_registry] = lambda: registry
    return TestClient(app)
