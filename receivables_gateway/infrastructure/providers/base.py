"""Boleto issuance strategy interface"""

from abc import ABC, abstractmethod
from enum import Enum
from receivables_gateway.domain.models import IssuanceRequest, IssuanceResult, ProviderId


class StrategyKind(str, Enum):
    """Whether a strategy talks to a real bank or fabricates answers"""

    LIVE = "live"
    MOCK = "mock"


class ProviderStrategy(ABC):
    """
    Per-bank adapter from a provider-neutral request to a provider call.

    Implementations never raise on provider or network failure: they return
    a failed IssuanceResult instead.
    """

    kind: StrategyKind = StrategyKind.LIVE

    @property
    @abstractmethod
    def provider_id(self) -> ProviderId:
        """Bank this strategy issues boletos for"""

    @abstractmethod
    async def issue(self, request: IssuanceRequest) -> IssuanceResult:
        """Issue a boleto and describe the outcome"""
