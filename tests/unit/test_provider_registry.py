"""Unit tests for provider strategy resolution"""

import pytest
from receivables_gateway.config import Settings
from receivables_gateway.domain.exceptions import UnsupportedProviderError
from receivables_gateway.domain.models import ProviderId
from receivables_gateway.infrastructure.providers.base import StrategyKind
from receivables_gateway.infrastructure.providers.inter import InterProviderStrategy
from receivables_gateway.infrastructure.providers.mock import MockProviderStrategy
from receivables_gateway.infrastructure.providers.registry import (
    LIVE_FIRST,
    MOCK_FIRST,
    StrategyRegistry,
    build_registry,
)


@pytest.fixture
def live_strategy(stub_strategy):
    return stub_strategy


def test_resolve_registered_provider(live_strategy):
    """Test lookup by provider id"""
    registry = StrategyRegistry([live_strategy])

    assert registry.resolve(ProviderId.INTER) is live_strategy
    assert registry.providers() == [ProviderId.INTER]


def test_resolve_unsupported_provider(live_strategy):
    """Test unknown provider raises with its name"""
    registry = StrategyRegistry([live_strategy])

    with pytest.raises(UnsupportedProviderError, match="Bank not supported: ITAU"):
        registry.resolve(ProviderId.ITAU)


def test_live_first_precedence(live_strategy, mock_strategy):
    """Test live strategy wins by default regardless of order"""
    registry = StrategyRegistry([mock_strategy, live_strategy], precedence=LIVE_FIRST)
    assert registry.resolve(ProviderId.INTER) is live_strategy


def test_mock_first_precedence(live_strategy, mock_strategy):
    """Test mock strategy wins when the mock set is preferred"""
    registry = StrategyRegistry([live_strategy, mock_strategy], precedence=MOCK_FIRST)
    assert registry.resolve(ProviderId.INTER) is mock_strategy


def test_duplicate_kind_for_provider_is_rejected(mock_strategy):
    """Test two strategies of the same kind for one provider"""
    other = MockProviderStrategy(delay_min_seconds=0, delay_max_seconds=0)

    with pytest.raises(ValueError):
        StrategyRegistry([mock_strategy, other])


def test_build_registry_live_only():
    """Test production configuration resolves to Banco Inter"""
    registry = build_registry(Settings(bank_mock_enabled=False, inter_client_id="id", inter_client_secret="s"))

    strategy = registry.resolve(ProviderId.INTER)
    assert isinstance(strategy, InterProviderStrategy)
    assert strategy.kind == StrategyKind.LIVE
    assert strategy.bank_client.client_id == "id"


def test_build_registry_mock_enabled():
    """Test the mock flag overrides the live strategy"""
    registry = build_registry(Settings(bank_mock_enabled=True, mock_delay_min_seconds=0, mock_delay_max_seconds=0))

    strategy = registry.resolve(ProviderId.INTER)
    assert isinstance(strategy, MockProviderStrategy)
    assert strategy.kind == StrategyKind.MOCK
    assert registry.precedence == MOCK_FIRST


def test_build_registry_mock_mode_ignores_bad_certificate():
    """Test mock mode never builds the live bank client"""
    registry = build_registry(
        Settings(
            bank_mock_enabled=True,
            inter_cert_path="/nonexistent/inter.crt",
            inter_key_path="/nonexistent/inter.key",
            mock_delay_min_seconds=0,
            mock_delay_max_seconds=0,
        )
    )

    assert isinstance(registry.resolve(ProviderId.INTER), MockProviderStrategy)


def test_build_registry_live_mode_defers_certificate_loading():
    """Test a missing certificate does not break startup"""
    registry = build_registry(Settings(bank_mock_enabled=False, inter_cert_path="/nonexistent/inter.crt"))

    strategy = registry.resolve(ProviderId.INTER)
    assert isinstance(strategy, InterProviderStrategy)
    assert strategy.bank_client.cert_path == "/nonexistent/inter.crt"
