"""Provider strategy lookup built once at startup"""

import logging
from typing import Dict, Iterable, List, Tuple
from receivables_gateway.config import Settings
from receivables_gateway.domain.exceptions import UnsupportedProviderError
from receivables_gateway.domain.models import ProviderId
from receivables_gateway.infrastructure.clients.bank import BankClient
from receivables_gateway.infrastructure.providers.base import ProviderStrategy, StrategyKind
from receivables_gateway.infrastructure.providers.inter import InterProviderStrategy
from receivables_gateway.infrastructure.providers.mock import MockProviderStrategy

LIVE_FIRST: Tuple[StrategyKind, ...] = (StrategyKind.LIVE, StrategyKind.MOCK)
MOCK_FIRST: Tuple[StrategyKind, ...] = (StrategyKind.MOCK, StrategyKind.LIVE)


class StrategyRegistry:
    """
    Maps each provider id to exactly one strategy.

    When strategies of different kinds declare the same provider, the kind
    listed first in `precedence` wins. Two strategies of the same kind for
    one provider is a configuration error.
    """

    def __init__(
        self,
        strategies: Iterable[ProviderStrategy],
        precedence: Tuple[StrategyKind, ...] = LIVE_FIRST,
    ):
        self.precedence = precedence
        candidates: Dict[ProviderId, List[ProviderStrategy]] = {}
        for strategy in strategies:
            same = candidates.setdefault(strategy.provider_id, [])
            if any(existing.kind == strategy.kind for existing in same):
                raise ValueError(f"Two {strategy.kind.value} strategies registered for {strategy.provider_id.value}")
            same.append(strategy)

        self._strategies: Dict[ProviderId, ProviderStrategy] = {
            provider: min(options, key=self._rank) for provider, options in candidates.items()
        }

    def _rank(self, strategy: ProviderStrategy) -> int:
        if strategy.kind in self.precedence:
            return self.precedence.index(strategy.kind)
        return len(self.precedence)

    def resolve(self, provider: ProviderId) -> ProviderStrategy:
        """
        Raises:
            UnsupportedProviderError: If no strategy is registered for the provider
        """
        strategy = self._strategies.get(provider)
        if strategy is None:
            raise UnsupportedProviderError(f"Bank not supported: {provider.value}")
        return strategy

    def providers(self) -> List[ProviderId]:
        return sorted(self._strategies, key=lambda p: p.value)


def build_registry(config: Settings) -> StrategyRegistry:
    """
    Assemble the registry from configuration.

    `bank_mock_enabled` swaps the live strategy set for the mock one, so no
    bank credentials or certificates are touched in test and staging.
    """
    if config.bank_mock_enabled:
        strategies = _mock_strategies(config)
        precedence = MOCK_FIRST
    else:
        strategies = _live_strategies(config)
        precedence = LIVE_FIRST

    registry = StrategyRegistry(strategies, precedence=precedence)
    logging.info(
        "Provider strategies registered",
        extra={
            "providers": [p.value for p in registry.providers()],
            "precedence": [kind.value for kind in precedence],
        },
    )
    return registry


def _live_strategies(config: Settings) -> List[ProviderStrategy]:
    bank_client = BankClient(
        provider=ProviderId.INTER.value,
        api_url=config.inter_api_url,
        oauth_url=config.inter_oauth_url,
        client_id=config.inter_client_id,
        client_secret=config.inter_client_secret,
        scopes=config.inter_scopes,
        connect_timeout=config.bank_connect_timeout_seconds,
        read_timeout=config.bank_read_timeout_seconds,
        refresh_margin_seconds=config.token_refresh_margin_seconds,
        cert_path=config.inter_cert_path,
        key_path=config.inter_key_path,
    )
    return [InterProviderStrategy(bank_client, auto_cancel_policy=config.inter_auto_cancel_policy)]


def _mock_strategies(config: Settings) -> List[ProviderStrategy]:
    return [
        MockProviderStrategy(
            provider=ProviderId.INTER,
            delay_min_seconds=config.mock_delay_min_seconds,
            delay_max_seconds=config.mock_delay_max_seconds,
            document_base_url=config.mock_document_base_url,
        )
    ]
