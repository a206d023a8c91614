"""Dependency injection for FastAPI endpoints"""

from functools import lru_cache
from fastapi import Depends, Request
from sqlalchemy.orm import Session
from receivables_gateway.config import settings
from receivables_gateway.infrastructure.database.session import get_db
from receivables_gateway.infrastructure.providers.registry import StrategyRegistry, build_registry
from receivables_gateway.services.issuance import IssuanceOrchestrator


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


@lru_cache
def get_registry() -> StrategyRegistry:
    """Provider registry, built once per process"""
    return build_registry(settings)


def get_orchestrator(
    request: Request,
    db: Session = Depends(get_db),
    registry: StrategyRegistry = Depends(get_registry),
) -> IssuanceOrchestrator:
    """Provide an issuance orchestrator bound to the request's session"""
    return IssuanceOrchestrator(db, registry, request_id=get_request_id(request))
