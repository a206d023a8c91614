"""Boleto endpoints - issue, retry and fetch the boleto of an installment"""

import logging
from fastapi import APIRouter, Depends, Query

from receivables_gateway.api.dependencies import get_orchestrator
from receivables_gateway.api.v1.schemas import IssuanceRecordResponse
from receivables_gateway.domain.models import ProviderId
from receivables_gateway.infrastructure.database.models import IssuanceRecord
from receivables_gateway.services.issuance import IssuanceOrchestrator

router = APIRouter()


def _to_response(record: IssuanceRecord) -> IssuanceRecordResponse:
    return IssuanceRecordResponse(
        id=record.id,
        installment_id=record.installment_id,
        provider=record.provider.value,
        external_id=record.external_id,
        barcode=record.barcode,
        digitable_line=record.digitable_line,
        document_url=record.document_url,
        status=record.status.value,
        error_message=record.error_message,
        created_at=record.created_at,
        updated_at=record.updated_at,
    )


@router.get("/boletos/installment/{installment_id}", response_model=IssuanceRecordResponse)
def get_boleto(installment_id: int, orchestrator: IssuanceOrchestrator = Depends(get_orchestrator)):
    """Retrieve the boleto issued for an installment"""
    record = orchestrator.get_by_installment(installment_id)
    return _to_response(record)


@router.post("/boletos/installment/{installment_id}/issue", response_model=IssuanceRecordResponse)
async def issue_boleto(
    installment_id: int,
    provider: ProviderId = Query(ProviderId.INTER, description="Issuing bank"),
    orchestrator: IssuanceOrchestrator = Depends(get_orchestrator),
):
    """
    Issue the boleto of an installment.

    A bank-side failure is not an HTTP error: the stored record comes back
    with status ERROR and can be retried.
    """
    logging.info("Issue boleto requested", extra={"installment_id": installment_id, "provider": provider.value})
    record = await orchestrator.issue(installment_id, provider)
    return _to_response(record)


@router.post("/boletos/installment/{installment_id}/retry", response_model=IssuanceRecordResponse)
async def retry_boleto(
    installment_id: int,
    provider: ProviderId = Query(ProviderId.INTER, description="Issuing bank"),
    orchestrator: IssuanceOrchestrator = Depends(get_orchestrator),
):
    """Replace a failed boleto with a new issuance attempt"""
    logging.info("Retry boleto requested", extra={"installment_id": installment_id, "provider": provider.value})
    record = await orchestrator.retry_issue(installment_id, provider)
    return _to_response(record)
