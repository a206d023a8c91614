"""Deterministic stand-in for Banco Inter used in test and staging"""

import asyncio
import json
import logging
import random
import time
import uuid
from receivables_gateway.domain.barcode import FREE_FIELD_LENGTH, build_barcode, digitable_line
from receivables_gateway.domain.models import IssuanceRequest, IssuanceResult, ProviderId
from receivables_gateway.infrastructure.providers.base import ProviderStrategy, StrategyKind
from receivables_gateway.utils.date_utils import business_today

INSTALLMENT_DIGITS = 10


class MockProviderStrategy(ProviderStrategy):
    """
    Produces structurally valid but clearly fake boletos without network I/O.

    The barcode free field is the zero-padded installment id followed by
    random filler, so two calls for the same request differ only there.
    """

    kind = StrategyKind.MOCK

    def __init__(
        self,
        provider: ProviderId = ProviderId.INTER,
        delay_min_seconds: float = 0.3,
        delay_max_seconds: float = 0.8,
        document_base_url: str = "https://mock-banco-inter.test/api/boleto/pdf",
        rng: random.Random | None = None,
    ):
        self._provider = provider
        self.delay_min_seconds = delay_min_seconds
        self.delay_max_seconds = delay_max_seconds
        self.document_base_url = document_base_url.rstrip("/")
        self.rng = rng or random.Random()

    @property
    def provider_id(self) -> ProviderId:
        return self._provider

    async def issue(self, request: IssuanceRequest) -> IssuanceResult:
        logging.warning(
            "Mock provider active - boleto is fake",
            extra={"installment_id": request.installment_id, "amount": str(request.amount)},
        )

        # Simulated network latency
        await asyncio.sleep(self.rng.uniform(self.delay_min_seconds, self.delay_max_seconds))

        external_id = self._external_id(request)
        barcode = build_barcode(self._provider.code, request.due_date, request.amount, self._free_field(request))
        line = digitable_line(barcode)
        document_url = f"{self.document_base_url}/{external_id}"

        return IssuanceResult(
            success=True,
            external_id=external_id,
            barcode=barcode,
            digitable_line=line,
            document_url=document_url,
            raw_response=self._raw_response(request, external_id, barcode, line, document_url),
        )

    def _external_id(self, request: IssuanceRequest) -> str:
        timestamp = str(int(time.time() * 1000))[5:]
        suffix = uuid.UUID(int=self.rng.getrandbits(128)).hex[:8].upper()
        return f"MOCK-{timestamp}-{request.installment_id}-{suffix}"

    def _free_field(self, request: IssuanceRequest) -> str:
        installment = f"{request.installment_id % 10 ** INSTALLMENT_DIGITS:0{INSTALLMENT_DIGITS}d}"
        filler_length = FREE_FIELD_LENGTH - INSTALLMENT_DIGITS
        filler = "".join(str(self.rng.randrange(10)) for _ in range(filler_length))
        return installment + filler

    def _raw_response(
        self,
        request: IssuanceRequest,
        external_id: str,
        barcode: str,
        line: str,
        document_url: str,
    ) -> str:
        return json.dumps(
            {
                "nossoNumero": external_id,
                "codigoBarras": barcode,
                "linhaDigitavel": line,
                "pdfBoleto": document_url,
                "dataEmissao": business_today().isoformat(),
                "dataVencimento": request.due_date.isoformat(),
                "valorNominal": float(request.amount),
                "pagador": {
                    "cpfCnpj": request.payer_document,
                    "nome": request.payer_name,
                    "telefone": request.payer_phone or "",
                },
                "mock": True,
                "ambiente": "teste",
            }
        )
