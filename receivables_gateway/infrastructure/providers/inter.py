"""Banco Inter boleto issuance (Cobranca API v3)"""

import json
import logging
from datetime import timedelta
from decimal import Decimal
from typing import Any, Dict
from receivables_gateway.domain.models import IssuanceRequest, IssuanceResult, ProviderId
from receivables_gateway.domain.exceptions import BankAPIError
from receivables_gateway.infrastructure.clients.bank import BankClient
from receivables_gateway.infrastructure.providers.base import ProviderStrategy
from receivables_gateway.utils.names import only_digits

ISSUANCE_PATH = "/cobranca/v3/cobrancas"


def _percentage(rate: Decimal) -> float:
    return float(rate * 100)


def build_inter_payload(request: IssuanceRequest, auto_cancel_policy: str = "SESSENTA") -> Dict[str, Any]:
    """
    Build the Banco Inter issuance payload.

    - Payer document and phone are sent as digits only
    - Fee and interest blocks are only sent for rates above zero, as
      percentages effective the day after the due date
    """
    payload: Dict[str, Any] = {
        "seuNumero": str(request.installment_id),
        "valorNominal": float(request.amount),
        "dataVencimento": request.due_date.isoformat(),
        "numDiasAgenda": auto_cancel_policy,
    }

    payer: Dict[str, Any] = {
        "cpfCnpj": only_digits(request.payer_document),
        "nome": request.payer_name,
    }
    if request.payer_phone:
        payer["telefone"] = only_digits(request.payer_phone)
    payload["pagador"] = payer

    if request.description:
        payload["mensagem"] = {"linha1": request.description}

    charges_from = (request.due_date + timedelta(days=1)).isoformat()

    if request.late_fee_rate is not None and request.late_fee_rate > 0:
        payload["multa"] = {
            "codigo": "PERCENTUAL",
            "taxa": _percentage(request.late_fee_rate),
            "data": charges_from,
        }

    if request.monthly_interest_rate is not None and request.monthly_interest_rate > 0:
        payload["mora"] = {
            "codigo": "TAXAMENSAL",
            "taxa": _percentage(request.monthly_interest_rate),
            "data": charges_from,
        }

    return payload


def parse_inter_response(body: str) -> IssuanceResult:
    """
    Map an issuance answer to a result.

    Any JSON object is a success; fields the bank did not send yet (e.g. the
    PDF link) stay None.

    Raises:
        ValueError: If the body is not a JSON object
    """
    data = json.loads(body)
    if not isinstance(data, dict):
        raise ValueError("Issuance response is not a JSON object")

    def text(key: str) -> str | None:
        value = data.get(key)
        return str(value) if value is not None else None

    return IssuanceResult(
        success=True,
        external_id=text("nossoNumero"),
        barcode=text("codigoBarras"),
        digitable_line=text("linhaDigitavel"),
        document_url=text("pdfBoleto"),
        raw_response=body,
    )


class InterProviderStrategy(ProviderStrategy):
    """Issues boletos through Banco Inter's OAuth2-protected API"""

    def __init__(self, bank_client: BankClient, auto_cancel_policy: str = "SESSENTA"):
        self.bank_client = bank_client
        self.auto_cancel_policy = auto_cancel_policy

    @property
    def provider_id(self) -> ProviderId:
        return ProviderId.INTER

    async def issue(self, request: IssuanceRequest) -> IssuanceResult:
        """
        Issue a boleto at Banco Inter.

        Flow:
        1. Obtain (or reuse) the OAuth2 token
        2. Build the Inter payload
        3. POST to the issuance endpoint
        4. Parse the answer

        Every failure, authentication included, comes back as a failed result.
        """
        raw_body = None
        try:
            logging.info("Issuing boleto at Banco Inter", extra={"installment_id": request.installment_id})

            token = await self.bank_client.authenticate()
            payload = build_inter_payload(request, self.auto_cancel_policy)
            response = await self.bank_client.post(
                ISSUANCE_PATH,
                headers={"Authorization": f"Bearer {token.value}"},
                body=payload,
            )
            raw_body = response.body
            return parse_inter_response(raw_body)

        except BankAPIError as e:
            logging.error(
                f"Banco Inter rejected boleto: {e}",
                extra={"installment_id": request.installment_id, "status_code": e.status_code},
            )
            return IssuanceResult.failure(f"Failed to issue boleto: {e}", raw_response=e.body)

        except Exception as e:
            logging.error(
                f"Unexpected error issuing boleto: {e}",
                extra={"installment_id": request.installment_id},
                exc_info=True,
            )
            return IssuanceResult.failure(f"Failed to issue boleto: {e}", raw_response=raw_body)
