"""Mock Banco Inter server: OAuth2 token and boleto issuance endpoints"""

import base64
import os
import secrets
from datetime import date
from decimal import Decimal

from fastapi import FastAPI, Form, Header, HTTPException, Request

from receivables_gateway.domain.barcode import build_barcode, digitable_line

CLIENT_ID = os.getenv("MOCK_BANK_CLIENT_ID", "mock-client")
CLIENT_SECRET = os.getenv("MOCK_BANK_CLIENT_SECRET", "mock-secret")
TOKEN_TTL_SECONDS = int(os.getenv("MOCK_BANK_TOKEN_TTL", "3600"))

app = FastAPI(title="Mock Bank Server", version="1.0.0")


def reset_state() -> None:
    app.state.tokens = set()
    app.state.token_requests = 0
    app.state.issued = {}


reset_state()


@app.get("/health")
def health(): return {"status": "ok"}


@app.post("/oauth/v2/token")
def token(
    grant_type: str = Form(...),
    scope: str = Form(""),
    authorization: str = Header(""),
):
    expected = base64.b64encode(f"{CLIENT_ID}:{CLIENT_SECRET}".encode()).decode()
    if authorization != f"Basic {expected}":
        raise HTTPException(status_code=401, detail="invalid client credentials")
    if grant_type != "client_credentials":
        raise HTTPException(status_code=400, detail="unsupported grant type")

    access_token = secrets.token_hex(16)
    app.state.tokens.add(access_token)
    app.state.token_requests += 1
    return {"access_token": access_token, "token_type": "Bearer", "expires_in": TOKEN_TTL_SECONDS, "scope": scope}


@app.post("/cobranca/v3/cobrancas")
async def issue(request: Request, authorization: str = Header("")):
    if authorization.removeprefix("Bearer ") not in app.state.tokens:
        raise HTTPException(status_code=401, detail="invalid token")

    body = await request.json()
    try:
        reference = str(body["seuNumero"])
        amount = Decimal(str(body["valorNominal"]))
        due_date = date.fromisoformat(body["dataVencimento"])
        payer = body["pagador"]
        if not payer["cpfCnpj"].isdigit():
            raise ValueError("cpfCnpj must contain digits only")
    except (KeyError, TypeError, ValueError) as e:
        raise HTTPException(status_code=400, detail=f"invalid payload: {e}")

    if reference in app.state.issued:
        raise HTTPException(status_code=409, detail="seuNumero already registered")

    our_number = f"{len(app.state.issued) + 1:011d}"
    free_field = reference[-10:].zfill(10) + our_number + "0000"
    barcode = build_barcode("077", due_date, amount, free_field)
    app.state.issued[reference] = body

    return {
        "nossoNumero": our_number,
        "codigoBarras": barcode,
        "linhaDigitavel": digitable_line(barcode),
        "pdfBoleto": f"https://mock-bank.local/boletos/{our_number}.pdf",
    }
