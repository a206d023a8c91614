"""Bank API HTTP client with OAuth2 client-credentials authentication"""

import base64
import logging
import ssl
import time
from typing import Any, Callable, Dict

import httpx
from receivables_gateway.domain.models import AccessToken, RawResponse
from receivables_gateway.domain.exceptions import AuthenticationError, BankAPIError
from receivables_gateway.infrastructure.observability.metrics import bank_request_latency_histogram, token_refresh_counter


class BankClient:
    """
    Authenticated transport to one bank's API.

    The access token lives in a single slot per instance. Concurrent callers
    may both refresh an expired token; the later write wins, which is fine
    because refreshing does not invalidate earlier tokens.
    """

    def __init__(
        self,
        provider: str,
        api_url: str,
        oauth_url: str,
        client_id: str,
        client_secret: str,
        scopes: str,
        connect_timeout: float = 10.0,
        read_timeout: float = 30.0,
        refresh_margin_seconds: float = 300,
        cert_path: str | None = None,
        key_path: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self.provider = provider
        self.api_url = api_url.rstrip("/")
        self.oauth_url = oauth_url
        self.client_id = client_id
        self.client_secret = client_secret
        self.scopes = scopes
        self.timeout = httpx.Timeout(read_timeout, connect=connect_timeout)
        self.refresh_margin_seconds = refresh_margin_seconds
        self.cert_path = cert_path
        self.key_path = key_path
        self._verify: ssl.SSLContext | bool | None = None
        self.transport = transport
        self.clock = clock
        self._token: AccessToken | None = None

    def _tls_verify(self) -> ssl.SSLContext | bool:
        """Client certificate context, loaded on first use; default TLS when it cannot be read"""
        if self._verify is None:
            self._verify = True
            if self.cert_path:
                try:
                    self._verify = _client_certificate_context(self.cert_path, self.key_path)
                except OSError as e:
                    logging.warning(
                        f"Client certificate unavailable, using default TLS: {e}",
                        extra={"provider": self.provider, "cert_path": self.cert_path},
                    )
        return self._verify

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, verify=self._tls_verify(), transport=self.transport)

    def _basic_credentials(self) -> str:
        raw = f"{self.client_id}:{self.client_secret}".encode()
        return base64.b64encode(raw).decode("ascii")

    async def authenticate(self) -> AccessToken:
        """
        Return a valid bearer token, exchanging client credentials when needed.

        The cached token is reused while now < expiry - refresh margin.

        Raises:
            AuthenticationError: On network failure, HTTP error or malformed token payload
        """
        token = self._token
        if token is not None and token.is_valid(self.clock(), self.refresh_margin_seconds):
            return token

        logging.info("Requesting OAuth2 token", extra={"provider": self.provider})
        async with self._client() as client:
            try:
                response = await client.post(
                    self.oauth_url,
                    headers={"Authorization": f"Basic {self._basic_credentials()}"},
                    data={"grant_type": "client_credentials", "scope": self.scopes},
                )
                response.raise_for_status()
                data = response.json()
                token = AccessToken(
                    value=str(data["access_token"]),
                    expires_at=self.clock() + int(data["expires_in"]),
                )

            except httpx.TimeoutException as e:
                raise AuthenticationError(f"OAuth2 token request timed out for {self.provider}") from e
            except httpx.HTTPStatusError as e:
                raise AuthenticationError(
                    f"OAuth2 token request rejected: {e.response.status_code}",
                    status_code=e.response.status_code,
                    body=e.response.text,
                ) from e
            except httpx.HTTPError as e:
                raise AuthenticationError(f"OAuth2 token request failed: {e}") from e
            except (KeyError, ValueError, TypeError) as e:
                raise AuthenticationError(f"Invalid OAuth2 token payload: {e}") from e

        self._token = token
        token_refresh_counter.labels(provider=self.provider).inc()
        logging.info("OAuth2 token obtained", extra={"provider": self.provider, "expires_at": token.expires_at})
        return token

    async def post(self, path: str, headers: Dict[str, str], body: Dict[str, Any]) -> RawResponse:
        """
        POST a JSON body to the bank API.

        Raises:
            BankAPIError: On timeout, network failure or non-2xx status
        """
        url = f"{self.api_url}/{path.lstrip('/')}"
        async with self._client() as client:
            try:
                with bank_request_latency_histogram.labels(provider=self.provider).time():
                    response = await client.post(url, headers=headers, json=body)
                response.raise_for_status()
                return RawResponse(status_code=response.status_code, body=response.text)

            except httpx.TimeoutException as e:
                raise BankAPIError(f"Bank API timeout calling {path}") from e
            except httpx.HTTPStatusError as e:
                raise BankAPIError(
                    f"Bank API error: {e.response.status_code}",
                    status_code=e.response.status_code,
                    body=e.response.text,
                ) from e
            except httpx.HTTPError as e:
                raise BankAPIError(f"Bank API request failed: {e}") from e


def _client_certificate_context(cert_path: str, key_path: str | None) -> ssl.SSLContext:
    """TLS context presenting a client certificate (mutual TLS)"""
    context = ssl.create_default_context()
    context.load_cert_chain(certfile=cert_path, keyfile=key_path)
    return context
