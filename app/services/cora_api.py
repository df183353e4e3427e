"""
Cliente para API da Cora (boletos / invoices).
Auth: mTLS (certificado + chave) + client_credentials -> Bearer token.

O token fica em cache por 50 min (vida nominal de 60 min).
Refresh is single-flight: concurrent cache misses wait on one lock and
reuse the token fetched by whoever got there first.
"""
import asyncio
import logging
import ssl
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path

import httpx

from app.models.invoice import AccessToken
from app.services.credentials import CredentialResolver
from app.services.errors import (
    AuthenticationFailed,
    ConfigurationError,
    CredentialUnavailable,
    DetailFetchFailed,
    UpstreamRequestFailed,
)

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _response_body(resp: httpx.Response):
    try:
        return resp.json()
    except ValueError:
        return resp.text


class CoraClient:
    """Owns the mTLS transport and the cached access token."""

    def __init__(
        self,
        settings,
        http_client: httpx.AsyncClient | None = None,
        credentials: CredentialResolver | None = None,
        clock=_utcnow,
    ):
        if not settings.cora_api_base_url or not settings.cora_client_id:
            logger.error("Variáveis de ambiente CORA_API_BASE_URL ou CORA_CLIENT_ID não definidas.")
            raise ConfigurationError("Configurações essenciais da Cora API estão faltando.")

        self.base_url = settings.cora_api_base_url.rstrip("/")
        self.client_id = settings.cora_client_id
        self.passphrase = settings.cora_private_key_passphrase or None
        self.timeout = settings.cora_timeout_seconds
        self.token_ttl = timedelta(minutes=settings.cora_token_ttl_minutes)

        # Injected transport skips certificate loading entirely
        if credentials is None and http_client is None:
            credentials = CredentialResolver.from_settings(settings)
        self._credentials = credentials
        self._http = http_client
        self._clock = clock

        self._token: AccessToken | None = None
        self._refresh_lock = asyncio.Lock()

    # ── Transport ──────────────────────────────────────────────────────────

    def _build_ssl_context(self) -> ssl.SSLContext:
        cert = self._credentials.certificate().content
        key = self._credentials.private_key().content

        if b"ENCRYPTED" in key and not self.passphrase:
            logger.warning(
                "A chave privada parece estar ENCRYPTED. Verifique a passphrase "
                "(CORA_PRIVATE_KEY_PASSPHRASE)."
            )

        ctx = ssl.create_default_context()
        # load_cert_chain only accepts paths
        with tempfile.TemporaryDirectory() as tmp:
            cert_path = Path(tmp) / "certificate.pem"
            key_path = Path(tmp) / "private_key.pem"
            cert_path.write_bytes(cert)
            key_path.write_bytes(key)
            key_path.chmod(0o600)
            try:
                ctx.load_cert_chain(
                    certfile=str(cert_path), keyfile=str(key_path), password=self.passphrase
                )
            except ssl.SSLError as e:
                logger.error("Erro ao carregar certificado/chave no contexto TLS: %s", e)
                raise CredentialUnavailable(f"Certificado ou chave inválidos: {e}") from e
        return ctx

    async def get_client(self) -> httpx.AsyncClient:
        """Shared mTLS client, built on first use."""
        if self._http is None:
            ctx = self._build_ssl_context()
            self._http = httpx.AsyncClient(verify=ctx, timeout=self.timeout)
            logger.info("HTTPS client da Cora criado com sucesso.")
        return self._http

    async def aclose(self) -> None:
        if self._http is not None:
            await self._http.aclose()
            self._http = None

    # ── Token ──────────────────────────────────────────────────────────────

    async def get_token(self) -> str:
        token = self._token
        if token is not None and token.is_valid(self._clock()):
            logger.debug("Usando token de acesso em cache.")
            return token.value

        async with self._refresh_lock:
            # Re-check: another coroutine may have refreshed while we waited
            token = self._token
            if token is not None and token.is_valid(self._clock()):
                return token.value
            self._token = await self._request_token()
            return self._token.value

    async def _request_token(self) -> AccessToken:
        logger.info("Obtendo novo token de acesso da Cora...")
        client = await self.get_client()
        try:
            resp = await client.post(
                f"{self.base_url}/token",
                data={"grant_type": "client_credentials", "client_id": self.client_id},
                headers={"Content-Type": "application/x-www-form-urlencoded"},
            )
        except httpx.HTTPError as e:
            logger.error("Erro ao obter token de acesso: %s", e)
            raise AuthenticationFailed(f"Cora token request failed: {e}") from e

        if resp.is_error:
            body = _response_body(resp)
            logger.error("Token Cora recusado - status %d: %s", resp.status_code, body)
            raise AuthenticationFailed(
                "Cora token request rejected", status_code=resp.status_code, body=body
            )

        data = _response_body(resp)
        access_token = data.get("access_token") if isinstance(data, dict) else None
        if not access_token:
            raise AuthenticationFailed(
                "Cora token response without access_token", status_code=resp.status_code, body=data
            )

        logger.info("Token de acesso obtido e armazenado.")
        return AccessToken(value=access_token, expires_at=self._clock() + self.token_ttl)

    async def _auth_headers(self) -> dict:
        token = await self.get_token()
        return {"Authorization": f"Bearer {token}"}

    # ── Invoices ───────────────────────────────────────────────────────────

    async def list_invoices(self, params: dict) -> dict:
        """GET /v2/invoices - uma página da listagem."""
        client = await self.get_client()
        headers = await self._auth_headers()
        url = f"{self.base_url}/v2/invoices"
        try:
            resp = await client.get(url, params=params, headers=headers)
        except httpx.HTTPError as e:
            logger.error("Erro ao listar boletos (page=%s): %s", params.get("page"), e)
            raise UpstreamRequestFailed(f"Cora invoice list failed: {e}") from e

        if resp.is_error:
            body = _response_body(resp)
            logger.error("Listagem Cora falhou - status %d: %s", resp.status_code, body)
            raise UpstreamRequestFailed(
                "Cora invoice list rejected", status_code=resp.status_code, body=body
            )

        data = _response_body(resp)
        if not isinstance(data, dict):
            raise UpstreamRequestFailed(
                "Cora invoice list returned an unexpected payload",
                status_code=resp.status_code,
                body=data,
            )
        return data

    async def get_invoice(self, invoice_id: str, timeout: float | None = None) -> dict:
        """GET /v2/invoices/{id} - detalhe bruto do boleto."""
        client = await self.get_client()
        headers = await self._auth_headers()
        url = f"{self.base_url}/v2/invoices/{invoice_id}"
        kwargs = {"timeout": timeout} if timeout is not None else {}
        logger.debug("GET %s", url)
        try:
            resp = await client.get(url, headers=headers, **kwargs)
        except httpx.HTTPError as e:
            raise DetailFetchFailed(invoice_id, f"Cora invoice detail failed: {e}") from e

        if resp.is_error:
            raise DetailFetchFailed(
                invoice_id,
                "Cora invoice detail rejected",
                status_code=resp.status_code,
                body=_response_body(resp),
            )

        data = _response_body(resp)
        if not isinstance(data, dict):
            raise DetailFetchFailed(
                invoice_id,
                "Cora invoice detail returned an unexpected payload",
                status_code=resp.status_code,
                body=data,
            )
        return data


_client: CoraClient | None = None


def get_cora_client() -> CoraClient:
    global _client
    if _client is None:
        from app.config import settings
        _client = CoraClient(settings)
    return _client


async def close_cora_client() -> None:
    global _client
    if _client is not None:
        await _client.aclose()
        _client = None
