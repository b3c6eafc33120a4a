"""Proveedor de facturación: Facturapi.

Implementación:
- POST JSON con autorización Bearer (API key secreta).
- Un solo intento; cualquier fallo se reporta como `UpstreamSubmissionError`.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from adapters.billing.payload import to_facturapi_body
from adapters.http_client import build_async_client
from core.config import AppSettings
from core.domain.errors import UpstreamSubmissionError
from core.domain.models import InvoiceRequest
from core.interfaces.billing import BillingProviderClient

logger = logging.getLogger(__name__)


def _error_message(resp: httpx.Response) -> str:
    try:
        data = resp.json()
    except ValueError:
        return resp.text.strip() or resp.reason_phrase
    if isinstance(data, dict) and isinstance(data.get("message"), str):
        return data["message"]
    return resp.reason_phrase


class FacturapiProvider(BillingProviderClient):
    name = "facturapi"

    def __init__(
        self,
        api_key: str,
        settings: AppSettings | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._settings = settings or AppSettings()
        self._transport = transport

    async def issue(self, request: InvoiceRequest) -> dict[str, Any]:
        url = self._settings.facturapi_invoices_url
        body = to_facturapi_body(request)
        headers = {"Authorization": f"Bearer {self._api_key}"}

        try:
            async with build_async_client(
                self._settings,
                extra_headers=headers,
                transport=self._transport,
            ) as client:
                resp = await client.post(url, json=body)
        except httpx.HTTPError as exc:
            logger.error(f"Facturapi no respondió: {exc}")
            raise UpstreamSubmissionError(f"Facturapi no respondió: {exc}") from exc

        if resp.status_code < 200 or resp.status_code >= 300:
            message = _error_message(resp)
            logger.error(f"Facturapi rechazó la factura (HTTP {resp.status_code}): {message}")
            raise UpstreamSubmissionError(
                f"Facturapi HTTP {resp.status_code}: {message}",
                status_code=resp.status_code,
                payload=resp.text,
            )

        try:
            data = resp.json()
        except ValueError as exc:
            raise UpstreamSubmissionError(
                "Facturapi devolvió una respuesta que no es JSON",
                status_code=resp.status_code,
                payload=resp.text,
            ) from exc
        if not isinstance(data, dict):
            raise UpstreamSubmissionError(
                "Facturapi devolvió una respuesta inesperada",
                status_code=resp.status_code,
                payload=data,
            )

        logger.info(f"CFDI emitido en Facturapi (tipo {request.document_type.value}, id {data.get('id')})")
        return data
