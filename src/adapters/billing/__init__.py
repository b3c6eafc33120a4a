"""Proveedores de facturación (CFDI).

La selección del proveedor es una unión etiquetada:
- `facturapi` -> `FacturapiProvider`
- `finkok`    -> `NotImplementedProvider`
- `none`/sin credenciales -> `ConfigurationError` antes de cualquier red.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import httpx

from adapters.billing.facturapi import FacturapiProvider
from adapters.billing.payload import build_invoice_request, document_type_for, to_facturapi_body
from adapters.billing.unsupported import NotImplementedProvider
from core.config import AppSettings
from core.domain.errors import ConfigurationError
from core.domain.models import BillingProvider, ProviderCredentials
from core.interfaces.billing import BillingProviderClient

MISSING_CREDENTIALS_MESSAGE = "Configura credenciales de Facturapi o Finkok para emitir CFDI"


def resolve_provider(
    credentials: ProviderCredentials | None,
    settings: AppSettings | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> BillingProviderClient:
    if credentials is None or credentials.provider is BillingProvider.NONE:
        raise ConfigurationError(MISSING_CREDENTIALS_MESSAGE)

    if credentials.provider is BillingProvider.FACTURAPI:
        api_key = (credentials.facturapi_api_key or "").strip()
        if not api_key:
            raise ConfigurationError("Falta la API key de Facturapi")
        return FacturapiProvider(api_key, settings, transport=transport)

    return NotImplementedProvider(credentials.provider.value)


async def issue_invoice(
    *,
    operation: str,
    params: Mapping[str, Any],
    credentials: ProviderCredentials | None,
    settings: AppSettings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> dict[str, Any]:
    """Emite un CFDI (`factura` o `nota_credito`) con el proveedor configurado."""

    provider = resolve_provider(credentials, settings, transport=transport)
    request = build_invoice_request(operation, params)
    return await provider.issue(request)


__all__ = [
    "FacturapiProvider",
    "MISSING_CREDENTIALS_MESSAGE",
    "NotImplementedProvider",
    "build_invoice_request",
    "document_type_for",
    "issue_invoice",
    "resolve_provider",
    "to_facturapi_body",
]
