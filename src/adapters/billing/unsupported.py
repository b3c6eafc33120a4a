"""Variante para proveedores declarados sin implementación (p.ej. Finkok)."""

from __future__ import annotations

from typing import Any

from core.domain.errors import UnsupportedProviderError
from core.domain.models import InvoiceRequest
from core.interfaces.billing import BillingProviderClient


class NotImplementedProvider(BillingProviderClient):
    """Falla siempre, sin tocar la red."""

    def __init__(self, name: str) -> None:
        self.name = name

    async def issue(self, request: InvoiceRequest) -> dict[str, Any]:
        raise UnsupportedProviderError(self.name)
