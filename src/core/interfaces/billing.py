"""Contrato de proveedores de facturación (PAC).

Por qué Protocol:
- Define un contrato estructural (duck typing) sin herencia rígida.
- Cada proveedor (Facturapi, Finkok...) es una variante intercambiable y
  testeable sin acoplar el Core a implementaciones concretas.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from core.domain.models import InvoiceRequest


@runtime_checkable
class BillingProviderClient(Protocol):
    """Contrato mínimo para emitir un CFDI.

    Reglas de diseño:
    - `issue` es asíncrono porque típicamente hará I/O (HTTP).
    - Devuelve la respuesta cruda del proveedor; los fallos se lanzan como
      `UpstreamSubmissionError` o `UnsupportedProviderError`.
    """

    name: str

    async def issue(self, request: InvoiceRequest) -> dict[str, Any]:
        """Envía la solicitud al proveedor y devuelve su respuesta."""

        ...
