"""Errores del dominio.

Solo se modelan los fallos que deben llegar a quien invoca:
- la validación de RFC nunca falla (devuelve un resultado),
- los indicadores nunca fallan (degradan a un valor estimado).
"""

from __future__ import annotations

from typing import Any


class SatMexicoError(Exception):
    """Base de los errores propios del proyecto."""


class ConfigurationError(SatMexicoError):
    """Credenciales ausentes o incompletas para emitir CFDI."""


class UnsupportedProviderError(SatMexicoError):
    """Proveedor de facturación declarado pero sin implementación."""

    def __init__(self, provider: str) -> None:
        super().__init__(f"Proveedor {provider} no implementado")
        self.provider = provider


class UnsupportedOperationError(SatMexicoError, ValueError):
    """Combinación recurso/operación desconocida."""


class UpstreamSubmissionError(SatMexicoError):
    """El proveedor de facturación rechazó la solicitud o no respondió.

    No se reintenta ni se estima: emitir facturas falsas no es aceptable.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        payload: Any = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload
