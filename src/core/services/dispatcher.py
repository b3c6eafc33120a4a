"""Despacho por lotes de operaciones fiscales.

Recibe un selector (recurso, operación) común a todo el lote y una lista de
parámetros por fila. Cada fila se procesa de forma independiente y en orden
estricto: la fila i+1 no empieza hasta que termina la fila i.

Política de fallos:
- `continue_on_fail=True`: la fila que falla se reemplaza por `{"error": ...}`
  y se sigue con la siguiente.
- `continue_on_fail=False`: la primera excepción se propaga y el resto del
  lote no se procesa.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union

import httpx

from adapters.billing import issue_invoice
from adapters.indicators import IndicatorFetcher
from core.config import AppSettings
from core.domain.conversion import pesos_to_udi, udi_to_pesos
from core.domain.errors import UnsupportedOperationError
from core.domain.models import ProviderCredentials
from core.domain.rfc import classify_rfc, clean_rfc, format_rfc

logger = logging.getLogger(__name__)

DEFAULT_MONTO_UDI = 1000.0
DEFAULT_MONTO_PESOS = 10000.0


class Resource(str, Enum):
    RFC = "rfc"
    INDICADORES = "indicadores"
    CFDI = "cfdi"


OPERATIONS: dict[Resource, tuple[str, ...]] = {
    Resource.RFC: ("validar", "formatear", "limpiar"),
    Resource.INDICADORES: ("udi", "usd", "eur", "udi_pesos", "pesos_udi"),
    Resource.CFDI: ("factura", "nota_credito"),
}

CredentialsLoader = Callable[[int], Union[ProviderCredentials, None]]


@dataclass
class BatchRequest:
    """Selector del lote: aplica a todas las filas."""

    resource: Resource
    operation: str
    continue_on_fail: bool = False

    def __post_init__(self) -> None:
        try:
            self.resource = Resource(self.resource)
        except ValueError:
            raise UnsupportedOperationError(f"Recurso desconocido: {self.resource}") from None
        if self.operation not in OPERATIONS[self.resource]:
            raise UnsupportedOperationError(
                f"Operación '{self.operation}' no válida para el recurso '{self.resource.value}'"
            )


@dataclass
class DispatchHooks:
    """Callbacks opcionales para capas de UI (progreso, errores por fila)."""

    row_done: Callable[[int], None] | None = None
    row_error: Callable[[int, Exception], None] | None = None


@dataclass
class BatchResult:
    """Salida del lote: un objeto por fila, en el orden de entrada."""

    items: list[dict[str, Any]] = field(default_factory=list)
    errors: int = 0


def _amount(params: Mapping[str, Any], key: str, default: float) -> float:
    value = params.get(key)
    if value is None or value == "":
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ValueError(f"El parámetro '{key}' debe ser numérico") from None


def _credentials_for(
    credentials: ProviderCredentials | CredentialsLoader | None,
    index: int,
) -> ProviderCredentials | None:
    if credentials is None or isinstance(credentials, ProviderCredentials):
        return credentials
    return credentials(index)


def _run_rfc(operation: str, params: Mapping[str, Any]) -> dict[str, Any]:
    rfc = str(params.get("rfc") or "")
    if operation == "validar":
        return classify_rfc(rfc).model_dump(mode="json")
    if operation == "formatear":
        return {"rfc": format_rfc(rfc)}
    return {"rfc": clean_rfc(rfc)}


async def _run_indicadores(
    operation: str,
    params: Mapping[str, Any],
    fetcher: IndicatorFetcher,
) -> dict[str, Any]:
    if operation == "udi":
        return (await fetcher.get_udi()).model_dump(mode="json")
    if operation in ("usd", "eur"):
        return (await fetcher.get_exchange_rate(operation.upper())).model_dump(mode="json")

    if operation == "udi_pesos":
        amount = _amount(params, "monto_udi", DEFAULT_MONTO_UDI)
        udi = await fetcher.get_udi()
        return udi_to_pesos(amount, udi.value, as_of=udi.as_of).model_dump(mode="json")

    amount = _amount(params, "monto_pesos", DEFAULT_MONTO_PESOS)
    udi = await fetcher.get_udi()
    return pesos_to_udi(amount, udi.value, as_of=udi.as_of).model_dump(mode="json")


async def run_batch(
    *,
    request: BatchRequest,
    rows: Sequence[Mapping[str, Any]],
    settings: AppSettings | None = None,
    credentials: ProviderCredentials | CredentialsLoader | None = None,
    hooks: DispatchHooks | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> BatchResult:
    settings = settings or AppSettings()
    hooks = hooks or DispatchHooks()
    fetcher = IndicatorFetcher(settings, transport=transport)
    result = BatchResult()

    logger.debug(
        f"Lote {request.resource.value}/{request.operation}: {len(rows)} filas "
        f"(continue_on_fail={request.continue_on_fail})"
    )

    for index, params in enumerate(rows):
        try:
            if request.resource is Resource.RFC:
                item = _run_rfc(request.operation, params)
            elif request.resource is Resource.INDICADORES:
                item = await _run_indicadores(request.operation, params, fetcher)
            else:
                item = await issue_invoice(
                    operation=request.operation,
                    params=params,
                    credentials=_credentials_for(credentials, index),
                    settings=settings,
                    transport=transport,
                )
        except Exception as exc:
            if hooks.row_error:
                hooks.row_error(index, exc)
            if not request.continue_on_fail:
                logger.error(f"Fila {index} falló; se aborta el lote: {exc}")
                raise
            logger.warning(f"Fila {index} falló: {exc}")
            result.items.append({"error": str(exc)})
            result.errors += 1
            continue

        result.items.append(item)
        if hooks.row_done:
            hooks.row_done(index)

    logger.info(
        f"Lote {request.resource.value}/{request.operation} terminado: "
        f"{len(result.items)} filas, {result.errors} con error"
    )
    return result
