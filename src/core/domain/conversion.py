"""Conversión UDI <-> Pesos.

La precisión es asimétrica a propósito:
- UDI -> Pesos redondea a 2 decimales (centavos).
- Pesos -> UDI redondea a 6 decimales (precisión de la UDI).
Por eso las dos funciones no son inversas exactas.

Montos y tasas deben ser finitos; NaN/infinito se rechazan con `ValueError`
igual que un resultado que ya no cabe en un float.
"""

from __future__ import annotations

import math
from datetime import date, datetime, timezone
from decimal import ROUND_HALF_UP, Decimal, getcontext, localcontext

from core.domain.models import ConversionDirection, ConversionResult

_CENTAVOS = Decimal("0.01")
_UDI_PRECISION = Decimal("0.000001")


def _today() -> date:
    return datetime.now(timezone.utc).date()


def _finite(value: float, name: str) -> Decimal:
    if not math.isfinite(value):
        raise ValueError(f"El {name} debe ser un número finito")
    return Decimal(str(value))


def _round(value: Decimal, quantum: Decimal) -> float:
    # quantize exige que el resultado quepa en la precisión del contexto.
    digits = value.adjusted() - quantum.as_tuple().exponent + 1
    with localcontext() as ctx:
        ctx.prec = max(getcontext().prec, digits)
        rounded = float(value.quantize(quantum, rounding=ROUND_HALF_UP))
    if not math.isfinite(rounded):
        raise ValueError("El resultado de la conversión está fuera de rango")
    return rounded


def udi_to_pesos(udi_amount: float, rate: float, *, as_of: date | None = None) -> ConversionResult:
    pesos = _finite(udi_amount, "monto en UDI") * _finite(rate, "valor de la UDI")
    return ConversionResult(
        direction=ConversionDirection.UDI_TO_PESOS,
        input_amount=udi_amount,
        rate=rate,
        output_amount=_round(pesos, _CENTAVOS),
        as_of=as_of or _today(),
    )


def pesos_to_udi(pesos_amount: float, rate: float, *, as_of: date | None = None) -> ConversionResult:
    amount = _finite(pesos_amount, "monto en pesos")
    udi_rate = _finite(rate, "valor de la UDI")
    if udi_rate <= 0:
        raise ValueError("El valor de la UDI debe ser mayor a cero")

    udi = amount / udi_rate
    return ConversionResult(
        direction=ConversionDirection.PESOS_TO_UDI,
        input_amount=pesos_amount,
        rate=rate,
        output_amount=_round(udi, _UDI_PRECISION),
        as_of=as_of or _today(),
    )
