"""Indicadores financieros: UDI y tipos de cambio a MXN.

Política:
- Una sola consulta por llamada, sin reintentos.
- Nunca se propaga un fallo de red/parseo: se degrada a un valor estimado,
  etiquetado como tal (`IndicatorSource.ESTIMATED`).

Notas:
- El endpoint de indicadores del DOF no garantiza el campo `udi`; en la
  práctica el fallback se activa casi siempre. Se conserva tal cual.
- USD y EUR salen de la misma consulta con base USD; EUR se deriva como
  MXN-por-USD / EUR-por-USD.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import Any

import httpx

from adapters.http_client import build_async_client
from core.config import AppSettings
from core.domain.models import (
    IndicatorKind,
    IndicatorReading,
    IndicatorSource,
    UnsupportedCurrency,
)

logger = logging.getLogger(__name__)

UDI_FALLBACK = 8.25
USD_FALLBACK = 17.5
EUR_FALLBACK = 19.0
EUR_PER_USD_FALLBACK = 0.92

_ESTIMATED_PROVIDER = "Estimado"
_UDI_PROVIDER = "Banxico"
_EXCHANGE_PROVIDER = "Exchange Rate API"
_UDI_NOTE = "Usar API Banxico con token para datos oficiales"

_SUPPORTED_CURRENCIES = {
    "USD": IndicatorKind.USD,
    "EUR": IndicatorKind.EUR,
}


def _today() -> date:
    return datetime.now(timezone.utc).date()


def _positive_number(value: object) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return number if number > 0 else None


class IndicatorFetcher:
    """Obtiene la UDI y tipos de cambio sin fallar nunca al llamador."""

    def __init__(
        self,
        settings: AppSettings | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings or AppSettings()
        self._transport = transport

    async def _get_json(self, url: str) -> Any:
        async with build_async_client(self._settings, transport=self._transport) as client:
            resp = await client.get(url)
        resp.raise_for_status()
        return resp.json()

    async def get_udi(self) -> IndicatorReading:
        try:
            data = await self._get_json(self._settings.indicators_url)
            value = _positive_number(data.get("udi")) if isinstance(data, dict) else None
            if value is None:
                raise ValueError("respuesta sin campo 'udi' numérico")
        except Exception as exc:
            logger.warning(f"UDI no disponible ({exc}); usando valor estimado {UDI_FALLBACK}")
            return IndicatorReading(
                kind=IndicatorKind.UDI,
                value=UDI_FALLBACK,
                as_of=_today(),
                source=IndicatorSource.ESTIMATED,
                provider=_ESTIMATED_PROVIDER,
                note=_UDI_NOTE,
            )

        return IndicatorReading(
            kind=IndicatorKind.UDI,
            value=value,
            as_of=_today(),
            source=IndicatorSource.OFFICIAL,
            provider=_UDI_PROVIDER,
        )

    async def get_exchange_rate(self, currency: str) -> IndicatorReading | UnsupportedCurrency:
        code = (currency or "").strip().upper()
        kind = _SUPPORTED_CURRENCIES.get(code)
        if kind is None:
            return UnsupportedCurrency(currency=code)

        try:
            data = await self._get_json(self._settings.exchange_rate_url)
            if not isinstance(data, dict):
                raise ValueError("respuesta de tipos de cambio no es un objeto")
        except Exception as exc:
            fallback = USD_FALLBACK if kind is IndicatorKind.USD else EUR_FALLBACK
            logger.warning(f"Tipo de cambio {code} no disponible ({exc}); usando valor estimado {fallback}")
            return IndicatorReading(
                kind=kind,
                value=fallback,
                as_of=_today(),
                source=IndicatorSource.ESTIMATED,
                provider=_ESTIMATED_PROVIDER,
            )

        rates = data.get("rates")
        if not isinstance(rates, dict):
            rates = {}

        notes: list[str] = []
        mxn = _positive_number(rates.get("MXN"))
        if mxn is None:
            mxn = USD_FALLBACK
            notes.append(f"MXN ausente; se usó {USD_FALLBACK}")

        value = mxn
        if kind is IndicatorKind.EUR:
            eur_per_usd = _positive_number(rates.get("EUR"))
            if eur_per_usd is None:
                eur_per_usd = EUR_PER_USD_FALLBACK
                notes.append(f"EUR ausente; se usó {EUR_PER_USD_FALLBACK}")
            value = mxn / eur_per_usd

        if notes:
            logger.info(f"Tipo de cambio {code} con valores por defecto: {'; '.join(notes)}")

        return IndicatorReading(
            kind=kind,
            value=value,
            as_of=_today(),
            source=IndicatorSource.OFFICIAL,
            provider=_EXCHANGE_PROVIDER,
            note="; ".join(notes) or None,
        )
