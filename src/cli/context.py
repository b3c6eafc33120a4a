"""Dependencias que los comandos resuelven en cada invocación.

Los comandos nunca construyen `AppSettings` ni el transporte HTTP directamente:
pasan por aquí, de modo que los tests pueden reemplazar ambas piezas con
`monkeypatch` y correr la CLI sin red.
"""

from __future__ import annotations

import httpx

from core.config import AppSettings


def load_settings() -> AppSettings:
    return AppSettings()


def http_transport() -> httpx.AsyncBaseTransport | None:
    """Transporte para los clientes httpx; `None` usa el de red por defecto."""

    return None
