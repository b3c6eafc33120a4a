"""Pytest configuration and fixtures."""

from __future__ import annotations

from collections.abc import Callable
from typing import Union

import httpx
import pytest

from core.config import AppSettings
from core.domain.models import BillingProvider, ProviderCredentials

INDICATORS_URL = "https://indicadores.test/dof/indicadores"
EXCHANGE_URL = "https://fx.test/v4/latest/USD"
FACTURAPI_URL = "https://facturapi.test/v2/invoices"

Route = Union[httpx.Response, Exception, Callable[[httpx.Request], httpx.Response]]


class FakeNetwork:
    """Fake HTTP layer: fixed responses per URL, records every request.

    URLs without a route behave like an unreachable host.
    """

    def __init__(self) -> None:
        self.routes: dict[str, Route] = {}
        self.requests: list[httpx.Request] = []
        self.transport = httpx.MockTransport(self._handle)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get(str(request.url))
        if route is None:
            raise httpx.ConnectError("host unreachable", request=request)
        if isinstance(route, Exception):
            raise route
        if isinstance(route, httpx.Response):
            return route
        return route(request)

    def requests_to(self, url: str) -> list[httpx.Request]:
        return [r for r in self.requests if str(r.url) == url]


@pytest.fixture
def settings() -> AppSettings:
    """Settings isolated from any local .env file."""
    return AppSettings(
        _env_file=None,
        indicators_url=INDICATORS_URL,
        exchange_rate_url=EXCHANGE_URL,
        facturapi_invoices_url=FACTURAPI_URL,
    )


@pytest.fixture
def network() -> FakeNetwork:
    return FakeNetwork()


@pytest.fixture
def facturapi_credentials() -> ProviderCredentials:
    return ProviderCredentials(
        provider=BillingProvider.FACTURAPI,
        facturapi_api_key="sk_test_123",
        issuer_rfc="EKU9003173C9",
    )


@pytest.fixture
def invoice_params() -> dict:
    """Row parameters for a CFDI issuance."""
    return {
        "rfc_receptor": "XAXX010101000",
        "razon_social": "Público en General",
        "uso_cfdi": "G01",
        "forma_pago": "03",
        "items": [
            {
                "descripcion": "Servicio de consultoría",
                "cantidad": 2,
                "precio_unitario": 1500.0,
                "clave_sat": "80111600",
            },
            {
                "descripcion": "Licencia anual",
                "cantidad": 1,
                "precio_unitario": 999.99,
            },
        ],
    }
