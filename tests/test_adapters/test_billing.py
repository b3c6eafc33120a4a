"""Tests for CFDI request shaping and billing providers."""

import asyncio
import json

import httpx
import pytest

from adapters.billing import (
    MISSING_CREDENTIALS_MESSAGE,
    FacturapiProvider,
    NotImplementedProvider,
    build_invoice_request,
    issue_invoice,
    resolve_provider,
)
from core.domain.errors import (
    ConfigurationError,
    UnsupportedOperationError,
    UnsupportedProviderError,
    UpstreamSubmissionError,
)
from core.domain.models import BillingProvider, InvoiceType, ProviderCredentials


class TestBuildInvoiceRequest:
    """Test cases for build_invoice_request."""

    def test_factura_is_income(self, invoice_params):
        """Test that `factura` maps to an income CFDI."""
        request = build_invoice_request("factura", invoice_params)

        assert request.document_type == InvoiceType.INGRESO
        assert request.recipient.rfc == "XAXX010101000"
        assert request.recipient.legal_name == "Público en General"
        assert request.use == "G01"
        assert request.payment_form == "03"

    def test_nota_credito_is_expense(self, invoice_params):
        """Test that `nota_credito` maps to an expense CFDI."""
        request = build_invoice_request("nota_credito", invoice_params)

        assert request.document_type == InvoiceType.EGRESO

    def test_items_keep_order_and_defaults(self, invoice_params):
        """Test that line items keep input order and default SAT key."""
        request = build_invoice_request("factura", invoice_params)

        assert [item.description for item in request.items] == ["Servicio de consultoría", "Licencia anual"]
        assert request.items[0].quantity == 2
        assert request.items[0].product_key == "80111600"
        assert request.items[1].product_key == "01010101"

    def test_items_collection_shape(self, invoice_params):
        """Test that `{"item": [...]}` collections are accepted."""
        invoice_params["items"] = {"item": invoice_params["items"]}

        request = build_invoice_request("factura", invoice_params)

        assert len(request.items) == 2

    def test_defaults_for_use_and_payment_form(self):
        """Test that missing codes fall back to G03 and 01."""
        request = build_invoice_request("factura", {"rfc_receptor": "ABC680524P76"})

        assert request.use == "G03"
        assert request.payment_form == "01"
        assert request.items == []

    def test_unknown_operation(self, invoice_params):
        """Test that an unknown CFDI operation is rejected."""
        with pytest.raises(UnsupportedOperationError):
            build_invoice_request("pago", invoice_params)


class TestResolveProvider:
    """Test cases for resolve_provider."""

    def test_missing_credentials(self, settings):
        """Test that no credentials is a configuration error."""
        with pytest.raises(ConfigurationError, match="Configura credenciales"):
            resolve_provider(None, settings)

    def test_provider_none(self, settings):
        """Test that provider `none` is a configuration error."""
        with pytest.raises(ConfigurationError):
            resolve_provider(ProviderCredentials(provider=BillingProvider.NONE), settings)

    def test_facturapi_without_key(self, settings):
        """Test that facturapi needs an API key."""
        credentials = ProviderCredentials(provider=BillingProvider.FACTURAPI, facturapi_api_key="  ")

        with pytest.raises(ConfigurationError):
            resolve_provider(credentials, settings)

    def test_facturapi(self, settings, facturapi_credentials):
        """Test that facturapi resolves to its strategy."""
        assert isinstance(resolve_provider(facturapi_credentials, settings), FacturapiProvider)

    def test_finkok_is_not_implemented(self, settings):
        """Test that finkok resolves to the not-implemented variant."""
        provider = resolve_provider(ProviderCredentials(provider=BillingProvider.FINKOK), settings)

        assert isinstance(provider, NotImplementedProvider)
        assert provider.name == "finkok"


class TestIssueInvoice:
    """Test cases for issue_invoice with the fake network."""

    def test_provider_none_fails_before_network(self, settings, network, invoice_params):
        """Test ConfigurationError with no request attempted."""
        with pytest.raises(ConfigurationError) as exc_info:
            asyncio.run(
                issue_invoice(
                    operation="factura",
                    params=invoice_params,
                    credentials=ProviderCredentials(provider=BillingProvider.NONE),
                    settings=settings,
                    transport=network.transport,
                )
            )

        assert str(exc_info.value) == MISSING_CREDENTIALS_MESSAGE
        assert network.requests == []

    def test_finkok_fails_before_network(self, settings, network, invoice_params):
        """Test UnsupportedProviderError with no request attempted."""
        credentials = ProviderCredentials(
            provider=BillingProvider.FINKOK,
            finkok_user="demo",
            finkok_password="secret",
        )

        with pytest.raises(UnsupportedProviderError, match="Proveedor finkok no implementado"):
            asyncio.run(
                issue_invoice(
                    operation="factura",
                    params=invoice_params,
                    credentials=credentials,
                    settings=settings,
                    transport=network.transport,
                )
            )

        assert network.requests == []

    def test_facturapi_request_shape(self, settings, network, facturapi_credentials, invoice_params):
        """Test the POST sent to Facturapi and the raw response returned."""
        network.routes[settings.facturapi_invoices_url] = httpx.Response(
            200, json={"id": "inv_123", "status": "valid"}
        )

        response = asyncio.run(
            issue_invoice(
                operation="factura",
                params=invoice_params,
                credentials=facturapi_credentials,
                settings=settings,
                transport=network.transport,
            )
        )

        assert response == {"id": "inv_123", "status": "valid"}
        assert len(network.requests) == 1
        sent = network.requests[0]
        assert sent.method == "POST"
        assert sent.headers["Authorization"] == "Bearer sk_test_123"
        body = json.loads(sent.content)
        assert body["type"] == "I"
        assert body["customer"] == {"legal_name": "Público en General", "tax_id": "XAXX010101000"}
        assert body["use"] == "G01"
        assert body["payment_form"] == "03"
        assert body["items"][0] == {
            "quantity": 2.0,
            "product": {
                "description": "Servicio de consultoría",
                "product_key": "80111600",
                "price": 1500.0,
            },
        }

    def test_facturapi_defaults_and_credit_note(self, settings, network, facturapi_credentials):
        """Test defaults 01/G03 and type E for a credit note."""
        network.routes[settings.facturapi_invoices_url] = httpx.Response(201, json={"id": "inv_9"})

        asyncio.run(
            issue_invoice(
                operation="nota_credito",
                params={"rfc_receptor": "ABC680524P76", "razon_social": "ACME"},
                credentials=facturapi_credentials,
                settings=settings,
                transport=network.transport,
            )
        )

        body = json.loads(network.requests[0].content)
        assert body["type"] == "E"
        assert body["payment_form"] == "01"
        assert body["use"] == "G03"
        assert body["items"] == []

    def test_facturapi_rejection(self, settings, network, facturapi_credentials, invoice_params):
        """Test that a non-2xx answer surfaces with its status and message."""
        network.routes[settings.facturapi_invoices_url] = httpx.Response(
            400, json={"message": "El RFC del receptor no es válido"}
        )

        with pytest.raises(UpstreamSubmissionError) as exc_info:
            asyncio.run(
                issue_invoice(
                    operation="factura",
                    params=invoice_params,
                    credentials=facturapi_credentials,
                    settings=settings,
                    transport=network.transport,
                )
            )

        assert exc_info.value.status_code == 400
        assert "El RFC del receptor no es válido" in str(exc_info.value)
        assert len(network.requests) == 1

    def test_facturapi_unreachable(self, settings, network, facturapi_credentials, invoice_params):
        """Test that a network error is not retried nor estimated."""
        with pytest.raises(UpstreamSubmissionError):
            asyncio.run(
                issue_invoice(
                    operation="factura",
                    params=invoice_params,
                    credentials=facturapi_credentials,
                    settings=settings,
                    transport=network.transport,
                )
            )

        assert len(network.requests) == 1

    def test_facturapi_non_object_response(self, settings, network, facturapi_credentials, invoice_params):
        """Test that a malformed success body is a submission failure."""
        network.routes[settings.facturapi_invoices_url] = httpx.Response(200, json=["unexpected"])

        with pytest.raises(UpstreamSubmissionError):
            asyncio.run(
                issue_invoice(
                    operation="factura",
                    params=invoice_params,
                    credentials=facturapi_credentials,
                    settings=settings,
                    transport=network.transport,
                )
            )
