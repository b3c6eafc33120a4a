"""Construcción de la solicitud de CFDI a partir de parámetros por fila.

Acepta los conceptos como lista o como colección `{"item": [...]}`, que es
la forma en que el host de flujos entrega los campos repetibles.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from core.domain.errors import UnsupportedOperationError
from core.domain.models import InvoiceLineItem, InvoiceRecipient, InvoiceRequest, InvoiceType

DEFAULT_USE = "G03"
DEFAULT_PAYMENT_FORM = "01"

_DOCUMENT_TYPES = {
    "factura": InvoiceType.INGRESO,
    "nota_credito": InvoiceType.EGRESO,
}


def document_type_for(operation: str) -> InvoiceType:
    try:
        return _DOCUMENT_TYPES[operation]
    except KeyError:
        raise UnsupportedOperationError(f"Operación CFDI desconocida: {operation}") from None


def _raw_items(value: Any) -> list[Any]:
    if value is None:
        return []
    if isinstance(value, Mapping):
        value = value.get("item") or []
    if not isinstance(value, list):
        raise ValueError("Los conceptos deben ser una lista")
    return value


def build_invoice_request(operation: str, params: Mapping[str, Any]) -> InvoiceRequest:
    """Arma un `InvoiceRequest` independiente del proveedor."""

    recipient = InvoiceRecipient(
        rfc=str(params.get("rfc_receptor") or ""),
        legal_name=str(params.get("razon_social") or ""),
    )
    items = [InvoiceLineItem.model_validate(item) for item in _raw_items(params.get("items"))]

    return InvoiceRequest(
        document_type=document_type_for(operation),
        recipient=recipient,
        use=str(params.get("uso_cfdi") or DEFAULT_USE),
        payment_form=str(params.get("forma_pago") or DEFAULT_PAYMENT_FORM),
        items=items,
    )


def to_facturapi_body(request: InvoiceRequest) -> dict[str, Any]:
    """Cuerpo JSON para `POST /v2/invoices` de Facturapi."""

    return {
        "type": request.document_type.value,
        "customer": {
            "legal_name": request.recipient.legal_name,
            "tax_id": request.recipient.rfc,
        },
        "items": [
            {
                "quantity": item.quantity,
                "product": {
                    "description": item.description,
                    "product_key": item.product_key,
                    "price": item.unit_price,
                },
            }
            for item in request.items
        ],
        "payment_form": request.payment_form or DEFAULT_PAYMENT_FORM,
        "use": request.use or DEFAULT_USE,
    }
