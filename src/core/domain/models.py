"""Modelos del dominio (Pydantic v2).

Por qué Pydantic en el dominio:
- Nos da validación estricta y documentación autocontenida (Field) sin acoplar
  el Core a librerías de I/O.
- Los resultados se serializan tal cual (model_dump) como salida por fila.

Nota:
- Estos modelos describen *qué* es la información, no *cómo* se obtiene.
- Ningún modelo sobrevive al procesamiento de una fila: no hay persistencia.
"""

from __future__ import annotations

from datetime import date
from enum import Enum

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict


class RfcCategory(str, Enum):
    """Clasificación de un RFC ya normalizado."""

    PERSONA_FISICA = "Persona Física"
    PERSONA_MORAL = "Persona Moral"
    GENERICO_PUBLICO = "Público General"
    GENERICO_EXTRANJERO = "Extranjero"
    INVALIDO = "Desconocido"


class RfcValidation(BaseModel):
    """Resultado de validar un RFC.

    Un RFC inválido no es un error: es un resultado representable más.
    """

    is_valid: bool = Field(..., description="Indica si el RFC coincide con alguna regla.")
    rfc: str = Field(..., description="RFC normalizado (mayúsculas, sin espacios ni guiones).")
    category: RfcCategory = Field(..., description="Categoría del contribuyente.")
    message: str = Field(..., description="Mensaje legible del resultado.")


class IndicatorKind(str, Enum):
    UDI = "UDI"
    USD = "USD"
    EUR = "EUR"


class IndicatorSource(str, Enum):
    """Origen del valor: consulta real o estimación por fallo de la fuente."""

    OFFICIAL = "oficial"
    ESTIMATED = "estimado"


class IndicatorReading(BaseModel):
    """Lectura de un indicador financiero (UDI o tipo de cambio a MXN)."""

    kind: IndicatorKind = Field(..., description="Indicador consultado.")
    value: float = Field(..., gt=0, description="Valor en pesos mexicanos.")
    as_of: date = Field(..., description="Fecha de la lectura (UTC).")
    source: IndicatorSource = Field(..., description="Oficial o estimado.")
    provider: str = Field(..., min_length=1, description="Fuente consultada o 'Estimado'.")
    note: str | None = Field(default=None, description="Aclaración sobre valores por defecto.")

    @property
    def is_estimated(self) -> bool:
        return self.source is IndicatorSource.ESTIMATED


class UnsupportedCurrency(BaseModel):
    """Resultado explícito para monedas sin tipo de cambio soportado."""

    currency: str
    error: str = "Moneda no soportada"


class ConversionDirection(str, Enum):
    UDI_TO_PESOS = "udi_pesos"
    PESOS_TO_UDI = "pesos_udi"


class ConversionResult(BaseModel):
    """Conversión UDI <-> Pesos con el valor de la UDI usado como tasa."""

    direction: ConversionDirection
    input_amount: float
    rate: float = Field(..., description="Valor de la UDI en pesos.")
    output_amount: float = Field(..., description="Monto convertido y redondeado.")
    as_of: date


class InvoiceType(str, Enum):
    """Tipo de comprobante CFDI."""

    INGRESO = "I"
    EGRESO = "E"


class InvoiceRecipient(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    rfc: str = Field(default="", alias="rfc_receptor", description="RFC del receptor.")
    legal_name: str = Field(default="", alias="razon_social", description="Razón social del receptor.")


class InvoiceLineItem(BaseModel):
    """Concepto de la factura tal como lo captura el usuario."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    description: str = Field(default="", alias="descripcion")
    quantity: float = Field(default=1, gt=0, alias="cantidad")
    unit_price: float = Field(default=0, ge=0, alias="precio_unitario")
    product_key: str = Field(default="01010101", alias="clave_sat", description="Clave SAT del producto.")


class InvoiceRequest(BaseModel):
    """Solicitud de emisión independiente del proveedor."""

    document_type: InvoiceType
    recipient: InvoiceRecipient
    use: str = Field(default="G03", min_length=1, description="Uso CFDI.")
    payment_form: str = Field(default="01", min_length=1, description="Forma de pago SAT.")
    items: list[InvoiceLineItem] = Field(default_factory=list)


class BillingProvider(str, Enum):
    FACTURAPI = "facturapi"
    FINKOK = "finkok"
    NONE = "none"


class FacturapiEnvironment(str, Enum):
    SANDBOX = "sandbox"
    PRODUCTION = "production"


class ProviderCredentials(BaseModel):
    """Credenciales del proveedor de facturación (solo lectura para el Core)."""

    model_config = ConfigDict(frozen=True)

    provider: BillingProvider = BillingProvider.NONE
    facturapi_api_key: str | None = None
    facturapi_environment: FacturapiEnvironment = FacturapiEnvironment.SANDBOX
    finkok_user: str | None = None
    finkok_password: str | None = None
    issuer_rfc: str | None = None

    def __repr__(self) -> str:
        # Nunca exponer secretos en logs/tracebacks.
        return (
            f"ProviderCredentials(provider={self.provider.value!r}, "
            f"environment={self.facturapi_environment.value!r}, issuer_rfc={self.issuer_rfc!r})"
        )

    __str__ = __repr__
