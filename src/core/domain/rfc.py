"""Reglas del RFC (Registro Federal de Contribuyentes).

Funciones puras: no hacen I/O y nunca lanzan excepciones.

Formato:
- Persona física: 4 letras + 6 dígitos (fecha) + 3 alfanuméricos (13).
- Persona moral: 3 letras + 6 dígitos (fecha) + 3 alfanuméricos (12).
- La fecha no se valida como calendario: cualquier combinación de 6 dígitos pasa.
"""

from __future__ import annotations

import re

from core.domain.models import RfcCategory, RfcValidation

RFC_PUBLICO_GENERAL = "XAXX010101000"
RFC_EXTRANJERO = "XEXX010101000"

_FISICA_RE = re.compile(r"^[A-ZÑ&]{4}[0-9]{6}[A-Z0-9]{3}$")
_MORAL_RE = re.compile(r"^[A-ZÑ&]{3}[0-9]{6}[A-Z0-9]{3}$")
_SEPARATORS_RE = re.compile(r"[\s-]")
_NOT_RFC_CHARS_RE = re.compile(r"[^A-ZÑ&0-9]")


def format_rfc(rfc: str) -> str:
    """Mayúsculas y sin espacios ni guiones (conserva cualquier otro carácter)."""

    return _SEPARATORS_RE.sub("", rfc.upper())


def clean_rfc(rfc: str) -> str:
    """Mayúsculas y solo caracteres válidos de RFC (A-Z, Ñ, &, 0-9)."""

    return _NOT_RFC_CHARS_RE.sub("", rfc.upper())


def classify_rfc(rfc: str) -> RfcValidation:
    """Valida y clasifica un RFC.

    Los RFC genéricos se revisan antes que los patrones porque
    `XAXX010101000` también tiene forma de persona física.
    """

    normalized = format_rfc(rfc or "")

    if normalized == RFC_PUBLICO_GENERAL:
        return RfcValidation(
            is_valid=True,
            rfc=normalized,
            category=RfcCategory.GENERICO_PUBLICO,
            message="RFC genérico público general",
        )
    if normalized == RFC_EXTRANJERO:
        return RfcValidation(
            is_valid=True,
            rfc=normalized,
            category=RfcCategory.GENERICO_EXTRANJERO,
            message="RFC genérico extranjero",
        )
    if _FISICA_RE.match(normalized):
        return RfcValidation(
            is_valid=True,
            rfc=normalized,
            category=RfcCategory.PERSONA_FISICA,
            message="RFC válido",
        )
    if _MORAL_RE.match(normalized):
        return RfcValidation(
            is_valid=True,
            rfc=normalized,
            category=RfcCategory.PERSONA_MORAL,
            message="RFC válido",
        )

    return RfcValidation(
        is_valid=False,
        rfc=normalized,
        category=RfcCategory.INVALIDO,
        message="RFC inválido",
    )
