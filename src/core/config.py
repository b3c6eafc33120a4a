"""Configuración de SAT México.

Todo sale de variables `SAT_MX_*`: endpoints de indicadores, timeout HTTP y
las credenciales del proveedor de CFDI (Facturapi/Finkok). Se leen de dos
archivos `.env`, el del directorio actual y el del usuario, que es el que
escribe `sat-mexico doctor setup-credentials`. Las variables de entorno del
proceso tienen prioridad sobre ambos.

El resto del código recibe las credenciales ya armadas como
`ProviderCredentials`; nada fuera de este módulo lee el entorno.
"""

from __future__ import annotations

import os
import sys
from collections.abc import Mapping
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from core.domain.models import BillingProvider, FacturapiEnvironment, ProviderCredentials

APP_DIR_NAME = "sat-mexico"


def get_user_config_dir() -> Path:
    """`%APPDATA%`, `~/Library/Application Support` o XDG según la plataforma."""

    if sys.platform.startswith("win"):
        root = Path(os.environ.get("APPDATA") or Path.home())
    elif sys.platform == "darwin":
        root = Path.home() / "Library" / "Application Support"
    else:
        root = Path(os.environ.get("XDG_CONFIG_HOME") or Path.home() / ".config")
    return root / APP_DIR_NAME


def get_user_env_file() -> Path:
    return get_user_config_dir() / ".env"


def _read_env_file(path: Path) -> dict[str, str]:
    if not path.is_file():
        return {}

    values: dict[str, str] = {}
    for line in path.read_text(encoding="utf-8").splitlines():
        key, sep, value = line.strip().partition("=")
        key = key.strip()
        if not sep or not key or key.startswith("#"):
            continue
        values[key] = value.strip().strip("\"'")
    return values


def write_user_env_vars(values: Mapping[str, str | None], *, env_path: Path | None = None) -> Path:
    """Fusiona `values` en el .env del usuario y devuelve la ruta escrita.

    Un valor `None` deja la clave como estaba. Las claves se escriben
    ordenadas, así repetir `doctor setup-credentials` no reordena el archivo.
    """

    target = env_path or get_user_env_file()
    merged = _read_env_file(target)
    merged.update({key: value for key, value in values.items() if value is not None})

    target.parent.mkdir(parents=True, exist_ok=True)
    body = "".join(f"{key}={merged[key]}\n" for key in sorted(merged))
    target.write_text(f"# sat-mexico: credenciales y endpoints (SAT_MX_*)\n{body}", encoding="utf-8")
    return target


class AppSettings(BaseSettings):
    """Variables `SAT_MX_*` validadas.

    Un valor inválido (p.ej. `SAT_MX_PROVIDER=sat`) falla al arrancar la CLI en
    vez de aparecer a mitad de un lote.
    """

    model_config = SettingsConfigDict(
        env_prefix="SAT_MX_",
        extra="ignore",
        case_sensitive=False,
        # Si ambos definen una clave, gana el .env del usuario (último de la tupla).
        env_file=(".env", str(get_user_env_file())),
        env_file_encoding="utf-8",
    )

    http_timeout_seconds: float = Field(
        default=20.0,
        gt=0,
        description="Timeout por request (segundos).",
    )
    user_agent: str = Field(
        default="sat-mexico/0.1 (+https://local)",
        min_length=1,
        description="User-Agent para las peticiones salientes.",
    )
    log_level: str = Field(
        default="WARNING",
        min_length=1,
        description="Nivel de logging de la CLI (DEBUG, INFO, WARNING...).",
    )

    # Fuentes de indicadores
    indicators_url: str = Field(
        default="https://sidofqa.segob.gob.mx/dof/sidof/indicadores",
        min_length=8,
        description="Endpoint público de indicadores (UDI, best-effort).",
    )
    exchange_rate_url: str = Field(
        default="https://api.exchangerate-api.com/v4/latest/USD",
        min_length=8,
        description="Tipos de cambio con base USD (USD y EUR se derivan de aquí).",
    )

    # Facturación
    facturapi_invoices_url: str = Field(
        default="https://www.facturapi.io/v2/invoices",
        min_length=8,
        description="Endpoint de emisión de facturas en Facturapi.",
    )
    provider: BillingProvider = Field(
        default=BillingProvider.NONE,
        description="Proveedor de facturación (facturapi, finkok, none).",
    )
    facturapi_api_key: str | None = Field(
        default=None,
        description="API key secreta de Facturapi.",
    )
    facturapi_environment: FacturapiEnvironment = Field(
        default=FacturapiEnvironment.SANDBOX,
        description="Ambiente de Facturapi (sandbox/production).",
    )
    finkok_user: str | None = Field(default=None, description="Usuario Finkok.")
    finkok_password: str | None = Field(default=None, description="Password Finkok.")
    issuer_rfc: str | None = Field(
        default=None,
        description="RFC del emisor asociado a las credenciales.",
    )

    def provider_credentials(self) -> ProviderCredentials:
        """Construye las credenciales del proveedor a partir del entorno."""

        return ProviderCredentials(
            provider=self.provider,
            facturapi_api_key=self.facturapi_api_key,
            facturapi_environment=self.facturapi_environment,
            finkok_user=self.finkok_user,
            finkok_password=self.finkok_password,
            issuer_rfc=self.issuer_rfc,
        )
