"""CLI de SAT México (Typer + Rich).

Cada comando arma las filas y delega en `core.services.dispatcher`, el mismo
punto de entrada que usaría un host de flujos. La CLI solo se ocupa de
parámetros, logging y presentación.
"""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Optional

import typer
from rich.console import Console
from rich.progress import Progress

from cli import context, doctor
from cli.ui_components import build_conversion_panel, build_indicator_panel, build_rfc_table
from core.domain.errors import SatMexicoError
from core.services.dispatcher import BatchRequest, BatchResult, DispatchHooks, Resource, run_batch

app = typer.Typer(no_args_is_help=True, help="Utilidades fiscales para México: RFC, UDI, tipo de cambio y CFDI.")
rfc_app = typer.Typer(no_args_is_help=True, help="Validar, formatear y limpiar RFC.")
indicadores_app = typer.Typer(no_args_is_help=True, help="UDI, tipos de cambio y conversiones.")
cfdi_app = typer.Typer(no_args_is_help=True, help="Emisión de CFDI con el proveedor configurado.")

app.add_typer(rfc_app, name="rfc")
app.add_typer(indicadores_app, name="indicadores")
app.add_typer(cfdi_app, name="cfdi")
app.add_typer(doctor.app, name="doctor")

_console = Console()
_err_console = Console(stderr=True)

JsonOption = typer.Option(False, "--json", help="Imprime el resultado como JSON.")


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Logging a nivel DEBUG."),
) -> None:
    settings = context.load_settings()
    _configure_logging("DEBUG" if verbose else settings.log_level)


def _dispatch(
    resource: Resource,
    operation: str,
    rows: list[dict[str, Any]],
    *,
    continue_on_fail: bool = False,
    hooks: DispatchHooks | None = None,
) -> BatchResult:
    settings = context.load_settings()
    try:
        request = BatchRequest(resource=resource, operation=operation, continue_on_fail=continue_on_fail)
        return asyncio.run(
            run_batch(
                request=request,
                rows=rows,
                settings=settings,
                credentials=settings.provider_credentials(),
                hooks=hooks,
                transport=context.http_transport(),
            )
        )
    except (SatMexicoError, ValueError) as exc:
        _err_console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=1) from exc


def _single(resource: Resource, operation: str, row: dict[str, Any]) -> dict[str, Any]:
    return _dispatch(resource, operation, [row]).items[0]


def _print_json(payload: Any) -> None:
    _console.print_json(json.dumps(payload, ensure_ascii=False))


@rfc_app.command("validar")
def rfc_validar(rfc: str = typer.Argument(..., help="RFC a validar."), as_json: bool = JsonOption) -> None:
    """Valida el formato de un RFC y lo clasifica."""

    result = _single(Resource.RFC, "validar", {"rfc": rfc})
    if as_json:
        _print_json(result)
    else:
        _console.print(build_rfc_table(result))


@rfc_app.command("formatear")
def rfc_formatear(rfc: str = typer.Argument(..., help="RFC a normalizar.")) -> None:
    """Mayúsculas y sin espacios ni guiones."""

    _console.print(_single(Resource.RFC, "formatear", {"rfc": rfc})["rfc"])


@rfc_app.command("limpiar")
def rfc_limpiar(rfc: str = typer.Argument(..., help="RFC a limpiar.")) -> None:
    """Quita todo carácter que no pueda formar parte de un RFC."""

    _console.print(_single(Resource.RFC, "limpiar", {"rfc": rfc})["rfc"])


@indicadores_app.command("udi")
def indicadores_udi(as_json: bool = JsonOption) -> None:
    """Valor actual de la UDI (estimado si la fuente falla)."""

    result = _single(Resource.INDICADORES, "udi", {})
    if as_json:
        _print_json(result)
    else:
        _console.print(build_indicator_panel(result))


@indicadores_app.command("usd")
def indicadores_usd(as_json: bool = JsonOption) -> None:
    """Tipo de cambio USD/MXN."""

    result = _single(Resource.INDICADORES, "usd", {})
    if as_json:
        _print_json(result)
    else:
        _console.print(build_indicator_panel(result))


@indicadores_app.command("eur")
def indicadores_eur(as_json: bool = JsonOption) -> None:
    """Tipo de cambio EUR/MXN."""

    result = _single(Resource.INDICADORES, "eur", {})
    if as_json:
        _print_json(result)
    else:
        _console.print(build_indicator_panel(result))


@indicadores_app.command("udi-pesos")
def indicadores_udi_pesos(
    monto: float = typer.Argument(1000, help="Monto en UDI."),
    as_json: bool = JsonOption,
) -> None:
    """Convierte UDI a pesos con el valor actual de la UDI."""

    result = _single(Resource.INDICADORES, "udi_pesos", {"monto_udi": monto})
    if as_json:
        _print_json(result)
    else:
        _console.print(build_conversion_panel(result))


@indicadores_app.command("pesos-udi")
def indicadores_pesos_udi(
    monto: float = typer.Argument(10000, help="Monto en pesos."),
    as_json: bool = JsonOption,
) -> None:
    """Convierte pesos a UDI con el valor actual de la UDI."""

    result = _single(Resource.INDICADORES, "pesos_udi", {"monto_pesos": monto})
    if as_json:
        _print_json(result)
    else:
        _console.print(build_conversion_panel(result))


def _load_json(path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise typer.BadParameter(f"No se pudo leer {path}: {exc}") from exc


def _emit(
    operation: str,
    rfc_receptor: str,
    razon_social: str,
    uso_cfdi: str,
    forma_pago: str,
    items_file: Optional[Path],
) -> None:
    items = _load_json(items_file) if items_file else []
    row = {
        "rfc_receptor": rfc_receptor,
        "razon_social": razon_social,
        "uso_cfdi": uso_cfdi,
        "forma_pago": forma_pago,
        "items": items,
    }
    _print_json(_single(Resource.CFDI, operation, row))


@cfdi_app.command("factura")
def cfdi_factura(
    rfc_receptor: str = typer.Option(..., "--rfc-receptor", help="RFC del receptor."),
    razon_social: str = typer.Option(..., "--razon-social", help="Razón social del receptor."),
    uso_cfdi: str = typer.Option("G03", "--uso-cfdi", help="Uso CFDI (G01, G03, S01...)."),
    forma_pago: str = typer.Option("01", "--forma-pago", help="Forma de pago SAT (01, 03, 04...)."),
    items_file: Optional[Path] = typer.Option(None, "--items-file", help="JSON con la lista de conceptos."),
) -> None:
    """Emite un CFDI de ingreso."""

    _emit("factura", rfc_receptor, razon_social, uso_cfdi, forma_pago, items_file)


@cfdi_app.command("nota-credito")
def cfdi_nota_credito(
    rfc_receptor: str = typer.Option(..., "--rfc-receptor", help="RFC del receptor."),
    razon_social: str = typer.Option(..., "--razon-social", help="Razón social del receptor."),
    uso_cfdi: str = typer.Option("G03", "--uso-cfdi", help="Uso CFDI (G01, G03, S01...)."),
    forma_pago: str = typer.Option("01", "--forma-pago", help="Forma de pago SAT (01, 03, 04...)."),
    items_file: Optional[Path] = typer.Option(None, "--items-file", help="JSON con la lista de conceptos."),
) -> None:
    """Emite un CFDI de egreso (nota de crédito)."""

    _emit("nota_credito", rfc_receptor, razon_social, uso_cfdi, forma_pago, items_file)


@app.command("lote")
def lote(
    archivo: Path = typer.Argument(..., help="JSON con una lista de filas (objetos de parámetros)."),
    recurso: Resource = typer.Option(..., "--recurso", help="rfc, indicadores o cfdi."),
    operacion: str = typer.Option(..., "--operacion", help="Operación del recurso (p.ej. validar, udi, factura)."),
    continuar: bool = typer.Option(False, "--continuar-en-error", help="Reemplaza filas fallidas por {'error': ...}."),
) -> None:
    """Procesa un lote de filas en orden, como lo haría un host de flujos."""

    rows = _load_json(archivo)
    if not isinstance(rows, list) or not all(isinstance(row, dict) for row in rows):
        raise typer.BadParameter("El archivo debe contener una lista de objetos")

    with Progress(console=_err_console, transient=True) as progress:
        task = progress.add_task("Procesando filas", total=len(rows))
        hooks = DispatchHooks(
            row_done=lambda index: progress.advance(task),
            row_error=lambda index, exc: progress.advance(task),
        )
        result = _dispatch(recurso, operacion, rows, continue_on_fail=continuar, hooks=hooks)
    _print_json(result.items)
    if result.errors:
        _err_console.print(f"[yellow]{result.errors} fila(s) con error[/yellow]")


def run() -> None:
    app()
