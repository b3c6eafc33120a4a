"""Componentes de UI para CLI (Rich).

Por qué separar componentes:
- Evita mezclar lógica de comandos con detalles visuales.
- Permite reutilizar tablas/paneles en múltiples comandos.
"""

from __future__ import annotations

from typing import Any

from rich.align import Align
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text


def print_banner(console: Console) -> None:
    """Imprime el banner de bienvenida (solo en modo interactivo)."""

    title = Text("SAT México", style="bold green")
    subtitle = Text("RFC • UDI • Tipo de cambio • CFDI", style="dim")
    body = Align.center(Text.assemble(title, "\n", subtitle), vertical="middle")
    console.print(Panel(body, border_style="green", padding=(1, 4)))


def build_rfc_table(result: dict[str, Any]) -> Table:
    """Tabla con el resultado de validar un RFC."""

    valid = bool(result.get("is_valid"))
    table = Table(title="Validación RFC")
    table.add_column("RFC", style="cyan", no_wrap=True)
    table.add_column("Válido", style="green" if valid else "red")
    table.add_column("Tipo", style="white")
    table.add_column("Mensaje", style="dim")
    table.add_row(
        str(result.get("rfc", "")),
        "sí" if valid else "no",
        str(result.get("category", "")),
        str(result.get("message", "")),
    )
    return table


def build_indicator_panel(result: dict[str, Any]) -> Panel:
    """Panel para una lectura de indicador (UDI/USD/EUR)."""

    if "error" in result:
        return Panel(
            Text(f"{result.get('currency', '')}: {result['error']}", style="yellow"),
            border_style="yellow",
        )

    estimated = result.get("source") == "estimado"
    body = Text()
    body.append(f"{result.get('value')}", style="bold")
    body.append(f"  MXN  ({result.get('as_of')})\n")
    body.append(f"Fuente: {result.get('provider')}", style="yellow" if estimated else "dim")
    if estimated:
        body.append("  [estimado]", style="yellow")
    if result.get("note"):
        body.append(f"\n{result['note']}", style="dim")

    title = Text(str(result.get("kind", "")), style="bold cyan")
    return Panel(body, title=title, border_style="yellow" if estimated else "cyan")


def build_conversion_panel(result: dict[str, Any]) -> Panel:
    """Panel para una conversión UDI <-> Pesos."""

    if result.get("direction") == "udi_pesos":
        line = f"{result.get('input_amount')} UDI = {result.get('output_amount')} MXN"
    else:
        line = f"{result.get('input_amount')} MXN = {result.get('output_amount')} UDI"

    body = Text()
    body.append(line + "\n", style="bold")
    body.append(f"Valor UDI: {result.get('rate')} ({result.get('as_of')})", style="dim")
    return Panel(body, title=Text("Conversión", style="bold cyan"), border_style="cyan")
