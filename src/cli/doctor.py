"""Doctor command for environment diagnostics."""

from __future__ import annotations

import asyncio

import typer
from rich.console import Console
from rich.table import Table

from adapters.http_client import build_async_client
from cli import context
from cli.ui_components import print_banner
from core.config import AppSettings, write_user_env_vars
from core.domain.models import BillingProvider, FacturapiEnvironment
from core.domain.rfc import classify_rfc

app = typer.Typer(no_args_is_help=True, help="Environment diagnostics and credential setup.")

_console = Console()


async def _check_http(url: str, settings: AppSettings) -> tuple[bool, str]:
    """Credential self-test: the exchange-rate endpoint must answer."""

    try:
        async with build_async_client(settings, transport=context.http_transport()) as client:
            response = await client.get(url)
        return response.is_success, f"HTTP {response.status_code}"
    except Exception as exc:
        return False, str(exc)


@app.command()
def run() -> None:
    """Run baseline diagnostics and show recommended fixes."""

    settings = context.load_settings()
    credentials = settings.provider_credentials()
    print_banner(_console)

    table = Table(title="SAT México Doctor")
    table.add_column("Check", style="bright_green", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")

    # Credenciales
    provider = credentials.provider
    if provider is BillingProvider.NONE:
        table.add_row("Provider", "OPTIONAL", "none -> local functions only (no CFDI issuance)")
    elif provider is BillingProvider.FACTURAPI:
        has_key = bool((credentials.facturapi_api_key or "").strip())
        table.add_row("Provider", "OK", f"facturapi ({credentials.facturapi_environment.value})")
        table.add_row("Facturapi key", "OK" if has_key else "FAIL", "set" if has_key else "missing API key")
    else:
        table.add_row("Provider", "FAIL", f"{provider.value} is not implemented")

    if credentials.issuer_rfc:
        check = classify_rfc(credentials.issuer_rfc)
        table.add_row(
            "Issuer RFC",
            "OK" if check.is_valid else "FAIL",
            f"{check.rfc} - {check.category.value}",
        )
    elif provider is not BillingProvider.NONE:
        table.add_row("Issuer RFC", "OPTIONAL", "not set")

    # Conectividad (best-effort)
    ok_http, detail_http = asyncio.run(_check_http(settings.exchange_rate_url, settings))
    table.add_row("Exchange rate API", "OK" if ok_http else "FAIL", detail_http)

    _console.print(table)

    if not ok_http:
        _console.print(
            "\n[yellow]Note:[/yellow] When the exchange rate API fails, USD/EUR fall back to estimated values."
        )


@app.command(name="setup-credentials")
def setup_credentials() -> None:
    """Interactive billing setup (stores config in the user config .env)."""

    provider = typer.prompt(
        "Billing provider (facturapi, finkok, none)",
        default="facturapi",
        show_default=True,
    ).strip().lower()

    try:
        provider_value = BillingProvider(provider)
    except ValueError:
        raise typer.BadParameter(f"Unknown provider: {provider}") from None

    values: dict[str, str | None] = {"SAT_MX_PROVIDER": provider_value.value}

    if provider_value is BillingProvider.FACTURAPI:
        api_key = typer.prompt("Facturapi API key", hide_input=True).strip()
        environment = typer.prompt(
            "Facturapi environment (sandbox, production)",
            default=FacturapiEnvironment.SANDBOX.value,
            show_default=True,
        ).strip().lower()
        try:
            FacturapiEnvironment(environment)
        except ValueError:
            raise typer.BadParameter(f"Unknown environment: {environment}") from None
        if not api_key:
            raise typer.BadParameter("API key is required for facturapi")
        values["SAT_MX_FACTURAPI_API_KEY"] = api_key
        values["SAT_MX_FACTURAPI_ENVIRONMENT"] = environment
    elif provider_value is BillingProvider.FINKOK:
        values["SAT_MX_FINKOK_USER"] = typer.prompt("Finkok user").strip()
        values["SAT_MX_FINKOK_PASSWORD"] = typer.prompt("Finkok password", hide_input=True).strip()

    if provider_value is not BillingProvider.NONE:
        issuer = typer.prompt("Issuer RFC", default="", show_default=False).strip()
        if issuer:
            check = classify_rfc(issuer)
            if not check.is_valid:
                raise typer.BadParameter(f"Invalid issuer RFC: {check.rfc}")
            values["SAT_MX_ISSUER_RFC"] = check.rfc

    env_path = write_user_env_vars(values)

    _console.print(f"[green]Saved billing config to:[/green] {env_path}")
