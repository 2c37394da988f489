"""Command-line entry point."""
import asyncio
import json
from pathlib import Path
from typing import Optional

import typer

from toolkit_auth.auth import Account, AzureAccount
from toolkit_auth.config import get_logger, settings
from toolkit_auth.logging import setup_structured_logging
from toolkit_auth.models.errors import AuthError
from toolkit_auth.models.schemas import AccountEntity, AuthConfiguration, AuthType

logger = get_logger(__name__)

app = typer.Typer(help="Resolve the current Azure identity", add_completion=False)


@app.callback()
def _app_main(
    json_logs: bool = typer.Option(False, "--json-logs", help="Emit structured JSON logs"),
    log_level: str = typer.Option(settings.auth.log_level, "--log-level", help="Logging level"),
) -> None:
    if json_logs:
        setup_structured_logging(log_level.upper())
    else:
        logger.setLevel(log_level.upper())


def _fail(error: AuthError) -> None:
    typer.echo(f"{error.error_code}: {error.message}", err=True)
    raise typer.Exit(1)


def _summary(account: Account) -> dict:
    entity = account.entity
    return {
        "auth_type": account.auth_type.value,
        "environment": str(entity.environment),
        "email": entity.email,
        "tenants": entity.tenant_ids,
        "selected_subscriptions": entity.selected_subscription_ids,
    }


def _configuration(
    auth_type: str,
    environment: Optional[str],
    tenant: Optional[str],
    client: Optional[str],
    key: Optional[str],
    certificate: Optional[str],
) -> AuthConfiguration:
    return AuthConfiguration.from_settings(
        settings.azure,
        type=AuthType.parse(auth_type),
        environment=environment,
        tenant=tenant,
        client=client,
        key=key,
        certificate=certificate,
    )


@app.command()
def login(
    auth_type: str = typer.Option("auto", "--auth-type", "-t", help="Strategy or 'auto'"),
    environment: Optional[str] = typer.Option(None, "--environment", "-e", help="Azure cloud name"),
    tenant: Optional[str] = typer.Option(None, "--tenant", help="Service principal tenant"),
    client: Optional[str] = typer.Option(None, "--client", help="Service principal client id"),
    key: Optional[str] = typer.Option(None, "--key", help="Service principal secret"),
    certificate: Optional[str] = typer.Option(None, "--certificate", help="Certificate path"),
    persist: bool = typer.Option(False, "--persist", help="Keep the session in the token cache"),
    save: Optional[Path] = typer.Option(None, "--save", help="Write the account snapshot here"),
) -> None:
    """Sign in and print who you are."""
    try:
        auth = _configuration(auth_type, environment, tenant, client, key, certificate)
        account = asyncio.run(AzureAccount().login(auth, persist_token=persist))
    except AuthError as e:
        _fail(e)

    if save is not None:
        save.write_text(account.entity.model_dump_json(indent=2), encoding="utf-8")
        logger.info(f"Saved account snapshot to {save}")
    typer.echo(json.dumps(_summary(account), indent=2))


@app.command()
def restore(snapshot: Path = typer.Argument(..., help="Account snapshot written by 'login --save'")) -> None:
    """Sign in again as a saved account and check it is unchanged."""
    try:
        entity = AccountEntity.model_validate_json(snapshot.read_text(encoding="utf-8"))
        account = asyncio.run(AzureAccount().restore_login(entity))
    except AuthError as e:
        _fail(e)
    except (OSError, ValueError) as e:
        typer.echo(f"Cannot read account snapshot {snapshot}: {e}", err=True)
        raise typer.Exit(1)
    typer.echo(json.dumps(_summary(account), indent=2))


@app.command()
def accounts() -> None:
    """List sign-in strategies and whether each is available here."""
    for account in asyncio.run(AzureAccount().accounts()):
        status = "available" if account.is_available else "unavailable"
        typer.echo(f"{account.auth_type.value:<16} {status}")


@app.command()
def token(
    auth_type: str = typer.Option("auto", "--auth-type", "-t", help="Strategy or 'auto'"),
    scope: Optional[str] = typer.Option(None, "--scope", help="Token scope"),
) -> None:
    """Sign in and print an access token."""

    async def _issue() -> str:
        azure_account = AzureAccount()
        account = await azure_account.login(
            _configuration(auth_type, None, None, None, None, None)
        )
        try:
            return await account.get_token([scope] if scope else None)
        finally:
            azure_account.logout()

    try:
        typer.echo(asyncio.run(_issue()))
    except AuthError as e:
        _fail(e)


if __name__ == "__main__":
    app()
