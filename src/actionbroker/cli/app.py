"""Typer CLI commands."""

from __future__ import annotations

import asyncio
import json

import typer
from rich.console import Console
from rich.markup import escape

from actionbroker.cli.output import (
    print_error,
    print_history,
    print_info,
    print_pending,
    print_result,
)
from actionbroker.exceptions import BrokerError
from actionbroker.models.action import ActionRequest

console = Console()
app = typer.Typer(name="actionbroker", help="Confirm and inspect assistant write actions.")


def _get_services():
    from actionbroker.config.settings import Settings
    from actionbroker.main import build_services, configure_logging

    settings = Settings()
    configure_logging(settings)
    return build_services(settings)


@app.command()
def pending(
    actor_id: str = typer.Argument(..., help="Actor whose pending action to show"),
) -> None:
    """Show the actor's active pending action (expires stale ones)."""
    async def _run():
        services = _get_services()
        await services.db.initialize()
        try:
            record = await services.broker.active(actor_id)
            if record is None:
                print_info("No pending action.")
            else:
                print_pending(record)
        except BrokerError as exc:
            print_error(str(exc))
            raise typer.Exit(1)
        finally:
            await services.db.close()

    asyncio.run(_run())


@app.command()
def confirm(
    actor_id: str = typer.Argument(..., help="Actor confirming the action"),
    action_type: str = typer.Argument(..., help="Action type, e.g. create_task"),
    payload: str = typer.Option("{}", "--payload", "-p", help="Action payload as JSON"),
) -> None:
    """Validate and apply a confirmed action."""
    try:
        data = json.loads(payload)
    except json.JSONDecodeError as exc:
        print_error(f"Payload is not valid JSON: {exc}")
        raise typer.Exit(1)
    if not isinstance(data, dict):
        print_error("Payload must be a JSON object.")
        raise typer.Exit(1)

    async def _run():
        services = _get_services()
        await services.db.initialize()
        try:
            return await services.broker.confirm(
                actor_id, ActionRequest(action_type=action_type, payload=data)
            )
        finally:
            await services.db.close()

    result = asyncio.run(_run())
    print_result(result)
    if not result.success:
        raise typer.Exit(1)


@app.command()
def cancel(
    actor_id: str = typer.Argument(..., help="Actor whose pending action to cancel"),
) -> None:
    """Cancel the actor's active pending action."""
    async def _run():
        services = _get_services()
        await services.db.initialize()
        try:
            return await services.broker.abort(actor_id)
        finally:
            await services.db.close()

    if asyncio.run(_run()):
        print_info("Cancelled.")
    else:
        print_info("No pending action.")


@app.command()
def purge(
    actor_id: str = typer.Argument(..., help="Actor whose old records to purge"),
) -> None:
    """Delete the actor's terminal pending actions past the retention window."""
    async def _run():
        services = _get_services()
        await services.db.initialize()
        try:
            return await services.pending.purge_old(actor_id)
        finally:
            await services.db.close()

    count = asyncio.run(_run())
    print_info(f"Purged {count} record(s).")


@app.command()
def role(
    actor_id: str = typer.Argument(..., help="Actor to update"),
    role_name: str = typer.Argument(..., help="member, manager or admin"),
) -> None:
    """Set an actor's role."""
    from actionbroker.policy.roles import role_from_string

    try:
        new_role = role_from_string(role_name)
    except ValueError as exc:
        print_error(str(exc))
        raise typer.Exit(1)

    async def _run():
        services = _get_services()
        await services.db.initialize()
        try:
            await services.records.set_role(actor_id, new_role)
        finally:
            await services.db.close()

    asyncio.run(_run())
    print_info(f"{actor_id} is now {new_role.name.lower()}.")


@app.command()
def history(
    limit: int = typer.Option(20, "--limit", "-n", help="Number of records"),
) -> None:
    """Show recent audit entries."""
    async def _run():
        services = _get_services()
        await services.db.initialize()
        try:
            return await services.records.get_audit_entries(limit=limit)
        finally:
            await services.db.close()

    entries = asyncio.run(_run())
    if not entries:
        print_info("No history found.")
    else:
        print_history(entries)


@app.command(name="config")
def show_config() -> None:
    """Show current configuration."""
    from actionbroker.config.settings import Settings

    try:
        settings = Settings()
    except Exception as exc:
        print_error(f"Failed to load settings: {exc}")
        raise typer.Exit(1)

    table_data = {
        "DB Path": str(settings.db_path),
        "Pending TTL (s)": str(settings.pending_ttl_seconds),
        "Retention (h)": str(settings.retention_hours),
        "Log Level": settings.log_level,
        "Max Title Length": str(settings.max_title_length),
        "Max Description Length": str(settings.max_description_length),
    }

    from rich.table import Table
    table = Table(title="Configuration", show_header=False)
    table.add_column("Setting", style="bold cyan")
    table.add_column("Value")
    for k, v in table_data.items():
        table.add_row(k, escape(v))
    console.print(table)
