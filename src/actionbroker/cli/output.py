"""Rich display helpers for CLI output.

Every value shown here may carry user text, so it is escaped before it is
placed in a markup string or a table cell.
"""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from actionbroker.models.action import ActionResult
from actionbroker.models.pending import PendingAction
from actionbroker.models.records import AuditEntry

console = Console()


def print_pending(pending: PendingAction) -> None:
    table = Table(title="Pending Action", show_header=False, expand=True)
    table.add_column("Field", style="bold cyan")
    table.add_column("Value")
    table.add_row("ID", escape(pending.id))
    table.add_row("Intent", escape(pending.intent_type))
    table.add_row("Status", pending.status.value)
    if pending.draft_payload:
        payload_str = ", ".join(f"{k}={v}" for k, v in pending.draft_payload.items())
        table.add_row("Draft", escape(payload_str))
    table.add_row("Missing", escape(", ".join(pending.missing_fields)) or "-")
    if pending.follow_up_question:
        table.add_row("Next question", escape(pending.follow_up_question))
    table.add_row("Expires", pending.expires_at.isoformat())
    console.print(table)


def print_result(result: ActionResult) -> None:
    if result.success:
        body = f"[green]{escape(result.message)}[/]"
        if result.href:
            body += f"\n[dim]{escape(result.href)}[/]"
        console.print(Panel(body, title="Done", border_style="green"))
        return
    body = f"[red]{escape(result.message)}[/]"
    if result.error_kind is not None:
        body += f"\n[dim]{result.error_kind.value}[/]"
    console.print(Panel(body, title="Failed", border_style="red"))


def print_error(message: str) -> None:
    console.print(Panel(f"[red]{escape(message)}[/]", title="Error", border_style="red"))


def print_info(message: str) -> None:
    console.print(f"[dim]{escape(message)}[/]")


def print_history(entries: list[AuditEntry]) -> None:
    table = Table(title="Audit History", expand=True)
    table.add_column("Time")
    table.add_column("Actor")
    table.add_column("Action", style="cyan")
    table.add_column("Entity")
    table.add_column("Details")

    for entry in entries:
        entity = entry.entity_type
        if entry.entity_id:
            entity += f":{entry.entity_id}"
        details = ", ".join(
            f"{k}={v}" for k, v in entry.details.items() if k != "source"
        )
        table.add_row(
            entry.created_at.isoformat(timespec="seconds"),
            escape(entry.user_id),
            escape(entry.action),
            escape(entity),
            escape(details),
        )

    console.print(table)
