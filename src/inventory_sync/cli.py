"""CLI for Inventory Sync."""

import asyncio

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from inventory_sync.client.remote import InventoryClient, RemoteError
from inventory_sync.config import configure_logging, get_settings
from inventory_sync.core.filters import visible
from inventory_sync.core.models import (
    InventoryCreate,
    InventoryStats,
    InventoryUpdate,
    NoticeLevel,
    Snapshot,
)
from inventory_sync.core.mutations import MutationError
from inventory_sync.core.notifications import Notice
from inventory_sync.core.sync_service import InventorySync

app = typer.Typer(
    name="inventory-sync",
    help="Inventory Sync CLI - watch stock levels and edit inventory records",
    add_completion=False,
)
console = Console()

NOTICE_STYLES = {
    NoticeLevel.SUCCESS: "green",
    NoticeLevel.INFO: "blue",
    NoticeLevel.WARNING: "yellow",
    NoticeLevel.ERROR: "red",
}


def print_connection() -> None:
    settings = get_settings()
    console.print(Panel.fit(
        f"[bold]Service:[/bold] {settings.remote.base_url}\n"
        f"[bold]Auth:[/bold] {'Bearer token' if settings.remote.token else 'None'}\n"
        f"[bold]Refresh:[/bold] every {settings.sync.refresh_interval_seconds:g}s",
        title="Inventory Service",
    ))


def print_notice(notice: Notice) -> None:
    style = NOTICE_STYLES[notice.level]
    console.print(f"[{style}]{notice.created_ts:%H:%M:%S} {notice.message}[/{style}]")


def inventory_table(rows: Snapshot, title: str = "Inventory") -> Table:
    table = Table(title=title)
    table.add_column("ID", justify="right")
    table.add_column("Name")
    table.add_column("Category")
    table.add_column("Quantity", justify="right")
    table.add_column("Min", justify="right")
    table.add_column("Price", justify="right")
    table.add_column("Status")
    for r in rows:
        if r.is_placeholder:
            status = "[magenta]needs setup[/magenta]"
        elif r.is_out_of_stock:
            status = "[red]out of stock[/red]"
        elif r.is_low_stock:
            status = "[yellow]low[/yellow]"
        else:
            status = "[green]ok[/green]"
        table.add_row(
            str(r.id),
            r.name,
            r.category,
            f"{r.quantity:g} {r.unit}".strip(),
            f"{r.min_quantity:g}",
            f"{r.price:g}",
            status,
        )
    return table


def print_stats(stats: InventoryStats) -> None:
    console.print(
        f"[bold]Total:[/bold] {stats.total_items}  "
        f"[bold]Low stock:[/bold] {stats.low_stock_count}  "
        f"[bold]Out of stock:[/bold] {stats.out_of_stock_count}"
    )


@app.callback()
def main(
    log_level: str = typer.Option(None, "--log-level", help="Override LOG_LEVEL"),
):
    """Configure logging for every command."""
    configure_logging(log_level)


@app.command()
def watch(
    search: str = typer.Option("", "--search", "-s", help="Server-side search term"),
    interval: float = typer.Option(None, "--interval", help="Seconds between refreshes"),
):
    """Follow the inventory and print stock alerts as they happen."""
    settings = get_settings().sync
    if interval is not None:
        settings = settings.model_copy(update={"refresh_interval_seconds": interval})
    print_connection()

    async def run() -> None:
        async with InventoryClient() as client:
            sync = InventorySync(client, settings)
            sync.notifications.subscribe(print_notice)
            sync.search_query = search
            async with sync:
                console.print(inventory_table(sync.visible_rows))
                print_stats(sync.stats)
                console.print(f"\n[blue]{sync.status_message}[/blue] (Ctrl+C to stop)\n")
                while True:
                    await asyncio.sleep(3600)

    try:
        asyncio.run(run())
    except KeyboardInterrupt:
        console.print("[yellow]Stopped.[/yellow]")


@app.command("list")
def list_items(
    query: str = typer.Argument("", help="Filter by name or category"),
    category: str = typer.Option(None, "--category", "-c", help="Exact category"),
):
    """Show inventory records once."""

    async def run() -> Snapshot:
        async with InventoryClient() as client:
            return tuple(await client.list_inventory())

    try:
        snapshot = asyncio.run(run())
    except RemoteError as e:
        console.print(f"[red]✗ Error loading inventory: {e}[/red]")
        raise typer.Exit(1)

    rows = visible(snapshot, query, category)
    console.print(inventory_table(rows))
    print_stats(InventoryStats.from_snapshot(rows))


@app.command()
def stats():
    """Show aggregate counters from the service."""

    async def run() -> InventoryStats:
        async with InventoryClient() as client:
            return await client.get_inventory_stats()

    try:
        print_stats(asyncio.run(run()))
    except RemoteError as e:
        console.print(f"[red]✗ Error loading stats: {e}[/red]")
        raise typer.Exit(1)


def _mutate(operation) -> None:
    """Mount a view, run one write through it and print the outcome."""

    async def run() -> None:
        async with InventoryClient() as client:
            sync = InventorySync(client)
            sync.notifications.subscribe(print_notice)
            async with sync:
                await operation(sync)

    try:
        asyncio.run(run())
    except MutationError:
        raise typer.Exit(1)


@app.command()
def add(
    name: str = typer.Argument(..., help="Item name"),
    category: str = typer.Argument(..., help="Item category"),
    quantity: float = typer.Option(0, "--quantity", "-q", min=0),
    unit: str = typer.Option("", "--unit", "-u"),
    min_quantity: float = typer.Option(0, "--min", min=0, help="Low stock threshold"),
    price: float = typer.Option(0, "--price", "-p", min=0),
):
    """Add an inventory record."""
    fields = InventoryCreate(
        name=name,
        category=category,
        quantity=quantity,
        unit=unit,
        min_quantity=min_quantity,
        price=price,
    )
    _mutate(lambda sync: sync.create_item(fields))


@app.command()
def update(
    record_id: int = typer.Argument(..., help="Record ID"),
    name: str = typer.Option(None, "--name"),
    category: str = typer.Option(None, "--category", "-c"),
    quantity: float = typer.Option(None, "--quantity", "-q", min=0),
    unit: str = typer.Option(None, "--unit", "-u"),
    min_quantity: float = typer.Option(None, "--min", min=0, help="Low stock threshold"),
    price: float = typer.Option(None, "--price", "-p", min=0),
):
    """Update fields of an inventory record."""
    patch = InventoryUpdate(
        name=name,
        category=category,
        quantity=quantity,
        unit=unit,
        min_quantity=min_quantity,
        price=price,
    )
    if not patch.payload():
        console.print("[yellow]Nothing to update.[/yellow]")
        raise typer.Exit(0)
    _mutate(lambda sync: sync.update_item(record_id, patch))


@app.command()
def delete(
    record_id: int = typer.Argument(..., help="Record ID"),
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation prompt"),
):
    """Delete an inventory record."""
    if not force:
        confirm = typer.confirm(f"Delete inventory record {record_id}?")
        if not confirm:
            console.print("[yellow]Aborted.[/yellow]")
            raise typer.Exit(0)
    _mutate(lambda sync: sync.delete_item(record_id))


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", "--host"),
    port: int = typer.Option(8000, "--port"),
):
    """Run the HTTP API for the dashboard."""
    import uvicorn

    print_connection()
    uvicorn.run("inventory_sync.api.main:app", host=host, port=port)


if __name__ == "__main__":
    app()
